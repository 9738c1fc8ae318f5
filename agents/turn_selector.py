"""Weighted persona rotation and follow-up decision for each turn."""
from __future__ import annotations

import random
from typing import Mapping, Optional, Protocol, Sequence

from agents.personas import BASE_WEIGHTS, others
from agents.types import PersonaId, TurnDecision

FOLLOW_UP_BASE = 0.6
FOLLOW_UP_DECAY = 0.05
FOLLOW_UP_FLOOR = 0.3


class RandomSource(Protocol):
    def random(self) -> float: ...


def follow_up_probability(turn_count: int) -> float:
    return max(FOLLOW_UP_FLOOR, FOLLOW_UP_BASE - turn_count * FOLLOW_UP_DECAY)


def select_weighted(
    eligible: Sequence[PersonaId],
    weights: Mapping[str, float],
    rng: RandomSource,
) -> PersonaId:
    """Pick one id from ``eligible`` with probability proportional to its weight."""

    if not eligible:
        raise ValueError("No eligible personas to choose from")
    total = sum(weights[pid] for pid in eligible)
    draw = rng.random() * total
    cumulative = 0.0
    for pid in eligible:
        cumulative += weights[pid]
        if cumulative >= draw:
            return pid
    return eligible[0]


def select_next_turn(
    current_persona_id: PersonaId,
    turn_count: int,
    force_new_question: bool,
    rng: Optional[RandomSource] = None,
    weights: Mapping[str, float] = BASE_WEIGHTS,
) -> TurnDecision:
    """Choose the next speaker and whether the turn is a follow-up."""

    source = rng or random
    candidates = others(current_persona_id)

    if force_new_question:
        return TurnDecision(
            next_persona_id=select_weighted(candidates, weights, source),
            is_follow_up=False,
            should_force_new_topic=True,
        )

    if source.random() < follow_up_probability(turn_count):
        return TurnDecision(
            next_persona_id=current_persona_id,
            is_follow_up=True,
            should_force_new_topic=False,
        )

    return TurnDecision(
        next_persona_id=select_weighted(candidates, weights, source),
        is_follow_up=False,
        should_force_new_topic=False,
    )


__all__ = [
    "FOLLOW_UP_BASE",
    "FOLLOW_UP_DECAY",
    "FOLLOW_UP_FLOOR",
    "RandomSource",
    "follow_up_probability",
    "select_next_turn",
    "select_weighted",
]
