"""Decide whether the interview must move on to a new topic."""
from __future__ import annotations

from typing import Any, Mapping, Sequence

LOOKBACK = 2


def _follow_up_intent(message: Any) -> bool:
    if isinstance(message, Mapping):
        structured = message.get("structured_response")
    else:
        structured = getattr(message, "structured_response", None)
    if structured is None:
        return False
    if isinstance(structured, Mapping):
        return structured.get("follow_up_intent") is True
    return getattr(structured, "follow_up_intent", False) is True


def should_force_new_topic(recent_interviewer_messages: Sequence[Any]) -> bool:
    """Return True when the two newest interviewer turns were both follow-ups.

    ``recent_interviewer_messages`` is ordered newest first. With fewer than two
    interviewer turns on record a follow-up is always allowed.
    """

    if len(recent_interviewer_messages) < LOOKBACK:
        return False
    return all(_follow_up_intent(msg) for msg in recent_interviewer_messages[:LOOKBACK])


__all__ = ["LOOKBACK", "should_force_new_topic"]
