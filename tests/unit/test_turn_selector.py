import random

import pytest

from agents.personas import BASE_WEIGHTS, PERSONA_ORDER
from agents.turn_selector import follow_up_probability, select_next_turn, select_weighted
from conftest import SeqRandom


@pytest.mark.parametrize(
    "turn_count, expected",
    [(0, 0.6), (1, 0.55), (2, 0.5), (6, 0.3), (10, 0.3), (50, 0.3)],
)
def test_follow_up_probability_decays_to_floor(turn_count, expected):
    assert follow_up_probability(turn_count) == pytest.approx(expected)


def test_select_weighted_walks_in_order():
    eligible = ["hiring_manager", "hr_manager"]
    assert select_weighted(eligible, BASE_WEIGHTS, SeqRandom([0.0])) == "hiring_manager"
    assert select_weighted(eligible, BASE_WEIGHTS, SeqRandom([0.5])) == "hiring_manager"
    assert select_weighted(eligible, BASE_WEIGHTS, SeqRandom([0.99])) == "hr_manager"


def test_select_weighted_falls_back_to_first_when_draw_unconsumed():
    eligible = ["hr_manager", "senior_peer"]
    assert select_weighted(eligible, BASE_WEIGHTS, SeqRandom([1.5])) == "hr_manager"


def test_select_weighted_requires_candidates():
    with pytest.raises(ValueError):
        select_weighted([], BASE_WEIGHTS, SeqRandom([0.5]))


def test_select_weighted_frequency_matches_weights():
    rng = random.Random(1234)
    eligible = ["hiring_manager", "hr_manager"]
    draws = 10_000
    hits = sum(1 for _ in range(draws) if select_weighted(eligible, BASE_WEIGHTS, rng) == "hiring_manager")
    assert abs(hits / draws - 2 / 3) < 0.05


@pytest.mark.parametrize("current", PERSONA_ORDER)
def test_forced_switch_never_keeps_current_persona(current):
    rng = random.Random(42)
    for turn in range(200):
        decision = select_next_turn(current, turn % 12, True, rng)
        assert decision.next_persona_id != current
        assert decision.is_follow_up is False
        assert decision.should_force_new_topic is True


def test_follow_up_keeps_persona_when_draw_below_probability():
    decision = select_next_turn("senior_peer", 0, False, SeqRandom([0.1]))
    assert decision.next_persona_id == "senior_peer"
    assert decision.is_follow_up is True
    assert decision.should_force_new_topic is False


def test_switches_persona_when_draw_above_probability():
    decision = select_next_turn("hiring_manager", 0, False, SeqRandom([0.9, 0.0]))
    assert decision.next_persona_id == "hr_manager"
    assert decision.is_follow_up is False
    assert decision.should_force_new_topic is False


def test_late_turns_use_probability_floor():
    stays = select_next_turn("hr_manager", 10, False, SeqRandom([0.29]))
    assert stays.is_follow_up is True
    moves = select_next_turn("hr_manager", 10, False, SeqRandom([0.31, 0.99]))
    assert moves.is_follow_up is False
    assert moves.next_persona_id == "senior_peer"
