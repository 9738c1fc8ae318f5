import pytest
from pydantic import ValidationError

from services.errors import InvalidTransition, SessionNotActive
from services.session_state import InterviewSession


def _session(**overrides):
    data = dict(id="s1", user_id="u1", job_type="backend", status="active")
    data.update(overrides)
    return InterviewSession(**data)


@pytest.mark.parametrize(
    "start, target",
    [("waiting", "active"), ("active", "paused"), ("active", "completed"), ("paused", "active")],
)
def test_allowed_transitions(start, target):
    moved = _session(status=start).transition(target)
    assert moved.status == target


@pytest.mark.parametrize(
    "start, target",
    [("waiting", "paused"), ("paused", "completed"), ("completed", "active"), ("active", "waiting")],
)
def test_rejected_transitions(start, target):
    session = _session(status=start)
    with pytest.raises(InvalidTransition):
        session.transition(target)
    assert session.status == start


def test_advance_moves_pointer_and_counts():
    session = _session(turn_count=2)
    advanced = session.advance("hr_manager")
    assert advanced.turn_count == 3
    assert advanced.current_interviewer_id == "hr_manager"
    assert advanced.status == "active"
    assert session.turn_count == 2


def test_advance_completes_at_max_turns():
    advanced = _session(turn_count=9, max_turns=10).advance("senior_peer")
    assert advanced.turn_count == 10
    assert advanced.status == "completed"
    assert advanced.is_terminal


def test_advance_requires_active():
    with pytest.raises(SessionNotActive):
        _session(status="paused").advance("hr_manager")


def test_completed_after_exactly_max_turns():
    session = _session(max_turns=4)
    for _ in range(4):
        session = session.advance("hiring_manager")
    assert session.turn_count == 4
    assert session.status == "completed"


def test_turn_count_cannot_exceed_max_turns():
    with pytest.raises(ValidationError):
        _session(turn_count=11, max_turns=10)


def test_display_name_and_personality_lookup():
    session = _session(
        config={
            "interviewer_names": {"hr_manager": "Emily Han"},
            "interviewer_personalities": {"hr_manager": "ISFJ"},
        }
    )
    assert session.display_name("hr_manager") == "Emily Han"
    assert session.personality("hr_manager") == "ISFJ"
    assert session.display_name("senior_peer") is None
    assert session.config.timer.default_time_limit == 120
