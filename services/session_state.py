"""Explicit interview session state with validated status transitions."""
from __future__ import annotations

import datetime as dt
from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from agents.types import Difficulty, PersonaId
from services.errors import InvalidTransition, SessionNotActive

SessionStatus = Literal["waiting", "active", "paused", "completed"]

TRANSITIONS: Dict[str, frozenset] = {
    "waiting": frozenset({"active"}),
    "active": frozenset({"paused", "completed"}),
    "paused": frozenset({"active"}),
    "completed": frozenset(),
}


def utcnow() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


class TimerConfig(BaseModel):
    default_time_limit: int = 120
    warning_threshold: int = 30
    auto_submit_on_timeout: bool = True


class SessionConfig(BaseModel):
    timer: TimerConfig = Field(default_factory=TimerConfig)
    interviewer_names: Dict[str, str] = Field(default_factory=dict)
    interviewer_personalities: Dict[str, str] = Field(default_factory=dict)


class InterviewSession(BaseModel):
    """One mock interview; mutated once per accepted turn, never deleted."""

    id: str
    user_id: str
    job_type: str
    industry: Optional[str] = None
    difficulty: Difficulty = "medium"
    resume_doc_id: Optional[str] = None
    portfolio_doc_id: Optional[str] = None

    status: SessionStatus = "waiting"
    turn_count: int = Field(default=0, ge=0)
    max_turns: int = Field(default=10, ge=1)
    current_interviewer_id: PersonaId = "hiring_manager"

    config: SessionConfig = Field(default_factory=SessionConfig)
    created_at: str = Field(default_factory=utcnow)
    updated_at: str = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def _turns_within_limit(self) -> "InterviewSession":
        if self.turn_count > self.max_turns:
            raise ValueError("turn_count cannot exceed max_turns")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.status == "completed"

    def can_transition(self, target: SessionStatus) -> bool:
        return target in TRANSITIONS[self.status]

    def transition(self, target: SessionStatus) -> "InterviewSession":
        """Return a copy moved to ``target`` or raise ``InvalidTransition``."""

        if not self.can_transition(target):
            raise InvalidTransition(f"{self.status} -> {target} is not a valid transition")
        return self.model_copy(update={"status": target, "updated_at": utcnow()})

    def advance(self, next_persona_id: PersonaId) -> "InterviewSession":
        """Apply one accepted turn: bump the counter, move the pointer, maybe complete."""

        if self.status != "active":
            raise SessionNotActive(f"session {self.id} is {self.status}")
        turn_count = self.turn_count + 1
        status: SessionStatus = "completed" if turn_count >= self.max_turns else "active"
        return self.model_copy(
            update={
                "turn_count": turn_count,
                "current_interviewer_id": next_persona_id,
                "status": status,
                "updated_at": utcnow(),
            }
        )

    def display_name(self, persona_id: str) -> Optional[str]:
        return self.config.interviewer_names.get(persona_id)

    def personality(self, persona_id: str) -> Optional[str]:
        return self.config.interviewer_personalities.get(persona_id)


__all__ = [
    "InterviewSession",
    "SessionConfig",
    "SessionStatus",
    "TRANSITIONS",
    "TimerConfig",
    "utcnow",
]
