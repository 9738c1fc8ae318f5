"""Pydantic schemas for the interview HTTP API."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from agents.types import Difficulty
from services.session_state import TimerConfig
from storage.messages import StoredMessage


class StartReq(BaseModel):
    user_id: str
    job_type: str
    industry: Optional[str] = None
    difficulty: Difficulty = "medium"
    resume_doc_id: Optional[str] = None
    portfolio_doc_id: Optional[str] = None
    timer_config: Optional[TimerConfig] = None
    max_turns: Optional[int] = Field(default=None, ge=1)


class MessageReq(BaseModel):
    session_id: Optional[str] = None
    content: Optional[str] = None
    audio_url: Optional[str] = None
    timeout_save_only: bool = False


class SessionReq(BaseModel):
    session_id: str


class MessageOut(BaseModel):
    id: str
    session_id: str
    role: str
    interviewer_id: Optional[str] = None
    content: str
    structured_response: Optional[Dict[str, Any]] = None
    audio_url: Optional[str] = None
    timestamp: str
    latency_ms: Optional[int] = None

    @classmethod
    def from_stored(cls, msg: StoredMessage) -> "MessageOut":
        return cls(
            id=msg.id,
            session_id=msg.session_id,
            role=msg.role,
            interviewer_id=msg.interviewer_id,
            content=msg.content,
            structured_response=msg.structured_response,
            audio_url=msg.audio_url,
            timestamp=msg.created_at,
            latency_ms=msg.latency_ms,
        )


class InterviewerOut(BaseModel):
    id: str
    name: str
    role: str
    personality: Optional[str] = None


class SessionOut(BaseModel):
    id: str
    user_id: str
    job_type: str
    industry: Optional[str] = None
    difficulty: str
    status: str
    turn_count: int
    max_turns: int
    current_interviewer_id: str
    timer_config: Dict[str, Any]
    created_at: str
    updated_at: str


class StartResp(BaseModel):
    success: bool = True
    session: SessionOut
    first_message: MessageOut
    interviewer: InterviewerOut
    interviewer_names: Dict[str, str] = Field(default_factory=dict)


class MessageResp(BaseModel):
    success: bool = True
    user_message: MessageOut
    interviewer_response: Optional[MessageOut] = None
    interviewer: Optional[InterviewerOut] = None
    session_status: str
    turn_count: int
    should_end: bool
    saved_only: bool = False
    total_latency_ms: int = 0


class StatusResp(BaseModel):
    success: bool = True
    session: SessionOut


class SessionDetailResp(BaseModel):
    success: bool = True
    session: SessionOut
    messages: List[MessageOut] = Field(default_factory=list)


class ErrorResp(BaseModel):
    success: bool = False
    error: str
    details: Optional[str] = None


class TranscribeResp(BaseModel):
    success: bool = True
    text: str
    timestamp: str
    test_mode: bool = False
    latency_ms: int = 0
