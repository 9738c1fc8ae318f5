"""Helpers for creating, loading and advancing interview sessions."""
from __future__ import annotations

import logging
import random
import sqlite3
import uuid
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from agents.context_assembler import assemble_context
from agents.interviewer import generate_response
from agents.personas import assign_session_personas, get_persona
from agents.types import Difficulty, GenerationOptions, PersonaId
from config.settings import settings
from observability import log_event
from services.errors import SessionNotFound, StaleSessionError, StorageFailure
from services.session_state import InterviewSession, SessionConfig, SessionStatus, TimerConfig
from storage.messages import StoredMessage, insert_message, list_messages
from storage.sessions import get_session, insert_session, update_status, update_turn

logger = logging.getLogger(__name__)

OPENING_PERSONA: PersonaId = "hiring_manager"
OPENING_CUE = "[Interview start] The candidate has entered the room."
RESUME_OPENING_QUERY = "self introduction and career summary"
PORTFOLIO_OPENING_QUERY = "project experience and tech stack"


class StartRequest(BaseModel):
    user_id: str
    job_type: str
    industry: Optional[str] = None
    difficulty: Difficulty = "medium"
    resume_doc_id: Optional[str] = None
    portfolio_doc_id: Optional[str] = None
    timer_config: Optional[TimerConfig] = None
    max_turns: Optional[int] = Field(default=None, ge=1)


class InterviewerCard(BaseModel):
    id: PersonaId
    name: str
    role: str
    personality: Optional[str] = None


class StartResult(BaseModel):
    session: InterviewSession
    first_message: Optional[StoredMessage] = None
    opening_text: str
    latency_ms: int = 0
    interviewer: InterviewerCard
    interviewer_names: Dict[str, str] = Field(default_factory=dict)


def interviewer_card(session: InterviewSession, persona_id: PersonaId) -> InterviewerCard:
    persona = get_persona(persona_id)
    return InterviewerCard(
        id=persona_id,
        name=session.display_name(persona_id) or persona.name,
        role=persona.role,
        personality=session.personality(persona_id) or persona.personality,
    )


def new_session(req: StartRequest, rng: Optional[random.Random] = None) -> InterviewSession:
    """Build an unsaved session in ``waiting`` with per-session persona names."""

    names, personalities = assign_session_personas(rng)
    return InterviewSession(
        id=str(uuid.uuid4()),
        user_id=req.user_id,
        job_type=req.job_type,
        industry=req.industry,
        difficulty=req.difficulty,
        resume_doc_id=req.resume_doc_id,
        portfolio_doc_id=req.portfolio_doc_id,
        status="waiting",
        turn_count=0,
        max_turns=req.max_turns or settings.MAX_TURNS,
        current_interviewer_id=OPENING_PERSONA,
        config=SessionConfig(
            timer=req.timer_config or TimerConfig(),
            interviewer_names=names,
            interviewer_personalities=personalities,
        ),
    )


def load_session(session_id: str) -> Optional[InterviewSession]:
    try:
        return get_session(session_id)
    except sqlite3.Error as exc:
        logger.error("Failed to load session %s: %s", session_id, exc)
        raise StorageFailure(f"Failed to load session: {exc}") from exc


def require_session(session_id: str) -> InterviewSession:
    session = load_session(session_id)
    if session is None:
        raise SessionNotFound(f"session {session_id} not found")
    return session


def load_transcript(session_id: str) -> Tuple[InterviewSession, List[StoredMessage]]:
    """Return a session with its messages in arrival order."""

    session = require_session(session_id)
    try:
        messages = list_messages(session_id)
    except sqlite3.Error as exc:
        logger.error("Failed to load messages for session %s: %s", session_id, exc)
        raise StorageFailure(f"Failed to load messages: {exc}") from exc
    return session, messages


def start_interview(req: StartRequest, rng: Optional[random.Random] = None) -> StartResult:
    """Create an active session and generate the hiring manager's opening line."""

    session = new_session(req, rng).transition("active")
    try:
        insert_session(session)
    except sqlite3.Error as exc:
        logger.error("Failed to create session for user %s: %s", req.user_id, exc)
        raise StorageFailure(f"Failed to create session: {exc}") from exc
    log_event("session_started", session.id, persona=OPENING_PERSONA, turn=0, status=session.status)

    ctx = assemble_context(
        user_id=session.user_id,
        user_message=OPENING_CUE,
        job_type=session.job_type,
        industry=session.industry,
        resume_doc_id=session.resume_doc_id,
        portfolio_doc_id=session.portfolio_doc_id,
        resume_query=RESUME_OPENING_QUERY,
        portfolio_query=PORTFOLIO_OPENING_QUERY,
    )
    reply = generate_response(
        [{"role": "user", "content": OPENING_CUE}],
        OPENING_PERSONA,
        session.job_type,
        False,
        ctx.text or None,
        GenerationOptions(
            industry=session.industry,
            difficulty=session.difficulty,
            turn_count=1,
            keyword_text=ctx.keyword_text,
            reference_questions=[q.question for q in ctx.questions],
            display_name=session.display_name(OPENING_PERSONA),
            personality=session.personality(OPENING_PERSONA),
        ),
    )

    first_message: Optional[StoredMessage] = None
    try:
        first_message = insert_message(
            session_id=session.id,
            role="interviewer",
            interviewer_id=OPENING_PERSONA,
            content=reply.text,
            latency_ms=reply.latency_ms,
        )
    except sqlite3.Error as exc:
        logger.error("Failed to save opening message for session %s: %s", session.id, exc)

    return StartResult(
        session=session,
        first_message=first_message,
        opening_text=reply.text,
        latency_ms=reply.latency_ms,
        interviewer=interviewer_card(session, OPENING_PERSONA),
        interviewer_names=dict(session.config.interviewer_names),
    )


def commit_turn(session: InterviewSession, next_persona_id: PersonaId) -> InterviewSession:
    """Persist one accepted turn, rejecting writes based on a stale turn count."""

    advanced = session.advance(next_persona_id)
    written = update_turn(
        session.id,
        expected_turn_count=session.turn_count,
        turn_count=advanced.turn_count,
        current_interviewer_id=advanced.current_interviewer_id,
        status=advanced.status,
    )
    if not written:
        raise StaleSessionError(
            f"session {session.id} changed since turn {session.turn_count} was read"
        )
    return advanced


def _change_status(session_id: str, target: SessionStatus) -> InterviewSession:
    session = require_session(session_id)
    moved = session.transition(target)
    try:
        written = update_status(session_id, expected_status=session.status, status=target)
    except sqlite3.Error as exc:
        logger.error("Failed to set session %s to %s: %s", session_id, target, exc)
        raise StorageFailure(f"Failed to update session status: {exc}") from exc
    if not written:
        raise StaleSessionError(f"session {session_id} status changed concurrently")
    log_event("session_status", session_id, status=target, turn=session.turn_count)
    return moved


def pause_session(session_id: str) -> InterviewSession:
    return _change_status(session_id, "paused")


def resume_session(session_id: str) -> InterviewSession:
    return _change_status(session_id, "active")


__all__ = [
    "InterviewerCard",
    "OPENING_CUE",
    "OPENING_PERSONA",
    "StartRequest",
    "StartResult",
    "commit_turn",
    "interviewer_card",
    "load_session",
    "load_transcript",
    "new_session",
    "pause_session",
    "require_session",
    "resume_session",
    "start_interview",
]
