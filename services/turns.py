"""Submit-user-turn orchestration.

One call handles one user answer: persist it, pick the next interviewer,
assemble retrieval context, generate the reply and advance the session.
Collaborator lookups are best effort; generation and persistence failures
abort the turn and leave the user message on record.
"""
from __future__ import annotations

import logging
import sqlite3
import time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from agents.context_assembler import assemble_context
from agents.followup_classifier import should_force_new_topic
from agents.interviewer import generate_response, to_chat_history
from agents.keyword_extractor import extract_keywords
from agents.turn_selector import RandomSource, select_next_turn
from agents.types import GenerationOptions
from observability import log_event, span, total_ms
from services.errors import (
    GenerationError,
    InvalidTurnRequest,
    SessionNotActive,
    TurnFailed,
)
from services.session_state import InterviewSession, SessionStatus
from services.sessions import InterviewerCard, commit_turn, interviewer_card, require_session
from storage.keywords import upsert_keyword
from storage.messages import StoredMessage, insert_message, list_messages, recent_interviewer_messages

logger = logging.getLogger(__name__)

CLASSIFIER_LOOKBACK = 3


class TurnRequest(BaseModel):
    session_id: Optional[str] = None
    content: Optional[str] = None
    audio_url: Optional[str] = None
    timeout_save_only: bool = False


class TurnResult(BaseModel):
    user_message: StoredMessage
    interviewer_message: Optional[StoredMessage] = None
    next_persona: Optional[InterviewerCard] = None
    session_status: SessionStatus
    turn_count: int
    should_end: bool = False
    is_follow_up: Optional[bool] = None
    forced_new_topic: Optional[bool] = None
    events: List[Dict[str, Any]] = Field(default_factory=list)
    total_latency_ms: int = 0


def _validate(req: TurnRequest) -> tuple[str, str]:
    session_id = (req.session_id or "").strip()
    content = (req.content or "").strip()
    if not session_id or not content:
        raise InvalidTurnRequest("session_id and content are required")
    return session_id, content


def remember_keywords(session: InterviewSession, conversation: List[Dict[str, str]]) -> int:
    """Extract keywords from the self-introduction and upsert them; returns rows stored."""

    extracted = extract_keywords(conversation, session.job_type)
    stored = 0
    for keyword in extracted.keywords:
        try:
            upsert_keyword(session.user_id, keyword)
            stored += 1
        except (sqlite3.Error, ValueError) as exc:
            logger.warning("Keyword upsert failed for %r: %s", keyword.keyword, exc)
    return stored


def submit_user_turn(req: TurnRequest, rng: Optional[RandomSource] = None) -> TurnResult:
    """Handle one user answer and return the interviewer's reply."""

    started = time.perf_counter()
    events: List[Dict[str, Any]] = []
    session_id, content = _validate(req)

    session = require_session(session_id)
    if session.status != "active":
        raise SessionNotActive(f"session {session_id} is {session.status}")

    try:
        user_message = insert_message(
            session_id=session_id,
            role="user",
            content=content,
            audio_url=req.audio_url,
        )
    except sqlite3.Error as exc:
        logger.error("Failed to save user message for session %s: %s", session_id, exc)
        raise TurnFailed(f"Failed to save user message: {exc}") from exc

    if req.timeout_save_only:
        log_event("turn_saved_on_timeout", session_id, turn=session.turn_count, status=session.status)
        return TurnResult(
            user_message=user_message,
            session_status=session.status,
            turn_count=session.turn_count,
            total_latency_ms=int((time.perf_counter() - started) * 1000),
        )

    try:
        with span(events, "history"):
            history = list_messages(session_id, exclude_id=user_message.id)
            recent = recent_interviewer_messages(session_id, limit=CLASSIFIER_LOOKBACK)
    except sqlite3.Error as exc:
        logger.error("Failed to load history for session %s: %s", session_id, exc)
        raise TurnFailed(f"Failed to fetch history: {exc}") from exc

    conversation = to_chat_history(history)
    conversation.append({"role": "user", "content": content})

    force_new = should_force_new_topic(recent)
    decision = select_next_turn(
        session.current_interviewer_id,
        session.turn_count,
        force_new,
        rng,
    )
    next_persona = decision.next_persona_id

    with span(events, "context"):
        ctx = assemble_context(
            user_id=session.user_id,
            user_message=content,
            job_type=session.job_type,
            industry=session.industry,
            resume_doc_id=session.resume_doc_id,
            portfolio_doc_id=session.portfolio_doc_id,
            asked_questions=[m.content for m in history if m.role == "interviewer"],
        )

    try:
        with span(events, "generate"):
            reply = generate_response(
                conversation,
                next_persona,
                session.job_type,
                True,
                ctx.text or None,
                GenerationOptions(
                    industry=session.industry,
                    difficulty=session.difficulty,
                    turn_count=session.turn_count + 1,
                    keyword_text=ctx.keyword_text,
                    is_follow_up=decision.is_follow_up,
                    force_new_topic=decision.should_force_new_topic,
                    reference_questions=[q.question for q in ctx.questions],
                    display_name=session.display_name(next_persona),
                    personality=session.personality(next_persona),
                ),
            )
    except GenerationError as exc:
        log_event("turn_failed", session_id, persona=next_persona, outcome="generation", error=exc.detail)
        raise TurnFailed(exc.detail) from exc

    try:
        interviewer_message = insert_message(
            session_id=session_id,
            role="interviewer",
            interviewer_id=next_persona,
            content=reply.text,
            structured_response=reply.structured.model_dump() if reply.structured else None,
            latency_ms=reply.latency_ms,
        )
        updated = commit_turn(session, next_persona)
    except sqlite3.Error as exc:
        logger.error("Failed to persist turn for session %s: %s", session_id, exc)
        log_event("turn_failed", session_id, persona=next_persona, outcome="persistence", error=str(exc))
        raise TurnFailed(f"Failed to persist turn: {exc}") from exc

    if session.turn_count == 0:
        with span(events, "keywords"):
            remember_keywords(session, conversation)

    elapsed_ms = int((time.perf_counter() - started) * 1000)
    log_event(
        "turn_completed",
        session_id,
        persona=next_persona,
        turn=updated.turn_count,
        follow_up=decision.is_follow_up,
        forced=decision.should_force_new_topic,
        status=updated.status,
        ms=elapsed_ms,
        stage_ms=total_ms(events),
    )

    return TurnResult(
        user_message=user_message,
        interviewer_message=interviewer_message,
        next_persona=interviewer_card(updated, next_persona),
        session_status=updated.status,
        turn_count=updated.turn_count,
        should_end=updated.is_terminal,
        is_follow_up=decision.is_follow_up,
        forced_new_topic=decision.should_force_new_topic,
        events=events,
        total_latency_ms=elapsed_ms,
    )


__all__ = ["TurnRequest", "TurnResult", "remember_keywords", "submit_user_turn"]
