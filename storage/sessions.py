"""Persistence helpers for interview sessions."""
from __future__ import annotations

import sqlite3
from typing import Optional

from services.session_state import InterviewSession, SessionConfig, utcnow

from .sqlite import get_conn


def _row_to_session(row: sqlite3.Row) -> InterviewSession:
    data = dict(row)
    data["config"] = SessionConfig.model_validate_json(data["config"])
    return InterviewSession(**data)


def insert_session(session: InterviewSession) -> None:
    with get_conn() as conn:
        conn.execute(
            """INSERT INTO interview_sessions
               (id, user_id, job_type, industry, difficulty, resume_doc_id, portfolio_doc_id,
                status, turn_count, max_turns, current_interviewer_id, config, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                session.id,
                session.user_id,
                session.job_type,
                session.industry,
                session.difficulty,
                session.resume_doc_id,
                session.portfolio_doc_id,
                session.status,
                session.turn_count,
                session.max_turns,
                session.current_interviewer_id,
                session.config.model_dump_json(),
                session.created_at,
                session.updated_at,
            ),
        )


def get_session(session_id: str) -> Optional[InterviewSession]:
    with get_conn() as conn:
        row = conn.execute("SELECT * FROM interview_sessions WHERE id = ?", (session_id,)).fetchone()
    if row is None:
        return None
    return _row_to_session(row)


def update_turn(
    session_id: str,
    *,
    expected_turn_count: int,
    turn_count: int,
    current_interviewer_id: str,
    status: str,
) -> bool:
    """Write the advanced turn state; False when ``expected_turn_count`` is stale."""

    with get_conn() as conn:
        cur = conn.execute(
            """UPDATE interview_sessions
               SET turn_count = ?, current_interviewer_id = ?, status = ?, updated_at = ?
               WHERE id = ? AND turn_count = ? AND status = 'active'""",
            (turn_count, current_interviewer_id, status, utcnow(), session_id, expected_turn_count),
        )
        return cur.rowcount == 1


def update_status(session_id: str, *, expected_status: str, status: str) -> bool:
    with get_conn() as conn:
        cur = conn.execute(
            "UPDATE interview_sessions SET status = ?, updated_at = ? WHERE id = ? AND status = ?",
            (status, utcnow(), session_id, expected_status),
        )
        return cur.rowcount == 1
