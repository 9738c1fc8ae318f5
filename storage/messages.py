"""Persistence helpers for interview messages (insert-only)."""
from __future__ import annotations

import json
import sqlite3
import uuid
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from services.session_state import utcnow

from .sqlite import get_conn

Role = Literal["user", "interviewer", "system"]


class MessagePayload(BaseModel):
    session_id: str
    role: Role
    content: str
    interviewer_id: Optional[str] = None
    structured_response: Optional[Dict[str, Any]] = None
    audio_url: Optional[str] = None
    latency_ms: Optional[int] = None


class StoredMessage(MessagePayload):
    id: str
    seq: int
    created_at: str

    model_config = {"frozen": True}


def _row_to_message(row: sqlite3.Row) -> StoredMessage:
    data = dict(row)
    raw = data.get("structured_response")
    data["structured_response"] = json.loads(raw) if raw else None
    return StoredMessage(**data)


def insert_message(**data: Any) -> StoredMessage:
    """Insert a message row and return it with its id and ordering key."""

    payload = MessagePayload(**data)
    message_id = str(uuid.uuid4())
    created_at = utcnow()
    structured = json.dumps(payload.structured_response) if payload.structured_response is not None else None
    with get_conn() as conn:
        cur = conn.execute(
            """INSERT INTO messages
               (id, session_id, role, interviewer_id, content, structured_response,
                audio_url, latency_ms, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                message_id,
                payload.session_id,
                payload.role,
                payload.interviewer_id,
                payload.content,
                structured,
                payload.audio_url,
                payload.latency_ms,
                created_at,
            ),
        )
        seq = int(cur.lastrowid)
    return StoredMessage(id=message_id, seq=seq, created_at=created_at, **payload.model_dump())


def list_messages(session_id: str, *, exclude_id: Optional[str] = None) -> List[StoredMessage]:
    """Return the session's messages in arrival order."""

    with get_conn() as conn:
        rows = conn.execute(
            "SELECT * FROM messages WHERE session_id = ? AND id != ? ORDER BY seq ASC",
            (session_id, exclude_id or ""),
        ).fetchall()
    return [_row_to_message(row) for row in rows]


def recent_interviewer_messages(session_id: str, limit: int = 3) -> List[StoredMessage]:
    """Return the latest interviewer messages, newest first."""

    with get_conn() as conn:
        rows = conn.execute(
            """SELECT * FROM messages
               WHERE session_id = ? AND role = 'interviewer'
               ORDER BY seq DESC LIMIT ?""",
            (session_id, limit),
        ).fetchall()
    return [_row_to_message(row) for row in rows]


def count_messages(session_id: str, *, role: Optional[Role] = None) -> int:
    with get_conn() as conn:
        if role is None:
            row = conn.execute("SELECT COUNT(*) FROM messages WHERE session_id = ?", (session_id,)).fetchone()
        else:
            row = conn.execute(
                "SELECT COUNT(*) FROM messages WHERE session_id = ? AND role = ?",
                (session_id, role),
            ).fetchone()
    return int(row[0])


__all__ = [
    "MessagePayload",
    "StoredMessage",
    "count_messages",
    "insert_message",
    "list_messages",
    "recent_interviewer_messages",
]
