"""Persistence helpers for cross-session keyword memory."""
from __future__ import annotations

from typing import List, Optional

from agents.types import UserKeyword
from services.session_state import utcnow

from .sqlite import get_conn


def upsert_keyword(user_id: str, keyword: UserKeyword) -> int:
    """Insert a keyword or bump its mention count; return the stored count."""

    text = keyword.keyword.strip()
    if not text:
        raise ValueError("keyword must not be blank")
    with get_conn() as conn:
        conn.execute(
            """INSERT INTO user_keywords
               (user_id, keyword, category, context, mentioned_count, updated_at)
               VALUES (?, ?, ?, ?, ?, ?)
               ON CONFLICT(user_id, keyword, category) DO UPDATE SET
                 mentioned_count = user_keywords.mentioned_count + excluded.mentioned_count,
                 context = COALESCE(excluded.context, user_keywords.context),
                 updated_at = excluded.updated_at""",
            (user_id, text, keyword.category, keyword.context, keyword.mentioned_count, utcnow()),
        )
        row = conn.execute(
            "SELECT mentioned_count FROM user_keywords WHERE user_id = ? AND keyword = ? AND category = ?",
            (user_id, text, keyword.category),
        ).fetchone()
    return int(row[0])


def top_keywords(user_id: str, limit: int = 20, category: Optional[str] = None) -> List[UserKeyword]:
    """Return the user's most-mentioned keywords."""

    query = "SELECT keyword, category, context, mentioned_count FROM user_keywords WHERE user_id = ?"
    params: list = [user_id]
    if category is not None:
        query += " AND category = ?"
        params.append(category)
    query += " ORDER BY mentioned_count DESC, updated_at DESC LIMIT ?"
    params.append(limit)
    with get_conn() as conn:
        rows = conn.execute(query, params).fetchall()
    return [UserKeyword(**dict(row)) for row in rows]


__all__ = ["top_keywords", "upsert_keyword"]
