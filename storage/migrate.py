"""SQLite schema migrations."""
from __future__ import annotations

from typing import Iterable, Optional

from .sqlite import connect

SCHEMA: Iterable[str] = (
    """
CREATE TABLE IF NOT EXISTS interview_sessions (
  id TEXT PRIMARY KEY,
  user_id TEXT NOT NULL,
  job_type TEXT NOT NULL,
  industry TEXT,
  difficulty TEXT NOT NULL,
  resume_doc_id TEXT,
  portfolio_doc_id TEXT,
  status TEXT NOT NULL,
  turn_count INTEGER NOT NULL DEFAULT 0,
  max_turns INTEGER NOT NULL,
  current_interviewer_id TEXT NOT NULL,
  config TEXT NOT NULL,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS messages (
  seq INTEGER PRIMARY KEY AUTOINCREMENT,
  id TEXT NOT NULL UNIQUE,
  session_id TEXT NOT NULL REFERENCES interview_sessions(id),
  role TEXT NOT NULL,
  interviewer_id TEXT,
  content TEXT NOT NULL,
  structured_response TEXT,
  audio_url TEXT,
  latency_ms INTEGER,
  created_at TEXT NOT NULL
);
""",
    """
CREATE INDEX IF NOT EXISTS idx_messages_session ON messages(session_id, seq);
""",
    """
CREATE TABLE IF NOT EXISTS user_keywords (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id TEXT NOT NULL,
  keyword TEXT NOT NULL,
  category TEXT NOT NULL,
  context TEXT,
  mentioned_count INTEGER NOT NULL DEFAULT 1,
  updated_at TEXT NOT NULL,
  UNIQUE(user_id, keyword, category)
);
""",
)


def migrate(db_path: Optional[str] = None) -> None:
    """Create the session, message and keyword tables if they are missing."""

    conn = connect(db_path)
    try:
        with conn:
            for stmt in SCHEMA:
                conn.execute(stmt)
    finally:
        conn.close()


if __name__ == "__main__":
    migrate()
