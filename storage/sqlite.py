"""Connection handling for the interview SQLite store."""
from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional

from config.settings import settings

BUSY_TIMEOUT_S = 5.0


def connect(db_path: Optional[str] = None) -> sqlite3.Connection:
    """Open ``db_path`` (default ``settings.DB_PATH``) with name-addressable rows."""

    path = db_path or settings.DB_PATH
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    conn = sqlite3.connect(path, timeout=BUSY_TIMEOUT_S)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_conn() -> Iterator[sqlite3.Connection]:
    """One unit of work: commit on success, roll back when the block raises."""

    conn = connect()
    try:
        yield conn
    except BaseException:
        conn.rollback()
        raise
    else:
        conn.commit()
    finally:
        conn.close()
