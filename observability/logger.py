"""Structured event logging for interview turns.

Events go to the console as one readable line each and, when file logging is
enabled, to a rotating JSON-lines file for later analysis.
"""
from __future__ import annotations

import json
import logging
import logging.handlers
import os
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ENABLE_FILE_LOGS = os.getenv("ENABLE_FILE_LOGS", "0") in ("1", "true", "True")
LOG_FILE = os.getenv("LOG_FILE", "logs/interview-events.jsonl")
LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", str(5 * 1024 * 1024)))
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT") or 5)

HUMAN_KEYS = ("persona", "turn", "follow_up", "forced", "status", "ms", "stage_ms", "outcome", "error")

_events = logging.getLogger("interview.events")
_events.setLevel(LOG_LEVEL)
_events.propagate = False


class _JsonLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = getattr(record, "event", None) or {"msg": record.getMessage()}
        return json.dumps(payload, ensure_ascii=False, default=str)


class _HumanFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("[%(asctime)s] %(levelname)s %(name)s :: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        event = getattr(record, "event", None)
        if event is not None:
            record.msg = format_human(event)
            record.args = ()
        return super().format(record)


def _rotating_jsonl(path: str) -> logging.Handler:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT, encoding="utf-8"
    )
    handler.setFormatter(_JsonLineFormatter())
    return handler


def _ensure_handlers() -> None:
    if _events.handlers:
        return
    handlers: List[logging.Handler] = [logging.StreamHandler(stream=sys.stdout)]
    handlers[0].setFormatter(_HumanFormatter())
    if ENABLE_FILE_LOGS:
        handlers.append(_rotating_jsonl(LOG_FILE))
    for handler in handlers:
        handler.setLevel(LOG_LEVEL)
        _events.addHandler(handler)


def format_human(evt: Dict[str, Any]) -> str:
    extras = [f"{key}={evt[key]}" for key in HUMAN_KEYS if key in evt]
    return " ".join([f"session={evt.get('session_id')}", f"kind={evt.get('kind')}", *extras])


def log_event(kind: str, session_id: str, *, level: int = logging.INFO, **fields: Any) -> Dict[str, Any]:
    """Emit one turn-lifecycle event and return the payload that was logged."""

    _ensure_handlers()
    payload: Dict[str, Any] = dict(
        kind=kind,
        session_id=session_id,
        at=datetime.now(timezone.utc).isoformat(),
        event_id=uuid.uuid4().hex,
        **fields,
    )
    _events.log(level, kind, extra={"event": payload})
    return payload


__all__ = ["format_human", "log_event"]
