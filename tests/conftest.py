import json
import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storage.migrate import migrate
from config.settings import settings
from config.registry import (
    INTERVIEWER_KEY,
    KEYWORD_KEY,
    QUESTION_BANK_KEY,
    RETRIEVAL_KEY,
    TRANSCRIBER_KEY,
    bind_model,
)


class SeqRandom:
    """Deterministic random source replaying a fixed list of draws."""

    def __init__(self, values):
        self.values = list(values)

    def random(self) -> float:
        return self.values.pop(0)


class FakeInterviewer:
    """Records every call and replies with a structured JSON question."""

    def __init__(self, question: str = "Tell me more about that project.", follow_up_intent: bool = False):
        self.question = question
        self.follow_up_intent = follow_up_intent
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, **kwargs: Any) -> str:
        self.calls.append(kwargs)
        if not kwargs.get("structured"):
            return "Welcome! Please introduce yourself."
        return json.dumps(
            {
                "question": self.question,
                "evaluation": {"relevance": 80, "clarity": 75, "depth": 60},
                "inner_thought": "Solid start.",
                "follow_up_intent": self.follow_up_intent,
                "suggested_follow_up": None,
            }
        )

    @property
    def last_system_prompt(self) -> str:
        return self.calls[-1]["messages"][0]["content"]


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    migrate(db_path)
    try:
        yield db_path
    finally:
        td.cleanup()


@pytest.fixture(autouse=True)
def fake_models():
    interviewer = FakeInterviewer()
    bind_model(INTERVIEWER_KEY, interviewer)
    bind_model(KEYWORD_KEY, lambda **_: {"keywords": [], "summary": ""})
    bind_model(RETRIEVAL_KEY, lambda **_: "")
    bind_model(QUESTION_BANK_KEY, lambda **_: [])
    bind_model(TRANSCRIBER_KEY, lambda **_: "I led the migration to Kubernetes.")
    return interviewer
