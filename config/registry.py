"""Process-wide bindings from collaborator keys to callables.

The server binds HTTP-backed implementations at startup; tests bind fakes.
"""
from typing import Any, Callable, Dict, List

INTERVIEWER_KEY = "models.interviewer"
KEYWORD_KEY = "models.keyword_extractor"
RETRIEVAL_KEY = "services.document_retrieval"
QUESTION_BANK_KEY = "services.question_bank"
TRANSCRIBER_KEY = "models.transcriber"

_BINDINGS: Dict[str, Callable[..., Any]] = {}


def bind_model(key: str, fn: Callable[..., Any]) -> None:
    _BINDINGS[key] = fn


def get_model(key: str) -> Callable[..., Any]:
    """Return the callable bound to ``key``; ``KeyError`` when nothing is bound."""

    try:
        return _BINDINGS[key]
    except KeyError:
        raise KeyError(f"Nothing bound in registry for {key!r}") from None


def bound_keys() -> List[str]:
    return sorted(_BINDINGS)
