"""Configuration package for the interview orchestration service."""
from .registry import (
    INTERVIEWER_KEY,
    KEYWORD_KEY,
    QUESTION_BANK_KEY,
    RETRIEVAL_KEY,
    TRANSCRIBER_KEY,
    bind_model,
    bound_keys,
    get_model,
)
from .routes import AppConfig, LlmRoute, load_config, resolve_route
from .settings import Settings, settings

__all__ = [
    "AppConfig",
    "LlmRoute",
    "load_config",
    "resolve_route",
    "INTERVIEWER_KEY",
    "KEYWORD_KEY",
    "QUESTION_BANK_KEY",
    "RETRIEVAL_KEY",
    "TRANSCRIBER_KEY",
    "bind_model",
    "bound_keys",
    "get_model",
    "Settings",
    "settings",
]
