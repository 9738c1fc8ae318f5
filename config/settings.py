"""Application settings and configuration management."""
from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interview.db")
    APP_CONFIG_PATH: str = Field(default="app_config.json")

    MAX_TURNS: int = Field(default=10, ge=1)
    KEYWORD_MEMORY_LIMIT: int = 20
    QUESTION_BANK_TOP_K: int = 5
    QUESTION_BANK_USE_RERANKER: bool = True

    RESPONSE_MAX_TOKENS: int = 500
    OPENING_MAX_TOKENS: int = 300
    RESPONSE_TEMPERATURE: float = 0.7

    RETRIEVAL_BASE_URL: Optional[str] = None
    QUESTION_BANK_BASE_URL: Optional[str] = None
    COLLABORATOR_TIMEOUT_S: float = 10.0
    TRANSCRIPTION_LANGUAGE: Optional[str] = "ko"
    MAX_AUDIO_BYTES: int = Field(default=25 * 1024 * 1024, ge=1)

    TEST_MODE: bool = False

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True)


settings = Settings()
