"""Speech-to-text for recorded candidate answers."""
from __future__ import annotations

import logging
import time
from typing import Optional

from pydantic import BaseModel

from config.registry import TRANSCRIBER_KEY, get_model
from config.settings import settings
from services.errors import MissingAudio, TranscriptionFailed
from services.session_state import utcnow

logger = logging.getLogger(__name__)


class Transcript(BaseModel):
    text: str
    timestamp: str
    test_mode: bool = False
    latency_ms: int = 0


def transcribe_audio(
    audio: Optional[bytes],
    *,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
) -> Transcript:
    """Turn one uploaded recording into text; nothing is stored."""

    if not audio:
        raise MissingAudio("audio upload is missing or empty")
    if len(audio) > settings.MAX_AUDIO_BYTES:
        raise MissingAudio(
            f"audio is {len(audio)} bytes, limit {settings.MAX_AUDIO_BYTES}",
            public_message="The audio file is too large.",
        )

    started = time.perf_counter()
    try:
        text = get_model(TRANSCRIBER_KEY)(
            audio=audio,
            filename=filename or "audio.webm",
            content_type=content_type or "application/octet-stream",
            language=settings.TRANSCRIPTION_LANGUAGE,
        )
    except Exception as exc:  # noqa: BLE001
        logger.error("Transcription failed for %s: %s", filename, exc)
        raise TranscriptionFailed(f"Transcription failed: {exc}") from exc

    return Transcript(
        text=(text or "").strip(),
        timestamp=utcnow(),
        test_mode=settings.TEST_MODE,
        latency_ms=int((time.perf_counter() - started) * 1000),
    )


__all__ = ["Transcript", "transcribe_audio"]
