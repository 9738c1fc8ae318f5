from __future__ import annotations  # Re-export llm_gateway public API

from .llm_gateway import (
    HttpClient,
    HttpResponse,
    LlmGatewayError,
    MultipartClient,
    chat,
    complete,
    json_schema_format,
    strip_code_fences,
    transcribe,
)

__all__ = [
    "HttpClient",
    "HttpResponse",
    "LlmGatewayError",
    "MultipartClient",
    "chat",
    "complete",
    "json_schema_format",
    "strip_code_fences",
    "transcribe",
]
