from __future__ import annotations  # OpenAI-compatible chat and transcription client

import json
import logging
import os
import threading
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from config.routes import LlmRoute


logger = logging.getLogger(__name__)

Messages = List[Dict[str, str]]
T = TypeVar("T", bound=BaseModel)

_ROUTE_LOCKS: Dict[str, threading.Lock] = {}
_ROUTE_LOCKS_GUARD = threading.Lock()

PREVIEW_CHARS = 120
HINT_CHARS = 200


class HttpResponse(Protocol):  # Subset of httpx.Response the gateway reads
    @property
    def status_code(self) -> int: ...

    @property
    def text(self) -> str: ...

    def json(self) -> Any: ...


class HttpClient(Protocol):  # Injectable transport, httpx.Client compatible
    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> HttpResponse: ...


class MultipartClient(Protocol):  # Injectable transport for file uploads, httpx.Client compatible
    def post(
        self,
        url: str,
        *,
        files: Dict[str, Any],
        data: Dict[str, str],
        headers: Dict[str, str],
        timeout: float,
    ) -> HttpResponse: ...


class LlmGatewayError(RuntimeError):  # Transport, status or payload failure talking to a route
    pass


def json_schema_format(name: str, schema: Dict[str, Any], *, strict: bool = True) -> Dict[str, Any]:  # OpenAI structured-output response_format
    return {"type": "json_schema", "json_schema": {"name": name, "strict": strict, "schema": schema}}


def complete(
    messages: Sequence[Dict[str, str]],
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
    response_format: Optional[Dict[str, Any]] = None,
    options: Optional[Dict[str, Any]] = None,
) -> str:
    """Run one chat completion on ``cfg`` and return the assistant text unparsed."""

    conversation = _as_chat(messages)

    def _run() -> str:
        logger.info("LLM call route=%s model=%s first=%s", cfg.name, cfg.model, _first_line(conversation))
        text = _request(cfg, _body(cfg, conversation, response_format, options), client)
        logger.info("LLM reply route=%s chars=%d", cfg.name, len(text))
        return text

    return _serialized(cfg, _run)


def chat(
    messages: Sequence[Dict[str, str]],
    schema: Type[T],
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
    response_format: Optional[Dict[str, Any]] = None,
    options: Optional[Dict[str, Any]] = None,
) -> T:
    """Ask for JSON matching ``schema``; re-ask up to ``cfg.max_retries`` times on invalid output."""

    conversation = _as_chat(messages)
    if response_format is None:
        conversation.insert(0, {"role": "system", "content": _schema_instruction(schema)})
    fmt = response_format or {"type": "json_object"}

    def _run() -> T:
        failure: Optional[Exception] = None
        tries = cfg.max_retries + 1
        for attempt in range(1, tries + 1):
            turn = conversation if failure is None else conversation + [_retry_hint(failure)]
            logger.info("LLM call route=%s model=%s attempt=%d/%d", cfg.name, cfg.model, attempt, tries)
            text = _request(cfg, _body(cfg, turn, fmt, options), client)
            try:
                return schema.model_validate_json(strip_code_fences(text))
            except ValidationError as exc:
                logger.warning("LLM reply rejected route=%s attempt=%d: %s", cfg.name, attempt, exc.errors()[:1])
                failure = exc
        raise LlmGatewayError(f"{cfg.name}: no valid {schema.__name__} after {tries} attempts") from failure

    return _serialized(cfg, _run)


def transcribe(
    audio: bytes,
    *,
    cfg: LlmRoute,
    filename: str = "audio.webm",
    content_type: str = "application/octet-stream",
    language: Optional[str] = None,
    client: Optional[MultipartClient] = None,
) -> str:
    """Upload ``audio`` to an OpenAI-compatible `/audio/transcriptions` route and return the text."""

    url = cfg.base_url.rstrip("/") + cfg.endpoint
    headers = {k: v for k, v in _auth_headers(cfg).items() if k != "Content-Type"}
    files = {"file": (filename, audio, content_type)}
    data = {"model": cfg.model, "response_format": "json"}
    if language:
        data["language"] = language

    def _run() -> str:
        logger.info("STT call route=%s model=%s bytes=%d", cfg.name, cfg.model, len(audio))
        try:
            if client is not None:
                response = client.post(url, files=files, data=data, headers=headers, timeout=cfg.timeout_s)
            else:
                with httpx.Client(timeout=cfg.timeout_s) as http:
                    response = http.post(url, files=files, data=data, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("STT transport error route=%s: %s", cfg.name, exc)
            raise LlmGatewayError(f"{cfg.name}: transport failed") from exc
        return _read_transcript(cfg, response)

    return _serialized(cfg, _run)


def strip_code_fences(content: str) -> str:  # Unwrap ```json fenced replies
    text = content.strip()
    if not text.startswith("```"):
        return text
    body = text.split("\n", 1)[1] if "\n" in text else ""
    body = body.rstrip()
    if body.endswith("```"):
        body = body[:-3]
    return body.strip()


def _serialized(cfg: LlmRoute, fn: Callable[[], Any]) -> Any:  # One in-flight call per sequential route
    if not cfg.sequential:
        return fn()
    key = cfg.name or cfg.base_url + cfg.endpoint
    with _ROUTE_LOCKS_GUARD:
        lock = _ROUTE_LOCKS.setdefault(key, threading.Lock())
    with lock:
        return fn()


def _as_chat(messages: Sequence[Dict[str, str]]) -> Messages:  # Copy into plain role/content dicts
    chat_messages: Messages = []
    for message in messages:
        if not isinstance(message, dict):
            raise TypeError(f"chat message must be a dict, got {type(message).__name__}")
        role = str(message.get("role") or "").strip()
        if not role:
            raise ValueError("chat message has no role")
        chat_messages.append({"role": role, "content": str(message.get("content") or "")})
    return chat_messages


def _schema_instruction(schema: Type[BaseModel]) -> str:
    return "Answer with one JSON object that validates against this JSON schema:\n" + json.dumps(
        schema.model_json_schema(), indent=2
    )


def _retry_hint(error: Exception) -> Dict[str, str]:  # System nudge appended after a rejected reply
    reason = str(error).splitlines()[0].strip() if str(error) else ""
    if len(reason) > HINT_CHARS:
        reason = reason[: HINT_CHARS - 3] + "..."
    note = "Your previous reply was not valid for the schema"
    note += f" ({reason})." if reason else "."
    return {"role": "system", "content": note + " Reply again with only the corrected JSON object."}


def _body(
    cfg: LlmRoute,
    messages: Messages,
    response_format: Optional[Dict[str, Any]],
    options: Optional[Dict[str, Any]],
) -> Dict[str, Any]:
    body: Dict[str, Any] = dict(options or {})
    body["model"] = cfg.model
    body["messages"] = messages
    if response_format:
        body["response_format"] = response_format
    return body


def _auth_headers(cfg: LlmRoute) -> Dict[str, str]:
    headers = {"Content-Type": "application/json", **cfg.extra_headers}
    key = os.getenv(cfg.api_key_env) if cfg.api_key_env else None
    if key:
        headers["Authorization"] = f"Bearer {key}"
    return headers


def _request(cfg: LlmRoute, body: Dict[str, Any], client: Optional[HttpClient]) -> str:  # POST and pull choices[0].message.content
    url = cfg.base_url.rstrip("/") + cfg.endpoint
    headers = _auth_headers(cfg)
    try:
        if client is not None:
            response = client.post(url, json=body, headers=headers, timeout=cfg.timeout_s)
            return _read(cfg, response)
        with httpx.Client(timeout=cfg.timeout_s) as http:
            return _read(cfg, http.post(url, json=body, headers=headers))
    except httpx.HTTPError as exc:
        logger.error("LLM transport error route=%s: %s", cfg.name, exc)
        raise LlmGatewayError(f"{cfg.name}: transport failed") from exc


def _read(cfg: LlmRoute, response: HttpResponse) -> str:
    if response.status_code >= 400:
        logger.error("LLM status route=%s status=%s", cfg.name, response.status_code)
        raise LlmGatewayError(f"{cfg.name}: status {response.status_code}")
    try:
        data = response.json()
    except ValueError as exc:
        raise LlmGatewayError(f"{cfg.name}: reply body is not JSON") from exc

    choices = data.get("choices") if isinstance(data, dict) else None
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        content = (choices[0].get("message") or {}).get("content")
        if isinstance(content, str):
            return content
    raise LlmGatewayError(f"{cfg.name}: reply has no message content")


def _read_transcript(cfg: LlmRoute, response: HttpResponse) -> str:
    if response.status_code >= 400:
        logger.error("STT status route=%s status=%s", cfg.name, response.status_code)
        raise LlmGatewayError(f"{cfg.name}: status {response.status_code}")
    try:
        data = response.json()
    except ValueError as exc:
        raise LlmGatewayError(f"{cfg.name}: reply body is not JSON") from exc
    text = data.get("text") if isinstance(data, dict) else None
    if not isinstance(text, str):
        raise LlmGatewayError(f"{cfg.name}: reply has no transcript text")
    return text.strip()


def _first_line(messages: Messages) -> str:  # Log preview of the first non-empty message
    for message in messages:
        text = message["content"].strip()
        if text:
            line = text.splitlines()[0]
            return line if len(line) <= PREVIEW_CHARS else line[: PREVIEW_CHARS - 3] + "..."
    return ""
