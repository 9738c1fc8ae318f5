"""Default bindings for the LLM and retrieval collaborators.

Tests bind their own fakes through ``config.registry``; the server calls
``bind_defaults`` once at startup.
"""
from __future__ import annotations

import json
import logging
import random
from typing import Any, Dict, List, Optional

import httpx

from agents.types import ExtractedKeywords
from config.registry import (
    INTERVIEWER_KEY,
    KEYWORD_KEY,
    QUESTION_BANK_KEY,
    RETRIEVAL_KEY,
    TRANSCRIBER_KEY,
    bind_model,
)
from config.routes import AppConfig, LlmRoute, resolve_route
from config.settings import settings
from llm_gateway import chat, complete, json_schema_format, transcribe

logger = logging.getLogger(__name__)

CANNED_QUESTIONS = (
    "Good answer. What was the hardest technical challenge in that experience?",
    "Interesting. Why did you pick that technology, and did you consider alternatives?",
    "How did you communicate and collaborate with your teammates in that situation?",
    "If you ran that project again, what would you do differently?",
    "Can you put that result into numbers, for example performance gains or cost savings?",
)


def interviewer_model(route: LlmRoute):
    def _call(
        *,
        messages: List[Dict[str, str]],
        structured: bool,
        schema: Optional[Dict[str, Any]] = None,
        max_tokens: int = 500,
        temperature: float = 0.7,
    ) -> str:
        response_format = json_schema_format("interview_response", schema) if structured and schema else None
        return complete(
            messages,
            cfg=route,
            response_format=response_format,
            options={"max_tokens": max_tokens, "temperature": temperature},
        )

    return _call


def keyword_model(route: LlmRoute):
    def _call(*, system_prompt: str, prompt: str, schema: Dict[str, Any]) -> ExtractedKeywords:
        return chat(
            [{"role": "system", "content": system_prompt}, {"role": "user", "content": prompt}],
            ExtractedKeywords,
            cfg=route,
            response_format=json_schema_format("extracted_keywords", schema),
            options={"max_tokens": 1000, "temperature": 0.3},
        )

    return _call


CANNED_TRANSCRIPT = "[Test mode] This is a canned transcript. Disable TEST_MODE and configure an API key to transcribe real audio."


def transcriber_model(route: LlmRoute):
    def _call(*, audio: bytes, filename: str, content_type: str, language: Optional[str] = None) -> str:
        return transcribe(audio, cfg=route, filename=filename, content_type=content_type, language=language)

    return _call


def canned_transcriber(**_: Any) -> str:
    return CANNED_TRANSCRIPT


def canned_interviewer(rng: Optional[random.Random] = None):
    source = rng or random.Random()

    def _call(*, messages: List[Dict[str, str]], structured: bool, **_: Any) -> str:
        question = source.choice(CANNED_QUESTIONS)
        if not structured:
            return question
        return json.dumps(
            {
                "question": question,
                "evaluation": {"relevance": 70, "clarity": 70, "depth": 60},
                "inner_thought": None,
                "follow_up_intent": source.random() < 0.5,
                "suggested_follow_up": None,
            }
        )

    return _call


def http_retrieval(*, user_id: str, query: str, doc_id: str) -> str:
    """Fetch a document snippet from the retrieval service; empty when unconfigured."""

    if not settings.RETRIEVAL_BASE_URL:
        return ""
    response = httpx.post(
        f"{settings.RETRIEVAL_BASE_URL.rstrip('/')}/context",
        json={"user_id": user_id, "query": query, "doc_id": doc_id},
        timeout=settings.COLLABORATOR_TIMEOUT_S,
    )
    response.raise_for_status()
    data = response.json()
    return str(data.get("context") or "")


def http_question_search(
    *,
    resume_text: str,
    job_desc_text: str,
    keywords: List[str],
    category: str,
    top_k: int,
    use_reranker: bool,
) -> List[Dict[str, Any]]:
    """Query the question bank service; empty when unconfigured."""

    if not settings.QUESTION_BANK_BASE_URL:
        return []
    response = httpx.post(
        f"{settings.QUESTION_BANK_BASE_URL.rstrip('/')}/search",
        json={
            "resume_text": resume_text,
            "job_desc_text": job_desc_text,
            "keywords": keywords,
            "category": category,
            "top_k": top_k,
            "use_reranker": use_reranker,
        },
        timeout=settings.COLLABORATOR_TIMEOUT_S,
    )
    response.raise_for_status()
    data = response.json()
    return list(data.get("results") or [])


def bind_defaults(cfg: Optional[AppConfig]) -> None:
    """Bind production collaborators, or canned ones when ``TEST_MODE`` is on."""

    bind_model(RETRIEVAL_KEY, http_retrieval)
    bind_model(QUESTION_BANK_KEY, http_question_search)

    if settings.TEST_MODE or cfg is None:
        logger.warning("Binding canned interviewer responses (TEST_MODE=%s)", settings.TEST_MODE)
        bind_model(INTERVIEWER_KEY, canned_interviewer())
        bind_model(KEYWORD_KEY, lambda **_: ExtractedKeywords())
        bind_model(TRANSCRIBER_KEY, canned_transcriber)
        return

    bind_model(INTERVIEWER_KEY, interviewer_model(resolve_route(cfg, INTERVIEWER_KEY)))
    bind_model(KEYWORD_KEY, keyword_model(resolve_route(cfg, KEYWORD_KEY)))
    bind_model(TRANSCRIBER_KEY, transcriber_model(resolve_route(cfg, TRANSCRIBER_KEY)))


__all__ = [
    "CANNED_QUESTIONS",
    "CANNED_TRANSCRIPT",
    "bind_defaults",
    "canned_interviewer",
    "canned_transcriber",
    "http_question_search",
    "http_retrieval",
    "interviewer_model",
    "keyword_model",
    "transcriber_model",
]
