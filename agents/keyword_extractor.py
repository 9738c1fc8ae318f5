"""Keyword extraction from the candidate's self-introduction."""
from __future__ import annotations

import logging
from typing import Any, Dict, Sequence

from pydantic import ValidationError

from agents.types import ExtractedKeywords
from config.registry import KEYWORD_KEY, get_model

logger = logging.getLogger(__name__)

KEYWORD_SYSTEM_PROMPT = """\
You are an interview analyst. Extract the key facts about the candidate from the interview below.

Categories:
1. technical: tech stack, frameworks, languages, tools
2. soft_skill: communication, leadership, teamwork
3. experience: career length, domains, roles
4. project: named projects or project types
5. strength: strengths that showed in the answers
6. weakness: weaknesses or areas to improve

Rules: only what the candidate (user) said; specific, meaningful keywords only; include the context in
which each keyword came up; count repeated mentions. Reply in JSON."""

KEYWORD_EXTRACTION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "keywords": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "keyword": {"type": "string"},
                    "category": {
                        "type": "string",
                        "enum": ["technical", "soft_skill", "experience", "project", "strength", "weakness"],
                    },
                    "context": {"type": ["string", "null"]},
                    "mentioned_count": {"type": "number"},
                },
                "required": ["keyword", "category", "context", "mentioned_count"],
                "additionalProperties": False,
            },
        },
        "summary": {"type": "string"},
    },
    "required": ["keywords", "summary"],
    "additionalProperties": False,
}


def build_user_prompt(conversation: Sequence[Dict[str, str]], job_type: str) -> str:
    transcript = "\n".join(f"[{turn['role']}]: {turn['content']}" for turn in conversation)
    return (
        "Analyse the candidate's (user) answers in this interview and extract the key keywords.\n"
        f"Position: {job_type}\n\nConversation:\n{transcript}"
    )


def extract_keywords(conversation: Sequence[Dict[str, str]], job_type: str) -> ExtractedKeywords:
    """Run the bound extractor; any failure degrades to an empty result."""

    try:
        llm = get_model(KEYWORD_KEY)
        raw = llm(
            system_prompt=KEYWORD_SYSTEM_PROMPT,
            prompt=build_user_prompt(conversation, job_type),
            schema=KEYWORD_EXTRACTION_SCHEMA,
        )
    except Exception as exc:  # noqa: BLE001
        logger.warning("Keyword extraction failed: %s", exc)
        return ExtractedKeywords()

    if isinstance(raw, ExtractedKeywords):
        return raw
    try:
        if isinstance(raw, str):
            return ExtractedKeywords.model_validate_json(raw)
        return ExtractedKeywords.model_validate(raw)
    except ValidationError as exc:
        logger.warning("Keyword extraction returned an invalid payload: %s", exc)
        return ExtractedKeywords()


__all__ = ["KEYWORD_EXTRACTION_SCHEMA", "KEYWORD_SYSTEM_PROMPT", "build_user_prompt", "extract_keywords"]
