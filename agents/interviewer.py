"""Interviewer response generation with optional structured output."""
from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from agents.personas import get_persona
from agents.types import GenerationOptions, InterviewerReply, StructuredResponse
from config.registry import INTERVIEWER_KEY, get_model
from config.settings import settings
from llm_gateway import strip_code_fences
from services.errors import GenerationError

logger = logging.getLogger(__name__)

INTERVIEW_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "question": {"type": "string", "description": "The interviewer's next question or reply"},
        "evaluation": {
            "type": "object",
            "properties": {
                "relevance": {"type": "number", "description": "Answer relevance (0-100)"},
                "clarity": {"type": "number", "description": "Answer clarity (0-100)"},
                "depth": {"type": "number", "description": "Answer depth (0-100)"},
            },
            "required": ["relevance", "clarity", "depth"],
            "additionalProperties": False,
        },
        "inner_thought": {"type": ["string", "null"], "description": "Private impression, 1-2 sentences"},
        "follow_up_intent": {"type": "boolean", "description": "Whether this turn is a follow-up"},
        "suggested_follow_up": {"type": ["string", "null"], "description": "Suggested next follow-up"},
    },
    "required": ["question", "evaluation", "inner_thought", "follow_up_intent", "suggested_follow_up"],
    "additionalProperties": False,
}

DIFFICULTY_LABELS = {
    "easy": "Entry level (fundamental questions)",
    "medium": "Intermediate (questions grounded in work experience)",
    "hard": "Advanced (in-depth technical interview)",
}

CORE_GUIDELINES = """\
## Interview guidelines
- Remember the conversation so far and refer back to projects, tools and experiences the candidate mentioned.
- If an answer is vague, ask for a concrete example or numbers. If it is short, invite more detail.
- If an answer is strong, approach it from another angle or widen to a related topic.
- When a technology comes up, ask why it was chosen and what its trade-offs are.
- Evaluate specificity, logical reasoning, self-awareness and growth potential.
- Ask one concise question of 1-2 sentences, in a tone that matches your personality."""


def to_chat_history(messages: Sequence[Any]) -> List[Dict[str, str]]:
    """Map stored messages onto chat roles: user stays user, everything else is assistant."""

    history: List[Dict[str, str]] = []
    for msg in messages:
        role = msg["role"] if isinstance(msg, dict) else msg.role
        content = msg["content"] if isinstance(msg, dict) else msg.content
        history.append({"role": "user" if role == "user" else "assistant", "content": content})
    return history


def build_system_prompt(
    persona_id: str,
    job_type: str,
    context: Optional[str],
    options: GenerationOptions,
) -> str:
    persona = get_persona(persona_id)
    name = options.display_name or persona.name
    personality = options.personality or persona.personality

    parts: List[str] = [
        persona.system_prompt,
        "\n".join(
            [
                "## Current interview",
                f"- Position: {job_type}",
                f"- Industry: {options.industry or 'General IT'}",
                f"- Difficulty: {DIFFICULTY_LABELS.get(options.difficulty, DIFFICULTY_LABELS['medium'])}",
                f"- Turn: {options.turn_count}",
                f"- Interviewer: {name} ({persona.role}, {personality})",
                f"- Tone: {', '.join(persona.tone)}",
            ]
        ),
    ]

    if context:
        parts.append(
            "## Candidate documents (resume / portfolio)\n"
            f"{context}\n\n"
            "-> Ask about specific experiences and projects from these documents and dig into them."
        )

    if options.keyword_text:
        parts.append(
            "## Keywords from the candidate's previous interviews\n"
            "Approach topics already covered from a new angle or in more depth.\n\n"
            f"{options.keyword_text}\n\n"
            "-> Ask for real examples behind stated strengths; check improvement efforts on weaknesses."
        )

    if options.force_new_topic:
        parts.append(
            "## This turn\nThe current topic has been covered enough. Move to a NEW topic; do not follow up."
        )
    elif options.is_follow_up:
        parts.append("## This turn\nAsk a follow-up question that digs deeper into the candidate's last answer.")
    else:
        parts.append(
            "## This turn\nYou are taking over from another interviewer. Open a new topic from your own focus area."
        )

    if options.reference_questions:
        listed = "\n".join(f"- {q}" for q in options.reference_questions)
        parts.append(f"## Reference questions (adapt, do not copy verbatim)\n{listed}")

    parts.append(CORE_GUIDELINES)
    return "\n\n".join(parts)


def parse_structured(raw: Any) -> Optional[StructuredResponse]:
    """Validate a structured reply; None when it does not match the schema."""

    try:
        if isinstance(raw, dict):
            return StructuredResponse.model_validate(raw)
        if isinstance(raw, str):
            return StructuredResponse.model_validate_json(strip_code_fences(raw))
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.warning("Structured interviewer reply failed validation: %s", exc)
    return None


def _raw_text(raw: Any) -> str:
    if isinstance(raw, str):
        return raw.strip()
    if isinstance(raw, dict):
        for key in ("question", "text", "content"):
            value = raw.get(key)
            if isinstance(value, str):
                return value.strip()
        return json.dumps(raw, ensure_ascii=False)
    return str(raw or "").strip()


def generate_response(
    history: Sequence[Dict[str, str]],
    persona_id: str,
    job_type: str,
    structured: bool,
    context: Optional[str] = None,
    options: Optional[GenerationOptions] = None,
) -> InterviewerReply:
    """Ask the bound chat model for the next interviewer message."""

    opts = options or GenerationOptions()
    system_prompt = build_system_prompt(persona_id, job_type, context, opts)
    messages = [{"role": "system", "content": system_prompt}, *history]
    default_tokens = settings.RESPONSE_MAX_TOKENS if structured else settings.OPENING_MAX_TOKENS

    llm = get_model(INTERVIEWER_KEY)
    started = time.perf_counter()
    try:
        raw = llm(
            messages=messages,
            structured=structured,
            schema=INTERVIEW_RESPONSE_SCHEMA if structured else None,
            max_tokens=opts.max_tokens or default_tokens,
            temperature=opts.temperature if opts.temperature is not None else settings.RESPONSE_TEMPERATURE,
        )
    except Exception as exc:  # noqa: BLE001
        logger.error("Interviewer generation failed persona=%s: %s", persona_id, exc)
        raise GenerationError(f"LLM request failed: {exc}") from exc
    latency_ms = int((time.perf_counter() - started) * 1000)

    parsed = parse_structured(raw) if structured else None
    text = parsed.question.strip() if parsed else _raw_text(raw)
    if not text:
        raise GenerationError("LLM returned an empty reply")
    return InterviewerReply(text=text, structured=parsed, latency_ms=latency_ms)


__all__ = [
    "CORE_GUIDELINES",
    "DIFFICULTY_LABELS",
    "INTERVIEW_RESPONSE_SCHEMA",
    "build_system_prompt",
    "generate_response",
    "parse_structured",
    "to_chat_history",
]
