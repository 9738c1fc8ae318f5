"""Retrieval-augmented prompt context for interviewer turns.

Every lookup here is best effort: a failing collaborator is logged and folded
into an empty result so one bad document or a flaky question bank never
aborts the turn. Lookups run in a fixed order: resume, portfolio, keyword
memory, question bank.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar

from pydantic import BaseModel, Field, ValidationError

from agents.types import QuestionBankEntry, UserKeyword
from config.registry import QUESTION_BANK_KEY, RETRIEVAL_KEY, get_model
from config.settings import settings
from storage.keywords import top_keywords

logger = logging.getLogger(__name__)

T = TypeVar("T")

RESUME_LABEL = "[Resume / Cover letter]"
PORTFOLIO_LABEL = "[Portfolio]"

JOB_CATEGORY_MAP: Dict[str, str] = {
    "frontend": "developer",
    "backend": "developer",
    "fullstack": "developer",
    "mobile": "developer",
    "devops": "developer",
    "data": "data_ai",
    "ml": "data_ai",
    "designer": "design",
    "pm": "product",
    "marketing": "marketing",
}

CATEGORY_LABELS: Dict[str, str] = {
    "technical": "Tech stack",
    "soft_skill": "Soft skills",
    "experience": "Experience",
    "project": "Projects",
    "strength": "Strengths",
    "weakness": "Areas to improve",
}


class AssembledContext(BaseModel):
    text: str = ""
    keywords: List[UserKeyword] = Field(default_factory=list)
    keyword_text: str = ""
    questions: List[QuestionBankEntry] = Field(default_factory=list)


def _soft(label: str, fn: Callable[[], T], fallback: T) -> T:
    try:
        return fn()
    except Exception as exc:  # noqa: BLE001
        logger.warning("Context lookup failed (%s): %s", label, exc)
        return fallback


def question_bank_category(job_type: Optional[str]) -> Optional[str]:
    if not job_type:
        return None
    return JOB_CATEGORY_MAP.get(job_type.strip().lower())


def fetch_snippet(user_id: str, query: str, doc_id: str) -> str:
    retrieve = get_model(RETRIEVAL_KEY)
    snippet = retrieve(user_id=user_id, query=query, doc_id=doc_id)
    return (snippet or "").strip()


def format_keywords(keywords: Iterable[UserKeyword]) -> str:
    """Render keyword memory grouped by category for prompt injection."""

    grouped: Dict[str, List[UserKeyword]] = {}
    for kw in keywords:
        grouped.setdefault(kw.category, []).append(kw)

    lines: List[str] = []
    for category, items in grouped.items():
        lines.append(f"[{CATEGORY_LABELS.get(category, category)}]")
        for item in items:
            line = f"- {item.keyword}"
            if item.context:
                line += f" ({item.context})"
            if item.mentioned_count > 1:
                line += f" - {item.mentioned_count} mentions"
            lines.append(line)
    return "\n".join(lines)


def _coerce_entries(raw: Any) -> List[QuestionBankEntry]:
    entries: List[QuestionBankEntry] = []
    for item in raw or []:
        try:
            entries.append(QuestionBankEntry.model_validate(item))
        except ValidationError:
            logger.debug("Dropping malformed question bank entry: %r", item)
    return entries


def filter_questions(
    entries: Iterable[QuestionBankEntry],
    asked_questions: Iterable[str],
    top_k: int,
) -> List[QuestionBankEntry]:
    asked = {q.strip().lower() for q in asked_questions if q}
    kept = [
        entry
        for entry in entries
        if entry.question.strip() and entry.question.strip().lower() not in asked
    ]
    kept.sort(key=lambda entry: entry.score, reverse=True)
    return kept[: max(top_k, 0)]


def search_questions(
    *,
    resume_text: str,
    job_desc_text: str,
    keywords: List[UserKeyword],
    category: str,
    top_k: int,
    use_reranker: bool,
) -> List[QuestionBankEntry]:
    search = get_model(QUESTION_BANK_KEY)
    raw = search(
        resume_text=resume_text,
        job_desc_text=job_desc_text,
        keywords=[kw.keyword for kw in keywords],
        category=category,
        top_k=top_k,
        use_reranker=use_reranker,
    )
    return _coerce_entries(raw)


def assemble_context(
    *,
    user_id: str,
    user_message: str,
    job_type: Optional[str],
    industry: Optional[str] = None,
    resume_doc_id: Optional[str] = None,
    portfolio_doc_id: Optional[str] = None,
    asked_questions: Iterable[str] = (),
    resume_query: Optional[str] = None,
    portfolio_query: Optional[str] = None,
) -> AssembledContext:
    """Merge document snippets, keyword memory and question-bank hits."""

    resume_text = ""
    portfolio_text = ""
    if resume_doc_id:
        resume_text = _soft(
            "resume",
            lambda: fetch_snippet(user_id, resume_query or user_message, resume_doc_id),
            "",
        )
    if portfolio_doc_id:
        portfolio_text = _soft(
            "portfolio",
            lambda: fetch_snippet(user_id, portfolio_query or user_message, portfolio_doc_id),
            "",
        )

    sections: List[str] = []
    if resume_text:
        sections.append(f"{RESUME_LABEL}\n{resume_text}")
    if portfolio_text:
        sections.append(f"{PORTFOLIO_LABEL}\n{portfolio_text}")

    keywords: List[UserKeyword] = _soft(
        "keywords",
        lambda: top_keywords(user_id, limit=settings.KEYWORD_MEMORY_LIMIT),
        [],
    )

    questions: List[QuestionBankEntry] = []
    category = question_bank_category(job_type)
    if category is None:
        logger.info("No question bank category for job_type=%s; skipping search", job_type)
    else:
        job_desc_text = " ".join(part for part in (job_type, industry) if part)
        hits = _soft(
            "question_bank",
            lambda: search_questions(
                resume_text=resume_text,
                job_desc_text=job_desc_text,
                keywords=keywords,
                category=category,
                top_k=settings.QUESTION_BANK_TOP_K,
                use_reranker=settings.QUESTION_BANK_USE_RERANKER,
            ),
            [],
        )
        questions = filter_questions(hits, asked_questions, settings.QUESTION_BANK_TOP_K)

    return AssembledContext(
        text="\n\n".join(sections),
        keywords=keywords,
        keyword_text=format_keywords(keywords),
        questions=questions,
    )


__all__ = [
    "AssembledContext",
    "CATEGORY_LABELS",
    "JOB_CATEGORY_MAP",
    "assemble_context",
    "fetch_snippet",
    "filter_questions",
    "format_keywords",
    "question_bank_category",
    "search_questions",
]
