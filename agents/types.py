"""Shared type definitions for interviewer agents."""
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

PersonaId = Literal["hiring_manager", "hr_manager", "senior_peer"]
Difficulty = Literal["easy", "medium", "hard"]
KeywordCategory = Literal["technical", "soft_skill", "experience", "project", "strength", "weakness"]


class Evaluation(BaseModel):
    relevance: float
    clarity: float
    depth: float

    @field_validator("relevance", "clarity", "depth")
    @classmethod
    def _clamp(cls, value: float) -> float:
        return max(0.0, min(100.0, float(value)))


class StructuredResponse(BaseModel):
    question: str
    evaluation: Evaluation
    inner_thought: Optional[str] = None
    follow_up_intent: bool
    suggested_follow_up: Optional[str] = None


class InterviewerReply(BaseModel):
    text: str
    structured: Optional[StructuredResponse] = None
    latency_ms: int = 0


class TurnDecision(BaseModel):
    next_persona_id: PersonaId
    is_follow_up: bool
    should_force_new_topic: bool


class UserKeyword(BaseModel):
    keyword: str
    category: KeywordCategory
    context: Optional[str] = None
    mentioned_count: int = Field(default=1, ge=1)

    @field_validator("mentioned_count", mode="before")
    @classmethod
    def _at_least_once(cls, value: object) -> int:
        try:
            return max(1, int(value))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 1


class ExtractedKeywords(BaseModel):
    keywords: List[UserKeyword] = Field(default_factory=list)
    summary: str = ""


class QuestionBankEntry(BaseModel):
    question: str
    score: float = 0.0
    category: Optional[str] = None
    metadata: Dict[str, object] = Field(default_factory=dict)


class GenerationOptions(BaseModel):
    """Prompt knobs passed alongside the conversation to the response generator."""

    industry: Optional[str] = None
    difficulty: Difficulty = "medium"
    turn_count: int = 1
    keyword_text: str = ""
    is_follow_up: bool = False
    force_new_topic: bool = False
    reference_questions: List[str] = Field(default_factory=list)
    display_name: Optional[str] = None
    personality: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
