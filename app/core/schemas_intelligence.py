"""Pydantic schemas for user gap detection.

Row models mirror the Supabase tables the digest is assembled from. Unknown
columns are ignored, and NULL in a column that has a default reads as that
default (empty list for array columns).
"""

from enum import Enum, IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


# =============================================================================
# Enums
# =============================================================================


class GapId(IntEnum):
    """Closed set of gap identifiers in a three-gap analysis."""

    FIRST = 1
    SECOND = 2
    THIRD = 3


class GapConfidence(str, Enum):
    """How confident we are that the gap is really missing."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ResultSource(str, Enum):
    """Provenance of a gap result."""

    AI = "ai"
    FALLBACK = "fallback"


# =============================================================================
# Stored rows (read-only inputs)
# =============================================================================


class _Row(BaseModel):
    model_config = ConfigDict(extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _null_to_default(cls, v: Any, info: ValidationInfo) -> Any:
        # NULL in a defaulted column reads as the default; required columns still fail
        if v is None and info.field_name:
            field = cls.model_fields[info.field_name]
            if not field.is_required():
                return field.get_default(call_default_factory=True)
        return v


class UserUnderstanding(_Row):
    user_id: str | None = None
    definition_of_success: str | None = None
    values: list[str] = Field(default_factory=list)
    motivations: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    blockers: list[str] = Field(default_factory=list)
    unknown_questions: list[str] = Field(default_factory=list)
    background: Any = None
    current_situation: Any = None
    work_style: Any = None


class ProfileFact(_Row):
    id: str | None = None
    category: str
    fact: str = ""
    is_active: bool = True


class Insight(_Row):
    id: str | None = None
    insight_type: str
    content: str = ""
    importance: int = 5
    created_at: str = ""
    is_active: bool = True


class Project(_Row):
    id: str
    name: str
    description: str | None = None
    status: str = "discovery"
    updated_at: str | None = None


class Milestone(_Row):
    id: str | None = None
    project_id: str
    title: str
    status: str = "pending"
    focus_level: str = "backlog"
    sort_order: int = 0


class ConversationSummary(_Row):
    conversation_key: str = "conversation"
    summary: str = ""
    updated_at: str | None = None


class ConversationTurn(_Row):
    """One raw message from a conversation surface."""

    created_at: str = ""
    role: str = "user"
    content: str = ""


class BehaviorPattern(_Row):
    pattern_type: str
    description: str = ""
    confidence: float = 0.0
    last_confirmed: str | None = None


class ProactiveQuestion(_Row):
    id: str | None = None
    gap_identified: str = ""
    question: str = ""
    sent_at: str | None = None
    answered_at: str | None = None
    answer: str | None = None
    quality_score: int | None = None
    created_at: str | None = None


class DailyLog(_Row):
    log_date: str
    morning_mood: float | None = None
    morning_energy: float | None = None
    evening_mood: float | None = None
    evening_energy: float | None = None


# =============================================================================
# Digest
# =============================================================================


class ProjectWithMilestones(BaseModel):
    project: Project
    milestones: list[Milestone] = Field(default_factory=list)


class IntelligenceDigest(BaseModel):
    """Bounded snapshot of everything known about one user."""

    user_understanding: UserUnderstanding | None = None
    profile_facts: list[ProfileFact] = Field(default_factory=list)
    insights: list[Insight] = Field(default_factory=list)
    projects_with_milestones: list[ProjectWithMilestones] = Field(default_factory=list)
    recent_conversation_summaries: list[str] = Field(default_factory=list)
    behavioral_patterns: list[str] = Field(default_factory=list)
    proactive_questions: list[ProactiveQuestion] = Field(default_factory=list)
    daily_logs: list[DailyLog] = Field(default_factory=list)


# =============================================================================
# Results
# =============================================================================


class GapQuestionResult(BaseModel):
    gap: str
    question: str
    raw_response: str
    source: ResultSource


class GapCandidate(BaseModel):
    id: GapId
    description: str
    why_it_matters: str
    confidence: GapConfidence = GapConfidence.MEDIUM


class GapAnalysisResult(BaseModel):
    gaps: list[GapCandidate]
    recommended_gap_id: GapId
    recommendation_reason: str
    raw_response: str
    source: ResultSource
