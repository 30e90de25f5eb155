"""Deterministic gap results computed straight from the digest.

Used as the default before any model call is attempted and as the result
whenever the model path fails. Branch order is the priority order:

1. No definition of success recorded.
2. A blocker insight exists (root cause unknown).
3. Otherwise, the tradeoff logic behind current priorities.

The analysis variant always recommends gap 1: a concrete definition of
success has the largest downstream effect on prioritization.
"""

from app.core.schemas_intelligence import (
    GapAnalysisResult,
    GapCandidate,
    GapConfidence,
    GapId,
    GapQuestionResult,
    Insight,
    IntelligenceDigest,
    Milestone,
    Project,
    ResultSource,
)
from app.core.text_limits import snippet

CLOSED_MILESTONE_STATUSES = {"completed", "discarded"}

SUCCESS_UNDEFINED_GAP = (
    "We still do not know their concrete definition of success, "
    "so guidance may optimize for the wrong outcome."
)
BLOCKER_ROOT_CAUSE_GAP = (
    "We do not yet understand the root cause behind a recurring blocker, "
    "so recommendations may stay tactical instead of solving the pattern."
)
TRADEOFF_LOGIC_GAP = (
    "The tradeoff logic behind current priorities is still unclear, "
    "which makes it hard to steer decisions when conflicts appear."
)

RECOMMENDATION_REASON = (
    "Clarifying success criteria has the largest downstream impact on "
    "prioritization and daily guidance."
)


def find_active_project(digest: IntelligenceDigest) -> Project | None:
    """First project that hasn't launched, else the most recent one."""
    projects = [item.project for item in digest.projects_with_milestones]
    for project in projects:
        if project.status != "launched":
            return project
    return projects[0] if projects else None


def find_active_milestone(digest: IntelligenceDigest) -> Milestone | None:
    for item in digest.projects_with_milestones:
        for milestone in item.milestones:
            if (
                milestone.focus_level == "active"
                and milestone.status not in CLOSED_MILESTONE_STATUSES
            ):
                return milestone
    return None


def find_blocker_insight(digest: IntelligenceDigest) -> Insight | None:
    for insight in digest.insights:
        if insight.insight_type == "blocker":
            return insight
    return None


def has_success_definition(digest: IntelligenceDigest) -> bool:
    understanding = digest.user_understanding
    return bool(understanding and (understanding.definition_of_success or "").strip())


def _question_result(gap: str, question: str) -> GapQuestionResult:
    return GapQuestionResult(
        gap=gap,
        question=question,
        raw_response=f"GAP: {gap}\nQUESTION: {question}",
        source=ResultSource.FALLBACK,
    )


def build_fallback_gap_question(digest: IntelligenceDigest) -> GapQuestionResult:
    if not has_success_definition(digest):
        project = find_active_project(digest)
        if project:
            question = (
                f'You keep investing in "{project.name}" - what exact outcome over the next '
                "4 months would make you say this season was a win?"
            )
        else:
            question = (
                "What exact outcome over the next 4 months would make you say this season "
                "was a win for you?"
            )
        return _question_result(SUCCESS_UNDEFINED_GAP, question)

    blocker = find_blocker_insight(digest)
    if blocker:
        question = (
            f'You mentioned "{snippet(blocker.content, 90)}" - what is the real constraint '
            "behind that pattern right now: time, confidence, clarity, or something else?"
        )
        return _question_result(BLOCKER_ROOT_CAUSE_GAP, question)

    milestone = find_active_milestone(digest)
    if milestone:
        question = (
            f'You are currently pushing "{milestone.title}" - what are you explicitly '
            "saying no to while this is your focus?"
        )
    else:
        question = (
            "When your priorities compete, what rule do you use to decide what gets "
            "your focus first?"
        )
    return _question_result(TRADEOFF_LOGIC_GAP, question)


def render_gap_analysis_text(
    gaps: list[GapCandidate], recommended_gap_id: GapId, reason: str
) -> str:
    """Render gaps in the labeled text format the analysis prompt asks for."""
    lines: list[str] = []
    for gap in gaps:
        lines.extend([
            f"GAP {gap.id.value}: {gap.description}",
            f"WHY IT MATTERS: {gap.why_it_matters}",
            f"CONFIDENCE WE'RE MISSING THIS: {gap.confidence.value}",
            "",
        ])
    lines.append(f"RECOMMENDED GAP TO ASK ABOUT: {recommended_gap_id.value} - {reason}")
    return "\n".join(lines)


def build_fallback_gap_analysis(digest: IntelligenceDigest) -> GapAnalysisResult:
    if has_success_definition(digest):
        first = GapCandidate(
            id=GapId.FIRST,
            description="Decision tradeoff logic is under-specified.",
            why_it_matters=(
                "When priorities collide, guidance can become inconsistent if we do not "
                "know the user's decision rule."
            ),
            confidence=GapConfidence.MEDIUM,
        )
    else:
        first = GapCandidate(
            id=GapId.FIRST,
            description="Concrete definition of success is missing.",
            why_it_matters=(
                "Without a concrete finish line, Rise can optimize for activity instead of "
                "outcomes that actually change the user's life."
            ),
            confidence=GapConfidence.HIGH,
        )

    gaps = [
        first,
        GapCandidate(
            id=GapId.SECOND,
            description="Root cause behind recurring blockers is unclear.",
            why_it_matters=(
                "If we only treat surface blockers, we keep repeating the same bottlenecks "
                "and lose momentum."
            ),
            confidence=(
                GapConfidence.HIGH if find_blocker_insight(digest) else GapConfidence.MEDIUM
            ),
        ),
        GapCandidate(
            id=GapId.THIRD,
            description="Some existing context may be stale (motivations/situation shifts).",
            why_it_matters=(
                "Guidance quality degrades fast when life constraints or motivation change "
                "but the model still assumes old conditions."
            ),
            confidence=GapConfidence.MEDIUM,
        ),
    ]

    return GapAnalysisResult(
        gaps=gaps,
        recommended_gap_id=GapId.FIRST,
        recommendation_reason=RECOMMENDATION_REASON,
        raw_response=render_gap_analysis_text(gaps, GapId.FIRST, RECOMMENDATION_REASON),
        source=ResultSource.FALLBACK,
    )
