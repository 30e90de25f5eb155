"""Tests for the deterministic gap fallbacks."""

import pytest

from app.core.gap_context import assemble_intelligence_digest
from app.core.gap_fallback import (
    BLOCKER_ROOT_CAUSE_GAP,
    RECOMMENDATION_REASON,
    SUCCESS_UNDEFINED_GAP,
    TRADEOFF_LOGIC_GAP,
    build_fallback_gap_analysis,
    build_fallback_gap_question,
    find_active_milestone,
    find_active_project,
)
from app.core.schemas_intelligence import (
    GapConfidence,
    GapId,
    Insight,
    IntelligenceDigest,
    Milestone,
    Project,
    ProjectWithMilestones,
    ResultSource,
    UserUnderstanding,
)
from tests.fakes.fake_supabase import FakeSupabase
from tests.fixtures_users import (
    USER_ID,
    build_acme_user_tables,
    make_insight,
    make_project,
    make_understanding,
)


def _with_success(**kwargs) -> IntelligenceDigest:
    return IntelligenceDigest(
        user_understanding=UserUnderstanding(definition_of_success="Quit the day job by June"),
        **kwargs,
    )


def _project(name, status="building", milestones=None):
    return ProjectWithMilestones(
        project=Project(id=name.lower(), name=name, status=status),
        milestones=milestones or [],
    )


class TestFallbackQuestion:
    def test_empty_user(self):
        result = build_fallback_gap_question(IntelligenceDigest())

        assert result.source == ResultSource.FALLBACK
        assert result.gap == SUCCESS_UNDEFINED_GAP
        assert result.question == (
            "What exact outcome over the next 4 months would make you say this season "
            "was a win for you?"
        )
        assert result.raw_response == f"GAP: {result.gap}\nQUESTION: {result.question}"

    @pytest.mark.asyncio
    async def test_acme_user_gets_project_grounded_question(self):
        digest = await assemble_intelligence_digest(FakeSupabase(build_acme_user_tables()), USER_ID)
        result = build_fallback_gap_question(digest)

        assert result.gap == SUCCESS_UNDEFINED_GAP
        assert '"Acme"' in result.question
        assert "4 months" in result.question

    def test_whitespace_success_counts_as_missing(self):
        digest = IntelligenceDigest(user_understanding=UserUnderstanding(definition_of_success="   "))
        assert build_fallback_gap_question(digest).gap == SUCCESS_UNDEFINED_GAP

    def test_blocker_branch(self):
        digest = _with_success(insights=[
            Insight(insight_type="decision", content="Chose invoicing"),
            Insight(insight_type="blocker", content="Avoids pricing conversations"),
        ])
        result = build_fallback_gap_question(digest)

        assert result.gap == BLOCKER_ROOT_CAUSE_GAP
        assert result.question.startswith('You mentioned "Avoids pricing conversations"')
        assert "time, confidence, clarity, or something else?" in result.question

    def test_tradeoff_branch_with_active_milestone(self):
        digest = _with_success(projects_with_milestones=[
            _project("Acme", milestones=[
                Milestone(project_id="acme", title="Old launch", focus_level="active", status="completed"),
                Milestone(project_id="acme", title="Stripe integration", focus_level="active", status="in_progress"),
            ]),
        ])
        result = build_fallback_gap_question(digest)

        assert result.gap == TRADEOFF_LOGIC_GAP
        assert result.question.startswith('You are currently pushing "Stripe integration"')

    def test_tradeoff_branch_without_milestone(self):
        result = build_fallback_gap_question(_with_success())
        assert result.gap == TRADEOFF_LOGIC_GAP
        assert result.question.startswith("When your priorities compete")

    def test_deterministic(self):
        digest = _with_success()
        assert build_fallback_gap_question(digest) == build_fallback_gap_question(digest)


class TestFallbackAnalysis:
    def test_missing_success_and_blocker(self):
        digest = IntelligenceDigest(insights=[Insight(insight_type="blocker", content="stuck")])
        result = build_fallback_gap_analysis(digest)

        assert result.source == ResultSource.FALLBACK
        assert [g.id for g in result.gaps] == [GapId.FIRST, GapId.SECOND, GapId.THIRD]
        assert [g.confidence for g in result.gaps] == [
            GapConfidence.HIGH, GapConfidence.HIGH, GapConfidence.MEDIUM,
        ]
        assert result.gaps[0].description == "Concrete definition of success is missing."
        assert result.recommended_gap_id == GapId.FIRST
        assert result.recommendation_reason == RECOMMENDATION_REASON

    def test_success_defined_without_blocker(self):
        result = build_fallback_gap_analysis(_with_success())

        assert result.gaps[0].description == "Decision tradeoff logic is under-specified."
        assert [g.confidence for g in result.gaps] == [
            GapConfidence.MEDIUM, GapConfidence.MEDIUM, GapConfidence.MEDIUM,
        ]
        assert result.recommended_gap_id == GapId.FIRST

    def test_raw_response_is_labeled_text(self):
        result = build_fallback_gap_analysis(IntelligenceDigest())

        assert result.raw_response.startswith("GAP 1: Concrete definition of success is missing.")
        assert "CONFIDENCE WE'RE MISSING THIS: high" in result.raw_response
        assert result.raw_response.endswith(f"RECOMMENDED GAP TO ASK ABOUT: 1 - {RECOMMENDATION_REASON}")


class TestSelectors:
    def test_active_project_skips_launched(self):
        digest = IntelligenceDigest(projects_with_milestones=[
            _project("Shipped", status="launched"),
            _project("Acme"),
        ])
        assert find_active_project(digest).name == "Acme"

    def test_active_project_falls_back_to_first(self):
        digest = IntelligenceDigest(projects_with_milestones=[
            _project("One", status="launched"),
            _project("Two", status="launched"),
        ])
        assert find_active_project(digest).name == "One"
        assert find_active_project(IntelligenceDigest()) is None

    def test_active_milestone_ignores_discarded(self):
        digest = IntelligenceDigest(projects_with_milestones=[
            _project("Acme", milestones=[
                Milestone(project_id="acme", title="Dropped", focus_level="active", status="discarded"),
                Milestone(project_id="acme", title="Next up", focus_level="next"),
            ]),
        ])
        assert find_active_milestone(digest) is None


class TestNullColumns:
    @pytest.mark.asyncio
    async def test_blocker_with_null_importance_still_selects_blocker_branch(self):
        blocker = make_insight("Avoids pricing conversations", insight_type="blocker")
        blocker["importance"] = None
        db = FakeSupabase({
            "user_understanding": [make_understanding(definition_of_success="Quit the day job by June")],
            "ai_insights": [blocker],
        })
        digest = await assemble_intelligence_digest(db, USER_ID)
        result = build_fallback_gap_question(digest)

        assert result.gap == BLOCKER_ROOT_CAUSE_GAP
        assert '"Avoids pricing conversations"' in result.question

    @pytest.mark.asyncio
    async def test_project_with_null_status_is_named(self):
        project = make_project("Acme")
        project["status"] = None
        digest = await assemble_intelligence_digest(FakeSupabase({"projects": [project]}), USER_ID)
        result = build_fallback_gap_question(digest)

        assert result.question.startswith('You keep investing in "Acme"')
