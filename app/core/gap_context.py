"""Context assembly for user gap detection.

Gathers everything recorded about one user into an ``IntelligenceDigest``.
All independent reads run concurrently; milestones are the only dependent read
and are skipped when the user has no projects. Each source degrades to its
empty default on failure, so assembly itself cannot fail.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError
from supabase import Client

from app.core.logging import get_logger, log_with_context
from app.core.schemas_intelligence import (
    BehaviorPattern,
    ConversationSummary,
    ConversationTurn,
    DailyLog,
    Insight,
    IntelligenceDigest,
    Milestone,
    ProactiveQuestion,
    ProfileFact,
    Project,
    ProjectWithMilestones,
    UserUnderstanding,
)
from app.core.text_limits import format_date_label, snippet
from app.db import user_intelligence as db

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)

MAX_PROFILE_FACTS = 60
MAX_INSIGHTS = 40
MAX_PROJECTS = 5
MAX_MILESTONES_PER_PROJECT = 8
MAX_SUMMARY_LINES = 8
MAX_PATTERNS = 12
MAX_PATTERN_LINES = 8
MAX_PROACTIVE_QUESTIONS = 25
MAX_DAILY_LOGS = 14

# surface -> (rows fetched, rows used as filler)
TURN_SAMPLES = {
    "project_chat": (10, 4),
    "path_finder": (6, 2),
    "milestone_mode": (6, 2),
}


def _parse_rows(rows: list[Any], model: type[M], label: str) -> list[M]:
    """Validate raw rows, dropping the ones that don't fit the model."""
    parsed: list[M] = []
    for row in rows:
        try:
            parsed.append(model.model_validate(row))
        except ValidationError as e:
            logger.debug(f"Skipping malformed {label} row: {e.error_count()} error(s)")
    return parsed


def _parse_single(row: Any, model: type[M], label: str) -> M | None:
    if not row:
        return None
    try:
        return model.model_validate(row)
    except ValidationError as e:
        logger.debug(f"Skipping malformed {label} row: {e.error_count()} error(s)")
        return None


def group_milestones(
    projects: list[Project],
    milestones: list[Milestone],
) -> list[ProjectWithMilestones]:
    """Attach milestones to their projects, capped per project."""
    by_project: dict[str, list[Milestone]] = {}
    for milestone in milestones:
        by_project.setdefault(milestone.project_id, []).append(milestone)

    return [
        ProjectWithMilestones(
            project=project,
            milestones=by_project.get(project.id, [])[:MAX_MILESTONES_PER_PROJECT],
        )
        for project in projects[:MAX_PROJECTS]
    ]


def build_conversation_lines(
    summaries: list[ConversationSummary],
    turns_by_surface: dict[str, list[ConversationTurn]],
) -> list[str]:
    """Summaries first; raw turns only fill in when summaries are sparse."""
    lines = [
        f"- [{summary.conversation_key}] {snippet(summary.summary, 240)}"
        for summary in summaries[:MAX_SUMMARY_LINES]
    ]

    if len(lines) < MAX_SUMMARY_LINES:
        for surface, (_, used) in TURN_SAMPLES.items():
            for turn in turns_by_surface.get(surface, [])[:used]:
                lines.append(
                    f"- [{surface} {format_date_label(turn.created_at)}] "
                    f"{turn.role}: {snippet(turn.content, 180)}"
                )

    return lines[:MAX_SUMMARY_LINES]


def format_pattern_line(pattern: BehaviorPattern) -> str:
    confidence = int(pattern.confidence * 100 + 0.5)
    return f"{pattern.pattern_type}: {pattern.description} (confidence {confidence}%)"


async def assemble_intelligence_digest(client: Client, user_id: str) -> IntelligenceDigest:
    """Build the bounded digest for one user."""
    surfaces = list(TURN_SAMPLES)
    (
        understanding_result,
        facts_result,
        insights_result,
        patterns_result,
        questions_result,
        projects_result,
        summaries_result,
        logs_result,
        *turn_results,
    ) = await asyncio.gather(
        db.get_user_understanding(client, user_id),
        db.list_active_profile_facts(client, user_id, MAX_PROFILE_FACTS),
        db.list_active_insights(client, user_id, MAX_INSIGHTS),
        db.list_behavior_patterns(client, user_id, MAX_PATTERNS),
        db.list_proactive_questions(client, user_id, MAX_PROACTIVE_QUESTIONS),
        db.list_recent_projects(client, user_id, MAX_PROJECTS),
        db.list_conversation_summaries(client, user_id, MAX_SUMMARY_LINES),
        db.list_recent_daily_logs(client, user_id, MAX_DAILY_LOGS),
        *(
            db.list_recent_turns(client, user_id, surface, TURN_SAMPLES[surface][0])
            for surface in surfaces
        ),
    )

    projects = _parse_rows(projects_result.data, Project, "projects")[:MAX_PROJECTS]
    milestones_result = await db.list_milestones_for_projects(
        client,
        user_id,
        [project.id for project in projects],
        MAX_PROJECTS * MAX_MILESTONES_PER_PROJECT,
    )

    results = {
        "user_understanding": understanding_result,
        "user_profile_facts": facts_result,
        "ai_insights": insights_result,
        "patterns": patterns_result,
        "proactive_questions": questions_result,
        "projects": projects_result,
        "conversation_summaries": summaries_result,
        "daily_logs": logs_result,
        "milestones": milestones_result,
        **{surface: result for surface, result in zip(surfaces, turn_results)},
    }
    failed = sorted(name for name, result in results.items() if result.error is not None)
    if failed:
        log_with_context(
            logger,
            logging.WARNING,
            "Digest assembled with degraded sources",
            user_id=user_id,
            failed_sources=",".join(failed),
        )

    turns_by_surface = {
        surface: _parse_rows(result.data, ConversationTurn, surface)
        for surface, result in zip(surfaces, turn_results)
    }
    summaries = _parse_rows(summaries_result.data, ConversationSummary, "conversation_summaries")
    patterns = _parse_rows(patterns_result.data, BehaviorPattern, "patterns")

    return IntelligenceDigest(
        user_understanding=_parse_single(
            understanding_result.data, UserUnderstanding, "user_understanding"
        ),
        profile_facts=[
            fact
            for fact in _parse_rows(facts_result.data, ProfileFact, "user_profile_facts")
            if fact.is_active
        ][:MAX_PROFILE_FACTS],
        insights=[
            insight
            for insight in _parse_rows(insights_result.data, Insight, "ai_insights")
            if insight.is_active
        ][:MAX_INSIGHTS],
        projects_with_milestones=group_milestones(
            projects, _parse_rows(milestones_result.data, Milestone, "milestones")
        ),
        recent_conversation_summaries=build_conversation_lines(summaries, turns_by_surface),
        behavioral_patterns=[
            format_pattern_line(pattern) for pattern in patterns[:MAX_PATTERN_LINES]
        ],
        proactive_questions=_parse_rows(
            questions_result.data, ProactiveQuestion, "proactive_questions"
        )[:MAX_PROACTIVE_QUESTIONS],
        daily_logs=_parse_rows(logs_result.data, DailyLog, "daily_logs")[:MAX_DAILY_LOGS],
    )
