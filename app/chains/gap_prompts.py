"""Prompt templates for user gap detection.

Two templates: a single gap-closing question, and a ranked three-gap analysis.
Both ask for the answer twice (labeled lines and one JSON object) so the
response parser has two independent ways to recover it. Every block inserted
into a template passes through ``limit_text`` first.
"""

from app.core.gap_context import (
    MAX_INSIGHTS,
    MAX_MILESTONES_PER_PROJECT,
    MAX_PROJECTS,
    MAX_SUMMARY_LINES,
)
from app.core.schemas_intelligence import IntelligenceDigest
from app.core.text_limits import format_date_label, format_json_inline, limit_text, snippet

PROFILE_CATEGORIES = ["background", "skills", "situation", "goals", "preferences", "constraints"]
MAX_PREVIOUS_QUESTIONS = 20

SINGLE_GAP_QUESTION_TEMPLATE = """You are Rise's Intelligence Layer - responsible for understanding the user deeply so you can guide them toward what actually matters.

## What You Know About This User

<USER_PROFILE>
{user_profile}
</USER_PROFILE>

<DISCOVERED_INSIGHTS>
{discovered_insights}
</DISCOVERED_INSIGHTS>

<ACTIVE_PROJECTS>
{projects_with_milestones}
</ACTIVE_PROJECTS>

<RECENT_CONVERSATIONS>
{recent_conversations}
</RECENT_CONVERSATIONS>

<BEHAVIORAL_PATTERNS>
{behavioral_patterns}
</BEHAVIORAL_PATTERNS>

## Your Task

Analyze everything above and identify the SINGLE most important gap in your understanding of this user - something that, if you knew it, would dramatically improve your ability to help them.

Then generate ONE question to ask them that would fill that gap.

## Rules

1. The question must be SPECIFIC and grounded in context you already have - not generic
2. Reference something concrete they've said or done
3. The question should feel like it comes from someone who's been paying attention
4. Keep it short - one or two sentences max
5. It should make them think, not just answer automatically

## Output Format

GAP: [What you don't understand and why it matters]

QUESTION: [The exact question to send as a notification]

Return JSON as well for machine parsing:
{{"gap":"...","question":"..."}}"""

GAP_DETECTION_TEMPLATE = """You are analyzing Rise's knowledge about a user to find the most important gap.

## Current Knowledge Model

<USER_UNDERSTANDING>
{user_understanding}
</USER_UNDERSTANDING>

<ALL_INSIGHTS>
{insights}
</ALL_INSIGHTS>

<DETECTED_PATTERNS>
{patterns}
</DETECTED_PATTERNS>

<PREVIOUS_QUESTIONS>
{previous_questions}
</PREVIOUS_QUESTIONS>

## Your Task

Identify what's MISSING. Look for:

1. Contradictions - they said X but did Y. Why?
2. Vague areas - we know they want meaningful work but not what that means
3. Unstated motivations - we know what they're doing but not why
4. Avoided topics - things that should have come up but have not
5. Stale information - things we learned weeks ago that might have changed
6. Missing context - we're advising on projects but don't know crucial life details

## Output

Return the top 3 gaps, ranked by:
- How much it would improve Rise's ability to help
- How likely they are to actually answer

FORMAT:
GAP 1: [description]
WHY IT MATTERS: [how this would change our guidance]
CONFIDENCE WE'RE MISSING THIS: [high/medium/low]

GAP 2: ...

GAP 3: ...

RECOMMENDED GAP TO ASK ABOUT: [1, 2, or 3 and why]

Return JSON as well for machine parsing:
{{
  "gaps": [
    {{ "description": "...", "whyItMatters": "...", "confidence": "high" }},
    {{ "description": "...", "whyItMatters": "...", "confidence": "medium" }},
    {{ "description": "...", "whyItMatters": "...", "confidence": "low" }}
  ],
  "recommendedGapId": 1,
  "recommendationReason": "..."
}}"""


# =============================================================================
# Blocks
# =============================================================================


def _has_content(blob: str) -> bool:
    return blob not in ("{}", "null", "[]", '""')


def build_user_profile_block(digest: IntelligenceDigest) -> str:
    sections: list[str] = []

    understanding = digest.user_understanding
    if understanding:
        sections.append(
            f"Definition of success: {understanding.definition_of_success or 'Unknown'}"
        )
        for label, values in (
            ("Values", understanding.values),
            ("Motivations", understanding.motivations),
            ("Strengths", understanding.strengths),
            ("Known blockers", understanding.blockers),
            ("Unknown questions", understanding.unknown_questions),
        ):
            if values:
                sections.append(f"{label}: {' | '.join(values)}")

        for label, blob in (
            ("Background JSON", understanding.background),
            ("Current situation JSON", understanding.current_situation),
            ("Work style JSON", understanding.work_style),
        ):
            rendered = format_json_inline(blob)
            if _has_content(rendered):
                sections.append(f"{label}: {rendered}")

    for category in PROFILE_CATEGORIES:
        facts = [f.fact.strip() for f in digest.profile_facts if f.category == category]
        if facts:
            sections.append(f"{category}: {' | '.join(facts)}")

    if not sections:
        sections.append("No structured profile yet. User model still sparse.")

    return limit_text("\n".join(sections))


def build_discovered_insights_block(digest: IntelligenceDigest) -> str:
    if not digest.insights:
        return "No insights captured yet."

    lines = [
        f"- [{insight.insight_type}] ({insight.importance}/10, "
        f"{format_date_label(insight.created_at)}) {snippet(insight.content, 260)}"
        for insight in digest.insights[:MAX_INSIGHTS]
    ]
    return limit_text("\n".join(lines))


def build_projects_with_milestones_block(digest: IntelligenceDigest) -> str:
    if not digest.projects_with_milestones:
        return "No active projects found."

    lines: list[str] = []
    for item in digest.projects_with_milestones[:MAX_PROJECTS]:
        project = item.project
        lines.append(f"- Project: {project.name} [{project.status}]")
        if project.description and project.description.strip():
            lines.append(f"  Description: {snippet(project.description, 220)}")

        if not item.milestones:
            lines.append("  Milestones: none")
            continue

        lines.append("  Milestones:")
        for milestone in item.milestones[:MAX_MILESTONES_PER_PROJECT]:
            lines.append(f"    - [{milestone.focus_level}] {milestone.title} ({milestone.status})")

    return limit_text("\n".join(lines))


def build_conversation_summary_block(digest: IntelligenceDigest) -> str:
    if not digest.recent_conversation_summaries:
        return "No recent conversation summaries available."
    return limit_text("\n".join(digest.recent_conversation_summaries[:MAX_SUMMARY_LINES]))


def build_behavioral_patterns_block(patterns: list[str]) -> str:
    return limit_text("\n".join(patterns))


def build_user_understanding_block(digest: IntelligenceDigest) -> str:
    understanding = digest.user_understanding
    if not understanding:
        return limit_text("No user_understanding row exists yet.")

    sections = [
        f"definition_of_success: {understanding.definition_of_success or 'null'}",
        f"values: {' | '.join(understanding.values) or 'none'}",
        f"motivations: {' | '.join(understanding.motivations) or 'none'}",
        f"strengths: {' | '.join(understanding.strengths) or 'none'}",
        f"blockers: {' | '.join(understanding.blockers) or 'none'}",
        f"unknown_questions: {' | '.join(understanding.unknown_questions) or 'none'}",
        f"work_style: {format_json_inline(understanding.work_style)}",
    ]
    return limit_text("\n".join(sections))


def build_previous_questions_block(digest: IntelligenceDigest) -> str:
    if not digest.proactive_questions:
        return "No proactive questions logged yet."

    lines = []
    for q in digest.proactive_questions[:MAX_PREVIOUS_QUESTIONS]:
        quality = q.quality_score if q.quality_score is not None else "null"
        lines.append(
            f"- sent={q.sent_at or 'null'} answered={q.answered_at or 'null'} "
            f'gap="{snippet(q.gap_identified, 120)}" question="{snippet(q.question, 150)}" '
            f'answer="{snippet(q.answer, 150)}" quality={quality}'
        )
    return limit_text("\n".join(lines))


# =============================================================================
# Templates
# =============================================================================


def build_single_gap_question_prompt(digest: IntelligenceDigest, patterns: list[str]) -> str:
    return SINGLE_GAP_QUESTION_TEMPLATE.format(
        user_profile=build_user_profile_block(digest),
        discovered_insights=build_discovered_insights_block(digest),
        projects_with_milestones=build_projects_with_milestones_block(digest),
        recent_conversations=build_conversation_summary_block(digest),
        behavioral_patterns=build_behavioral_patterns_block(patterns),
    )


def build_gap_detection_prompt(digest: IntelligenceDigest, patterns: list[str]) -> str:
    return GAP_DETECTION_TEMPLATE.format(
        user_understanding=build_user_understanding_block(digest),
        insights=build_discovered_insights_block(digest),
        patterns=build_behavioral_patterns_block(patterns),
        previous_questions=build_previous_questions_block(digest),
    )
