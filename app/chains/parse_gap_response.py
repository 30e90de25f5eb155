"""Parsers for gap detection model output.

Model output is untrusted free text. Each parser tries the embedded JSON
object first and the labeled-line format second; each strategy validates its
required fields before accepting. Parsers never raise: they return a
``ParseOutcome`` whose ``valid`` flag tells the caller whether ``value`` can
be used.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from app.core.llm import find_json_object, strip_llm_fences
from app.core.schemas_intelligence import GapCandidate, GapConfidence, GapId

T = TypeVar("T")

DEFAULT_WHY_IT_MATTERS = "No explanation provided."
DEFAULT_RECOMMENDATION_REASON = "Highest expected guidance impact."

# QUESTION runs until a blank line, a line opening a JSON object, or the end
_QUESTION_PATTERN = re.compile(
    r"GAP:\s*([\s\S]*?)\n\s*QUESTION:\s*([\s\S]*?)\s*(?:\n[ \t]*\n|\n[ \t]*\{|\Z)",
    re.IGNORECASE,
)
_GAP_BLOCK_PATTERN = re.compile(
    r"GAP\s*(\d+)\s*:\s*([\s\S]*?)\n\s*WHY IT MATTERS:\s*([\s\S]*?)\n\s*"
    r"CONFIDENCE WE['’]RE MISSING THIS:\s*(high|medium|low)",
    re.IGNORECASE,
)
_RECOMMENDATION_PATTERN = re.compile(
    r"RECOMMENDED GAP TO ASK ABOUT:\s*([1-3])\s*(?:-|:)?\s*([\s\S]*)", re.IGNORECASE
)


@dataclass
class ParseOutcome(Generic[T]):
    valid: bool
    value: T | None = None


@dataclass
class ParsedGapQuestion:
    gap: str
    question: str


@dataclass
class ParsedGapAnalysis:
    gaps: list[GapCandidate]
    recommended_gap_id: GapId
    recommendation_reason: str


def _invalid() -> ParseOutcome[Any]:
    return ParseOutcome(valid=False)


def _clean_str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def coerce_confidence(value: Any) -> GapConfidence:
    """Map free-text confidence to high/medium/low, defaulting to medium."""
    normalized = _clean_str(value).lower()
    try:
        return GapConfidence(normalized)
    except ValueError:
        return GapConfidence.MEDIUM


def coerce_gap_id(value: Any) -> GapId | None:
    try:
        return GapId(int(value))
    except (TypeError, ValueError, OverflowError):
        return None


def _load_json_object(text: str) -> dict[str, Any] | None:
    """Find and decode the first JSON object, with or without code fences."""
    for source in (text, strip_llm_fences(text)):
        candidate = find_json_object(source)
        if not candidate:
            continue
        try:
            parsed = json.loads(candidate)
        except (json.JSONDecodeError, RecursionError):
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def _pick_recommended(value: Any, gaps: list[GapCandidate]) -> GapId:
    gap_id = coerce_gap_id(value)
    if gap_id is not None and any(gap.id == gap_id for gap in gaps):
        return gap_id
    return gaps[0].id


# =============================================================================
# Single question
# =============================================================================


def _question_from_json(text: str) -> ParseOutcome[ParsedGapQuestion]:
    parsed = _load_json_object(text)
    if parsed is None:
        return _invalid()
    gap = _clean_str(parsed.get("gap"))
    question = _clean_str(parsed.get("question"))
    if not gap or not question:
        return _invalid()
    return ParseOutcome(valid=True, value=ParsedGapQuestion(gap=gap, question=question))


def _question_from_labels(text: str) -> ParseOutcome[ParsedGapQuestion]:
    match = _QUESTION_PATTERN.search(text)
    if not match:
        return _invalid()
    gap = match.group(1).strip()
    question = match.group(2).strip()
    if not gap or not question:
        return _invalid()
    return ParseOutcome(valid=True, value=ParsedGapQuestion(gap=gap, question=question))


def parse_gap_question_response(text: str) -> ParseOutcome[ParsedGapQuestion]:
    trimmed = (text or "").strip()
    if not trimmed:
        return _invalid()
    outcome = _question_from_json(trimmed)
    if outcome.valid:
        return outcome
    return _question_from_labels(trimmed)


# =============================================================================
# Three-gap analysis
# =============================================================================


def _analysis_from_json(text: str) -> ParseOutcome[ParsedGapAnalysis]:
    parsed = _load_json_object(text)
    if parsed is None:
        return _invalid()

    raw_gaps = parsed.get("gaps")
    if not isinstance(raw_gaps, list):
        return _invalid()

    gaps: list[GapCandidate] = []
    for raw in raw_gaps:
        if len(gaps) == len(GapId):
            break
        if not isinstance(raw, dict):
            continue
        description = _clean_str(raw.get("description"))
        if not description:
            continue
        why = _clean_str(raw.get("whyItMatters", raw.get("why_it_matters")))
        gaps.append(
            GapCandidate(
                id=GapId(len(gaps) + 1),
                description=description,
                why_it_matters=why or DEFAULT_WHY_IT_MATTERS,
                confidence=coerce_confidence(raw.get("confidence")),
            )
        )

    if not gaps:
        return _invalid()

    reason = _clean_str(parsed.get("recommendationReason", parsed.get("recommendation_reason")))
    return ParseOutcome(
        valid=True,
        value=ParsedGapAnalysis(
            gaps=gaps,
            recommended_gap_id=_pick_recommended(
                parsed.get("recommendedGapId", parsed.get("recommended_gap_id")), gaps
            ),
            recommendation_reason=reason or DEFAULT_RECOMMENDATION_REASON,
        ),
    )


def _analysis_from_labels(text: str) -> ParseOutcome[ParsedGapAnalysis]:
    gaps: list[GapCandidate] = []
    seen: set[GapId] = set()
    for match in _GAP_BLOCK_PATTERN.finditer(text):
        gap_id = coerce_gap_id(match.group(1))
        if gap_id is None or gap_id in seen:
            continue
        description = match.group(2).strip()
        if not description:
            continue
        seen.add(gap_id)
        gaps.append(
            GapCandidate(
                id=gap_id,
                description=description,
                why_it_matters=match.group(3).strip() or DEFAULT_WHY_IT_MATTERS,
                confidence=coerce_confidence(match.group(4)),
            )
        )

    if not gaps:
        return _invalid()

    recommendation = _RECOMMENDATION_PATTERN.search(text)
    recommended = _pick_recommended(recommendation.group(1) if recommendation else None, gaps)
    reason = recommendation.group(2).strip() if recommendation else ""

    return ParseOutcome(
        valid=True,
        value=ParsedGapAnalysis(
            gaps=gaps[: len(GapId)],
            recommended_gap_id=recommended,
            recommendation_reason=reason or DEFAULT_RECOMMENDATION_REASON,
        ),
    )


def parse_gap_analysis_response(text: str) -> ParseOutcome[ParsedGapAnalysis]:
    trimmed = (text or "").strip()
    if not trimmed:
        return _invalid()
    outcome = _analysis_from_json(trimmed)
    if outcome.valid:
        return outcome
    return _analysis_from_labels(trimmed)
