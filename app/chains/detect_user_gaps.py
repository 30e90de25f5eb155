"""User gap detection: one question, or a ranked three-gap analysis.

Both operations follow the same shape:

1. Assemble the digest and mine behavioral signals.
2. Compute the deterministic fallback first, so a result always exists.
3. Without an Anthropic key, return the fallback (no network I/O).
4. Otherwise make one completion call (no retries). Any error returns the
   fallback.
5. Parse the response; if both parsing strategies fail, return the fallback
   carrying the raw model text.

Neither operation raises. ``source`` tells the caller which path produced
the result.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from supabase import Client

from app.chains.gap_prompts import build_gap_detection_prompt, build_single_gap_question_prompt
from app.chains.parse_gap_response import parse_gap_analysis_response, parse_gap_question_response
from app.core.config import get_settings
from app.core.gap_context import assemble_intelligence_digest
from app.core.gap_fallback import build_fallback_gap_analysis, build_fallback_gap_question
from app.core.llm import extract_text_blocks, get_anthropic_client
from app.core.llm_usage import log_llm_usage
from app.core.logging import get_logger, log_with_context
from app.core.pattern_miner import derive_behavioral_patterns
from app.core.schemas_intelligence import (
    GapAnalysisResult,
    GapQuestionResult,
    ResultSource,
)

logger = get_logger(__name__)


def _anthropic_configured() -> bool:
    try:
        return bool(get_settings().ANTHROPIC_API_KEY)
    except Exception as e:
        logger.warning(f"Settings unavailable, treating Anthropic as unconfigured: {e}")
        return False


async def _complete(prompt: str, max_tokens: int, chain: str, user_id: str) -> str:
    """Single completion call; returns the joined text blocks."""
    settings = get_settings()
    client = get_anthropic_client()

    start = time.time()
    response = await client.messages.create(
        model=settings.GAP_MODEL,
        max_tokens=max_tokens,
        messages=[{"role": "user", "content": prompt}],
    )
    duration_ms = int((time.time() - start) * 1000)

    usage: Any = getattr(response, "usage", None)
    if usage is not None:
        log_llm_usage(
            workflow="user_gap_detection",
            chain=chain,
            model=settings.GAP_MODEL,
            tokens_input=getattr(usage, "input_tokens", 0) or 0,
            tokens_output=getattr(usage, "output_tokens", 0) or 0,
            duration_ms=duration_ms,
            user_id=user_id,
        )

    return extract_text_blocks(response)


async def generate_gap_question(client: Client, user_id: str) -> GapQuestionResult:
    """Find the single most valuable missing fact and one question to close it."""
    digest = await assemble_intelligence_digest(client, user_id)
    patterns = derive_behavioral_patterns(digest)
    fallback = build_fallback_gap_question(digest)

    if not _anthropic_configured():
        log_with_context(
            logger, logging.INFO, "No Anthropic key, using fallback gap question",
            user_id=user_id, operation="gap_question",
        )
        return fallback

    try:
        raw = await _complete(
            build_single_gap_question_prompt(digest, patterns),
            get_settings().GAP_QUESTION_MAX_TOKENS,
            chain="generate_gap_question",
            user_id=user_id,
        )
    except Exception as e:
        logger.error(f"Failed generating proactive gap question for {user_id}: {e}")
        return fallback

    outcome = parse_gap_question_response(raw)
    if not outcome.valid or outcome.value is None:
        log_with_context(
            logger, logging.WARNING, "Unparseable gap question response, using fallback",
            user_id=user_id, operation="gap_question", response_chars=len(raw),
        )
        return fallback.model_copy(update={"raw_response": raw or fallback.raw_response})

    return GapQuestionResult(
        gap=outcome.value.gap,
        question=outcome.value.question,
        raw_response=raw,
        source=ResultSource.AI,
    )


async def generate_gap_analysis(client: Client, user_id: str) -> GapAnalysisResult:
    """Rank the top three gaps in what we know about the user."""
    digest = await assemble_intelligence_digest(client, user_id)
    patterns = derive_behavioral_patterns(digest)
    fallback = build_fallback_gap_analysis(digest)

    if not _anthropic_configured():
        log_with_context(
            logger, logging.INFO, "No Anthropic key, using fallback gap analysis",
            user_id=user_id, operation="gap_analysis",
        )
        return fallback

    try:
        raw = await _complete(
            build_gap_detection_prompt(digest, patterns),
            get_settings().GAP_ANALYSIS_MAX_TOKENS,
            chain="generate_gap_analysis",
            user_id=user_id,
        )
    except Exception as e:
        logger.error(f"Failed generating gap analysis for {user_id}: {e}")
        return fallback

    outcome = parse_gap_analysis_response(raw)
    if not outcome.valid or outcome.value is None:
        log_with_context(
            logger, logging.WARNING, "Unparseable gap analysis response, using fallback",
            user_id=user_id, operation="gap_analysis", response_chars=len(raw),
        )
        return fallback.model_copy(update={"raw_response": raw or fallback.raw_response})

    return GapAnalysisResult(
        gaps=outcome.value.gaps,
        recommended_gap_id=outcome.value.recommended_gap_id,
        recommendation_reason=outcome.value.recommendation_reason,
        raw_response=raw,
        source=ResultSource.AI,
    )
