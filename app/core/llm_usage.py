"""LLM usage logger for token/cost tracking."""

import logging
from uuid import UUID

from app.core.logging import get_logger, log_with_context

logger = get_logger(__name__)

# Pricing per 1M tokens: (input, output)
MODEL_PRICING: dict[str, tuple[float, float]] = {
    "claude-opus-4-6": (15.0, 75.0),
    "claude-opus-4-5-20251101": (15.0, 75.0),
    "claude-sonnet-4-6": (3.0, 15.0),
    "claude-sonnet-4-5-20250929": (3.0, 15.0),
    "claude-sonnet-4-20250514": (3.0, 15.0),
    "claude-haiku-4-5-20251001": (0.80, 4.0),
    "claude-3-5-haiku-20241022": (0.80, 4.0),
}


def estimate_cost(model: str, tokens_input: int, tokens_output: int) -> float:
    """Estimate cost in USD based on model pricing."""
    pricing = MODEL_PRICING.get(model)
    if not pricing:
        # Try prefix match for dated model variants
        for key, val in MODEL_PRICING.items():
            if model.startswith(key.rsplit("-", 1)[0]):
                pricing = val
                break
    if not pricing:
        logger.warning(f"No pricing found for model '{model}', using $0")
        return 0.0

    input_rate, output_rate = pricing
    cost = (tokens_input * input_rate / 1_000_000) + (tokens_output * output_rate / 1_000_000)
    return round(cost, 6)


def log_llm_usage(
    workflow: str,
    model: str,
    tokens_input: int,
    tokens_output: int,
    duration_ms: int = 0,
    user_id: UUID | str | None = None,
    chain: str | None = None,
) -> None:
    """Emit one structured usage line for a completion call. Never raises."""
    try:
        log_with_context(
            logger,
            logging.INFO,
            "LLM usage",
            user_id=str(user_id) if user_id else None,
            workflow=workflow,
            chain=chain,
            model=model,
            provider="anthropic",
            tokens_input=tokens_input,
            tokens_output=tokens_output,
            duration_ms=duration_ms,
            estimated_cost_usd=estimate_cost(model, tokens_input, tokens_output),
        )
    except Exception as e:
        logger.debug(f"Failed to log LLM usage for {workflow}: {e}")
