"""Anthropic client utilities and response text helpers."""

import re
from typing import Any

from anthropic import AsyncAnthropic

from app.core.config import get_settings


def get_anthropic_client() -> AsyncAnthropic:
    """
    Get a configured async Anthropic client.

    No retries are configured: a failed call routes to the deterministic
    fallback instead of being repeated.
    """
    settings = get_settings()
    return AsyncAnthropic(
        api_key=settings.ANTHROPIC_API_KEY,
        timeout=settings.ANTHROPIC_TIMEOUT_SECONDS,
        max_retries=0,
    )


def extract_text_blocks(response: Any) -> str:
    """Join the text blocks of a Messages API response."""
    parts: list[str] = []
    for block in getattr(response, "content", None) or []:
        if getattr(block, "type", "text") != "text":
            continue
        text = getattr(block, "text", None)
        if isinstance(text, str):
            parts.append(text)
    return "\n".join(parts).strip()


def strip_llm_fences(raw_output: str) -> str:
    """Strip markdown code fences from LLM output.

    Handles: ```json ... ```, ``` ... ```, leading/trailing whitespace.
    """
    cleaned = raw_output.strip()

    fence_match = re.search(r"```(?:json)?\s*\n?(.*?)```", cleaned, re.DOTALL)
    if fence_match:
        return fence_match.group(1).strip()

    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def find_json_object(text: str) -> str | None:
    """Return the outermost ``{...}`` substring of ``text``, if any."""
    match = re.search(r"\{[\s\S]*\}", text)
    return match.group(0) if match else None
