"""Text truncation and formatting helpers shared by the digest and prompts."""

import json
import re
from datetime import datetime, timezone
from typing import Any

MAX_BLOCK_CHARS = 5500
TRUNCATION_MARKER = "\n...[truncated]"


def limit_text(text: str, max_chars: int = MAX_BLOCK_CHARS) -> str:
    """Cap a formatted block at ``max_chars`` characters plus a marker."""
    if not text:
        return ""
    if len(text) <= max_chars:
        return text
    return f"{text[:max_chars]}{TRUNCATION_MARKER}"


def compact_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def snippet(text: str | None, max_chars: int = 180) -> str:
    """Single-line excerpt of at most ``max_chars`` characters plus an ellipsis."""
    cleaned = compact_whitespace(text or "")
    if len(cleaned) <= max_chars:
        return cleaned
    return f"{cleaned[:max_chars]}..."


def format_json_inline(value: Any) -> str:
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError):
        return str(value)


def format_date_label(iso: str | None) -> str:
    """ISO timestamp -> YYYY-MM-DD (UTC); unparseable input is returned as-is."""
    if not iso:
        return ""
    try:
        parsed = datetime.fromisoformat(iso.replace("Z", "+00:00"))
    except ValueError:
        return iso
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date().isoformat()


def average(numbers: list[float]) -> float:
    if not numbers:
        return 0.0
    return sum(numbers) / len(numbers)
