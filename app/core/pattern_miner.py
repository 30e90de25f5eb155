"""Qualitative signals mined from a user digest.

Pure and deterministic: the same digest always yields the same lines. The
derived signals are appended to the pre-computed behavior patterns, never
replace them.
"""

import re
from collections import Counter

from app.core.schemas_intelligence import IntelligenceDigest
from app.core.text_limits import average, snippet

MAX_SIGNALS = 8
SPARSE_PATTERNS_LINE = "Patterns are still sparse; need more observations."

MIN_BLOCKERS = 2
MIN_MOOD_POINTS = 4
MOOD_WINDOW = 3
MOOD_DELTA = 1.0
MIN_TOKEN_LENGTH = 5
MIN_TOPIC_COUNT = 3
MAX_TOPICS = 3

STOP_WORDS = {
    "about", "after", "before", "being", "build", "could", "doing", "from",
    "have", "into", "just", "more", "that", "them", "they", "this", "what",
    "when", "where", "with", "your", "project", "milestone", "because", "still",
}


def recurring_blocker_signal(digest: IntelligenceDigest) -> str | None:
    blockers = [i.content for i in digest.insights if i.insight_type == "blocker"]
    if len(blockers) < MIN_BLOCKERS:
        return None
    return f"Recurring blockers: {snippet(' | '.join(blockers[:2]), 260)}"


def unanswered_questions_signal(digest: IntelligenceDigest) -> str | None:
    unanswered = [q for q in digest.proactive_questions if q.sent_at and not q.answered_at]
    if not unanswered:
        return None
    return f"{len(unanswered)} proactive question(s) are still unanswered."


def mood_trend_signal(digest: IntelligenceDigest) -> str | None:
    """Compare the newest three evening moods with the oldest three.

    Logs are stored newest first. An exact-zero delta, or any delta inside
    the threshold, is reported as stable.
    """
    series = [log.evening_mood for log in digest.daily_logs if log.evening_mood is not None]
    if len(series) < MIN_MOOD_POINTS:
        return None

    delta = average(series[:MOOD_WINDOW]) - average(series[-MOOD_WINDOW:])
    if delta >= MOOD_DELTA:
        return "Mood trend: improving recently versus earlier days."
    if delta <= -MOOD_DELTA:
        return "Mood trend: declining recently versus earlier days."
    return "Mood trend: broadly stable."


def tokenize(text: str) -> list[str]:
    cleaned = re.sub(r"[^a-z0-9\s]", " ", text.lower())
    return [
        token
        for token in cleaned.split()
        if len(token) >= MIN_TOKEN_LENGTH and token not in STOP_WORDS
    ]


def recurring_topics(digest: IntelligenceDigest) -> list[str]:
    """Top keywords across insight text; ties keep first-seen order."""
    counts: Counter[str] = Counter()
    for insight in digest.insights:
        counts.update(tokenize(insight.content))

    frequent = [(token, count) for token, count in counts.items() if count >= MIN_TOPIC_COUNT]
    frequent.sort(key=lambda item: item[1], reverse=True)
    return [token for token, _ in frequent[:MAX_TOPICS]]


def recurring_topics_signal(digest: IntelligenceDigest) -> str | None:
    topics = recurring_topics(digest)
    if not topics:
        return None
    return f"Topics that keep resurfacing: {', '.join(topics)}"


def derive_behavioral_patterns(digest: IntelligenceDigest) -> list[str]:
    """Pre-computed patterns plus mined signals, capped and never empty."""
    lines = list(digest.behavioral_patterns)

    for signal in (
        recurring_blocker_signal(digest),
        unanswered_questions_signal(digest),
        mood_trend_signal(digest),
        recurring_topics_signal(digest),
    ):
        if signal:
            lines.append(signal)

    if not lines:
        lines.append(SPARSE_PATTERNS_LINE)

    return lines[:MAX_SIGNALS]
