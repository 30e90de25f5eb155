"""Row builders and sample users for gap detection tests."""

from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List
from uuid import uuid4

USER_ID = "7b1f5a52-1c1e-4d61-9a0e-2d8f4f0b9c11"
OTHER_USER_ID = "0c4b9e3a-55d2-4f7b-8f8e-6a1d2b3c4d5e"

BASE_TIME = datetime(2026, 9, 1, 12, 0, tzinfo=timezone.utc)


def _ts(offset_hours: int = 0) -> str:
    return (BASE_TIME + timedelta(hours=offset_hours)).isoformat()


def make_understanding(user_id: str = USER_ID, **overrides: Any) -> Dict[str, Any]:
    row = {
        "id": str(uuid4()),
        "user_id": user_id,
        "background": {},
        "current_situation": {},
        "values": [],
        "motivations": [],
        "definition_of_success": None,
        "strengths": [],
        "blockers": [],
        "work_style": {},
        "unknown_questions": [],
    }
    row.update(overrides)
    return row


def make_fact(category: str, fact: str, user_id: str = USER_ID, active: bool = True) -> Dict[str, Any]:
    return {
        "id": str(uuid4()),
        "user_id": user_id,
        "category": category,
        "fact": fact,
        "is_active": active,
    }


def make_insight(
    content: str,
    insight_type: str = "discovery",
    importance: int = 5,
    offset_hours: int = 0,
    user_id: str = USER_ID,
    active: bool = True,
) -> Dict[str, Any]:
    return {
        "id": str(uuid4()),
        "user_id": user_id,
        "insight_type": insight_type,
        "content": content,
        "importance": importance,
        "created_at": _ts(offset_hours),
        "is_active": active,
        "source_ai": "path_finder",
    }


def make_project(
    name: str,
    status: str = "building",
    offset_hours: int = 0,
    user_id: str = USER_ID,
    description: str | None = None,
    project_id: str | None = None,
) -> Dict[str, Any]:
    return {
        "id": project_id or str(uuid4()),
        "user_id": user_id,
        "name": name,
        "description": description,
        "status": status,
        "updated_at": _ts(offset_hours),
    }


def make_milestone(
    project_id: str,
    title: str,
    focus_level: str = "backlog",
    status: str = "pending",
    sort_order: int = 0,
    user_id: str = USER_ID,
) -> Dict[str, Any]:
    return {
        "id": str(uuid4()),
        "project_id": project_id,
        "user_id": user_id,
        "title": title,
        "status": status,
        "focus_level": focus_level,
        "sort_order": sort_order,
    }


def make_daily_logs(evening_moods: List[float | None], user_id: str = USER_ID) -> List[Dict[str, Any]]:
    """Daily logs for consecutive days, given oldest mood first."""
    start = date(2026, 9, 1)
    return [
        {
            "id": str(uuid4()),
            "user_id": user_id,
            "log_date": (start + timedelta(days=i)).isoformat(),
            "evening_mood": mood,
            "morning_mood": None,
        }
        for i, mood in enumerate(evening_moods)
    ]


def make_question(
    gap: str,
    question: str,
    sent: bool = True,
    answered: bool = False,
    offset_hours: int = 0,
    user_id: str = USER_ID,
) -> Dict[str, Any]:
    return {
        "id": str(uuid4()),
        "user_id": user_id,
        "gap_identified": gap,
        "question": question,
        "sent_at": _ts(offset_hours) if sent else None,
        "answered_at": _ts(offset_hours + 2) if answered else None,
        "answer": "It depends on the week." if answered else None,
        "quality_score": 7 if answered else None,
        "created_at": _ts(offset_hours),
    }


def make_turn(content: str, role: str = "user", offset_hours: int = 0, user_id: str = USER_ID) -> Dict[str, Any]:
    return {
        "id": str(uuid4()),
        "user_id": user_id,
        "created_at": _ts(offset_hours),
        "role": role,
        "content": content,
    }


def build_acme_user_tables() -> Dict[str, List[Dict[str, Any]]]:
    """Goal fact, one blocker insight, active project Acme, no success definition."""
    acme = make_project("Acme", status="building")
    return {
        "user_profile_facts": [make_fact("goals", "ship a v1")],
        "ai_insights": [
            make_insight("keeps getting distracted by unrelated features", insight_type="blocker"),
        ],
        "projects": [acme],
        "milestones": [make_milestone(acme["id"], "Landing page", focus_level="active")],
    }


def build_rich_user_tables() -> Dict[str, List[Dict[str, Any]]]:
    """A user with data in every table, success defined."""
    acme = make_project("Acme", status="building", offset_hours=5, description="Invoicing for freelancers")
    side = make_project("Side Quest", status="launched", offset_hours=1)
    return {
        "user_understanding": [
            make_understanding(
                definition_of_success="Replace salary with product income by next summer",
                values=["autonomy", "craft"],
                motivations=["family time"],
                work_style={"peak_hours": "morning"},
            ),
        ],
        "user_profile_facts": [
            make_fact("goals", "ship a v1"),
            make_fact("skills", "backend engineering"),
            make_fact("constraints", "only evenings free", active=False),
        ],
        "ai_insights": [
            make_insight("Prefers building over marketing work", importance=8, offset_hours=1),
            make_insight("Avoids pricing conversations", insight_type="blocker", importance=7, offset_hours=2),
            make_insight("Decided to focus on invoicing", insight_type="decision", importance=6, offset_hours=3),
        ],
        "patterns": [
            {
                "id": str(uuid4()),
                "user_id": USER_ID,
                "pattern_type": "late_night_work",
                "description": "Works after 11pm on weekdays",
                "confidence": 0.82,
                "last_confirmed": _ts(4),
            },
        ],
        "proactive_questions": [
            make_question("Pricing model", "How did you land on that price?", answered=True, offset_hours=1),
            make_question("Energy", "When do you feel most focused?", offset_hours=2),
        ],
        "projects": [acme, side],
        "milestones": [
            make_milestone(acme["id"], "Stripe integration", focus_level="active", status="in_progress", sort_order=1),
            make_milestone(acme["id"], "Beta invite list", focus_level="next", sort_order=2),
            make_milestone(side["id"], "Launch post", focus_level="backlog", status="completed", sort_order=1),
        ],
        "conversation_summaries": [
            {
                "id": str(uuid4()),
                "user_id": USER_ID,
                "conversation_key": "project_chat:acme",
                "summary": "Talked through the invoicing MVP scope.",
                "updated_at": _ts(6),
            },
        ],
        "daily_logs": make_daily_logs([5, 6, 5, 6, 5]),
        "project_logs": [make_turn("Can we cut the reports page?", offset_hours=7)],
        "path_finder_messages": [make_turn("I want more freedom", offset_hours=8)],
        "milestone_messages": [make_turn("Stripe webhooks are confusing", offset_hours=9)],
    }
