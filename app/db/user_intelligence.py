"""Read operations for everything the app has recorded about one user.

Each function returns raw row dicts wrapped in a ``SafeQueryResult``; none of
them raise on storage errors.
"""

from typing import Any

from supabase import Client

from app.db.safe_query import SafeQueryResult, safe_list_query, safe_maybe_single_query

# Independent conversation surfaces sampled when summaries are sparse
CONVERSATION_SURFACES = {
    "project_chat": {"table": "project_logs", "columns": "created_at, role, content, project_id"},
    "path_finder": {"table": "path_finder_messages", "columns": "created_at, role, content"},
    "milestone_mode": {"table": "milestone_messages", "columns": "created_at, role, content"},
}


async def get_user_understanding(client: Client, user_id: str) -> SafeQueryResult[Any]:
    return await safe_maybe_single_query(
        lambda: (
            client.table("user_understanding")
            .select("*")
            .eq("user_id", user_id)
            .maybe_single()
            .execute()
        ),
        label="user_understanding",
    )


async def list_active_profile_facts(
    client: Client, user_id: str, limit: int
) -> SafeQueryResult[list[Any]]:
    return await safe_list_query(
        lambda: (
            client.table("user_profile_facts")
            .select("*")
            .eq("user_id", user_id)
            .eq("is_active", True)
            .order("category")
            .limit(limit)
            .execute()
        ),
        label="user_profile_facts",
    )


async def list_active_insights(
    client: Client, user_id: str, limit: int
) -> SafeQueryResult[list[Any]]:
    """Active insights, most important first, newest first within a tier."""
    return await safe_list_query(
        lambda: (
            client.table("ai_insights")
            .select("*")
            .eq("user_id", user_id)
            .eq("is_active", True)
            .order("importance", desc=True)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        ),
        label="ai_insights",
    )


async def list_behavior_patterns(
    client: Client, user_id: str, limit: int
) -> SafeQueryResult[list[Any]]:
    return await safe_list_query(
        lambda: (
            client.table("patterns")
            .select("*")
            .eq("user_id", user_id)
            .order("confidence", desc=True)
            .order("last_confirmed", desc=True)
            .limit(limit)
            .execute()
        ),
        label="patterns",
    )


async def list_proactive_questions(
    client: Client, user_id: str, limit: int
) -> SafeQueryResult[list[Any]]:
    return await safe_list_query(
        lambda: (
            client.table("proactive_questions")
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        ),
        label="proactive_questions",
    )


async def list_recent_projects(
    client: Client, user_id: str, limit: int
) -> SafeQueryResult[list[Any]]:
    return await safe_list_query(
        lambda: (
            client.table("projects")
            .select("*")
            .eq("user_id", user_id)
            .order("updated_at", desc=True)
            .limit(limit)
            .execute()
        ),
        label="projects",
    )


async def list_milestones_for_projects(
    client: Client, user_id: str, project_ids: list[str], limit: int
) -> SafeQueryResult[list[Any]]:
    """Milestones for the given projects in board order. No query when empty."""
    if not project_ids:
        return SafeQueryResult(data=[])
    return await safe_list_query(
        lambda: (
            client.table("milestones")
            .select("*")
            .eq("user_id", user_id)
            .in_("project_id", project_ids)
            .order("sort_order")
            .limit(limit)
            .execute()
        ),
        label="milestones",
    )


async def list_conversation_summaries(
    client: Client, user_id: str, limit: int
) -> SafeQueryResult[list[Any]]:
    return await safe_list_query(
        lambda: (
            client.table("conversation_summaries")
            .select("*")
            .eq("user_id", user_id)
            .order("updated_at", desc=True)
            .limit(limit)
            .execute()
        ),
        label="conversation_summaries",
    )


async def list_recent_daily_logs(
    client: Client, user_id: str, limit: int
) -> SafeQueryResult[list[Any]]:
    """Daily logs, newest first."""
    return await safe_list_query(
        lambda: (
            client.table("daily_logs")
            .select("*")
            .eq("user_id", user_id)
            .order("log_date", desc=True)
            .limit(limit)
            .execute()
        ),
        label="daily_logs",
    )


async def list_recent_turns(
    client: Client, user_id: str, surface: str, limit: int
) -> SafeQueryResult[list[Any]]:
    """Newest raw messages from one conversation surface."""
    config = CONVERSATION_SURFACES[surface]
    return await safe_list_query(
        lambda: (
            client.table(config["table"])
            .select(config["columns"])
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        ),
        label=config["table"],
    )
