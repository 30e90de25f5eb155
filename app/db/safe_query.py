"""Fault-tolerant wrappers around Supabase reads.

Every read made by the gap pipeline goes through ``safe_list_query`` or
``safe_maybe_single_query``. Both run the synchronous supabase-py executor in a
worker thread and always return a ``SafeQueryResult``: a missing table resolves
to the default with no error (the schema may be mid-migration), any other
failure resolves to the default with the error attached.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from app.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# Postgres undefined_table, PostgREST "table not in schema cache"
_MISSING_RELATION_CODES = {"42P01", "PGRST205"}


@dataclass
class SafeQueryResult(Generic[T]):
    data: T
    error: Exception | None = None


def _error_message(error: Any) -> str:
    if error is None:
        return ""
    if isinstance(error, dict):
        return str(error.get("message") or "")
    message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(error)


def is_missing_relation_error(error: Any) -> bool:
    """True when the error means the queried table does not exist."""
    if error is None:
        return False
    code = error.get("code") if isinstance(error, dict) else getattr(error, "code", None)
    if code in _MISSING_RELATION_CODES:
        return True
    message = _error_message(error).lower()
    return "relation" in message and "does not exist" in message


def _resolve_failure(error: Exception, fallback: T, label: str) -> SafeQueryResult[T]:
    if is_missing_relation_error(error):
        logger.debug(f"Query '{label}' skipped, relation missing: {_error_message(error)}")
        return SafeQueryResult(data=fallback, error=None)
    logger.warning(f"Query '{label}' failed: {_error_message(error) or 'Query failed'}")
    return SafeQueryResult(data=fallback, error=error)


async def safe_list_query(
    executor: Callable[[], Any],
    fallback: list[Any] | None = None,
    label: str = "list",
) -> SafeQueryResult[list[Any]]:
    """Run a list-returning query; defaults to an empty list."""
    default: list[Any] = list(fallback) if fallback is not None else []
    try:
        response = await asyncio.to_thread(executor)
    except Exception as e:
        return _resolve_failure(e, default, label)

    data = getattr(response, "data", None)
    if not data:
        return SafeQueryResult(data=default)
    if not isinstance(data, list):
        data = [data]
    return SafeQueryResult(data=data)


async def safe_maybe_single_query(
    executor: Callable[[], Any],
    fallback: Any = None,
    label: str = "single",
) -> SafeQueryResult[Any]:
    """Run a single-row query; defaults to ``fallback`` (``None``)."""
    try:
        response = await asyncio.to_thread(executor)
    except Exception as e:
        return _resolve_failure(e, fallback, label)

    # supabase-py returns None from maybe_single() when no row matches
    if response is None:
        return SafeQueryResult(data=fallback)
    data = getattr(response, "data", None)
    if isinstance(data, list):
        data = data[0] if data else None
    return SafeQueryResult(data=data if data is not None else fallback)
