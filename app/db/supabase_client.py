"""Supabase client initialization.

The gap engine only reads through this client; every read goes through
``app.db.safe_query`` so storage failures never reach the pipeline.
"""

from functools import lru_cache

from supabase import Client, ClientOptions, create_client

from app.core.config import get_settings


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """
    Get the service-role Supabase client (cached singleton).

    Raises:
        RuntimeError: If client initialization fails
    """
    settings = get_settings()
    try:
        return create_client(
            settings.SUPABASE_URL,
            settings.SUPABASE_SERVICE_ROLE_KEY,
            options=ClientOptions(
                postgrest_client_timeout=settings.SUPABASE_QUERY_TIMEOUT_SECONDS,
            ),
        )
    except Exception as e:
        raise RuntimeError(f"Failed to initialize Supabase client: {e}") from e
