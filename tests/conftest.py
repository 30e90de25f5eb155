"""Pytest configuration and fixtures."""

import os

import pytest

from tests.fixtures_users import USER_ID, build_rich_user_tables
from tests.fakes.fake_supabase import FakeSupabase


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables (fallback-only mode by default)."""
    os.environ["SUPABASE_URL"] = "https://test.supabase.co"
    os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-key"
    os.environ["ANTHROPIC_API_KEY"] = ""
    os.environ["GAP_ENGINE_ENV"] = "test"

    from app.core.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def empty_db():
    return FakeSupabase()


@pytest.fixture
def rich_db():
    return FakeSupabase(build_rich_user_tables())


@pytest.fixture
def user_id():
    return USER_ID
