"""
Root conftest.py for all backend tests.

This file makes fixtures available to all test files across all apps.
"""
import pytest
from django.core.cache import cache

from core_backend.config import app_settings
from core_backend.tests.fixtures import *  # noqa: F401,F403


# ============================================================================
# AUTO-USE FIXTURES (Run automatically for every test)
# ============================================================================

@pytest.fixture(autouse=True)
def clear_cache_after_test():
    """
    Clear cache after each test to prevent cache pollution.

    This ensures tests don't interfere with each other through cached data.
    """
    yield  # Run the test
    cache.clear()  # Clear all cache keys


@pytest.fixture(autouse=True)
def reload_app_settings():
    """
    Re-read POS_* settings after each test so an ``override_settings`` or
    ``settings`` fixture change does not leak into the next test.
    """
    yield
    app_settings.reload()
