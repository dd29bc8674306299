"""
Root conftest.py for all backend tests.

This file makes fixtures available to all test files across all apps.
"""
import pytest
from django.core.cache import cache
from django.test import override_settings
from tenant.managers import set_current_tenant


# ============================================================================
# AUTO-USE FIXTURES (Run automatically for every test)
# ============================================================================

@pytest.fixture(autouse=True)
def reset_tenant_context():
    """
    Reset tenant context after each test.

    CRITICAL: This prevents tenant context from leaking between tests.
    If tenant context leaks, tests may pass when they should fail.
    """
    yield  # Run the test

    # After test: ALWAYS reset to None
    set_current_tenant(None)


@pytest.fixture(autouse=True)
def clear_cache_after_test():
    """
    Clear cache after each test so cached operating hours never leak
    between tests.
    """
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def manual_availability_recompute(settings):
    """
    Turn off the automatic recompute triggered by stock changes.

    Tests that exercise the event path opt back in with
    ``auto_recompute``.
    """
    settings.ORDER_ENGINE = {**settings.ORDER_ENGINE, "AUTO_RECOMPUTE_AVAILABILITY": False}
    yield


@pytest.fixture
def auto_recompute(settings):
    settings.ORDER_ENGINE = {**settings.ORDER_ENGINE, "AUTO_RECOMPUTE_AVAILABILITY": True}
    yield


# ============================================================================
# CACHE FIXTURES
# ============================================================================

@pytest.fixture
def disable_cache():
    """
    Disable cache for tests that should not use caching.

    Usage:
        def test_without_cache(disable_cache):
            # Every hours lookup hits the database
            OperatingHoursService(outlet).hours_for_date(date)
    """
    with override_settings(
        CACHES={
            'default': {
                'BACKEND': 'django.core.cache.backends.dummy.DummyCache',
            },
        }
    ):
        yield


# ============================================================================
# IMPORT ALL FIXTURES FROM core_backend/tests/fixtures.py
# ============================================================================
from core_backend.tests.fixtures import *
