import pytest
from django.core.cache import cache


@pytest.fixture(autouse=True)
def _cache_isolation():
    # Throttle counters live in the default cache; keep tests independent
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def _test_settings(settings):
    settings.SUPABASE_JWT_SECRET = "test-supabase-secret"
