"""Shared fixtures: fake store, caches on a hand-driven clock, and a wired data service."""

import os

import pytest

os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("ENVIRONMENT", "test")

from gardenbeds.modules.garden.application.data_service import GardenDataService  # noqa: E402
from gardenbeds.shared.config.settings import Settings  # noqa: E402
from gardenbeds.shared.core.cache import CacheRegistry  # noqa: E402
from gardenbeds.shared.core.retry import RetryPolicy  # noqa: E402
from gardenbeds.shared.infrastructure.storage.supabase_storage import SupabaseBucket  # noqa: E402
from gardenbeds.shared.utils.logging import QueryPerformanceTracker  # noqa: E402

from tests.fakes import FakeClock, FakeSupabaseClient, RecordingSleep  # noqa: E402

CACHE_TTLS = {"database": 300, "api": 600, "search": 1800, "images": 3600}


@pytest.fixture
def settings() -> Settings:
    return Settings(
        SUPABASE_URL="https://example.supabase.co",
        SUPABASE_ANON_KEY="test-anon-key",
        ENVIRONMENT="test",
        DEBUG=False,
        LOG_FORMAT="text",
        _env_file=None,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def client() -> FakeSupabaseClient:
    return FakeSupabaseClient()


@pytest.fixture
def caches(clock) -> CacheRegistry:
    return CacheRegistry.create(CACHE_TTLS, max_size=100, sweep_interval=60, clock=clock)


@pytest.fixture
def tracker() -> QueryPerformanceTracker:
    return QueryPerformanceTracker()


@pytest.fixture
def data_service(client, caches, tracker, sleep) -> GardenDataService:
    return GardenDataService(
        client,
        caches,
        tracker,
        images_bucket=SupabaseBucket(client, "plant-images"),
        media_bucket=SupabaseBucket(client, "plant-media"),
        retry_policy=RetryPolicy(max_attempts=3, base_delay=0.01, max_delay=0.05, jitter=0),
        sleep=sleep,
    )
