# 📄 File: gardenbeds/modules/garden/application/backend_service.py
# 🧭 Purpose (Layman Explanation):
# The control room of the garden backend. It wires the database access, remembered answers,
# outside plant lookups and database upgrades together, and offers one set of simple
# buttons: check health, show statistics, clear memory, run upgrades, search plants.
#
# 🧪 Purpose (Technical Summary):
# Composition root and facade. BackendService.create() builds the cache registry, rate limiter
# registry, APIClient, optional Trefle client, GardenDataService, MigrationManager (with the
# built-in migrations) and PlantSearchService from Settings. The instance owns their lifecycle
# (start/close) and exposes health, statistics, cache maintenance, migration and search
# operations plus pass-throughs to the data service.
#
# 🔗 Dependencies:
# - gardenbeds.shared.core (cache, rate_limiter, retry)
# - gardenbeds.shared.infrastructure (api_client, plant_api, migrations, storage)
# - gardenbeds.modules.garden.application (data_service, plant_search_service)
#
# 🔄 Connected Modules / Calls From:
# - gardenbeds.main (lifespan)
# - gardenbeds.api.dependencies and the garden API routers

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from aiohttp import ClientSession

from gardenbeds.modules.garden.domain.models.bed import Bed
from gardenbeds.modules.garden.domain.models.pin import Pin, PinBatchUpdate, PinCreate, PinUpdate
from gardenbeds.modules.garden.domain.models.search import EnhancedSearchResult, PlantSearchResult
from gardenbeds.modules.garden.infrastructure.database.schema import register_builtin_migrations
from gardenbeds.shared.config.settings import Settings
from gardenbeds.shared.core.cache import CacheRegistry
from gardenbeds.shared.core.rate_limiter import RateLimitConfig, RateLimiterRegistry
from gardenbeds.shared.core.retry import RetryPolicy
from gardenbeds.shared.infrastructure.database.migrations import (
    MigrationManager,
    MigrationRunResult,
    MigrationStatusReport,
    MigrationValidationResult,
    RollbackResult,
    SupabaseMigrationStore,
)
from gardenbeds.shared.infrastructure.external_apis.api_client import APIClient
from gardenbeds.shared.infrastructure.external_apis.plant_api import TREFLE_HOST, TreflePlantClient
from gardenbeds.shared.infrastructure.storage.supabase_storage import SupabaseBucket
from gardenbeds.shared.utils.logging import QueryPerformanceTracker, get_logger

from .data_service import GardenDataService
from .plant_search_service import PlantSearchService, transform_trefle_plant

logger = get_logger(__name__)

MONITORED_HOSTS = (TREFLE_HOST,)
ENHANCED_SEARCH_LIMIT = 10
API_SEARCH_LIMIT = 5


class BackendService:
    """
    Unified backend facade.

    Build it with ``BackendService.create(settings, supabase_client)``; tests
    may construct it directly from fakes.
    """

    def __init__(
        self,
        caches: CacheRegistry,
        rate_limiters: RateLimiterRegistry,
        api_client: APIClient,
        data: GardenDataService,
        migrations: MigrationManager,
        plant_search: PlantSearchService,
        tracker: QueryPerformanceTracker,
        plant_api: Optional[TreflePlantClient] = None
    ):
        self.caches = caches
        self.rate_limiters = rate_limiters
        self.api_client = api_client
        self.data = data
        self.migrations = migrations
        self.plant_search = plant_search
        self.tracker = tracker
        self.plant_api = plant_api
        self._started = False

    @classmethod
    def create(
        cls,
        settings: Settings,
        supabase_client,
        session: Optional[ClientSession] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ) -> "BackendService":
        """
        Composition root: build every collaborator from settings.

        Args:
            settings: Application settings
            supabase_client: Supabase client (or a test double with the same surface)
            session: aiohttp session for outbound calls; created lazily when omitted
            clock: Monotonic time source for cache expiry. Rate limiters keep
                ``time.monotonic`` so their release timers match the event loop
            sleep: Sleep used by retry backoff
        """
        caches = CacheRegistry.create(
            settings.get_cache_ttls(),
            max_size=settings.CACHE_MAX_SIZE,
            sweep_interval=settings.CACHE_SWEEP_INTERVAL,
            clock=clock,
        )
        rate_limiters = RateLimiterRegistry(
            RateLimitConfig(
                max_requests=settings.RATE_LIMIT_REQUESTS,
                window_seconds=settings.RATE_LIMIT_WINDOW,
            ),
        )
        api_client = APIClient(
            caches,
            rate_limiters,
            timeout=settings.REQUEST_TIMEOUT,
            retries=settings.REQUEST_RETRIES,
            session=session,
            sleep=sleep,
            user_agent=settings.USER_AGENT,
            slow_response_threshold_ms=settings.SLOW_RESPONSE_THRESHOLD_MS,
        )

        plant_api = None
        if settings.has_plant_api:
            plant_api = TreflePlantClient(
                api_client,
                settings.TREFLE_API_TOKEN,
                base_url=settings.TREFLE_API_URL,
                search_cache_ttl=settings.PLANT_SEARCH_CACHE_TTL,
                details_cache_ttl=settings.PLANT_DETAILS_CACHE_TTL,
            )

        tracker = QueryPerformanceTracker(slow_threshold_ms=settings.SLOW_QUERY_THRESHOLD_MS)
        data = GardenDataService(
            supabase_client,
            caches,
            tracker,
            images_bucket=SupabaseBucket(supabase_client, settings.BED_IMAGES_BUCKET),
            media_bucket=SupabaseBucket(supabase_client, settings.PLANT_MEDIA_BUCKET),
            retry_policy=RetryPolicy(
                max_attempts=settings.STORE_RETRY_ATTEMPTS,
                max_delay=settings.STORE_RETRY_MAX_DELAY,
            ),
            sleep=sleep,
        )

        migrations = MigrationManager(SupabaseMigrationStore(supabase_client, tracker))
        register_builtin_migrations(migrations, supabase_client)

        plant_search = PlantSearchService(
            supabase_client,
            caches.search,
            plant_client=plant_api,
            tracker=tracker,
            limit=settings.PLANT_SEARCH_LIMIT,
        )

        logger.info(
            "Backend service created",
            extra={'has_plant_api': plant_api is not None, 'caches': caches.names()}
        )
        return cls(caches, rate_limiters, api_client, data, migrations, plant_search, tracker, plant_api)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def start(self) -> None:
        """Start cache sweepers and make sure the migrations table exists."""
        if self._started:
            return
        self.caches.start()
        await self.migrations.ensure_table()
        self._started = True
        logger.info("Backend service started")

    async def close(self) -> None:
        await self.caches.stop()
        await self.api_client.close()
        self._started = False
        logger.info("Backend service stopped")

    # =========================================================================
    # HEALTH & STATISTICS
    # =========================================================================

    async def health_check(self) -> Dict[str, Any]:
        """
        Check the store, the outbound rate limits and the caches.

        ``overall`` is True only when all three checks completed.
        """
        results = await asyncio.gather(
            self.data.health_check(),
            self.get_api_rate_limit_status(),
            self.get_cache_stats(),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception):
                logger.error(f"Health check component failed: {result}")

        database, api, cache = (None if isinstance(r, Exception) else r for r in results)

        return {
            "database": database or {"healthy": False, "latency_ms": 0, "error": "Health check failed"},
            "api": api or {"healthy": False, "rate_limit_status": {}},
            "cache": cache or {"healthy": False, "stats": {}},
            "overall": not any(isinstance(r, Exception) for r in results),
        }

    async def get_api_rate_limit_status(self) -> Dict[str, Any]:
        hosts = list(dict.fromkeys([*MONITORED_HOSTS, *self.rate_limiters.hosts()]))
        return {
            "healthy": True,
            "rate_limit_status": {host: self.api_client.get_rate_limit_status(host) for host in hosts},
        }

    async def get_cache_stats(self) -> Dict[str, Any]:
        stats = self.caches.get_all_stats()
        return {
            "healthy": all(stat["size"] >= 0 for stat in stats.values()),
            "stats": stats,
        }

    def get_performance_stats(self) -> Dict[str, Dict[str, float]]:
        return self.data.get_performance_stats()

    async def get_system_stats(self) -> Dict[str, Any]:
        pin_stats, cache_stats, api_stats = await asyncio.gather(
            self.data.get_pin_stats(),
            self.get_cache_stats(),
            self.get_api_rate_limit_status(),
        )
        return {
            "database": pin_stats.model_dump(),
            "cache": cache_stats,
            "performance": self.get_performance_stats(),
            "api": {**api_stats, "client": self.api_client.get_stats()},
        }

    def get_config(self) -> Dict[str, bool]:
        return {
            "has_plant_api": self.plant_api is not None,
            "cache_enabled": True,
            "retry_enabled": True,
        }

    def log_error(self, error: Exception, context: str) -> None:
        logger.error(
            f"[{context}] Error: {error}",
            extra={'context': context, 'error_type': type(error).__name__},
            exc_info=error.__traceback__ is not None,
        )

    # =========================================================================
    # CACHE MAINTENANCE
    # =========================================================================

    def clear_all_caches(self) -> None:
        self.caches.invalidate_all()

    def clear_database_cache(self) -> None:
        self.caches.database.clear()
        logger.info("Database cache cleared")

    def clear_api_cache(self) -> None:
        self.caches.api.clear()
        logger.info("API cache cleared")

    async def cleanup_database(self) -> Dict[str, Any]:
        return await self.data.cleanup_orphaned_records()

    # =========================================================================
    # MIGRATIONS
    # =========================================================================

    async def run_migrations(self) -> MigrationRunResult:
        return await self.migrations.migrate()

    async def get_migration_status(self) -> MigrationStatusReport:
        return await self.migrations.status()

    async def rollback_migrations(self, steps: int = 1) -> RollbackResult:
        return await self.migrations.rollback(steps)

    async def validate_migrations(self) -> MigrationValidationResult:
        return await self.migrations.validate()

    # =========================================================================
    # SEARCH
    # =========================================================================

    async def enhanced_plant_search(self, query: str) -> List[EnhancedSearchResult]:
        """
        Search garden pins and the plant lookup API together.

        Either source may fail on its own; its failure is logged and the other
        source's results are still returned. Results are de-duplicated on
        scientific name (or name) and capped at ten.
        """
        results: List[EnhancedSearchResult] = []

        try:
            pins = await self.data.search_pins(query)
            results.extend(
                EnhancedSearchResult(**pin.model_dump(mode="json", exclude_none=True), source="database")
                for pin in pins
            )
        except Exception as e:
            self.log_error(e, "enhanced_plant_search.database")

        if self.plant_api is not None:
            try:
                records = await self.plant_api.search_plants(query, API_SEARCH_LIMIT)
                results.extend(
                    EnhancedSearchResult(
                        **{
                            **record,
                            "name": record.get("common_name") or record.get("scientific_name"),
                            "source": "api",
                        }
                    )
                    for record in records
                )
            except Exception as e:
                self.log_error(e, "enhanced_plant_search.api")

        return _deduplicate(results)[:ENHANCED_SEARCH_LIMIT]

    async def search_plants(self, query: str) -> List[EnhancedSearchResult]:
        return await self.enhanced_plant_search(query)

    async def lookup_plants(self, query: str) -> List[PlantSearchResult]:
        """Species sheets for ``query`` from the layered plant search."""
        return await self.plant_search.search_plants(query)

    async def lookup_plant_details(self, plant_id: str) -> Optional[PlantSearchResult]:
        """
        One species sheet from the plant lookup API.

        Returns:
            Optional[PlantSearchResult]: None when no API token is configured or Trefle answers 404 for the id

        Raises:
            ExternalAPIError: If the lookup API fails
        """
        if self.plant_api is None:
            return None
        record = await self.plant_api.get_plant_details(plant_id)
        return transform_trefle_plant(record) if record else None

    # =========================================================================
    # PASS-THROUGHS
    # =========================================================================

    async def get_beds(self) -> List[Bed]:
        return await self.data.get_beds()

    async def get_bed(self, bed_id: str) -> Optional[Bed]:
        return await self.data.get_bed(bed_id)

    async def get_pins_by_section(self, section_id: str) -> List[Pin]:
        return await self.data.get_pins_by_section(section_id)

    async def get_pin(self, pin_id: str) -> Optional[Pin]:
        return await self.data.get_pin(pin_id)

    async def create_pin(self, data: PinCreate) -> Pin:
        return await self.data.create_pin(data)

    async def update_pin(self, pin_id: str, data: PinUpdate) -> Pin:
        return await self.data.update_pin(pin_id, data)

    async def delete_pin(self, pin_id: str) -> None:
        await self.data.delete_pin(pin_id)

    async def batch_create_pins(self, items: Sequence[PinCreate]) -> List[Pin]:
        return await self.data.batch_create_pins(items)

    async def batch_update_pins(self, items: Sequence[PinBatchUpdate]) -> List[Pin]:
        return await self.data.batch_update_pins(items)


def _deduplicate(results: List[EnhancedSearchResult]) -> List[EnhancedSearchResult]:
    """First occurrence wins. Results without a name are always kept."""
    seen = set()
    unique = []
    for result in results:
        key = result.dedupe_key()
        if key is not None:
            if key in seen:
                continue
            seen.add(key)
        unique.append(result)
    return unique
