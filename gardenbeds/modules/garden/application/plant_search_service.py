# 📄 File: gardenbeds/modules/garden/application/plant_search_service.py
# 🧭 Purpose (Layman Explanation):
# Looks up plants by name. It first checks answers it has already saved, then asks the online
# plant database, and if that is unavailable it falls back to a built-in list of common plants.
#
# 🧪 Purpose (Technical Summary):
# Plant lookup with three layers: the in-memory search cache, the persistent
# plant_search_cache table, then the Trefle client. Trefle records are normalised into
# PlantSearchResult with enum mapping and defaults. With no token or on API failure the
# static sample catalog answers instead. Search-cache table failures count as a miss.
#
# 🔗 Dependencies:
# - gardenbeds.shared.infrastructure.external_apis.plant_api (Trefle client)
# - gardenbeds.shared.infrastructure.database.supabase_query (plant_search_cache table)
# - gardenbeds.shared.core.cache (search cache)
#
# 🔄 Connected Modules / Calls From:
# - gardenbeds.modules.garden.application.backend_service
# - Plants API router

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Type

from gardenbeds.modules.garden.domain.models.plant import (
    BloomTime,
    FertilizerNeeds,
    GrowthHabit,
    PlantingSeason,
    PruningNeeds,
    SoilPh,
    SoilType,
    SunExposure,
    WaterNeeds,
)
from gardenbeds.modules.garden.domain.models.search import PlantSearchResult
from gardenbeds.shared.core.cache import TTLCache
from gardenbeds.shared.core.exceptions import ExternalAPIError, GardenException
from gardenbeds.shared.infrastructure.database.supabase_query import execute_query
from gardenbeds.shared.infrastructure.external_apis.plant_api import TreflePlantClient
from gardenbeds.shared.utils.logging import QueryPerformanceTracker, get_logger

from .plant_catalog import search_sample_plants

logger = get_logger(__name__)

SEARCH_CACHE_TABLE = "plant_search_cache"
DEFAULT_RESULT_LIMIT = 5


def _map_enum(enum_cls: Type[Enum], value: Any, default: Enum, aliases: Optional[Mapping[str, Enum]] = None) -> Enum:
    """Map a free-text upstream value onto ``enum_cls``, falling back to ``default``."""
    if not isinstance(value, str):
        return default
    key = value.strip().lower()
    if aliases and key in aliases:
        return aliases[key]
    try:
        return enum_cls(key)
    except ValueError:
        return default


def transform_trefle_plant(plant: Dict[str, Any]) -> PlantSearchResult:
    """Normalise one Trefle record. Missing values get gardening defaults."""
    common_names = plant.get("common_names")
    if isinstance(common_names, str):
        common_names = [name.strip() for name in common_names.split(",") if name.strip()]
    elif not isinstance(common_names, list):
        common_names = []

    flower_color = plant.get("flower_color")
    foliage_color = plant.get("foliage_color")

    return PlantSearchResult(
        name=plant.get("common_name") or plant.get("scientific_name") or "Unknown",
        scientific_name=plant.get("scientific_name") or "",
        common_names=common_names,
        family=plant.get("family") or "Unknown",
        genus=plant.get("genus") or "Unknown",
        species=plant.get("species") or "Unknown",
        growth_habit=_map_enum(GrowthHabit, plant.get("growth_habit"), GrowthHabit.PERENNIAL),
        hardiness_zones=plant.get("hardiness_zones") or [5, 6, 7, 8, 9],
        sun_exposure=_map_enum(
            SunExposure, plant.get("sun_exposure"), SunExposure.FULL_SUN,
            aliases={"shade": SunExposure.FULL_SHADE}
        ),
        water_needs=_map_enum(WaterNeeds, plant.get("water_needs"), WaterNeeds.MODERATE),
        mature_height=plant.get("mature_height") or 24,
        mature_width=plant.get("mature_width") or 18,
        bloom_time=_map_enum(BloomTime, plant.get("bloom_time"), BloomTime.SUMMER),
        bloom_duration=plant.get("bloom_duration") or 4,
        flower_color=[flower_color] if flower_color else ["Unknown"],
        foliage_color=[foliage_color] if foliage_color else ["Green"],
        soil_type=_map_enum(SoilType, plant.get("soil_type"), SoilType.WELL_DRAINING),
        soil_ph=_map_enum(SoilPh, plant.get("soil_ph"), SoilPh.NEUTRAL),
        fertilizer_needs=_map_enum(FertilizerNeeds, plant.get("fertilizer_needs"), FertilizerNeeds.LOW),
        pruning_needs=_map_enum(PruningNeeds, plant.get("pruning_needs"), PruningNeeds.MINIMAL),
        planting_season=_map_enum(PlantingSeason, plant.get("planting_season"), PlantingSeason.SPRING),
        planting_depth=plant.get("planting_depth") or 0.5,
        spacing=plant.get("spacing") or 12,
    )


class PlantSearchService:
    """Layered plant lookup: memory, search-cache table, Trefle, sample catalog."""

    def __init__(
        self,
        client,
        search_cache: TTLCache,
        plant_client: Optional[TreflePlantClient] = None,
        tracker: Optional[QueryPerformanceTracker] = None,
        limit: int = DEFAULT_RESULT_LIMIT
    ):
        self._client = client
        self._search_cache = search_cache
        self.plant_client = plant_client
        self._tracker = tracker
        self.limit = limit

    @staticmethod
    def normalize_query(query: str) -> str:
        return query.strip().lower()

    async def search_plants(self, query: str) -> List[PlantSearchResult]:
        """
        Look up plants matching ``query``.

        Returns:
            List[PlantSearchResult]: At most ``limit`` results; empty for a blank query
        """
        term = self.normalize_query(query)
        if not term:
            return []

        cache_key = f"plants:{term}"
        cached = self._search_cache.get(cache_key)
        if cached is not None:
            return cached

        stored = await self._get_stored_results(term)
        if stored:
            logger.debug(f"Using stored search results for '{term}'")
            self._search_cache.set(cache_key, stored)
            return stored

        if self.plant_client is None:
            logger.warning("No Trefle API token configured, using sample plant data")
            return search_sample_plants(term, self.limit)

        try:
            records = await self.plant_client.search_plants(term, self.limit)
        except ExternalAPIError as e:
            logger.error(f"Plant API search failed, using sample plant data: {e.message}")
            return search_sample_plants(term, self.limit)

        results = [transform_trefle_plant(record) for record in records[:self.limit]]
        if results:
            await self._store_results(term, results)
            self._search_cache.set(cache_key, results)
        return results

    async def _get_stored_results(self, term: str) -> List[PlantSearchResult]:
        try:
            response = await execute_query(
                self._client.table(SEARCH_CACHE_TABLE).select("results").eq("query", term).limit(1),
                operation="get_cached_search_results",
                table=SEARCH_CACHE_TABLE,
                tracker=self._tracker,
            )
        except GardenException as e:
            logger.warning(f"Search cache lookup failed: {e.message}")
            return []

        rows = response.data or []
        if not rows or not rows[0].get("results"):
            return []
        try:
            return [PlantSearchResult.model_validate(item) for item in rows[0]["results"]]
        except ValueError as e:
            logger.warning(f"Discarding malformed stored search results for '{term}': {e}")
            return []

    async def _store_results(self, term: str, results: List[PlantSearchResult]) -> None:
        payload = {
            "query": term,
            "results": [result.model_dump(mode="json") for result in results],
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            await execute_query(
                self._client.table(SEARCH_CACHE_TABLE).upsert(payload),
                operation="cache_search_results",
                table=SEARCH_CACHE_TABLE,
                tracker=self._tracker,
            )
        except GardenException as e:
            logger.error(f"Failed to store search results: {e.message}")
