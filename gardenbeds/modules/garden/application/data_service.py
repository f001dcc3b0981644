# 📄 File: gardenbeds/modules/garden/application/data_service.py
# 🧭 Purpose (Layman Explanation):
# The single doorway to all stored garden data: beds, photos, pins, plants, care diaries and
# galleries. It remembers recent answers and forgets them the moment something changes.
#
# 🧪 Purpose (Technical Summary):
# Data access service composed from the garden repositories. Every read is cache-checked on
# the database cache, every write invalidates the tags it could make stale, batch pin writes
# run concurrently with per-member retries, and a one-row read reports store health and latency.
#
# 🔗 Dependencies:
# - Garden repositories (gardenbeds.modules.garden.infrastructure.database)
# - gardenbeds.shared.core.cache (CacheRegistry, cached_call for public URLs)
# - gardenbeds.shared.utils.logging (QueryPerformanceTracker)
#
# 🔄 Connected Modules / Calls From:
# - gardenbeds.modules.garden.application.backend_service

"""
Garden Data Service

Reads return ``None`` for a missing single entity and propagate store
failures as DatabaseError; there is no stale-data fallback. Writes are
single-row and atomic; batch writes are not, and report which members
failed through BatchResult.
"""

import time
from typing import Any, Callable, Dict, List, Optional, Sequence

from gardenbeds.modules.garden.domain.models.bed import (
    Bed,
    BedCreate,
    BedDetail,
    BedImage,
    BedImageCreate,
    BedLatest,
    BedUpdate,
)
from gardenbeds.modules.garden.domain.models.media import MediaUpload, PinMedia, PlantMedia
from gardenbeds.modules.garden.domain.models.pin import (
    BatchResult,
    Pin,
    PinBatchUpdate,
    PinCreate,
    PinStats,
    PinUpdate,
)
from gardenbeds.modules.garden.domain.models.plant import (
    CareEvent,
    CareEventCreate,
    CareEventUpdate,
    PlantDetails,
    PlantDetailsCreate,
    PlantDetailsUpdate,
    PlantInstance,
    PlantInstanceCreate,
    PlantInstanceUpdate,
)
from gardenbeds.modules.garden.infrastructure.database.bed_repository import BedRepository
from gardenbeds.modules.garden.infrastructure.database.care_event_repository import (
    DEFAULT_RECENT_LIMIT,
    CareEventRepository,
)
from gardenbeds.modules.garden.infrastructure.database.media_repository import (
    PinMediaRepository,
    PlantMediaRepository,
)
from gardenbeds.modules.garden.infrastructure.database.pin_repository import PinRepository
from gardenbeds.modules.garden.infrastructure.database.plant_repository import (
    PlantDetailsRepository,
    PlantInstanceRepository,
)
from gardenbeds.shared.core.cache import CacheRegistry, cached_call
from gardenbeds.shared.core.exceptions import GardenException
from gardenbeds.shared.core.retry import RetryPolicy
from gardenbeds.shared.infrastructure.database.supabase_query import execute_query
from gardenbeds.shared.infrastructure.storage.supabase_storage import SupabaseBucket
from gardenbeds.shared.utils.logging import QueryPerformanceTracker, get_logger

logger = get_logger(__name__)

# (table, column whose NULL marks an orphan, label used in error messages)
ORPHAN_CLEANUP_STEPS = (
    ("plant_instances", "pin_id", "plant instances"),
    ("care_events", "plant_instance_id", "care events"),
    ("plant_media", "pin_id", "media"),
)


class GardenDataService:
    """Cache-checked access to every garden entity."""

    def __init__(
        self,
        client,
        caches: CacheRegistry,
        tracker: QueryPerformanceTracker,
        images_bucket: SupabaseBucket,
        media_bucket: SupabaseBucket,
        retry_policy: Optional[RetryPolicy] = None,
        sleep=None,
        clock: Callable[[], float] = time.perf_counter
    ):
        """
        Initialize the service and its repositories.

        Args:
            client: Supabase client
            caches: Named caches; reads use ``database``, public URLs use ``images``
            tracker: Query timing statistics
            images_bucket: Bucket holding bed and pin photos
            media_bucket: Bucket holding plant gallery photos
            retry_policy: Store retry policy for batch members
            sleep: Sleep used between batch retries
            clock: Time source for health check latency
        """
        self._client = client
        self._caches = caches
        self._tracker = tracker
        self._clock = clock
        self._images_bucket = images_bucket

        common = dict(
            client=client,
            cache=caches.database,
            tracker=tracker,
            retry_policy=retry_policy,
            sleep=sleep,
        )
        self.beds = BedRepository(images_bucket=images_bucket, **common)
        self.pins = PinRepository(**common)
        self.plant_details = PlantDetailsRepository(**common)
        self.plant_instances = PlantInstanceRepository(**common)
        self.care_events = CareEventRepository(**common)
        self.pin_media = PinMediaRepository(bucket=images_bucket, **common)
        self.plant_media = PlantMediaRepository(bucket=media_bucket, **common)

    # =========================================================================
    # BEDS
    # =========================================================================

    async def get_beds(self) -> List[Bed]:
        return await self.beds.get_all()

    async def get_bed(self, bed_id: str) -> Optional[Bed]:
        return await self.beds.get_by_id(bed_id)

    async def list_beds_by_section(self, section: str) -> List[BedLatest]:
        return await self.beds.list_by_section(section)

    async def create_bed(self, data: BedCreate) -> Bed:
        return await self.beds.create(data)

    async def update_bed(self, bed_id: str, data: BedUpdate) -> Bed:
        return await self.beds.update(bed_id, data)

    async def delete_bed(self, bed_id: str) -> None:
        await self.beds.delete(bed_id)

    async def get_bed_detail(self, bed_id: str) -> Optional[BedDetail]:
        """
        The bed, its newest image, its pins and the image's public URL.

        Returns:
            Optional[BedDetail]: None if the bed does not exist
        """
        bed = await self.beds.get_by_id(bed_id)
        if bed is None:
            return None

        images = await self.beds.list_images(bed_id)
        image = images[0] if images else None
        pins = await self.pins.get_by_bed(bed_id)
        public_url = await self.get_image_public_url(image.image_path) if image else ""

        return BedDetail(bed=bed, image=image, pins=pins, public_url=public_url)

    # =========================================================================
    # BED IMAGES
    # =========================================================================

    async def list_images_for_bed(self, bed_id: str) -> List[BedImage]:
        return await self.beds.list_images(bed_id)

    async def create_bed_image(self, data: BedImageCreate) -> BedImage:
        return await self.beds.create_image(data)

    async def delete_bed_image(self, image_id: str) -> None:
        await self.beds.delete_image(image_id)

    async def get_image_public_url(self, image_path: str) -> str:
        """Public URL of a stored bed image, remembered on the images cache."""
        async def load() -> str:
            return self.beds.get_image_public_url(image_path)

        return await cached_call(self._caches.images, f"url:{self._images_bucket.bucket_name}:{image_path}", load)

    # =========================================================================
    # PINS
    # =========================================================================

    async def get_pins_by_section(self, section_id: str) -> List[Pin]:
        return await self.pins.get_by_section(section_id)

    async def get_pins_by_bed(self, bed_id: str) -> List[Pin]:
        return await self.pins.get_by_bed(bed_id)

    async def get_pin(self, pin_id: str) -> Optional[Pin]:
        return await self.pins.get_by_id(pin_id)

    async def create_pin(self, data: PinCreate) -> Pin:
        return await self.pins.create(data)

    async def update_pin(self, pin_id: str, data: PinUpdate) -> Pin:
        return await self.pins.update(pin_id, data)

    async def delete_pin(self, pin_id: str) -> None:
        await self.pins.delete(pin_id)

    async def batch_create_pins(self, items: Sequence[PinCreate]) -> List[Pin]:
        """Pins that were created; failed members are logged and left out."""
        result = await self.pins.batch_create(items)
        return result.succeeded

    async def batch_create_pins_detailed(self, items: Sequence[PinCreate]) -> BatchResult:
        return await self.pins.batch_create(items)

    async def batch_update_pins(self, items: Sequence[PinBatchUpdate]) -> List[Pin]:
        """Pins that were updated; failed members are logged and left out."""
        result = await self.pins.batch_update(items)
        return result.succeeded

    async def batch_update_pins_detailed(self, items: Sequence[PinBatchUpdate]) -> BatchResult:
        return await self.pins.batch_update(items)

    async def search_pins(self, query: str, section_id: Optional[str] = None) -> List[Pin]:
        return await self.pins.search(query, section_id)

    async def get_pin_stats(self, section_id: Optional[str] = None) -> PinStats:
        return await self.pins.get_stats(section_id)

    # =========================================================================
    # PLANT DETAILS
    # =========================================================================

    async def list_plant_details(self) -> List[PlantDetails]:
        return await self.plant_details.list_all()

    async def get_plant_details(self, details_id: str) -> Optional[PlantDetails]:
        return await self.plant_details.get_by_id(details_id)

    async def create_plant_details(self, data: PlantDetailsCreate) -> PlantDetails:
        return await self.plant_details.create(data)

    async def update_plant_details(self, details_id: str, data: PlantDetailsUpdate) -> PlantDetails:
        return await self.plant_details.update(details_id, data)

    async def delete_plant_details(self, details_id: str) -> None:
        await self.plant_details.delete(details_id)

    async def search_plant_details(self, query: str) -> List[PlantDetails]:
        return await self.plant_details.search(query)

    # =========================================================================
    # PLANT INSTANCES
    # =========================================================================

    async def get_plant_instance(self, instance_id: str) -> Optional[PlantInstance]:
        return await self.plant_instances.get_by_id(instance_id)

    async def get_plant_instance_by_pin(self, pin_id: str) -> Optional[PlantInstance]:
        return await self.plant_instances.get_by_pin(pin_id)

    async def create_plant_instance(self, data: PlantInstanceCreate) -> PlantInstance:
        return await self.plant_instances.create(data)

    async def update_plant_instance(self, instance_id: str, data: PlantInstanceUpdate) -> PlantInstance:
        return await self.plant_instances.update(instance_id, data)

    async def delete_plant_instance(self, instance_id: str) -> None:
        await self.plant_instances.delete(instance_id)

    async def list_plant_instances_by_bed(self, bed_id: str) -> List[PlantInstance]:
        return await self.plant_instances.list_by_bed(bed_id)

    # =========================================================================
    # CARE EVENTS
    # =========================================================================

    async def get_care_event(self, event_id: str) -> Optional[CareEvent]:
        return await self.care_events.get_by_id(event_id)

    async def get_care_events(self, plant_instance_id: str) -> List[CareEvent]:
        return await self.care_events.list_for_instance(plant_instance_id)

    async def create_care_event(self, data: CareEventCreate) -> CareEvent:
        return await self.care_events.create(data)

    async def update_care_event(self, event_id: str, data: CareEventUpdate) -> CareEvent:
        return await self.care_events.update(event_id, data)

    async def delete_care_event(self, event_id: str) -> None:
        await self.care_events.delete(event_id)

    async def get_recent_care_events(self, limit: int = DEFAULT_RECENT_LIMIT) -> List[CareEvent]:
        return await self.care_events.list_recent(limit)

    # =========================================================================
    # MEDIA
    # =========================================================================

    async def get_pin_media(self, pin_id: str) -> List[PinMedia]:
        return await self.pin_media.list_for(pin_id)

    async def upload_pin_media(self, pin_id: str, upload: MediaUpload) -> PinMedia:
        return await self.pin_media.upload(pin_id, upload)

    async def delete_pin_media(self, media_id: str) -> None:
        await self.pin_media.delete(media_id)

    async def get_plant_media(self, plant_id: str) -> List[PlantMedia]:
        return await self.plant_media.list_for(plant_id)

    async def upload_plant_media(self, plant_id: str, upload: MediaUpload) -> PlantMedia:
        return await self.plant_media.upload(plant_id, upload)

    async def delete_plant_media(self, media_id: str) -> None:
        await self.plant_media.delete(media_id)

    # =========================================================================
    # MAINTENANCE
    # =========================================================================

    async def health_check(self) -> Dict[str, Any]:
        """
        Check the store with a one-row read.

        Returns:
            Dict with ``healthy``, ``latency_ms`` and, when unhealthy, ``error``.
            Never raises.
        """
        start = self._clock()
        try:
            await execute_query(
                self._client.table("pins").select("id").limit(1),
                operation="health_check",
                table="pins",
                tracker=self._tracker,
            )
            return {"healthy": True, "latency_ms": round((self._clock() - start) * 1000, 2)}
        except Exception as e:
            latency_ms = round((self._clock() - start) * 1000, 2)
            message = e.message if isinstance(e, GardenException) else str(e)
            logger.error(f"Database health check failed: {message}")
            return {"healthy": False, "latency_ms": latency_ms, "error": message}

    async def cleanup_orphaned_records(self) -> Dict[str, Any]:
        """
        Delete plant instances without a pin, care events without an instance and media
        without a pin. Each step runs even if an earlier one fails.

        Returns:
            Dict with ``deleted`` (rows removed) and ``errors`` (one message per failed step)
        """
        deleted = 0
        errors: List[str] = []

        for table, column, label in ORPHAN_CLEANUP_STEPS:
            try:
                response = await execute_query(
                    self._client.table(table).delete().is_(column, "null"),
                    operation=f"cleanup_{table}",
                    table=table,
                    tracker=self._tracker,
                )
                deleted += len(response.data or [])
            except GardenException as e:
                errors.append(f"Failed to cleanup orphaned {label}: {e.message}")

        self._caches.invalidate_all()
        logger.info(f"Orphan cleanup removed {deleted} records", extra={'errors': len(errors)})
        return {"deleted": deleted, "errors": errors}

    def get_performance_stats(self) -> Dict[str, Dict[str, float]]:
        return self._tracker.get_stats()

    def clear_caches(self) -> None:
        self._caches.invalidate_all()
