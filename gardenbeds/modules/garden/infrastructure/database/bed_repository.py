# 📄 File: gardenbeds/modules/garden/infrastructure/database/bed_repository.py
# 🧭 Purpose (Layman Explanation):
# Reads and writes garden beds and the reference photos taken of each bed.
#
# 🧪 Purpose (Technical Summary):
# Supabase repository for the beds table, the beds_latest view and the bed_images table.
# Reads are cached on the database cache; writes invalidate the bed's own tag and the
# bed list tags. Public image URLs come from the bed images storage bucket.
#
# 🔗 Dependencies:
# - gardenbeds.modules.garden.infrastructure.database.base_repository
# - gardenbeds.shared.infrastructure.storage.supabase_storage (public URLs, image removal)
#
# 🔄 Connected Modules / Calls From:
# - gardenbeds.modules.garden.application.data_service

from typing import List, Optional

from gardenbeds.modules.garden.domain.models.bed import (
    Bed,
    BedCreate,
    BedImage,
    BedImageCreate,
    BedLatest,
    BedUpdate,
)
from gardenbeds.shared.infrastructure.storage.supabase_storage import SupabaseBucket
from gardenbeds.shared.utils.logging import get_logger

from . import cache_keys
from .base_repository import BaseRepository

logger = get_logger(__name__)

BEDS_LATEST_VIEW = "beds_latest"
BED_IMAGES_TABLE = "bed_images"


class BedRepository(BaseRepository):
    """Beds, their latest-image view and their reference photographs."""

    table = "beds"
    resource_name = "Bed"

    def __init__(self, *args, images_bucket: SupabaseBucket, **kwargs):
        super().__init__(*args, **kwargs)
        self._images_bucket = images_bucket

    # =========================================================================
    # BEDS
    # =========================================================================

    async def get_all(self) -> List[Bed]:
        async def load() -> List[Bed]:
            rows = await self._fetch_many(
                self._table().select("*").order("name"),
                "get_beds",
                "Failed to fetch beds"
            )
            return [Bed.model_validate(row) for row in rows]

        return await self._cached(cache_keys.BEDS_ALL, load, tags=(cache_keys.BEDS_LIST,))

    async def get_by_id(self, bed_id: str) -> Optional[Bed]:
        async def load() -> Optional[Bed]:
            row = await self._fetch_one(
                self._table().select("*").eq("id", bed_id),
                "get_bed",
                "Failed to fetch bed"
            )
            return Bed.model_validate(row) if row else None

        return await self._cached(cache_keys.bed(bed_id), load, tags=(cache_keys.bed(bed_id),))

    async def list_by_section(self, section: str) -> List[BedLatest]:
        """Beds of a section with their newest image path and pin count."""
        async def load() -> List[BedLatest]:
            rows = await self._fetch_many(
                self._table(BEDS_LATEST_VIEW).select("*").eq("section", section).order("created_at"),
                "list_beds_by_section",
                "Failed to fetch beds for section",
                BEDS_LATEST_VIEW
            )
            return [BedLatest.model_validate(row) for row in rows]

        return await self._cached(
            cache_keys.beds_by_section(section),
            load,
            tags=(cache_keys.BEDS_LIST,)
        )

    async def create(self, data: BedCreate) -> Bed:
        row = await self._insert(self._insert_payload(data), "create_bed", "Failed to create bed")
        bed = Bed.model_validate(row)
        self._invalidate(cache_keys.bed(bed.id), cache_keys.BEDS_LIST)
        logger.info(f"Created bed: {bed.id}", extra={'section': bed.section})
        return bed

    async def update(self, bed_id: str, data: BedUpdate) -> Bed:
        # beds has no updated_at column
        payload = self._update_payload(data, touch=False)
        rows = await self._fetch_many(
            self._table().update(payload).eq("id", bed_id),
            "update_bed",
            "Failed to update bed"
        )
        bed = Bed.model_validate(self._require_row(rows, bed_id))
        self._invalidate(cache_keys.bed(bed_id), cache_keys.BEDS_LIST)
        return bed

    async def delete(self, bed_id: str) -> None:
        await self._execute(self._table().delete().eq("id", bed_id), "delete_bed", "Failed to delete bed")
        # Images and pins go with the bed through cascading foreign keys
        self._invalidate(
            cache_keys.bed(bed_id),
            cache_keys.BEDS_LIST,
            cache_keys.BED_IMAGES_LIST,
            cache_keys.PINS_LIST,
        )
        logger.info(f"Deleted bed: {bed_id}")

    # =========================================================================
    # BED IMAGES
    # =========================================================================

    async def list_images(self, bed_id: str) -> List[BedImage]:
        """Images of a bed, newest first."""
        async def load() -> List[BedImage]:
            rows = await self._fetch_many(
                self._table(BED_IMAGES_TABLE).select("*").eq("bed_id", bed_id).order("created_at", desc=True),
                "list_images_for_bed",
                "Failed to fetch bed images",
                BED_IMAGES_TABLE
            )
            return [BedImage.model_validate(row) for row in rows]

        return await self._cached(
            cache_keys.bed_images(bed_id),
            load,
            tags=(cache_keys.BED_IMAGES_LIST,)
        )

    async def create_image(self, data: BedImageCreate) -> BedImage:
        rows = await self._fetch_many(
            self._table(BED_IMAGES_TABLE).insert(self._insert_payload(data)),
            "create_bed_image",
            "Failed to create bed image",
            BED_IMAGES_TABLE
        )
        image = BedImage.model_validate(self._require_row(rows, data.bed_id))
        # beds_latest rows carry the newest image path
        self._invalidate(cache_keys.BED_IMAGES_LIST, cache_keys.BEDS_LIST)
        return image

    async def delete_image(self, image_id: str) -> None:
        """Delete an image row and its stored file. Unknown ids are a no-op."""
        row = await self._fetch_one(
            self._table(BED_IMAGES_TABLE).select("image_path").eq("id", image_id),
            "get_bed_image_path",
            "Failed to fetch bed image",
            BED_IMAGES_TABLE
        )
        if not row:
            return

        await self._images_bucket.remove([row["image_path"]])
        await self._execute(
            self._table(BED_IMAGES_TABLE).delete().eq("id", image_id),
            "delete_bed_image",
            "Failed to delete bed image",
            table=BED_IMAGES_TABLE
        )
        self._invalidate(cache_keys.BED_IMAGES_LIST, cache_keys.BEDS_LIST)

    def get_image_public_url(self, image_path: str) -> str:
        return self._images_bucket.public_url(image_path)
