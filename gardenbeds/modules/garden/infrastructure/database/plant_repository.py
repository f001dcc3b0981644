# 📄 File: gardenbeds/modules/garden/infrastructure/database/plant_repository.py
# 🧭 Purpose (Layman Explanation):
# Reads and writes species sheets (what a plant is and how to grow it) and the individual
# plants placed in beds.
#
# 🧪 Purpose (Technical Summary):
# Supabase repositories for plant_details and plant_instances. Instance reads embed the linked
# plant_details row, so they are also tagged with the plant details list tag and go stale
# whenever a species sheet changes.
#
# 🔗 Dependencies:
# - gardenbeds.modules.garden.infrastructure.database.base_repository
#
# 🔄 Connected Modules / Calls From:
# - gardenbeds.modules.garden.application.data_service

from typing import List, Optional

from gardenbeds.modules.garden.domain.models.plant import (
    PlantDetails,
    PlantDetailsCreate,
    PlantDetailsUpdate,
    PlantInstance,
    PlantInstanceCreate,
    PlantInstanceUpdate,
)
from gardenbeds.shared.utils.logging import get_logger

from . import cache_keys
from .base_repository import BaseRepository

logger = get_logger(__name__)

INSTANCE_WITH_DETAILS = "*, plant_details(*)"


class PlantDetailsRepository(BaseRepository):
    """Species-level plant information."""

    table = "plant_details"
    resource_name = "PlantDetails"

    async def list_all(self) -> List[PlantDetails]:
        async def load() -> List[PlantDetails]:
            rows = await self._fetch_many(
                self._table().select("*").order("name"),
                "list_plant_details",
                "Failed to fetch plant details"
            )
            return [PlantDetails.model_validate(row) for row in rows]

        return await self._cached(cache_keys.PLANT_DETAILS_ALL, load, tags=(cache_keys.PLANT_DETAILS_LIST,))

    async def get_by_id(self, details_id: str) -> Optional[PlantDetails]:
        async def load() -> Optional[PlantDetails]:
            row = await self._fetch_one(
                self._table().select("*").eq("id", details_id),
                "get_plant_details",
                "Failed to fetch plant details"
            )
            return PlantDetails.model_validate(row) if row else None

        return await self._cached(
            cache_keys.plant_details(details_id),
            load,
            tags=(cache_keys.plant_details(details_id),)
        )

    async def search(self, query: str) -> List[PlantDetails]:
        """Species whose name or scientific name contains ``query``, by name."""
        term = query.strip().replace(",", " ").replace("(", " ").replace(")", " ")
        if not term:
            return []

        async def load() -> List[PlantDetails]:
            rows = await self._fetch_many(
                self._table()
                .select("*")
                .or_(f"name.ilike.%{term}%,scientific_name.ilike.%{term}%")
                .order("name"),
                "search_plant_details",
                "Failed to search plant details"
            )
            return [PlantDetails.model_validate(row) for row in rows]

        return await self._cached(
            cache_keys.plant_details_search(term),
            load,
            tags=(cache_keys.PLANT_DETAILS_LIST,)
        )

    def _invalidate_details(self, details_id: str) -> None:
        self._invalidate(
            cache_keys.plant_details(details_id),
            cache_keys.PLANT_DETAILS_LIST,
            cache_keys.PLANT_INSTANCES_LIST,
        )

    async def create(self, data: PlantDetailsCreate) -> PlantDetails:
        row = await self._insert(self._insert_payload(data), "create_plant_details", "Failed to create plant details")
        details = PlantDetails.model_validate(row)
        self._invalidate_details(details.id)
        logger.info(f"Created plant details: {details.name}", extra={'plant_details_id': details.id})
        return details

    async def update(self, details_id: str, data: PlantDetailsUpdate) -> PlantDetails:
        rows = await self._fetch_many(
            self._table().update(self._update_payload(data)).eq("id", details_id),
            "update_plant_details",
            "Failed to update plant details"
        )
        details = PlantDetails.model_validate(self._require_row(rows, details_id))
        self._invalidate_details(details_id)
        return details

    async def delete(self, details_id: str) -> None:
        await self._execute(
            self._table().delete().eq("id", details_id),
            "delete_plant_details",
            "Failed to delete plant details"
        )
        self._invalidate_details(details_id)


class PlantInstanceRepository(BaseRepository):
    """Individual plants, each linked to one pin and one species."""

    table = "plant_instances"
    resource_name = "PlantInstance"

    async def get_by_id(self, instance_id: str) -> Optional[PlantInstance]:
        async def load() -> Optional[PlantInstance]:
            row = await self._fetch_one(
                self._table().select(INSTANCE_WITH_DETAILS).eq("id", instance_id),
                "get_plant_instance",
                "Failed to fetch plant instance"
            )
            return PlantInstance.model_validate(row) if row else None

        return await self._cached(
            cache_keys.plant_instance(instance_id),
            load,
            tags=(cache_keys.plant_instance(instance_id), cache_keys.PLANT_DETAILS_LIST)
        )

    async def get_by_pin(self, pin_id: str) -> Optional[PlantInstance]:
        async def load() -> Optional[PlantInstance]:
            row = await self._fetch_one(
                self._table().select(INSTANCE_WITH_DETAILS).eq("pin_id", pin_id),
                "get_plant_instance_by_pin",
                "Failed to fetch plant instance for pin"
            )
            return PlantInstance.model_validate(row) if row else None

        return await self._cached(
            cache_keys.plant_instance_by_pin(pin_id),
            load,
            tags=(cache_keys.PLANT_INSTANCES_LIST, cache_keys.PLANT_DETAILS_LIST)
        )

    async def list_by_bed(self, bed_id: str) -> List[PlantInstance]:
        """Plants of a bed, most recently added first."""
        async def load() -> List[PlantInstance]:
            rows = await self._fetch_many(
                self._table().select(INSTANCE_WITH_DETAILS).eq("bed_id", bed_id).order("created_at", desc=True),
                "list_plant_instances_by_bed",
                "Failed to fetch plant instances for bed"
            )
            return [PlantInstance.model_validate(row) for row in rows]

        return await self._cached(
            cache_keys.plant_instances_by_bed(bed_id),
            load,
            tags=(cache_keys.PLANT_INSTANCES_LIST, cache_keys.PLANT_DETAILS_LIST)
        )

    def _invalidate_instance(self, instance_id: str, pin_id: Optional[str] = None) -> None:
        tags = [cache_keys.plant_instance(instance_id), cache_keys.PLANT_INSTANCES_LIST, cache_keys.PINS_LIST]
        if pin_id:
            tags.append(cache_keys.pin(pin_id))
        self._invalidate(*tags)

    async def create(self, data: PlantInstanceCreate) -> PlantInstance:
        row = await self._insert(self._insert_payload(data), "create_plant_instance", "Failed to create plant instance")
        instance = PlantInstance.model_validate(row)
        self._invalidate_instance(instance.id, instance.pin_id)
        logger.info(f"Created plant instance: {instance.id}", extra={'pin_id': instance.pin_id})
        return instance

    async def update(self, instance_id: str, data: PlantInstanceUpdate) -> PlantInstance:
        rows = await self._fetch_many(
            self._table().update(self._update_payload(data)).eq("id", instance_id),
            "update_plant_instance",
            "Failed to update plant instance"
        )
        instance = PlantInstance.model_validate(self._require_row(rows, instance_id))
        self._invalidate_instance(instance_id, instance.pin_id)
        return instance

    async def delete(self, instance_id: str) -> None:
        response = await self._execute(
            self._table().delete().eq("id", instance_id),
            "delete_plant_instance",
            "Failed to delete plant instance"
        )
        rows = response.data or []
        pin_id = rows[0].get("pin_id") if rows else None
        self._invalidate_instance(instance_id, pin_id)
        # Care history goes with the instance
        self._invalidate(cache_keys.care_events(instance_id), cache_keys.CARE_EVENTS_LIST)
