# 📄 File: gardenbeds/modules/garden/infrastructure/database/care_event_repository.py
# 🧭 Purpose (Layman Explanation):
# Keeps the diary of everything done for a plant: watering, feeding, pruning and so on.
#
# 🧪 Purpose (Technical Summary):
# Supabase repository for care_events. Per-instance histories and the recent-events feed are
# cached under the care events list tag; single events under their own tag.
#
# 🔗 Dependencies:
# - gardenbeds.modules.garden.infrastructure.database.base_repository
#
# 🔄 Connected Modules / Calls From:
# - gardenbeds.modules.garden.application.data_service

from typing import List, Optional

from gardenbeds.modules.garden.domain.models.plant import CareEvent, CareEventCreate, CareEventUpdate

from . import cache_keys
from .base_repository import BaseRepository

DEFAULT_RECENT_LIMIT = 10


class CareEventRepository(BaseRepository):
    table = "care_events"
    resource_name = "CareEvent"

    async def get_by_id(self, event_id: str) -> Optional[CareEvent]:
        async def load() -> Optional[CareEvent]:
            row = await self._fetch_one(
                self._table().select("*").eq("id", event_id),
                "get_care_event",
                "Failed to fetch care event"
            )
            return CareEvent.model_validate(row) if row else None

        return await self._cached(cache_keys.care_event(event_id), load, tags=(cache_keys.care_event(event_id),))

    async def list_for_instance(self, plant_instance_id: str) -> List[CareEvent]:
        """Care history of one plant, most recent event first."""
        async def load() -> List[CareEvent]:
            rows = await self._fetch_many(
                self._table()
                .select("*")
                .eq("plant_instance_id", plant_instance_id)
                .order("event_date", desc=True),
                "get_care_events",
                "Failed to fetch care events"
            )
            return [CareEvent.model_validate(row) for row in rows]

        return await self._cached(
            cache_keys.care_events(plant_instance_id),
            load,
            tags=(cache_keys.CARE_EVENTS_LIST,)
        )

    async def list_recent(self, limit: int = DEFAULT_RECENT_LIMIT) -> List[CareEvent]:
        async def load() -> List[CareEvent]:
            rows = await self._fetch_many(
                self._table().select("*").order("event_date", desc=True).limit(limit),
                "get_recent_care_events",
                "Failed to fetch recent care events"
            )
            return [CareEvent.model_validate(row) for row in rows]

        return await self._cached(cache_keys.recent_care_events(limit), load, tags=(cache_keys.CARE_EVENTS_LIST,))

    def _invalidate_event(self, event_id: str, plant_instance_id: Optional[str] = None) -> None:
        tags = [cache_keys.care_event(event_id), cache_keys.CARE_EVENTS_LIST]
        if plant_instance_id:
            tags.append(cache_keys.care_events(plant_instance_id))
        self._invalidate(*tags)

    async def create(self, data: CareEventCreate) -> CareEvent:
        row = await self._insert(self._insert_payload(data), "create_care_event", "Failed to create care event")
        event = CareEvent.model_validate(row)
        self._invalidate_event(event.id, event.plant_instance_id)
        return event

    async def update(self, event_id: str, data: CareEventUpdate) -> CareEvent:
        rows = await self._fetch_many(
            self._table().update(self._update_payload(data)).eq("id", event_id),
            "update_care_event",
            "Failed to update care event"
        )
        event = CareEvent.model_validate(self._require_row(rows, event_id))
        self._invalidate_event(event_id, event.plant_instance_id)
        return event

    async def delete(self, event_id: str) -> None:
        await self._execute(
            self._table().delete().eq("id", event_id),
            "delete_care_event",
            "Failed to delete care event"
        )
        self._invalidate_event(event_id)
