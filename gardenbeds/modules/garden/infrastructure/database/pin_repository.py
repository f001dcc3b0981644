# 📄 File: gardenbeds/modules/garden/infrastructure/database/pin_repository.py
# 🧭 Purpose (Layman Explanation):
# Reads and writes the pins dropped on bed photos, including saving many pins at once and
# counting how many plants are active, dormant or gone.
#
# 🧪 Purpose (Technical Summary):
# Supabase repository for the pins table: cached reads by id, section and bed, text search,
# status statistics, single writes with tag invalidation and concurrent batch writes whose
# members are retried independently under the store retry policy.
#
# 🔗 Dependencies:
# - asyncio (concurrent batch members)
# - gardenbeds.modules.garden.infrastructure.database.base_repository
#
# 🔄 Connected Modules / Calls From:
# - gardenbeds.modules.garden.application.data_service

import asyncio
from typing import Awaitable, Callable, List, Optional, Sequence, Union

from gardenbeds.modules.garden.domain.models.pin import (
    BatchFailure,
    BatchResult,
    Pin,
    PinBatchUpdate,
    PinCreate,
    PinStats,
    PinUpdate,
)
from gardenbeds.shared.core.exceptions import GardenException
from gardenbeds.shared.utils.logging import get_logger

from . import cache_keys
from .base_repository import BaseRepository

logger = get_logger(__name__)


class PinRepository(BaseRepository):
    """Pins placed on bed images."""

    table = "pins"
    resource_name = "Pin"

    # =========================================================================
    # READS
    # =========================================================================

    async def get_by_section(self, section_id: str) -> List[Pin]:
        """Pins of a garden section, newest first."""
        async def load() -> List[Pin]:
            rows = await self._fetch_many(
                self._table().select("*").eq("section_id", section_id).order("created_at", desc=True),
                "get_pins_by_section",
                "Failed to fetch pins"
            )
            return [Pin.model_validate(row) for row in rows]

        return await self._cached(cache_keys.pins_by_section(section_id), load, tags=(cache_keys.PINS_LIST,))

    async def get_by_bed(self, bed_id: str) -> List[Pin]:
        """Pins of a bed in placement order."""
        async def load() -> List[Pin]:
            rows = await self._fetch_many(
                self._table().select("*").eq("bed_id", bed_id).order("created_at"),
                "get_pins_by_bed",
                "Failed to fetch pins for bed"
            )
            return [Pin.model_validate(row) for row in rows]

        return await self._cached(cache_keys.pins_by_bed(bed_id), load, tags=(cache_keys.PINS_LIST,))

    async def get_by_id(self, pin_id: str) -> Optional[Pin]:
        async def load() -> Optional[Pin]:
            row = await self._fetch_one(
                self._table().select("*").eq("id", pin_id),
                "get_pin",
                "Failed to fetch pin"
            )
            return Pin.model_validate(row) if row else None

        return await self._cached(cache_keys.pin(pin_id), load, tags=(cache_keys.pin(pin_id),))

    async def search(self, query: str, section_id: Optional[str] = None) -> List[Pin]:
        """
        Case-insensitive substring search over pin names and notes.

        Args:
            query: Text to look for
            section_id: Restrict to one garden section

        Returns:
            List[Pin]: Matches, newest first. Blank queries match nothing.
        """
        term = query.strip()
        if not term:
            return []
        # PostgREST uses commas and parentheses as filter separators
        term = term.replace(",", " ").replace("(", " ").replace(")", " ")

        async def load() -> List[Pin]:
            builder = self._table().select("*").or_(f"name.ilike.%{term}%,notes.ilike.%{term}%")
            if section_id:
                builder = builder.eq("section_id", section_id)
            rows = await self._fetch_many(
                builder.order("created_at", desc=True),
                "search_pins",
                "Failed to search pins"
            )
            return [Pin.model_validate(row) for row in rows]

        return await self._cached(cache_keys.pins_search(term, section_id), load, tags=(cache_keys.PINS_LIST,))

    async def get_stats(self, section_id: Optional[str] = None) -> PinStats:
        async def load() -> PinStats:
            builder = self._table().select("status")
            if section_id:
                builder = builder.eq("section_id", section_id)
            rows = await self._fetch_many(builder, "get_pin_stats", "Failed to fetch pin statistics")
            return PinStats.from_rows(rows)

        return await self._cached(cache_keys.pin_stats(section_id), load, tags=(cache_keys.PINS_LIST,))

    # =========================================================================
    # WRITES
    # =========================================================================

    def _invalidate_pin(self, pin_id: str) -> None:
        # beds_latest carries a pin count, so bed lists go stale too
        self._invalidate(cache_keys.pin(pin_id), cache_keys.PINS_LIST, cache_keys.BEDS_LIST)

    async def create(self, data: PinCreate) -> Pin:
        row = await self._insert(self._insert_payload(data), "create_pin", "Failed to create pin")
        pin = Pin.model_validate(row)
        self._invalidate_pin(pin.id)
        logger.debug(f"Created pin: {pin.id}", extra={'bed_id': pin.bed_id})
        return pin

    async def update(self, pin_id: str, data: PinUpdate) -> Pin:
        payload = self._update_payload(data)
        rows = await self._fetch_many(
            self._table().update(payload).eq("id", pin_id),
            "update_pin",
            "Failed to update pin"
        )
        pin = Pin.model_validate(self._require_row(rows, pin_id))
        self._invalidate_pin(pin_id)
        return pin

    async def delete(self, pin_id: str) -> None:
        await self._execute(self._table().delete().eq("id", pin_id), "delete_pin", "Failed to delete pin")
        self._invalidate_pin(pin_id)
        # Instances linked to the pin are detached by the store
        self._invalidate(cache_keys.plant_instance_by_pin(pin_id), cache_keys.PLANT_INSTANCES_LIST)
        logger.debug(f"Deleted pin: {pin_id}")

    # =========================================================================
    # BATCH WRITES
    # =========================================================================

    async def batch_create(self, items: Sequence[PinCreate]) -> BatchResult:
        """Create every pin concurrently. One failing member never aborts the others."""
        return await self._run_batch(
            "batch_create_pins",
            [lambda item=item: self.create(item) for item in items]
        )

    async def batch_update(self, items: Sequence[PinBatchUpdate]) -> BatchResult:
        """Apply every update concurrently. One failing member never aborts the others."""
        return await self._run_batch(
            "batch_update_pins",
            [lambda item=item: self.update(item.id, item.updates) for item in items]
        )

    async def _run_batch(
        self,
        name: str,
        members: List[Callable[[], Awaitable[Pin]]]
    ) -> BatchResult:
        async def run_member(index: int, member: Callable[[], Awaitable[Pin]]) -> Union[Pin, BatchFailure]:
            try:
                return await self._retrying(member, f"{name}[{index}]")
            except Exception as e:
                logger.error(
                    f"{name} member {index} failed: {e}",
                    extra={'index': index, 'error_type': type(e).__name__}
                )
                if isinstance(e, GardenException):
                    return BatchFailure(index=index, error=e.message, code=getattr(e, "code", None) or e.error_code)
                return BatchFailure(index=index, error=str(e))

        outcomes = await asyncio.gather(*(run_member(i, m) for i, m in enumerate(members)))

        result = BatchResult()
        for outcome in outcomes:
            if isinstance(outcome, BatchFailure):
                result.failed.append(outcome)
            else:
                result.succeeded.append(outcome)

        if result.failed:
            logger.warning(
                f"{name}: {len(result.succeeded)} succeeded, {len(result.failed)} failed",
                extra={'succeeded': len(result.succeeded), 'failed': len(result.failed)}
            )
        return result
