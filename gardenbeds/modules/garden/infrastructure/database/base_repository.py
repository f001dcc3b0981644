# 📄 File: gardenbeds/modules/garden/infrastructure/database/base_repository.py
#
# 🧭 Purpose (Layman Explanation):
# The shared toolbox for every garden table: ask the database, remember answers for a few
# minutes, and forget the remembered answers as soon as something changes.
#
# 🧪 Purpose (Technical Summary):
# Base class for Supabase-backed repositories. Runs query builders off the event loop with
# timing, wraps reads in the database cache with deterministic keys and entity tags, and
# exposes tag invalidation plus the store retry policy for writes.
#
# 🔗 Dependencies:
# - supabase-py client (table query builders)
# - gardenbeds.shared.core.cache (read-through cache, tag invalidation)
# - gardenbeds.shared.infrastructure.database.supabase_query (execution, error mapping)
#
# 🔄 Connected Modules / Calls From:
# - Bed, pin, plant, care event and media repositories

from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, TypeVar

from pydantic import BaseModel

from gardenbeds.shared.core.cache import TTLCache, cached_call
from gardenbeds.shared.core.exceptions import DatabaseError, NotFoundError, ValidationError
from gardenbeds.shared.core.retry import RetryPolicy, with_retry
from gardenbeds.shared.infrastructure.database.supabase_query import execute_query
from gardenbeds.shared.utils.logging import QueryPerformanceTracker, get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class BaseRepository:
    """
    Common plumbing for one store table.

    Subclasses set ``table`` and ``resource_name`` and build their queries
    from ``self._table()``.
    """

    table: str = ""
    resource_name: str = "Resource"

    def __init__(
        self,
        client,
        cache: TTLCache,
        tracker: QueryPerformanceTracker,
        cache_ttl: Optional[float] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None
    ):
        """
        Initialize the repository.

        Args:
            client: Supabase client
            cache: Cache used for reads (the ``database`` cache)
            tracker: Query timing statistics
            cache_ttl: Read TTL in seconds, defaults to the cache's TTL
            retry_policy: Store retry policy for batch members
            sleep: Sleep used between retries
        """
        self._client = client
        self._cache = cache
        self._tracker = tracker
        self._cache_ttl = cache_ttl
        self._retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep

    def _table(self, name: Optional[str] = None):
        return self._client.table(name or self.table)

    async def _execute(self, query, operation: str, error_message: Optional[str] = None,
                       table: Optional[str] = None):
        return await execute_query(
            query,
            operation=operation,
            table=table or self.table,
            tracker=self._tracker,
            error_message=error_message,
        )

    async def _fetch_many(self, query, operation: str, error_message: str,
                          table: Optional[str] = None) -> List[Dict[str, Any]]:
        response = await self._execute(query, operation, error_message, table)
        return list(response.data or [])

    async def _fetch_one(self, query, operation: str, error_message: str,
                         table: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """First matching row, or None when nothing matches."""
        rows = await self._fetch_many(query.limit(1), operation, error_message, table)
        return rows[0] if rows else None

    async def _cached(
        self,
        key: str,
        loader: Callable[[], Awaitable[T]],
        tags: Iterable[str] = ()
    ) -> T:
        return await cached_call(self._cache, key, loader, ttl=self._cache_ttl, tags=tags)

    def _invalidate(self, *tags: str) -> None:
        removed = self._cache.invalidate_tags(tags)
        logger.debug(
            f"Invalidated {removed} cached reads for {self.table}",
            extra={'table': self.table, 'tags': list(tags)}
        )

    async def _retrying(self, operation: Callable[[], Awaitable[T]], name: str) -> T:
        kwargs = {'sleep': self._sleep} if self._sleep else {}
        return await with_retry(operation, self._retry_policy, operation_name=name, **kwargs)

    # =========================================================================
    # PAYLOAD HELPERS
    # =========================================================================

    @staticmethod
    def _insert_payload(data: BaseModel) -> Dict[str, Any]:
        return data.model_dump(mode="json", exclude_none=True)

    @staticmethod
    def _update_payload(data: BaseModel, touch: bool = True) -> Dict[str, Any]:
        """Only the fields explicitly set. Raises ValidationError when empty."""
        payload = data.model_dump(mode="json", exclude_unset=True)
        if not payload:
            raise ValidationError("No fields to update")
        if touch:
            payload["updated_at"] = datetime.now(timezone.utc).isoformat()
        return payload

    async def _insert(self, payload: Dict[str, Any], operation: str, error_message: str) -> Dict[str, Any]:
        rows = await self._fetch_many(self._table().insert(payload), operation, error_message)
        if not rows:
            raise DatabaseError(f"{error_message}: no row returned", table=self.table, operation=operation)
        return rows[0]

    def _require_row(self, rows: List[Dict[str, Any]], entity_id: Optional[str] = None) -> Dict[str, Any]:
        """The single row a write returned; a write that matched nothing raises NotFoundError."""
        if not rows:
            raise NotFoundError(
                f"{self.resource_name} not found",
                resource_type=self.resource_name.lower(),
                resource_id=entity_id
            )
        return rows[0]
