# 📄 File: gardenbeds/shared/infrastructure/database/migrations.py
#
# 🧭 Purpose (Layman Explanation):
# Keeps a logbook of every change made to the database layout, applies new changes in the
# right order (never before the changes they depend on), can undo the most recent ones,
# and notices if a recorded change no longer matches the code.
#
# 🧪 Purpose (Technical Summary):
# Versioned migration registry with dependency checks, apply/rollback, status reporting and
# sha256 checksum validation. Applied migrations are persisted in the ``schema_migrations``
# table through SupabaseMigrationStore.
#
# 🔗 Dependencies:
# - pydantic (Migration, MigrationRecord and result models)
# - supabase-py client (schema_migrations table, RPCs)
#
# 🔄 Connected Modules / Calls From:
# - gardenbeds.modules.garden.infrastructure.database.schema (built-in migrations)
# - gardenbeds.modules.garden.application.backend_service (run/rollback/status/validate)

"""
Schema Migration Registry

State machine per migration: unregistered -> pending -> applied, and
applied -> pending through rollback. A run stops at the first failure and
keeps whatever was applied before it; every applied migration is recorded.
"""

import hashlib
import time
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, List, Literal, Optional, Protocol, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gardenbeds.shared.core.exceptions import DatabaseError, MigrationError, ValidationError
from gardenbeds.shared.utils.logging import QueryPerformanceTracker, get_logger

from .supabase_query import UNDEFINED_TABLE_CODE, execute_query

logger = get_logger(__name__)

MIGRATIONS_TABLE = "schema_migrations"

MIGRATIONS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    id VARCHAR(255) PRIMARY KEY,
    version INTEGER NOT NULL,
    applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    checksum VARCHAR(64) NOT NULL,
    execution_time_ms INTEGER
);

CREATE INDEX IF NOT EXISTS idx_schema_migrations_version
ON schema_migrations(version);
"""


# =============================================================================
# MODELS
# =============================================================================

class Migration(BaseModel):
    """A versioned unit of schema change with forward and reverse steps."""

    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    version: int = Field(..., ge=0)
    up: Callable[[], Awaitable[None]]
    down: Callable[[], Awaitable[None]]
    dependencies: Tuple[str, ...] = ()

    @field_validator("dependencies")
    @classmethod
    def validate_dependencies(cls, v: Tuple[str, ...], info) -> Tuple[str, ...]:
        if info.data.get("id") in v:
            raise ValueError("A migration cannot depend on itself")
        return v

    @property
    def checksum(self) -> str:
        return calculate_checksum(self)


class MigrationRecord(BaseModel):
    """A row of ``schema_migrations``."""

    model_config = ConfigDict(extra="ignore")

    id: str
    version: int
    applied_at: datetime
    checksum: str
    execution_time_ms: Optional[int] = None


class MigrationRunResult(BaseModel):
    applied: int = 0
    applied_ids: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


class RollbackResult(BaseModel):
    rolled_back: int = 0
    rolled_back_ids: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


class MigrationValidationResult(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)


class MigrationStatusEntry(BaseModel):
    id: str
    name: str
    version: int
    status: Literal["applied", "pending", "missing"]
    applied_at: Optional[datetime] = None


class MigrationStatusReport(BaseModel):
    total: int
    applied: int
    pending: int
    migrations: List[MigrationStatusEntry] = Field(default_factory=list)


def calculate_checksum(migration: Migration) -> str:
    """sha256 of ``id:version:name``."""
    content = f"{migration.id}:{migration.version}:{migration.name}"
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


# =============================================================================
# PERSISTENCE
# =============================================================================

class MigrationStore(Protocol):
    """Where applied migration records live."""

    async def ensure_table(self) -> None: ...

    async def list_applied(self) -> List[MigrationRecord]: ...

    async def record(self, record: MigrationRecord) -> None: ...

    async def remove(self, migration_id: str) -> None: ...


class SupabaseMigrationStore:
    """``schema_migrations`` table accessed through the Supabase client."""

    def __init__(self, client, tracker: Optional[QueryPerformanceTracker] = None):
        self._client = client
        self._tracker = tracker

    async def ensure_table(self) -> None:
        """
        Make sure ``schema_migrations`` exists.

        Tries the ``create_migrations_table_if_not_exists`` RPC first; if
        that is unavailable and the table is missing, falls back to the
        ``exec_sql`` RPC. Failures are logged, never raised.
        """
        try:
            await execute_query(
                self._client.rpc("create_migrations_table_if_not_exists"),
                operation="migrations.ensure_table",
                tracker=self._tracker,
            )
            return
        except DatabaseError as e:
            logger.debug(f"Migrations table RPC unavailable: {e.message}")

        try:
            await execute_query(
                self._client.table(MIGRATIONS_TABLE).select("id").limit(1),
                operation="migrations.check_table",
                table=MIGRATIONS_TABLE,
                tracker=self._tracker,
            )
        except DatabaseError as e:
            if e.code != UNDEFINED_TABLE_CODE:
                logger.warning(f"Could not ensure migrations table: {e.message}")
                return
            try:
                await execute_query(
                    self._client.rpc("exec_sql", {"sql": MIGRATIONS_TABLE_SQL}),
                    operation="migrations.create_table",
                    tracker=self._tracker,
                )
                logger.info("Created schema_migrations table")
            except DatabaseError as create_error:
                logger.error(f"Failed to create migrations table: {create_error.message}")

    async def list_applied(self) -> List[MigrationRecord]:
        """Applied records in application order."""
        response = await execute_query(
            self._client.table(MIGRATIONS_TABLE)
            .select("*")
            .order("applied_at")
            .order("version"),
            operation="migrations.list_applied",
            table=MIGRATIONS_TABLE,
            tracker=self._tracker,
            error_message="Failed to fetch applied migrations",
        )
        return [MigrationRecord.model_validate(row) for row in response.data or []]

    async def record(self, record: MigrationRecord) -> None:
        await execute_query(
            self._client.table(MIGRATIONS_TABLE).insert(record.model_dump(mode="json")),
            operation="migrations.record",
            table=MIGRATIONS_TABLE,
            tracker=self._tracker,
            error_message="Failed to record migration",
        )

    async def remove(self, migration_id: str) -> None:
        await execute_query(
            self._client.table(MIGRATIONS_TABLE).delete().eq("id", migration_id),
            operation="migrations.remove",
            table=MIGRATIONS_TABLE,
            tracker=self._tracker,
            error_message="Failed to remove migration record",
        )


# =============================================================================
# MANAGER
# =============================================================================

class MigrationManager:
    """
    Ordered, dependency-checked migration registry.

    Registered migrations live in memory; applied state lives in the store.
    """

    def __init__(self, store: MigrationStore, clock: Callable[[], float] = time.perf_counter):
        self.store = store
        self._clock = clock
        self._migrations: Dict[str, Migration] = {}

    def register(self, migration: Migration) -> None:
        """
        Add a migration to the registry.

        Raises:
            ValidationError: If a migration with the same id is already registered
        """
        if migration.id in self._migrations:
            raise ValidationError(
                f"Migration {migration.id} is already registered",
                field="id",
                value=migration.id
            )
        self._migrations[migration.id] = migration

    def get_migrations(self) -> List[Migration]:
        """Registered migrations in ascending version order."""
        return sorted(self._migrations.values(), key=lambda m: (m.version, m.id))

    async def get_applied_migrations(self) -> List[MigrationRecord]:
        return await self.store.list_applied()

    async def get_pending_migrations(self) -> List[Migration]:
        applied_ids = {record.id for record in await self.store.list_applied()}
        return [m for m in self.get_migrations() if m.id not in applied_ids]

    async def ensure_table(self) -> None:
        await self.store.ensure_table()

    async def _apply(self, migration: Migration, applied_ids: Set[str]) -> None:
        missing = [dep for dep in migration.dependencies if dep not in applied_ids]
        if missing:
            raise MigrationError(
                f"Migration {migration.id} has unsatisfied dependencies: {', '.join(missing)}",
                migration_id=migration.id
            )

        logger.info(f"Applying migration: {migration.name} ({migration.id})")
        start = self._clock()

        await migration.up()

        execution_time_ms = int((self._clock() - start) * 1000)
        await self.store.record(MigrationRecord(
            id=migration.id,
            version=migration.version,
            applied_at=datetime.now(timezone.utc),
            checksum=calculate_checksum(migration),
            execution_time_ms=execution_time_ms,
        ))

        logger.info(
            f"✅ Applied migration: {migration.name} ({execution_time_ms}ms)",
            extra={'migration_id': migration.id, 'execution_time_ms': execution_time_ms}
        )

    async def migrate(self) -> MigrationRunResult:
        """
        Apply every pending migration in ascending version order.

        Stops at the first failure; migrations applied before it stay applied.
        """
        applied_ids = {record.id for record in await self.store.list_applied()}
        pending = [m for m in self.get_migrations() if m.id not in applied_ids]
        result = MigrationRunResult()

        logger.info(f"Found {len(pending)} pending migrations")

        for migration in pending:
            try:
                await self._apply(migration, applied_ids)
            except Exception as e:
                logger.error(f"❌ Failed to apply migration {migration.name}: {e}")
                result.errors.append(f"{migration.name}: {_error_message(e)}")
                break

            applied_ids.add(migration.id)
            result.applied_ids.append(migration.id)

        result.applied = len(result.applied_ids)
        return result

    async def rollback(self, steps: int = 1) -> RollbackResult:
        """
        Reverse the last ``steps`` applied migrations, newest first.

        Records without a registered migration are reported and skipped.
        Stops at the first failing ``down()``.
        """
        if steps < 1:
            raise ValidationError("Rollback steps must be at least 1", field="steps", value=steps)

        applied = await self.store.list_applied()
        to_rollback = list(reversed(applied[-steps:]))
        result = RollbackResult()

        logger.info(f"Rolling back {len(to_rollback)} migrations")

        for record in to_rollback:
            migration = self._migrations.get(record.id)
            if migration is None:
                result.errors.append(f"Migration {record.id} not found in registered migrations")
                continue

            try:
                logger.info(f"Rolling back migration: {migration.name} ({migration.id})")
                await migration.down()
                await self.store.remove(migration.id)
            except Exception as e:
                logger.error(f"❌ Failed to rollback migration {migration.name}: {e}")
                result.errors.append(f"{migration.name}: {_error_message(e)}")
                break

            result.rolled_back_ids.append(migration.id)
            logger.info(f"✅ Rolled back migration: {migration.name}")

        result.rolled_back = len(result.rolled_back_ids)
        return result

    async def validate(self) -> MigrationValidationResult:
        """Compare each applied record's checksum with its registered definition."""
        errors: List[str] = []

        for record in await self.store.list_applied():
            migration = self._migrations.get(record.id)
            if migration is None:
                errors.append(f"Applied migration {record.id} not found in registered migrations")
                continue
            if record.checksum != calculate_checksum(migration):
                errors.append(f"Migration {record.id} checksum mismatch")

        return MigrationValidationResult(valid=not errors, errors=errors)

    async def status(self) -> MigrationStatusReport:
        applied = await self.store.list_applied()
        applied_by_id = {record.id: record for record in applied}
        registered = self.get_migrations()

        entries = [
            MigrationStatusEntry(
                id=migration.id,
                name=migration.name,
                version=migration.version,
                status="applied" if migration.id in applied_by_id else "pending",
                applied_at=applied_by_id[migration.id].applied_at if migration.id in applied_by_id else None,
            )
            for migration in registered
        ]

        for record in applied:
            if record.id not in self._migrations:
                entries.append(MigrationStatusEntry(
                    id=record.id,
                    name="Unknown",
                    version=record.version,
                    status="missing",
                    applied_at=record.applied_at,
                ))

        entries.sort(key=lambda entry: (entry.version, entry.id))
        pending = sum(1 for entry in entries if entry.status == "pending")

        return MigrationStatusReport(
            total=len(registered),
            applied=len(applied),
            pending=pending,
            migrations=entries,
        )


def _error_message(error: Exception) -> str:
    message = getattr(error, "message", None)
    return message if isinstance(message, str) else str(error) or "Unknown error"
