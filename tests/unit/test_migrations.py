import hashlib
from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from gardenbeds.modules.garden.infrastructure.database.schema import builtin_migrations, register_builtin_migrations
from gardenbeds.shared.core.exceptions import ValidationError
from gardenbeds.shared.infrastructure.database.migrations import (
    Migration,
    MigrationManager,
    MigrationRecord,
    SupabaseMigrationStore,
    calculate_checksum,
)
from tests.fakes import FakeSupabaseClient


class InMemoryStore:
    def __init__(self, records: List[MigrationRecord] = None):
        self.records = list(records or [])
        self.ensured = False

    async def ensure_table(self) -> None:
        self.ensured = True

    async def list_applied(self) -> List[MigrationRecord]:
        return list(self.records)

    async def record(self, record: MigrationRecord) -> None:
        self.records.append(record)

    async def remove(self, migration_id: str) -> None:
        self.records = [r for r in self.records if r.id != migration_id]


class Journal:
    """Collects up/down calls so tests can check ordering."""

    def __init__(self):
        self.calls = []

    def migration(self, migration_id: str, version: int, fail_up=False, fail_down=False, dependencies=()):
        async def up():
            if fail_up:
                raise RuntimeError(f"{migration_id} up exploded")
            self.calls.append(("up", migration_id))

        async def down():
            if fail_down:
                raise RuntimeError(f"{migration_id} down exploded")
            self.calls.append(("down", migration_id))

        return Migration(
            id=migration_id, name=f"Migration {migration_id}", version=version,
            up=up, down=down, dependencies=tuple(dependencies),
        )


def applied_record(migration: Migration) -> MigrationRecord:
    return MigrationRecord(
        id=migration.id,
        version=migration.version,
        applied_at=datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(days=migration.version),
        checksum=calculate_checksum(migration),
    )


def test_checksum_is_sha256_of_id_version_name():
    journal = Journal()
    migration = journal.migration("001_a", 1)

    assert calculate_checksum(migration) == (
        hashlib.sha256(b"001_a:1:Migration 001_a").hexdigest()
    )
    assert migration.checksum == calculate_checksum(migration)


def test_duplicate_registration_is_rejected():
    manager = MigrationManager(InMemoryStore())
    journal = Journal()
    manager.register(journal.migration("001_a", 1))

    with pytest.raises(ValidationError):
        manager.register(journal.migration("001_a", 1))


def test_migration_cannot_depend_on_itself():
    with pytest.raises(ValueError):
        Journal().migration("001_a", 1, dependencies=["001_a"])


@pytest.mark.asyncio
async def test_migrate_applies_pending_in_version_order():
    journal = Journal()
    store = InMemoryStore()
    manager = MigrationManager(store)
    manager.register(journal.migration("002_b", 2, dependencies=["001_a"]))
    manager.register(journal.migration("001_a", 1))

    result = await manager.migrate()

    assert result.applied == 2
    assert result.applied_ids == ["001_a", "002_b"]
    assert journal.calls == [("up", "001_a"), ("up", "002_b")]
    assert [record.id for record in store.records] == ["001_a", "002_b"]
    assert await manager.get_pending_migrations() == []


@pytest.mark.asyncio
async def test_migrate_is_idempotent():
    journal = Journal()
    manager = MigrationManager(InMemoryStore())
    manager.register(journal.migration("001_a", 1))

    await manager.migrate()
    second = await manager.migrate()

    assert second.applied == 0
    assert journal.calls == [("up", "001_a")]


@pytest.mark.asyncio
async def test_migrate_stops_at_first_failure_and_keeps_earlier_work():
    journal = Journal()
    store = InMemoryStore()
    manager = MigrationManager(store)
    manager.register(journal.migration("001_a", 1))
    manager.register(journal.migration("002_b", 2, fail_up=True))
    manager.register(journal.migration("003_c", 3))

    result = await manager.migrate()

    assert result.applied_ids == ["001_a"]
    assert result.errors == ["Migration 002_b: 002_b up exploded"]
    assert [record.id for record in store.records] == ["001_a"]


@pytest.mark.asyncio
async def test_unsatisfied_dependency_blocks_the_run():
    journal = Journal()
    manager = MigrationManager(InMemoryStore())
    manager.register(journal.migration("002_b", 2, dependencies=["001_missing"]))

    result = await manager.migrate()

    assert result.applied == 0
    assert "unsatisfied dependencies: 001_missing" in result.errors[0]
    assert journal.calls == []


@pytest.mark.asyncio
async def test_rollback_reverses_newest_first():
    journal = Journal()
    a, b, c = (journal.migration(f"00{v}_{n}", v) for v, n in ((1, "a"), (2, "b"), (3, "c")))
    store = InMemoryStore([applied_record(a), applied_record(b), applied_record(c)])
    manager = MigrationManager(store)
    for migration in (a, b, c):
        manager.register(migration)

    result = await manager.rollback(steps=2)

    assert result.rolled_back_ids == ["003_c", "002_b"]
    assert journal.calls == [("down", "003_c"), ("down", "002_b")]
    assert [record.id for record in store.records] == ["001_a"]


@pytest.mark.asyncio
async def test_rollback_stops_at_failing_down_and_skips_unknown_records():
    journal = Journal()
    a = journal.migration("001_a", 1)
    b = journal.migration("002_b", 2, fail_down=True)
    ghost = journal.migration("003_ghost", 3)
    store = InMemoryStore([applied_record(a), applied_record(b), applied_record(ghost)])
    manager = MigrationManager(store)
    manager.register(a)
    manager.register(b)

    result = await manager.rollback(steps=3)

    assert result.rolled_back == 0
    assert result.errors == [
        "Migration 003_ghost not found in registered migrations",
        "Migration 002_b: 002_b down exploded",
    ]
    assert len(store.records) == 3


@pytest.mark.asyncio
async def test_rollback_requires_positive_steps():
    with pytest.raises(ValidationError):
        await MigrationManager(InMemoryStore()).rollback(steps=0)


@pytest.mark.asyncio
async def test_validate_detects_checksum_drift_and_unknown_records():
    journal = Journal()
    a = journal.migration("001_a", 1)
    drifted = applied_record(journal.migration("002_b", 2)).model_copy(update={"checksum": "0" * 64})
    unknown = applied_record(journal.migration("009_gone", 9))
    manager = MigrationManager(InMemoryStore([applied_record(a), drifted, unknown]))
    manager.register(a)
    manager.register(journal.migration("002_b", 2))

    result = await manager.validate()

    assert result.valid is False
    assert result.errors == [
        "Migration 002_b checksum mismatch",
        "Applied migration 009_gone not found in registered migrations",
    ]


@pytest.mark.asyncio
async def test_status_reports_applied_pending_and_missing():
    journal = Journal()
    a = journal.migration("001_a", 1)
    manager = MigrationManager(InMemoryStore([applied_record(a), applied_record(journal.migration("000_old", 0))]))
    manager.register(a)
    manager.register(journal.migration("002_b", 2))

    report = await manager.status()

    assert (report.total, report.applied, report.pending) == (2, 2, 1)
    assert [(entry.id, entry.status) for entry in report.migrations] == [
        ("000_old", "missing"),
        ("001_a", "applied"),
        ("002_b", "pending"),
    ]


# =============================================================================
# Supabase-backed store and built-in migrations
# =============================================================================

@pytest.mark.asyncio
async def test_store_uses_rpc_to_ensure_table():
    client = FakeSupabaseClient()

    await SupabaseMigrationStore(client).ensure_table()

    assert client.calls == [("rpc", "create_migrations_table_if_not_exists")]


@pytest.mark.asyncio
async def test_store_falls_back_to_exec_sql_when_table_is_missing():
    client = FakeSupabaseClient()
    client.fail("rpc", "create_migrations_table_if_not_exists", code="PGRST202")
    client.fail("schema_migrations", "select", code="42P01")

    await SupabaseMigrationStore(client).ensure_table()

    assert client.calls == [
        ("rpc", "create_migrations_table_if_not_exists"),
        ("schema_migrations", "select"),
        ("rpc", "exec_sql"),
    ]


@pytest.mark.asyncio
async def test_store_does_not_create_table_on_other_lookup_errors():
    client = FakeSupabaseClient()
    client.fail("rpc", "create_migrations_table_if_not_exists")
    client.fail("schema_migrations", "select", code="42501")

    await SupabaseMigrationStore(client).ensure_table()

    assert ("rpc", "exec_sql") not in client.calls


@pytest.mark.asyncio
async def test_builtin_migrations_apply_against_store():
    client = FakeSupabaseClient()
    manager = MigrationManager(SupabaseMigrationStore(client))
    register_builtin_migrations(manager, client)

    result = await manager.migrate()
    report = await manager.status()
    validation = await manager.validate()

    assert result.applied_ids == ["001_initial_schema", "002_plant_details_tables"]
    assert [row["id"] for row in client.tables["schema_migrations"]] == result.applied_ids
    assert report.pending == 0
    assert validation.valid is True


@pytest.mark.asyncio
async def test_builtin_migration_fails_when_a_table_is_missing():
    client = FakeSupabaseClient()
    client.fail("plant_media", "select", code="42P01", message='relation "plant_media" does not exist')
    manager = MigrationManager(SupabaseMigrationStore(client))
    register_builtin_migrations(manager, client)

    result = await manager.migrate()

    assert result.applied_ids == ["001_initial_schema"]
    assert result.errors == [
        'Add plant details tables: Required table plant_media is not available: relation "plant_media" does not exist'
    ]


def test_builtin_migrations_declare_dependencies():
    first, second = builtin_migrations(FakeSupabaseClient())

    assert (first.id, first.version) == ("001_initial_schema", 1)
    assert second.dependencies == ("001_initial_schema",)
