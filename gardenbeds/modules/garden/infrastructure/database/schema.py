# 📄 File: gardenbeds/modules/garden/infrastructure/database/schema.py
# 🧭 Purpose (Layman Explanation):
# Lists the database changes the garden app ships with, so a fresh install can check that
# every table it needs is in place.
#
# 🧪 Purpose (Technical Summary):
# Built-in migrations for the garden schema. The DDL itself lives in the Supabase SQL files;
# each ``up`` verifies that its tables are reachable through PostgREST and fails the run if
# one is missing. ``down`` only logs, since dropping tables is done through SQL by hand.
#
# 🔗 Dependencies:
# - gardenbeds.shared.infrastructure.database.migrations
#
# 🔄 Connected Modules / Calls From:
# - gardenbeds.modules.garden.application.backend_service (registration at startup)

from typing import Awaitable, Callable, List, Sequence

from gardenbeds.shared.infrastructure.database.migrations import Migration, MigrationManager
from gardenbeds.shared.infrastructure.database.supabase_query import execute_query
from gardenbeds.shared.utils.logging import get_logger

logger = get_logger(__name__)

INITIAL_TABLES = ("beds", "bed_images", "pins", "pin_media")
PLANT_DETAILS_TABLES = ("plant_details", "plant_instances", "care_events", "plant_media", "plant_search_cache")


def _verify_tables(client, tables: Sequence[str]) -> Callable[[], Awaitable[None]]:
    async def up() -> None:
        for table in tables:
            await execute_query(
                client.table(table).select("*").limit(1),
                operation="schema.verify",
                table=table,
                error_message=f"Required table {table} is not available",
            )
        logger.debug(f"Verified tables: {', '.join(tables)}")

    return up


def _manual_rollback(migration_id: str) -> Callable[[], Awaitable[None]]:
    async def down() -> None:
        logger.warning(f"Rollback of {migration_id} recorded; drop its tables through SQL if required")

    return down


def builtin_migrations(client) -> List[Migration]:
    return [
        Migration(
            id="001_initial_schema",
            name="Initial schema setup",
            version=1,
            up=_verify_tables(client, INITIAL_TABLES),
            down=_manual_rollback("001_initial_schema"),
        ),
        Migration(
            id="002_plant_details_tables",
            name="Add plant details tables",
            version=2,
            dependencies=("001_initial_schema",),
            up=_verify_tables(client, PLANT_DETAILS_TABLES),
            down=_manual_rollback("002_plant_details_tables"),
        ),
    ]


def register_builtin_migrations(manager: MigrationManager, client) -> None:
    for migration in builtin_migrations(client):
        manager.register(migration)
