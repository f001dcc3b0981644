# 📄 File: gardenbeds/shared/infrastructure/database/supabase_query.py
#
# 🧭 Purpose (Layman Explanation):
# Sends a prepared question to the Supabase database without freezing the rest of the app,
# times how long it took, and turns any database complaint into one clear error type.
#
# 🧪 Purpose (Technical Summary):
# Executes synchronous supabase-py / postgrest query builders on a worker thread,
# records per-operation timings and maps postgrest APIError into DatabaseError with the
# PostgREST/Postgres error code preserved.
#
# 🔗 Dependencies:
# - postgrest.exceptions.APIError (Supabase table errors)
# - gardenbeds.shared.utils.logging.QueryPerformanceTracker
#
# 🔄 Connected Modules / Calls From:
# - gardenbeds.modules.garden.infrastructure.database.base_repository
# - gardenbeds.shared.infrastructure.database.migrations (SupabaseMigrationStore)

import asyncio
from typing import Any, Optional

import httpx
from postgrest.exceptions import APIError

from gardenbeds.shared.core.exceptions import DatabaseError
from gardenbeds.shared.utils.logging import QueryPerformanceTracker, get_logger

logger = get_logger(__name__)

# PostgREST: "JSON object requested, multiple (or no) rows returned"
NO_ROWS_CODE = "PGRST116"
# Postgres: undefined_table
UNDEFINED_TABLE_CODE = "42P01"


def to_database_error(error: APIError, message: str, table: Optional[str] = None,
                      operation: Optional[str] = None) -> DatabaseError:
    """Translate a postgrest APIError into DatabaseError."""
    details = {}
    if getattr(error, "details", None):
        details["upstream_details"] = error.details
    if getattr(error, "hint", None):
        details["hint"] = error.hint

    return DatabaseError(
        message=f"{message}: {error.message}" if getattr(error, "message", None) else message,
        code=getattr(error, "code", None),
        table=table,
        operation=operation,
        details=details,
    )


async def execute_query(
    query: Any,
    *,
    operation: str,
    table: Optional[str] = None,
    tracker: Optional[QueryPerformanceTracker] = None,
    error_message: Optional[str] = None
) -> Any:
    """
    Run ``query.execute()`` off the event loop.

    Args:
        query: A supabase-py request builder (table query, RPC or count)
        operation: Name used for timing statistics, e.g. ``pins.get_by_section``
        table: Table name reported in errors
        tracker: Optional performance tracker
        error_message: Message prefix for DatabaseError

    Returns:
        The postgrest APIResponse (``.data``, ``.count``)

    Raises:
        DatabaseError: When the store rejects the query
    """
    stop_timer = tracker.start_timer(operation) if tracker else None
    try:
        return await asyncio.to_thread(query.execute)
    except APIError as e:
        logger.error(
            f"Database query failed: {operation}",
            extra={'operation': operation, 'table': table, 'code': getattr(e, 'code', None)}
        )
        raise to_database_error(e, error_message or f"Failed to {operation}", table, operation) from e
    except httpx.HTTPError as e:
        logger.error(
            f"Database unreachable: {operation}",
            extra={'operation': operation, 'table': table, 'error': str(e)}
        )
        raise DatabaseError(
            message=f"{error_message or f'Failed to {operation}'}: {e}",
            code="NETWORK_ERROR",
            table=table,
            operation=operation,
        ) from e
    finally:
        if stop_timer:
            stop_timer()
