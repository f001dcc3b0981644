# 📄 File: gardenbeds/modules/garden/presentation/api/v1/system.py
# 🧭 Purpose (Layman Explanation):
# Maintenance endpoints for whoever runs the garden service: see memory and speed statistics,
# wipe remembered answers, upgrade or roll back the database, and tidy up leftover records.
# 🧪 Purpose (Technical Summary):
# Operational router over BackendService: cache stats/clear, performance and system stats,
# feature config, orphan cleanup, and migration status/run/rollback/validate.
# 🔗 Dependencies:
# FastAPI, gardenbeds.api.dependencies, gardenbeds.shared.infrastructure.database.migrations
# 🔄 Connected Modules / Calls From:
# gardenbeds.api.v1.router

from typing import Any, Dict, Literal

from fastapi import APIRouter, Depends, Query

from gardenbeds.api.dependencies import get_backend_service
from gardenbeds.modules.garden.application.backend_service import BackendService
from gardenbeds.shared.infrastructure.database.migrations import (
    MigrationRunResult,
    MigrationStatusReport,
    MigrationValidationResult,
    RollbackResult,
)
from gardenbeds.shared.utils.logging import get_logger

logger = get_logger(__name__)

system_router = APIRouter()


@system_router.get("/cache/stats", summary="Cache statistics")
async def get_cache_stats(backend: BackendService = Depends(get_backend_service)) -> Dict[str, Any]:
    return await backend.get_cache_stats()


@system_router.post("/cache/clear", summary="Clear caches")
async def clear_cache(
    target: Literal["all", "database", "api"] = Query("all"),
    backend: BackendService = Depends(get_backend_service)
) -> Dict[str, Any]:
    if target == "database":
        backend.clear_database_cache()
    elif target == "api":
        backend.clear_api_cache()
    else:
        backend.clear_all_caches()
    logger.info(f"Cache clear requested: {target}")
    return {"cleared": target}


@system_router.get("/stats", summary="System statistics")
async def get_system_stats(backend: BackendService = Depends(get_backend_service)) -> Dict[str, Any]:
    return await backend.get_system_stats()


@system_router.get("/performance", summary="Query timing statistics")
async def get_performance_stats(backend: BackendService = Depends(get_backend_service)) -> Dict[str, Any]:
    return backend.get_performance_stats()


@system_router.get("/config", summary="Enabled features")
async def get_config(backend: BackendService = Depends(get_backend_service)) -> Dict[str, bool]:
    return backend.get_config()


@system_router.post("/cleanup", summary="Delete orphaned records")
async def cleanup_database(backend: BackendService = Depends(get_backend_service)) -> Dict[str, Any]:
    return await backend.cleanup_database()


@system_router.get("/migrations", response_model=MigrationStatusReport, summary="Migration status")
async def get_migration_status(backend: BackendService = Depends(get_backend_service)) -> MigrationStatusReport:
    return await backend.get_migration_status()


@system_router.post("/migrations/run", response_model=MigrationRunResult, summary="Apply pending migrations")
async def run_migrations(backend: BackendService = Depends(get_backend_service)) -> MigrationRunResult:
    return await backend.run_migrations()


@system_router.post("/migrations/rollback", response_model=RollbackResult, summary="Roll back migrations")
async def rollback_migrations(
    steps: int = Query(1, ge=1),
    backend: BackendService = Depends(get_backend_service)
) -> RollbackResult:
    return await backend.rollback_migrations(steps)


@system_router.get("/migrations/validate", response_model=MigrationValidationResult,
                   summary="Validate applied migrations")
async def validate_migrations(backend: BackendService = Depends(get_backend_service)) -> MigrationValidationResult:
    return await backend.validate_migrations()
