# 📄 File: gardenbeds/api/v1/health.py
# 🧭 Purpose (Layman Explanation):
# Checkup endpoints that say whether the garden service is alive and whether its database,
# outside plant lookups and memory caches are working.
# 🧪 Purpose (Technical Summary):
# Basic liveness endpoint plus a detailed report combining BackendService.health_check()
# with process resource figures from psutil.
# 🔗 Dependencies:
# FastAPI, psutil, gardenbeds.api.dependencies
# 🔄 Connected Modules / Calls From:
# gardenbeds.api.v1.router, load balancers, monitoring

import platform
from datetime import datetime, timezone
from typing import Any, Dict

import psutil
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from gardenbeds.api.dependencies import get_backend_service
from gardenbeds.modules.garden.application.backend_service import BackendService
from gardenbeds.shared.config.settings import get_settings
from gardenbeds.shared.utils.logging import get_logger

logger = get_logger(__name__)

health_router = APIRouter()

_app_start_time = datetime.now(timezone.utc)


@health_router.get("/health",
                   summary="Basic Health Check",
                   description="Basic health check endpoint for load balancers and monitoring")
async def health_check() -> JSONResponse:
    """Return a simple OK status without touching the store."""
    settings = get_settings()
    return JSONResponse(
        status_code=200,
        content={
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
        }
    )


@health_router.get("/health/detailed",
                   summary="Detailed Health Check",
                   description="Database, outbound API quota and cache health plus system resources")
async def detailed_health_check(backend: BackendService = Depends(get_backend_service)) -> JSONResponse:
    """
    Detailed health check.

    Responds 503 when any backend component failed its check.
    """
    components = await backend.health_check()
    healthy = components.get("overall", False)

    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": get_settings().APP_VERSION,
            "components": components,
            "system": _get_system_resources(),
        }
    )


def _get_system_resources() -> Dict[str, Any]:
    try:
        memory = psutil.virtual_memory()
        disk = psutil.disk_usage('/')
        return {
            "cpu_count": psutil.cpu_count(),
            "memory_percent": memory.percent,
            "disk_percent": round((disk.used / disk.total) * 100, 1),
            "python_version": platform.python_version(),
            "uptime_seconds": (datetime.now(timezone.utc) - _app_start_time).total_seconds(),
        }
    except (OSError, psutil.Error) as e:
        logger.warning(f"System resource check failed: {e}")
        return {"error": str(e)}
