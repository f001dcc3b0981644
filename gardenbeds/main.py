# 📄 File: gardenbeds/main.py
#
# 🧭 Purpose (Layman Explanation):
# The main switch that starts the garden service: it reads the settings, connects to the
# database, turns on the memory caches and opens the web endpoints.
#
# 🧪 Purpose (Technical Summary):
# FastAPI application factory and entry point. The lifespan builds and starts the
# BackendService from Settings and the Supabase client, stores it on app.state, and closes
# it on shutdown. Registers error handling, CORS, GZip and the v1 routers.
#
# 🔗 Dependencies:
# - FastAPI framework, uvicorn
# - gardenbeds.shared.config (settings, supabase)
# - gardenbeds.modules.garden.application.backend_service
# - gardenbeds.api (middleware, v1 router)
#
# 🔄 Connected Modules / Calls From:
# - uvicorn server startup (`gardenbeds` console script)
# - tests (create_application with an injected backend)

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from gardenbeds.api.middleware.error_handling import ErrorHandlingMiddleware, register_exception_handlers
from gardenbeds.api.v1.router import api_v1_router
from gardenbeds.modules.garden.application.backend_service import BackendService
from gardenbeds.shared.config.settings import Settings, get_settings
from gardenbeds.shared.config.supabase import get_supabase_manager
from gardenbeds.shared.utils.logging import get_logger, log_shutdown_event, log_startup_event, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Builds the backend unless one was injected into ``app.state`` already,
    then starts it. Shutdown closes caches and outbound sessions.
    """
    settings: Settings = app.state.settings
    log_startup_event(settings.APP_NAME, settings.APP_VERSION, extra={'environment': settings.ENVIRONMENT})

    backend: Optional[BackendService] = getattr(app.state, "backend", None)
    if backend is None:
        backend = BackendService.create(settings, get_supabase_manager().client)
        app.state.backend = backend

    try:
        await backend.start()
        logger.info("✅ Garden backend startup complete")
    except Exception as e:
        logger.error(f"❌ Startup failed: {e}", exc_info=True)
        raise

    try:
        yield
    finally:
        try:
            await backend.close()
        except Exception as e:
            logger.error(f"❌ Shutdown error: {e}", exc_info=True)
        log_shutdown_event(settings.APP_NAME)


def create_application(
    settings: Optional[Settings] = None,
    backend: Optional[BackendService] = None
) -> FastAPI:
    """
    Application factory function.

    Args:
        settings: Settings to use; defaults to the cached environment settings
        backend: Prebuilt backend; when omitted the lifespan builds one

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    settings = settings or get_settings()
    setup_logging(
        log_level=settings.LOG_LEVEL,
        log_format=settings.LOG_FORMAT,
        log_file=settings.LOG_FILE,
    )

    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESCRIPTION,
        version=settings.APP_VERSION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan,
        debug=settings.DEBUG,
    )
    app.state.settings = settings
    if backend is not None:
        app.state.backend = backend

    # =========================================================================
    # MIDDLEWARE CONFIGURATION
    # =========================================================================

    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Response-Time"],
    )
    # Added last so it wraps everything else
    app.add_middleware(ErrorHandlingMiddleware, settings=settings)

    register_exception_handlers(app)

    # =========================================================================
    # ROUTER REGISTRATION
    # =========================================================================

    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/", include_in_schema=False)
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "description": settings.APP_DESCRIPTION,
            "docs_url": "/docs" if settings.DEBUG else None,
            "health_check": "/api/v1/health",
            "api_base": "/api/v1",
        }

    @app.get("/favicon.ico", include_in_schema=False)
    async def favicon():
        return Response(status_code=204)

    return app


def main():
    """Run the development server."""
    settings = get_settings()
    uvicorn.run(
        "gardenbeds.main:create_application",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG and settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
