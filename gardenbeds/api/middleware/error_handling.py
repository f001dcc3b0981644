# 📄 File: gardenbeds/api/middleware/error_handling.py
# 🧭 Purpose (Layman Explanation):
# Catches any problem that happens while answering a request and turns it into a clear,
# consistent error message, and stamps every answer with a tracking number and a timer.
# 🧪 Purpose (Technical Summary):
# Request correlation and error translation: assigns X-Request-ID, binds it to the logging
# context, measures X-Response-Time, and converts GardenException subclasses (and unexpected
# exceptions) into JSON error bodies using their status codes.
# 🔗 Dependencies:
# FastAPI, starlette BaseHTTPMiddleware, gardenbeds.shared.core.exceptions, uuid
# 🔄 Connected Modules / Calls From:
# gardenbeds.main (middleware and exception handler registration)

import time
import traceback
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from gardenbeds.shared.config.settings import Settings
from gardenbeds.shared.core.exceptions import GardenException
from gardenbeds.shared.utils.logging import get_logger, log_context

logger = get_logger(__name__)


def build_error_response(
    request: Request,
    status_code: int,
    error_code: str,
    message: str,
    details: Dict[str, Any]
) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    response = JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": error_code,
                "message": message,
                "details": details,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "request_id": request_id,
                "path": str(request.url.path),
                "method": request.method,
            }
        },
    )
    response.headers["X-Error-Code"] = error_code
    return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware for the garden API.

    Every response carries ``X-Request-ID`` and ``X-Response-Time``.
    Exceptions that escape the routers become JSON error responses.
    """

    def __init__(self, app: ASGIApp, settings: Settings):
        super().__init__(app)
        self.settings = settings

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        start = time.perf_counter()

        with log_context(request_id=request_id):
            try:
                response = await call_next(request)
            except Exception as exc:
                response = self._handle_exception(request, exc)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{(time.perf_counter() - start) * 1000:.1f}ms"
        return response

    def _handle_exception(self, request: Request, exc: Exception) -> JSONResponse:
        status_code, error_code, message, details = self._get_error_info(exc)

        log_extra = {
            "method": request.method,
            "path": str(request.url.path),
            "status_code": status_code,
            "exception_type": type(exc).__name__,
        }
        if status_code >= 500:
            logger.error(f"Server error in {request.method} {request.url.path}: {exc}", extra=log_extra, exc_info=True)
        else:
            logger.warning(f"Client error in {request.method} {request.url.path}: {exc}", extra=log_extra)

        if self.settings.DEBUG and not self.settings.is_production:
            details = {
                **details,
                "debug": {
                    "exception_type": type(exc).__name__,
                    "traceback": traceback.format_exc().split("\n"),
                },
            }

        return build_error_response(request, status_code, error_code, message, details)

    @staticmethod
    def _get_error_info(exc: Exception) -> Tuple[int, str, str, Dict[str, Any]]:
        if isinstance(exc, GardenException):
            return exc.status_code, exc.error_code, exc.message, exc.details or {}
        if isinstance(exc, TimeoutError):
            return 504, "TIMEOUT", "Request timeout", {}
        return 500, "INTERNAL_SERVER_ERROR", "An internal server error occurred", {}


def register_exception_handlers(app: FastAPI) -> None:
    """Map GardenException subclasses raised in routes to JSON responses."""

    @app.exception_handler(GardenException)
    async def garden_exception_handler(request: Request, exc: GardenException) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{exc.error_code}: {exc.message}", extra={'path': str(request.url.path)})
        return build_error_response(request, exc.status_code, exc.error_code, exc.message, exc.details or {})
