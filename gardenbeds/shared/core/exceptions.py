# 📄 File: gardenbeds/shared/core/exceptions.py
# 🧭 Purpose (Layman Explanation):
# This file defines the error types the garden app uses to say clearly what went wrong
# (the database refused a query, the plant lookup service timed out, a migration failed).
# 🧪 Purpose (Technical Summary):
# Custom exception hierarchy providing typed, inspectable errors with HTTP status codes,
# error codes and details for serialization in API responses.
# 🔗 Dependencies:
# FastAPI status constants, typing
# 🔄 Connected Modules / Calls From:
# Repositories, request executor, migration registry, error handling middleware

from typing import Any, Dict, Optional

from fastapi import status


class GardenException(Exception):
    """
    Base exception class for the garden backend.
    All custom exceptions inherit from this class.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.error_code = error_code or self.__class__.__name__.upper()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format."""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
                "status_code": self.status_code
            }
        }


# =============================================================================
# VALIDATION & CONFIGURATION EXCEPTIONS
# =============================================================================

class ValidationError(GardenException):
    """
    Exception raised for data validation failures.
    Used when input data doesn't meet validation requirements.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        value: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}

        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)

        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
            error_code="VALIDATION_ERROR"
        )


class NotFoundError(GardenException):
    """
    Exception raised when a requested resource is not found.
    Single-entity lookups return None instead; this is raised by the HTTP layer.
    """

    def __init__(
        self,
        message: str = "Resource not found",
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
    ):
        details = {}
        if resource_type:
            details["resource_type"] = resource_type
        if resource_id:
            details["resource_id"] = resource_id

        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details=details,
            error_code="NOT_FOUND"
        )


class ConfigurationError(GardenException):
    """Exception raised when required configuration is missing or invalid."""

    def __init__(self, message: str = "Invalid configuration", setting: Optional[str] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"setting": setting} if setting else {},
            error_code="CONFIGURATION_ERROR"
        )


# =============================================================================
# STORE EXCEPTIONS
# =============================================================================

class DatabaseError(GardenException):
    """
    Exception raised for backend store failures.
    Carries the underlying PostgREST/Postgres error code when one is available.
    """

    def __init__(
        self,
        message: str = "Database error",
        code: Optional[str] = None,
        table: Optional[str] = None,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}

        if code:
            details["code"] = code
        if table:
            details["table"] = table
        if operation:
            details["operation"] = operation

        self.code = code
        super().__init__(
            message=message,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=details,
            error_code="DATABASE_ERROR"
        )


class StorageError(GardenException):
    """Exception raised for object storage (photo bucket) failures."""

    def __init__(
        self,
        message: str = "Storage operation failed",
        bucket: Optional[str] = None,
        path: Optional[str] = None,
    ):
        details = {}
        if bucket:
            details["bucket"] = bucket
        if path:
            details["path"] = path

        super().__init__(
            message=message,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=details,
            error_code="STORAGE_ERROR"
        )


class MigrationError(GardenException):
    """Exception raised when a schema migration cannot be applied or rolled back."""

    def __init__(self, message: str, migration_id: Optional[str] = None):
        self.migration_id = migration_id
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"migration_id": migration_id} if migration_id else {},
            error_code="MIGRATION_ERROR"
        )


# =============================================================================
# EXTERNAL API EXCEPTIONS
# =============================================================================

class ExternalAPIError(GardenException):
    """
    Exception raised for external API failures.
    ``upstream_status`` holds the HTTP status returned by the remote host, if any.
    """

    def __init__(
        self,
        message: str = "External API error",
        api_name: Optional[str] = None,
        upstream_status: Optional[int] = None,
        url: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}

        if api_name:
            details["api_name"] = api_name
        if upstream_status:
            details["upstream_status"] = upstream_status
        if url:
            details["url"] = url

        self.upstream_status = upstream_status
        super().__init__(
            message=message,
            status_code=status.HTTP_502_BAD_GATEWAY,
            details=details,
            error_code="EXTERNAL_API_ERROR"
        )


class APITimeoutError(ExternalAPIError):
    """Exception raised when an external API call times out. Never retried."""

    def __init__(self, url: str, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(
            message=f"Request timeout after {int(timeout_seconds * 1000)}ms",
            url=url,
            details={"timeout_seconds": timeout_seconds}
        )
        self.status_code = status.HTTP_504_GATEWAY_TIMEOUT
        self.error_code = "API_TIMEOUT"


class APIAuthenticationError(ExternalAPIError):
    """Exception raised when an external API rejects our credentials."""

    def __init__(self, url: str, upstream_status: int):
        super().__init__(
            message=f"Authentication failed for {url}",
            url=url,
            upstream_status=upstream_status
        )
        self.error_code = "API_AUTHENTICATION_ERROR"


class APIQuotaExceededError(ExternalAPIError):
    """Exception raised when an external API reports quota or rate exhaustion."""

    def __init__(self, url: str, upstream_status: int, retry_after: Optional[str] = None):
        super().__init__(
            message=f"Rate limit or quota exceeded for {url}",
            url=url,
            upstream_status=upstream_status,
            details={"retry_after": retry_after} if retry_after else None
        )
        self.error_code = "API_QUOTA_EXCEEDED"
