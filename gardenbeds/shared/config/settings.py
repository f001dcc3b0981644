# 📄 File: gardenbeds/shared/config/settings.py
#
# 🧭 Purpose (Layman Explanation):
# The configuration center that reads the garden app's settings (where the database lives,
# which plant lookup token to use, how long to remember answers) from environment variables.
#
# 🧪 Purpose (Technical Summary):
# Pydantic-based settings management with environment variable loading, validation,
# and documented defaults for caching, rate limiting, request execution and storage.
#
# 🔗 Dependencies:
# - pydantic-settings for configuration management
# - pydantic field validators
#
# 🔄 Connected Modules / Calls From:
# - gardenbeds.main (application startup)
# - gardenbeds.shared.config.supabase (store client)
# - gardenbeds.modules.garden.application.backend_service (composition root)

from functools import lru_cache
from typing import Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Store credentials are required: constructing Settings without
    SUPABASE_URL / SUPABASE_ANON_KEY raises a pydantic ValidationError,
    which makes a misconfigured deployment fail at load time.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # =========================================================================
    # APPLICATION SETTINGS
    # =========================================================================

    APP_NAME: str = Field(default="Garden Beds API", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    APP_DESCRIPTION: str = Field(
        default="Garden bed, pin and plant management backend",
        description="Application description"
    )
    ENVIRONMENT: str = Field(default="development", description="Runtime environment")
    DEBUG: bool = Field(default=True, description="Debug mode flag")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: str = Field(default="json", description="Log format (json or text)")
    LOG_FILE: Optional[str] = Field(None, description="Optional log file path")

    HOST: str = Field(default="0.0.0.0", description="Server host")
    PORT: int = Field(default=8000, description="Server port")

    CORS_ORIGINS: str = Field(
        default="http://localhost:5173,http://localhost:3000",
        description="CORS allowed origins"
    )

    # =========================================================================
    # SUPABASE (BACKEND STORE)
    # =========================================================================

    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_ANON_KEY: str = Field(..., description="Supabase anonymous key")
    SUPABASE_CLIENT_INFO: str = Field(
        default="gardenbeds-api",
        description="Value sent in the X-Client-Info header"
    )
    SUPABASE_POSTGREST_TIMEOUT: int = Field(default=10, description="PostgREST client timeout")
    SUPABASE_STORAGE_TIMEOUT: int = Field(default=30, description="Storage client timeout")

    BED_IMAGES_BUCKET: str = Field(default="plant-images", description="Bed and pin photo bucket")
    PLANT_MEDIA_BUCKET: str = Field(default="plant-media", description="Plant gallery bucket")

    # Store retry policy used for batch members
    STORE_RETRY_ATTEMPTS: int = Field(default=3, description="Store operation attempts")
    STORE_RETRY_MAX_DELAY: float = Field(default=5.0, description="Store retry delay cap (s)")
    SLOW_QUERY_THRESHOLD_MS: float = Field(default=1000.0, description="Slow query warning threshold")

    # =========================================================================
    # CACHE SETTINGS
    # =========================================================================

    CACHE_DATABASE_TTL: int = Field(default=300, description="Database read cache TTL (seconds)")
    CACHE_API_TTL: int = Field(default=600, description="API response cache TTL (seconds)")
    CACHE_SEARCH_TTL: int = Field(default=1800, description="Search result cache TTL (seconds)")
    CACHE_IMAGES_TTL: int = Field(default=3600, description="Image URL cache TTL (seconds)")
    CACHE_MAX_SIZE: int = Field(default=1000, description="Maximum entries per cache")
    CACHE_SWEEP_INTERVAL: int = Field(default=60, description="Expired entry sweep interval (seconds)")

    # =========================================================================
    # OUTBOUND REQUESTS & RATE LIMITING
    # =========================================================================

    REQUEST_TIMEOUT: float = Field(default=30.0, description="Outbound request timeout (seconds)")
    REQUEST_RETRIES: int = Field(default=3, description="Outbound request attempts")
    RATE_LIMIT_REQUESTS: int = Field(default=100, description="Requests allowed per window per host")
    RATE_LIMIT_WINDOW: float = Field(default=60.0, description="Rate limit window (seconds)")
    USER_AGENT: str = Field(default="GardenBeds/1.0", description="Outbound User-Agent header")
    SLOW_RESPONSE_THRESHOLD_MS: int = Field(default=5000, description="Slow upstream response threshold")

    # =========================================================================
    # PLANT LOOKUP API (TREFLE)
    # =========================================================================

    TREFLE_API_TOKEN: Optional[str] = Field(None, description="Trefle API token")
    TREFLE_API_URL: str = Field(default="https://trefle.io/api/v1", description="Trefle API URL")
    PLANT_SEARCH_CACHE_TTL: int = Field(default=1800, description="Plant search cache TTL (seconds)")
    PLANT_DETAILS_CACHE_TTL: int = Field(default=3600, description="Plant details cache TTL (seconds)")
    PLANT_SEARCH_LIMIT: int = Field(default=5, description="Results returned per plant search")

    # =========================================================================
    # VALIDATORS
    # =========================================================================

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed_environments = ["development", "staging", "production", "test"]
        if v.lower() not in allowed_environments:
            raise ValueError(f"Environment must be one of {allowed_environments}")
        return v.lower()

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level value."""
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed_levels:
            raise ValueError(f"Log level must be one of {allowed_levels}")
        return v.upper()

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        if v.lower() not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v.lower()

    @field_validator("SUPABASE_URL")
    @classmethod
    def validate_supabase_url(cls, v: str) -> str:
        """Validate Supabase URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid Supabase URL: {v}")
        return v.rstrip("/")

    @field_validator("CORS_ORIGINS")
    @classmethod
    def validate_cors_origins(cls, v: str) -> str:
        """Validate CORS origins format."""
        origins = [origin.strip() for origin in v.split(",")]
        for origin in origins:
            if not origin.startswith(("http://", "https://", "*")):
                raise ValueError(f"Invalid CORS origin format: {origin}")
        return v

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def has_plant_api(self) -> bool:
        """Whether a Trefle token is configured."""
        return bool(self.TREFLE_API_TOKEN)

    def get_cache_ttls(self) -> Dict[str, int]:
        """TTL (seconds) for each named cache."""
        return {
            "database": self.CACHE_DATABASE_TTL,
            "api": self.CACHE_API_TTL,
            "search": self.CACHE_SEARCH_TTL,
            "images": self.CACHE_IMAGES_TTL,
        }


# ============================================================================
# SETTINGS FACTORY
# ============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Uses lru_cache so settings are loaded once per process. Tests call
    ``get_settings.cache_clear()`` after changing the environment.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
