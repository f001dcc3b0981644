# 📄 File: gardenbeds/shared/config/supabase.py

# 🧭 Purpose (Layman Explanation):
# Opens the connection to the online database and photo storage where the garden is kept.

# 🧪 Purpose (Technical Summary):
# Lazily builds one Supabase client from Settings (anon key, postgrest and storage
# timeouts) and shares it through a cached SupabaseManager.

# 🔗 Dependencies:
# - supabase: Client and ClientOptions
# - Settings: URL, keys and timeouts

# 🔄 Connected Modules / Calls From:
# Used by: main.py (application lifespan builds BackendService from the client)

import logging
from functools import lru_cache
from typing import Optional

from supabase import Client, create_client
from supabase.lib.client_options import ClientOptions

from gardenbeds.shared.core.exceptions import ConfigurationError
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)


class SupabaseManager:
    """
    Supabase client manager.
    Provides the client used by repositories, storage buckets and the migration store.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._client: Optional[Client] = None
        self.settings = settings or get_settings()

    @property
    def client(self) -> Client:
        """Get or create Supabase client with lazy initialization."""
        if self._client is None:
            self._client = self._create_client()
        return self._client

    def _create_client(self) -> Client:
        """Create Supabase client with proper configuration."""
        try:
            client_options = ClientOptions(
                schema="public",
                headers={
                    "X-Client-Info": self.settings.SUPABASE_CLIENT_INFO,
                },
                auto_refresh_token=True,
                persist_session=True,
                postgrest_client_timeout=self.settings.SUPABASE_POSTGREST_TIMEOUT,
                storage_client_timeout=self.settings.SUPABASE_STORAGE_TIMEOUT,
            )

            client = create_client(
                supabase_url=self.settings.SUPABASE_URL,
                supabase_key=self.settings.SUPABASE_ANON_KEY,
                options=client_options
            )

            logger.info("Supabase client initialized successfully")
            return client

        except Exception as e:
            logger.error(f"Failed to initialize Supabase client: {e}")
            raise ConfigurationError(f"Supabase initialization failed: {e}") from e


@lru_cache()
def get_supabase_manager() -> SupabaseManager:
    """Process-wide Supabase manager used by the application factory."""
    return SupabaseManager()
