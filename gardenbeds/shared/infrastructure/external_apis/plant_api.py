# 📄 File: gardenbeds/shared/infrastructure/external_apis/plant_api.py

# 🧭 Purpose (Layman Explanation):
# Talks to the Trefle plant encyclopedia so gardeners can look up a plant by name and
# see its details.

# 🧪 Purpose (Technical Summary):
# Thin Trefle REST client on top of APIClient: bearer-token authenticated search and
# detail lookups with response caching (30 min for searches, 60 min for details).

# 🔗 Dependencies:
# - APIClient: Rate limiting, retries and caching

# 🔄 Connected Modules / Calls From:
# Used by: PlantSearchService, BackendService.enhanced_plant_search

from typing import Any, Dict, List, Optional

from gardenbeds.shared.core.exceptions import ExternalAPIError
from gardenbeds.shared.utils.logging import get_logger

from .api_client import APIClient

logger = get_logger(__name__)

TREFLE_HOST = "trefle.io"


class TreflePlantClient:
    """Trefle plant database client."""

    def __init__(
        self,
        api_client: APIClient,
        token: str,
        base_url: str = "https://trefle.io/api/v1",
        search_cache_ttl: float = 1800,
        details_cache_ttl: float = 3600
    ):
        self.api_client = api_client
        self.token = token
        self.base_url = base_url.rstrip('/')
        self.search_cache_ttl = search_cache_ttl
        self.details_cache_ttl = details_cache_ttl

    def _auth_headers(self) -> Dict[str, str]:
        return {'Authorization': f'Bearer {self.token}'}

    async def search_plants(self, query: str, limit: int = 10) -> List[Dict[str, Any]]:
        """
        Search plants by common or scientific name.

        Raises:
            ExternalAPIError: "Failed to search plants" wrapping the upstream failure
        """
        try:
            response = await self.api_client.get(
                f"{self.base_url}/plants/search",
                params={'q': query, 'limit': limit},
                headers=self._auth_headers(),
                cache=True,
                cache_ttl=self.search_cache_ttl,
            )
        except ExternalAPIError as e:
            logger.error(f"Plant API search failed: {e}", extra={'query': query})
            raise ExternalAPIError(
                "Failed to search plants",
                api_name="trefle",
                upstream_status=e.upstream_status,
                url=f"{self.base_url}/plants/search"
            ) from e

        if not isinstance(response, dict):
            return []
        return list(response.get('data') or [])

    async def get_plant_details(self, plant_id: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a single plant record.

        Returns:
            Optional[Dict[str, Any]]: The record, or None when Trefle answers 404 for the id

        Raises:
            ExternalAPIError: "Failed to get plant details" wrapping any other upstream failure
        """
        url = f"{self.base_url}/plants/{plant_id}"
        try:
            response = await self.api_client.get(
                url,
                headers=self._auth_headers(),
                cache=True,
                cache_ttl=self.details_cache_ttl,
            )
        except ExternalAPIError as e:
            if e.upstream_status == 404:
                logger.info(f"Plant {plant_id} not found in Trefle")
                return None
            logger.error(f"Plant API details failed: {e}", extra={'plant_id': plant_id})
            raise ExternalAPIError(
                "Failed to get plant details",
                api_name="trefle",
                upstream_status=e.upstream_status,
                url=url
            ) from e

        if not isinstance(response, dict):
            return None
        return response.get('data')
