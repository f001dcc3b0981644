# 📄 File: gardenbeds/shared/infrastructure/external_apis/__init__.py
# 🧭 Purpose (Layman Explanation):
# Talking to outside websites politely: respecting their limits, retrying and remembering answers.
# 🧪 Purpose (Technical Summary):
# Resilient HTTP client and the Trefle plant API client.
# 🔄 Connected Modules / Calls From:
# gardenbeds.modules.garden.application.backend_service

from .api_client import APIClient
from .plant_api import TreflePlantClient

__all__ = ["APIClient", "TreflePlantClient"]
