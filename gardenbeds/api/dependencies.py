# 📄 File: gardenbeds/api/dependencies.py
# 🧭 Purpose (Layman Explanation):
# Hands each web request the shared garden backend that was set up when the server started.
# 🧪 Purpose (Technical Summary):
# FastAPI dependency returning the BackendService stored on app.state by the lifespan.
# Tests replace it through app.dependency_overrides.
# 🔗 Dependencies:
# FastAPI Request
# 🔄 Connected Modules / Calls From:
# Garden API routers, health router

from fastapi import Request

from gardenbeds.modules.garden.application.backend_service import BackendService
from gardenbeds.shared.core.exceptions import ConfigurationError


def get_backend_service(request: Request) -> BackendService:
    backend = getattr(request.app.state, "backend", None)
    if backend is None:
        raise ConfigurationError("Backend service is not initialized", setting="backend")
    return backend
