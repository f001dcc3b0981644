# 📄 File: gardenbeds/api/v1/router.py
# 🧭 Purpose (Layman Explanation):
# The traffic director for version 1 of the web API: it sends bed requests to the bed handlers,
# pin requests to the pin handlers, and so on.
# 🧪 Purpose (Technical Summary):
# Aggregates the health router and the garden module routers under their route prefixes.
# 🔗 Dependencies:
# FastAPI, gardenbeds.api.v1.health, gardenbeds.modules.garden.presentation.api.v1
# 🔄 Connected Modules / Calls From:
# gardenbeds.main

from fastapi import APIRouter

from gardenbeds.modules.garden.presentation.api.v1 import (
    beds_router,
    pins_router,
    plants_router,
    system_router,
)

from .health import health_router

ROUTE_PREFIXES = {
    "beds": "/beds",
    "pins": "/pins",
    "plants": "/plants",
    "system": "/system",
}

api_v1_router = APIRouter()

api_v1_router.include_router(health_router, tags=["Health Check"])
api_v1_router.include_router(beds_router, prefix=ROUTE_PREFIXES["beds"], tags=["Beds"])
api_v1_router.include_router(pins_router, prefix=ROUTE_PREFIXES["pins"], tags=["Pins"])
api_v1_router.include_router(plants_router, prefix=ROUTE_PREFIXES["plants"], tags=["Plants"])
api_v1_router.include_router(system_router, prefix=ROUTE_PREFIXES["system"], tags=["System"])
