# 📄 File: gardenbeds/modules/garden/presentation/api/v1/__init__.py
# 🧭 Purpose (Layman Explanation):
# Collects the garden endpoint groups so the main router can mount them.
# 🧪 Purpose (Technical Summary):
# Garden v1 router exports.
# 🔄 Connected Modules / Calls From:
# gardenbeds.api.v1.router

from .beds import beds_router
from .pins import pins_router
from .plants import plants_router
from .system import system_router

__all__ = ["beds_router", "pins_router", "plants_router", "system_router"]
