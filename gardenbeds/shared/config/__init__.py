# 📄 File: gardenbeds/shared/config/__init__.py
#
# 🧭 Purpose (Layman Explanation):
# Holds the settings that tell the garden app how to reach its database and outside services.
#
# 🧪 Purpose (Technical Summary):
# Configuration package exports for settings management and the Supabase client factory.
#
# 🔄 Connected Modules / Calls From:
# - gardenbeds.main (application startup)
# - Infrastructure components

"""
Configuration Management Package

- Environment-based settings
- Supabase store client configuration
"""

from .settings import get_settings, Settings

__all__ = [
    "get_settings",
    "Settings",
]
