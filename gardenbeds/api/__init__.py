# 📄 File: gardenbeds/api/__init__.py
# 🧭 Purpose (Layman Explanation):
# Marks the api folder as a package holding the web endpoints and their helpers.
# 🧪 Purpose (Technical Summary):
# HTTP layer package: middleware, dependencies and versioned routers.
# 🔗 Dependencies:
# None (package initialization)
# 🔄 Connected Modules / Calls From:
# gardenbeds.main

"""
Garden API Package

Structure:
    api/
    ├── dependencies.py      # Backend service dependency
    ├── middleware/
    │   └── error_handling.py
    └── v1/
        ├── health.py
        └── router.py
"""
