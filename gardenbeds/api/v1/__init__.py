# 📄 File: gardenbeds/api/v1/__init__.py
# 🧭 Purpose (Layman Explanation):
# Version 1 of the garden web API.
# 🧪 Purpose (Technical Summary):
# API v1 package; the aggregated router lives in router.py.
# 🔄 Connected Modules / Calls From:
# gardenbeds.main
