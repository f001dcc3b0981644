# 📄 File: gardenbeds/modules/garden/application/__init__.py
# 🧭 Purpose (Layman Explanation):
# The services that answer garden questions by combining the database, caches and plant lookups.
# 🧪 Purpose (Technical Summary):
# Application layer package: data service, plant search and the backend facade.
# 🔄 Connected Modules / Calls From:
# gardenbeds.api, gardenbeds.main
