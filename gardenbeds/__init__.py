# 📄 File: gardenbeds/__init__.py
# 🧭 Purpose (Layman Explanation):
# The garden beds service: keeps track of garden beds, their photos, the plant markers placed
# on them and the care each plant receives.
# 🧪 Purpose (Technical Summary):
# Root package. Cross-cutting infrastructure lives in gardenbeds.shared, the garden domain
# module in gardenbeds.modules.garden, and the HTTP layer in gardenbeds.api.
# 🔗 Dependencies:
# None (package initialization)
# 🔄 Connected Modules / Calls From:
# gardenbeds.main

__version__ = "1.0.0"
