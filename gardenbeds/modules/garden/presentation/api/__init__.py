# 📄 File: gardenbeds/modules/garden/presentation/api/__init__.py
# 🧭 Purpose (Layman Explanation):
# Garden web endpoints, grouped by API version.
# 🧪 Purpose (Technical Summary):
# Garden API package.
