# 📄 File: gardenbeds/shared/__init__.py
# 🧭 Purpose (Layman Explanation):
# Tools used all over the service: settings, error types, caches, logging and outside connections.
# 🧪 Purpose (Technical Summary):
# Cross-cutting shared package.
