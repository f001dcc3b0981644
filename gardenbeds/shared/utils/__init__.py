# 📄 File: gardenbeds/shared/utils/__init__.py
# 🧭 Purpose (Layman Explanation):
# Small helpers shared across the service, mainly logging.
# 🧪 Purpose (Technical Summary):
# Utilities package.
