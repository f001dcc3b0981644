# 📄 File: gardenbeds/modules/garden/infrastructure/__init__.py
# 🧭 Purpose (Layman Explanation):
# How the garden module talks to its database tables.
# 🧪 Purpose (Technical Summary):
# Infrastructure layer package.
