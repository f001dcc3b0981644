# 📄 File: gardenbeds/modules/garden/domain/__init__.py
# 🧭 Purpose (Layman Explanation):
# The shapes of the garden records.
# 🧪 Purpose (Technical Summary):
# Domain layer package (pydantic models).
