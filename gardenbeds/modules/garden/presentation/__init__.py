# 📄 File: gardenbeds/modules/garden/presentation/__init__.py
# 🧭 Purpose (Layman Explanation):
# The web-facing side of the garden module.
# 🧪 Purpose (Technical Summary):
# Presentation layer package.
