# 📄 File: gardenbeds/modules/__init__.py
# 🧭 Purpose (Layman Explanation):
# Home of the feature modules of the service.
# 🧪 Purpose (Technical Summary):
# Domain modules package. Each module is split into domain, application,
# infrastructure and presentation layers.
