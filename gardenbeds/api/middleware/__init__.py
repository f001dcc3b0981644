# 📄 File: gardenbeds/api/middleware/__init__.py
# 🧭 Purpose (Layman Explanation):
# Request helpers that run around every web request.
# 🧪 Purpose (Technical Summary):
# Middleware package exports.
# 🔄 Connected Modules / Calls From:
# gardenbeds.main

from .error_handling import ErrorHandlingMiddleware, register_exception_handlers

__all__ = ["ErrorHandlingMiddleware", "register_exception_handlers"]
