# 📄 File: gardenbeds/modules/garden/infrastructure/database/__init__.py
# 🧭 Purpose (Layman Explanation):
# The readers and writers for each garden table, plus the built-in database upgrades.
# 🧪 Purpose (Technical Summary):
# Supabase repositories with cache-tag invalidation, and the garden schema migrations.
# 🔄 Connected Modules / Calls From:
# gardenbeds.modules.garden.application
