# 📄 File: gardenbeds/shared/infrastructure/database/__init__.py
# 🧭 Purpose (Layman Explanation):
# Running database queries safely and keeping the database structure up to date.
# 🧪 Purpose (Technical Summary):
# Supabase query execution with error translation, and the migration registry.
