# 📄 File: gardenbeds/shared/infrastructure/__init__.py
# 🧭 Purpose (Layman Explanation):
# Connections to things outside the service: the database, file storage and plant lookup websites.
# 🧪 Purpose (Technical Summary):
# Shared infrastructure package (Supabase query helpers, migrations, storage, HTTP clients).
