# 📄 File: gardenbeds/shared/infrastructure/storage/__init__.py
# 🧭 Purpose (Layman Explanation):
# Saving and removing photo files.
# 🧪 Purpose (Technical Summary):
# Supabase Storage bucket wrapper.
