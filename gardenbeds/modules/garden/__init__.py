# 📄 File: gardenbeds/modules/garden/__init__.py
# 🧭 Purpose (Layman Explanation):
# Everything about the garden itself: beds, their photos, plant markers, plants, care logs and photos.
# 🧪 Purpose (Technical Summary):
# Garden module package.
# 🔄 Connected Modules / Calls From:
# gardenbeds.api, gardenbeds.main
