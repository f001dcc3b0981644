# 📄 File: gardenbeds/modules/garden/domain/models/__init__.py
# 🧭 Purpose (Layman Explanation):
# One place to find every kind of garden record the service stores or returns.
# 🧪 Purpose (Technical Summary):
# Domain model exports for beds, pins, plants, media and search results.
# 🔄 Connected Modules / Calls From:
# Repositories, application services, API routers

from .bed import Bed, BedCreate, BedDetail, BedImage, BedImageCreate, BedLatest, BedUpdate
from .media import MediaUpload, PinMedia, PlantMedia
from .pin import BatchFailure, BatchResult, Pin, PinBatchUpdate, PinCreate, PinStats, PinStatus, PinUpdate
from .plant import (
    CareEvent,
    CareEventCreate,
    CareEventUpdate,
    PlantDetails,
    PlantDetailsCreate,
    PlantDetailsUpdate,
    PlantInstance,
    PlantInstanceCreate,
    PlantInstanceUpdate,
)
from .search import EnhancedSearchResult, PlantSearchResult

__all__ = [
    "Bed", "BedCreate", "BedDetail", "BedImage", "BedImageCreate", "BedLatest", "BedUpdate",
    "MediaUpload", "PinMedia", "PlantMedia",
    "BatchFailure", "BatchResult", "Pin", "PinBatchUpdate", "PinCreate", "PinStats", "PinStatus", "PinUpdate",
    "CareEvent", "CareEventCreate", "CareEventUpdate",
    "PlantDetails", "PlantDetailsCreate", "PlantDetailsUpdate",
    "PlantInstance", "PlantInstanceCreate", "PlantInstanceUpdate",
    "EnhancedSearchResult", "PlantSearchResult",
]
