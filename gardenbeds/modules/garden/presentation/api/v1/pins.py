# 📄 File: gardenbeds/modules/garden/presentation/api/v1/pins.py
# 🧭 Purpose (Layman Explanation):
# Web endpoints for the markers placed on bed photos: find them by section or bed, search them,
# count them by status, add, move or remove them one at a time or in bulk, and attach photos.
# 🧪 Purpose (Technical Summary):
# Thin FastAPI router over pin, pin batch and pin media operations of the backend facade.
# Batch endpoints return BatchResult so partial failures are visible per item.
# 🔗 Dependencies:
# FastAPI (UploadFile needs python-multipart), gardenbeds.api.dependencies, garden domain models
# 🔄 Connected Modules / Calls From:
# gardenbeds.api.v1.router

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status

from gardenbeds.api.dependencies import get_backend_service
from gardenbeds.modules.garden.application.backend_service import BackendService
from gardenbeds.modules.garden.domain.models.media import MediaUpload, PinMedia
from gardenbeds.modules.garden.domain.models.pin import (
    BatchResult,
    Pin,
    PinBatchUpdate,
    PinCreate,
    PinStats,
    PinUpdate,
)
from gardenbeds.shared.core.exceptions import NotFoundError

pins_router = APIRouter()


@pins_router.get("/search", response_model=List[Pin], summary="Search pins by name or notes")
async def search_pins(
    q: str = Query(..., min_length=1, description="Text matched against pin name and notes"),
    section_id: Optional[str] = Query(None),
    backend: BackendService = Depends(get_backend_service)
) -> List[Pin]:
    return await backend.data.search_pins(q, section_id)


@pins_router.get("/stats", response_model=PinStats, summary="Pin counts by status")
async def get_pin_stats(
    section_id: Optional[str] = Query(None),
    backend: BackendService = Depends(get_backend_service)
) -> PinStats:
    return await backend.data.get_pin_stats(section_id)


@pins_router.get("/section/{section_id}", response_model=List[Pin], summary="Pins in a section")
async def get_pins_by_section(section_id: str, backend: BackendService = Depends(get_backend_service)) -> List[Pin]:
    return await backend.get_pins_by_section(section_id)


@pins_router.get("/bed/{bed_id}", response_model=List[Pin], summary="Pins on a bed")
async def get_pins_by_bed(bed_id: str, backend: BackendService = Depends(get_backend_service)) -> List[Pin]:
    return await backend.data.get_pins_by_bed(bed_id)


@pins_router.post("/batch", response_model=BatchResult, status_code=status.HTTP_201_CREATED,
                  summary="Create several pins")
async def batch_create_pins(
    items: List[PinCreate],
    backend: BackendService = Depends(get_backend_service)
) -> BatchResult:
    return await backend.data.batch_create_pins_detailed(items)


@pins_router.patch("/batch", response_model=BatchResult, summary="Update several pins")
async def batch_update_pins(
    items: List[PinBatchUpdate],
    backend: BackendService = Depends(get_backend_service)
) -> BatchResult:
    return await backend.data.batch_update_pins_detailed(items)


@pins_router.get("/{pin_id}", response_model=Pin, summary="Get pin")
async def get_pin(pin_id: str, backend: BackendService = Depends(get_backend_service)) -> Pin:
    pin = await backend.get_pin(pin_id)
    if pin is None:
        raise NotFoundError("Pin not found", resource_type="pin", resource_id=pin_id)
    return pin


@pins_router.post("/", response_model=Pin, status_code=status.HTTP_201_CREATED, summary="Create pin")
async def create_pin(data: PinCreate, backend: BackendService = Depends(get_backend_service)) -> Pin:
    return await backend.create_pin(data)


@pins_router.patch("/{pin_id}", response_model=Pin, summary="Update pin")
async def update_pin(
    pin_id: str,
    data: PinUpdate,
    backend: BackendService = Depends(get_backend_service)
) -> Pin:
    return await backend.update_pin(pin_id, data)


@pins_router.delete("/{pin_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete pin")
async def delete_pin(pin_id: str, backend: BackendService = Depends(get_backend_service)) -> Response:
    await backend.delete_pin(pin_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =========================================================================
# PIN MEDIA
# =========================================================================

@pins_router.get("/{pin_id}/media", response_model=List[PinMedia], summary="Photos attached to a pin")
async def get_pin_media(pin_id: str, backend: BackendService = Depends(get_backend_service)) -> List[PinMedia]:
    return await backend.data.get_pin_media(pin_id)


@pins_router.post("/{pin_id}/media", response_model=PinMedia, status_code=status.HTTP_201_CREATED,
                  summary="Upload a photo for a pin")
async def upload_pin_media(
    pin_id: str,
    file: UploadFile = File(...),
    caption: Optional[str] = Form(None),
    image_id: Optional[str] = Form(None),
    backend: BackendService = Depends(get_backend_service)
) -> PinMedia:
    upload = MediaUpload(
        filename=file.filename or "upload.jpg",
        content=await file.read(),
        content_type=file.content_type,
        caption=caption,
        image_id=image_id,
    )
    return await backend.data.upload_pin_media(pin_id, upload)


@pins_router.delete("/media/{media_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a pin photo")
async def delete_pin_media(media_id: str, backend: BackendService = Depends(get_backend_service)) -> Response:
    await backend.data.delete_pin_media(media_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
