# 📄 File: gardenbeds/modules/garden/presentation/api/v1/beds.py
# 🧭 Purpose (Layman Explanation):
# Web endpoints for garden beds: list them, look one up with its photo and pins,
# create, rename or remove beds, and manage the reference photos of a bed.
# 🧪 Purpose (Technical Summary):
# Thin FastAPI router over GardenDataService bed and bed-image operations.
# Missing entities become NotFoundError (404) through the global exception handler.
# 🔗 Dependencies:
# FastAPI, gardenbeds.api.dependencies, garden domain models
# 🔄 Connected Modules / Calls From:
# gardenbeds.api.v1.router

"""
Beds API Endpoints

Endpoints:
- GET /: List all beds
- GET /section/{section}: Beds of a section with latest photo and pin count
- GET /{bed_id}: Get one bed
- GET /{bed_id}/detail: Bed with latest photo, public URL and pins
- POST /: Create a bed
- PATCH /{bed_id}: Update a bed
- DELETE /{bed_id}: Delete a bed
- GET /{bed_id}/images: Reference photos of a bed
- POST /{bed_id}/images: Register an uploaded photo
- DELETE /images/{image_id}: Remove a photo and its stored file
"""

from typing import List

from fastapi import APIRouter, Depends, Response, status

from gardenbeds.api.dependencies import get_backend_service
from gardenbeds.modules.garden.application.backend_service import BackendService
from gardenbeds.modules.garden.domain.models.bed import (
    Bed,
    BedCreate,
    BedDetail,
    BedImage,
    BedImageCreate,
    BedLatest,
    BedUpdate,
)
from gardenbeds.shared.core.exceptions import NotFoundError, ValidationError

beds_router = APIRouter()


@beds_router.get("/", response_model=List[Bed], summary="List beds")
async def list_beds(backend: BackendService = Depends(get_backend_service)) -> List[Bed]:
    return await backend.get_beds()


@beds_router.get("/section/{section}", response_model=List[BedLatest], summary="List beds in a section")
async def list_beds_by_section(
    section: str,
    backend: BackendService = Depends(get_backend_service)
) -> List[BedLatest]:
    return await backend.data.list_beds_by_section(section)


@beds_router.get("/{bed_id}", response_model=Bed, summary="Get bed")
async def get_bed(bed_id: str, backend: BackendService = Depends(get_backend_service)) -> Bed:
    bed = await backend.get_bed(bed_id)
    if bed is None:
        raise NotFoundError("Bed not found", resource_type="bed", resource_id=bed_id)
    return bed


@beds_router.get("/{bed_id}/detail", response_model=BedDetail, summary="Get bed with photo and pins")
async def get_bed_detail(bed_id: str, backend: BackendService = Depends(get_backend_service)) -> BedDetail:
    detail = await backend.data.get_bed_detail(bed_id)
    if detail is None:
        raise NotFoundError("Bed not found", resource_type="bed", resource_id=bed_id)
    return detail


@beds_router.post("/", response_model=Bed, status_code=status.HTTP_201_CREATED, summary="Create bed")
async def create_bed(data: BedCreate, backend: BackendService = Depends(get_backend_service)) -> Bed:
    return await backend.data.create_bed(data)


@beds_router.patch("/{bed_id}", response_model=Bed, summary="Update bed")
async def update_bed(
    bed_id: str,
    data: BedUpdate,
    backend: BackendService = Depends(get_backend_service)
) -> Bed:
    return await backend.data.update_bed(bed_id, data)


@beds_router.delete("/{bed_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete bed")
async def delete_bed(bed_id: str, backend: BackendService = Depends(get_backend_service)) -> Response:
    await backend.data.delete_bed(bed_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@beds_router.get("/{bed_id}/images", response_model=List[BedImage], summary="List bed photos")
async def list_bed_images(bed_id: str, backend: BackendService = Depends(get_backend_service)) -> List[BedImage]:
    return await backend.data.list_images_for_bed(bed_id)


@beds_router.post(
    "/{bed_id}/images",
    response_model=BedImage,
    status_code=status.HTTP_201_CREATED,
    summary="Register bed photo"
)
async def create_bed_image(
    bed_id: str,
    data: BedImageCreate,
    backend: BackendService = Depends(get_backend_service)
) -> BedImage:
    if data.bed_id != bed_id:
        raise ValidationError("bed_id in body does not match the path", field="bed_id", value=data.bed_id)
    return await backend.data.create_bed_image(data)


@beds_router.delete("/images/{image_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete bed photo")
async def delete_bed_image(image_id: str, backend: BackendService = Depends(get_backend_service)) -> Response:
    await backend.data.delete_bed_image(image_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
