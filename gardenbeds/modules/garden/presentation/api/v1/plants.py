# 📄 File: gardenbeds/modules/garden/presentation/api/v1/plants.py
# 🧭 Purpose (Layman Explanation):
# Web endpoints for plants: look up species by name, keep our own plant fact sheets,
# track the actual plants growing at each marker, log care like watering, and keep plant photos.
# 🧪 Purpose (Technical Summary):
# FastAPI router over plant search (layered lookup and enhanced search), plant details,
# plant instances, care events and plant media operations of the backend facade.
# 🔗 Dependencies:
# FastAPI, gardenbeds.api.dependencies, garden domain models
# 🔄 Connected Modules / Calls From:
# gardenbeds.api.v1.router

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status

from gardenbeds.api.dependencies import get_backend_service
from gardenbeds.modules.garden.application.backend_service import BackendService
from gardenbeds.modules.garden.domain.models.media import MediaUpload, PlantMedia
from gardenbeds.modules.garden.domain.models.plant import (
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
from gardenbeds.modules.garden.domain.models.search import EnhancedSearchResult, PlantSearchResult
from gardenbeds.shared.core.exceptions import NotFoundError

plants_router = APIRouter()


def _not_found(resource_type: str, resource_id: str) -> NotFoundError:
    label = resource_type.replace("_", " ").capitalize()
    return NotFoundError(f"{label} not found", resource_type=resource_type, resource_id=resource_id)


# =========================================================================
# SEARCH
# =========================================================================

@plants_router.get("/lookup", response_model=List[PlantSearchResult], summary="Look up species sheets")
async def lookup_plants(
    q: str = Query(..., min_length=1),
    backend: BackendService = Depends(get_backend_service)
) -> List[PlantSearchResult]:
    return await backend.lookup_plants(q)


@plants_router.get("/lookup/{plant_id}", response_model=PlantSearchResult, summary="Species sheet by lookup id")
async def lookup_plant_details(plant_id: str, backend: BackendService = Depends(get_backend_service)) -> PlantSearchResult:
    result = await backend.lookup_plant_details(plant_id)
    if result is None:
        raise _not_found("plant", plant_id)
    return result


@plants_router.get("/search", response_model=List[EnhancedSearchResult], summary="Search garden pins and species")
async def enhanced_plant_search(
    q: str = Query(..., min_length=1),
    backend: BackendService = Depends(get_backend_service)
) -> List[EnhancedSearchResult]:
    return await backend.enhanced_plant_search(q)


# =========================================================================
# PLANT DETAILS
# =========================================================================

@plants_router.get("/details", response_model=List[PlantDetails], summary="List plant details")
async def list_plant_details(
    q: Optional[str] = Query(None, description="Filter by name or scientific name"),
    backend: BackendService = Depends(get_backend_service)
) -> List[PlantDetails]:
    if q:
        return await backend.data.search_plant_details(q)
    return await backend.data.list_plant_details()


@plants_router.get("/details/{details_id}", response_model=PlantDetails, summary="Get plant details")
async def get_plant_details(details_id: str, backend: BackendService = Depends(get_backend_service)) -> PlantDetails:
    details = await backend.data.get_plant_details(details_id)
    if details is None:
        raise _not_found("plant_details", details_id)
    return details


@plants_router.post("/details", response_model=PlantDetails, status_code=status.HTTP_201_CREATED,
                    summary="Create plant details")
async def create_plant_details(
    data: PlantDetailsCreate,
    backend: BackendService = Depends(get_backend_service)
) -> PlantDetails:
    return await backend.data.create_plant_details(data)


@plants_router.patch("/details/{details_id}", response_model=PlantDetails, summary="Update plant details")
async def update_plant_details(
    details_id: str,
    data: PlantDetailsUpdate,
    backend: BackendService = Depends(get_backend_service)
) -> PlantDetails:
    return await backend.data.update_plant_details(details_id, data)


@plants_router.delete("/details/{details_id}", status_code=status.HTTP_204_NO_CONTENT,
                      summary="Delete plant details")
async def delete_plant_details(details_id: str, backend: BackendService = Depends(get_backend_service)) -> Response:
    await backend.data.delete_plant_details(details_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =========================================================================
# PLANT INSTANCES
# =========================================================================

@plants_router.get("/instances/by-pin/{pin_id}", response_model=PlantInstance, summary="Plant growing at a pin")
async def get_plant_instance_by_pin(pin_id: str, backend: BackendService = Depends(get_backend_service)) -> PlantInstance:
    instance = await backend.data.get_plant_instance_by_pin(pin_id)
    if instance is None:
        raise _not_found("plant_instance", pin_id)
    return instance


@plants_router.get("/instances/by-bed/{bed_id}", response_model=List[PlantInstance], summary="Plants in a bed")
async def list_plant_instances_by_bed(
    bed_id: str,
    backend: BackendService = Depends(get_backend_service)
) -> List[PlantInstance]:
    return await backend.data.list_plant_instances_by_bed(bed_id)


@plants_router.get("/instances/{instance_id}", response_model=PlantInstance, summary="Get plant instance")
async def get_plant_instance(instance_id: str, backend: BackendService = Depends(get_backend_service)) -> PlantInstance:
    instance = await backend.data.get_plant_instance(instance_id)
    if instance is None:
        raise _not_found("plant_instance", instance_id)
    return instance


@plants_router.post("/instances", response_model=PlantInstance, status_code=status.HTTP_201_CREATED,
                    summary="Create plant instance")
async def create_plant_instance(
    data: PlantInstanceCreate,
    backend: BackendService = Depends(get_backend_service)
) -> PlantInstance:
    return await backend.data.create_plant_instance(data)


@plants_router.patch("/instances/{instance_id}", response_model=PlantInstance, summary="Update plant instance")
async def update_plant_instance(
    instance_id: str,
    data: PlantInstanceUpdate,
    backend: BackendService = Depends(get_backend_service)
) -> PlantInstance:
    return await backend.data.update_plant_instance(instance_id, data)


@plants_router.delete("/instances/{instance_id}", status_code=status.HTTP_204_NO_CONTENT,
                      summary="Delete plant instance")
async def delete_plant_instance(instance_id: str, backend: BackendService = Depends(get_backend_service)) -> Response:
    await backend.data.delete_plant_instance(instance_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =========================================================================
# CARE EVENTS
# =========================================================================

@plants_router.get("/care-events/recent", response_model=List[CareEvent], summary="Most recent care events")
async def get_recent_care_events(
    limit: int = Query(10, ge=1, le=100),
    backend: BackendService = Depends(get_backend_service)
) -> List[CareEvent]:
    return await backend.data.get_recent_care_events(limit)


@plants_router.get("/instances/{instance_id}/care-events", response_model=List[CareEvent],
                   summary="Care history of a plant")
async def get_care_events(instance_id: str, backend: BackendService = Depends(get_backend_service)) -> List[CareEvent]:
    return await backend.data.get_care_events(instance_id)


@plants_router.get("/care-events/{event_id}", response_model=CareEvent, summary="Get care event")
async def get_care_event(event_id: str, backend: BackendService = Depends(get_backend_service)) -> CareEvent:
    event = await backend.data.get_care_event(event_id)
    if event is None:
        raise _not_found("care_event", event_id)
    return event


@plants_router.post("/care-events", response_model=CareEvent, status_code=status.HTTP_201_CREATED,
                    summary="Log a care event")
async def create_care_event(
    data: CareEventCreate,
    backend: BackendService = Depends(get_backend_service)
) -> CareEvent:
    return await backend.data.create_care_event(data)


@plants_router.patch("/care-events/{event_id}", response_model=CareEvent, summary="Update care event")
async def update_care_event(
    event_id: str,
    data: CareEventUpdate,
    backend: BackendService = Depends(get_backend_service)
) -> CareEvent:
    return await backend.data.update_care_event(event_id, data)


@plants_router.delete("/care-events/{event_id}", status_code=status.HTTP_204_NO_CONTENT,
                      summary="Delete care event")
async def delete_care_event(event_id: str, backend: BackendService = Depends(get_backend_service)) -> Response:
    await backend.data.delete_care_event(event_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =========================================================================
# PLANT MEDIA
# =========================================================================

@plants_router.get("/{plant_id}/media", response_model=List[PlantMedia], summary="Photo gallery of a plant")
async def get_plant_media(plant_id: str, backend: BackendService = Depends(get_backend_service)) -> List[PlantMedia]:
    return await backend.data.get_plant_media(plant_id)


@plants_router.post("/{plant_id}/media", response_model=PlantMedia, status_code=status.HTTP_201_CREATED,
                    summary="Upload a plant photo")
async def upload_plant_media(
    plant_id: str,
    file: UploadFile = File(...),
    caption: Optional[str] = Form(None),
    pin_id: Optional[str] = Form(None),
    image_id: Optional[str] = Form(None),
    backend: BackendService = Depends(get_backend_service)
) -> PlantMedia:
    upload = MediaUpload(
        filename=file.filename or "upload.jpg",
        content=await file.read(),
        content_type=file.content_type,
        caption=caption,
        pin_id=pin_id,
        image_id=image_id,
    )
    return await backend.data.upload_plant_media(plant_id, upload)


@plants_router.delete("/media/{media_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a plant photo")
async def delete_plant_media(media_id: str, backend: BackendService = Depends(get_backend_service)) -> Response:
    await backend.data.delete_plant_media(media_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
