# 📄 File: gardenbeds/modules/garden/domain/models/bed.py
# 🧭 Purpose (Layman Explanation):
# Describes a garden bed (a named patch of a garden section) and the reference photos taken of it.
# 🧪 Purpose (Technical Summary):
# Pydantic domain models for the beds, bed_images and beds_latest store records, plus the
# validated input models used to create and update them.
# 🔗 Dependencies:
# pydantic, datetime, typing
# 🔄 Connected Modules / Calls From:
# bed_repository.py, data_service.py, beds API router

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .pin import Pin


class Bed(BaseModel):
    """
    A named, section-scoped container for plants.

    Rows may carry extra joined columns; they are kept as extra fields.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    section: str
    name: str
    main_image_id: Optional[str] = None
    filmstrip_visible: Optional[bool] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None


class BedCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    section: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    main_image_id: Optional[str] = None
    filmstrip_visible: Optional[bool] = None
    image_url: Optional[str] = None


class BedUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    section: Optional[str] = Field(None, min_length=1)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    main_image_id: Optional[str] = None
    filmstrip_visible: Optional[bool] = None
    image_url: Optional[str] = None


class BedLatest(BaseModel):
    """A row of the ``beds_latest`` view: a bed with its newest image and pin count."""

    model_config = ConfigDict(extra="allow")

    id: str
    section: str
    name: str
    created_at: Optional[datetime] = None
    image_path: Optional[str] = None
    image_created_at: Optional[datetime] = None
    pin_count: int = 0


class BedImage(BaseModel):
    """A reference photograph of a bed. ``image_path`` is a storage path, not a URL."""

    model_config = ConfigDict(extra="allow")

    id: str
    bed_id: str
    image_path: str
    width: Optional[int] = None
    height: Optional[int] = None
    created_at: Optional[datetime] = None


class BedImageCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    bed_id: str
    image_path: str = Field(..., min_length=1)
    width: Optional[int] = Field(None, gt=0)
    height: Optional[int] = Field(None, gt=0)


class BedDetail(BaseModel):
    """Everything the bed view needs in one read."""

    bed: Bed
    image: Optional[BedImage] = None
    pins: List[Pin] = Field(default_factory=list)
    public_url: str = ""
