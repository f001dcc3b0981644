# 📄 File: gardenbeds/modules/garden/domain/models/media.py
# 🧭 Purpose (Layman Explanation):
# Photos attached to a pin or a plant: where the file lives, an optional caption and when it was taken.
# 🧪 Purpose (Technical Summary):
# Models for pin_media and plant_media rows and the metadata accepted on upload.
# Public URLs are derived from storage paths at read time, never stored.
# 🔗 Dependencies:
# pydantic, datetime
# 🔄 Connected Modules / Calls From:
# media_repository.py, data_service.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CONTENT_TYPE = "image/jpeg"


class PinMedia(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    pin_id: str
    image_id: Optional[str] = None
    storage_path: str
    caption: Optional[str] = None
    captured_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    url: Optional[str] = None


class PlantMedia(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    plant_id: str
    image_id: Optional[str] = None
    pin_id: Optional[str] = None
    storage_path: str
    caption: Optional[str] = None
    captured_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    url: Optional[str] = None


class MediaUpload(BaseModel):
    """File bytes plus the optional links and metadata stored with them."""

    model_config = ConfigDict(extra="forbid")

    filename: str = Field(..., min_length=1)
    content: bytes
    content_type: Optional[str] = None
    image_id: Optional[str] = None
    pin_id: Optional[str] = None
    caption: Optional[str] = Field(None, max_length=500)
    captured_at: Optional[datetime] = None

    @property
    def extension(self) -> str:
        if "." not in self.filename:
            return "jpg"
        return self.filename.rsplit(".", 1)[-1].lower() or "jpg"

    @property
    def resolved_content_type(self) -> str:
        return self.content_type or DEFAULT_CONTENT_TYPE
