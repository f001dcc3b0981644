# 📄 File: gardenbeds/modules/garden/domain/models/pin.py
# 🧭 Purpose (Layman Explanation):
# A pin is a dot placed on a bed photo that marks where one plant grows.
# 🧪 Purpose (Technical Summary):
# Pydantic models for pin rows, pin create/update input, batch results and pin statistics.
# Coordinates are normalised to the image (0..1 on both axes).
# 🔗 Dependencies:
# pydantic, datetime, enum
# 🔄 Connected Modules / Calls From:
# pin_repository.py, data_service.py, backend_service.py, pins API router

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PinStatus(str, Enum):
    """Lifecycle status of the plant a pin marks"""
    ACTIVE = "active"
    DORMANT = "dormant"
    REMOVED = "removed"
    DEAD = "dead"


class Pin(BaseModel):
    """
    Pin domain model.

    Pins reference a bed and optionally one specific bed image. Rows read
    with embedded relations (plant_instance, plant_details) keep those as
    extra fields.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    bed_id: str
    image_id: Optional[str] = None
    section_id: Optional[str] = None
    name: Optional[str] = None
    notes: Optional[str] = None
    x: float
    y: float
    status: Optional[PinStatus] = None
    plant_id: Optional[str] = None
    plant_instance_id: Optional[str] = None
    plant_details_id: Optional[str] = None
    image_url: Optional[str] = None
    last_care_date: Optional[date] = None
    next_care_date: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PinCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    bed_id: str
    image_id: Optional[str] = None
    section_id: Optional[str] = None
    name: Optional[str] = Field(None, max_length=200)
    notes: Optional[str] = None
    x: float = Field(..., ge=0, le=1)
    y: float = Field(..., ge=0, le=1)
    status: Optional[PinStatus] = None
    plant_id: Optional[str] = None
    plant_instance_id: Optional[str] = None
    plant_details_id: Optional[str] = None
    image_url: Optional[str] = None


class PinUpdate(BaseModel):
    """Partial update: only fields explicitly set are written."""

    model_config = ConfigDict(extra="forbid")

    bed_id: Optional[str] = None
    image_id: Optional[str] = None
    section_id: Optional[str] = None
    name: Optional[str] = Field(None, max_length=200)
    notes: Optional[str] = None
    x: Optional[float] = Field(None, ge=0, le=1)
    y: Optional[float] = Field(None, ge=0, le=1)
    status: Optional[PinStatus] = None
    plant_id: Optional[str] = None
    plant_instance_id: Optional[str] = None
    plant_details_id: Optional[str] = None
    image_url: Optional[str] = None
    last_care_date: Optional[date] = None
    next_care_date: Optional[date] = None


class PinBatchUpdate(BaseModel):
    """One member of a batch update."""

    model_config = ConfigDict(extra="forbid")

    id: str
    updates: PinUpdate


class BatchFailure(BaseModel):
    """A failed batch member, identified by its position in the input."""

    index: int
    error: str
    code: Optional[str] = None


class BatchResult(BaseModel):
    """Per-member outcome of a batch write."""

    succeeded: List[Pin] = Field(default_factory=list)
    failed: List[BatchFailure] = Field(default_factory=list)

    @property
    def all_succeeded(self) -> bool:
        return not self.failed


class PinStats(BaseModel):
    total: int = 0
    active: int = 0
    dormant: int = 0
    removed: int = 0
    dead: int = 0

    @classmethod
    def from_rows(cls, rows: List[Dict[str, Any]]) -> "PinStats":
        statuses = [row.get("status") for row in rows]
        return cls(
            total=len(rows),
            active=statuses.count(PinStatus.ACTIVE.value),
            dormant=statuses.count(PinStatus.DORMANT.value),
            removed=statuses.count(PinStatus.REMOVED.value),
            dead=statuses.count(PinStatus.DEAD.value),
        )
