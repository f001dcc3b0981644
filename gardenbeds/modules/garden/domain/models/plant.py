# 📄 File: gardenbeds/modules/garden/domain/models/plant.py
# 🧭 Purpose (Layman Explanation):
# Describes plants at two levels: the species sheet (how tall it grows, how much sun it wants)
# and each individual plant in a bed, along with the care it has received over time.
# 🧪 Purpose (Technical Summary):
# Domain models for plant_details (species-level information), plant_instances (a pin linked
# to a species) and care_events (care history of one instance), with the enumerations the
# store's check constraints enforce.
# 🔗 Dependencies:
# pydantic, datetime, decimal, enum
# 🔄 Connected Modules / Calls From:
# plant_repository.py, care_event_repository.py, plant_search_service.py, data_service.py

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMERATIONS
# =============================================================================

class GrowthHabit(str, Enum):
    ANNUAL = "annual"
    PERENNIAL = "perennial"
    BIENNIAL = "biennial"
    SHRUB = "shrub"
    TREE = "tree"
    VINE = "vine"
    GROUNDCOVER = "groundcover"


class SunExposure(str, Enum):
    FULL_SUN = "full_sun"
    PARTIAL_SUN = "partial_sun"
    PARTIAL_SHADE = "partial_shade"
    FULL_SHADE = "full_shade"


class WaterNeeds(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class BloomTime(str, Enum):
    SPRING = "spring"
    SUMMER = "summer"
    FALL = "fall"
    WINTER = "winter"
    YEAR_ROUND = "year_round"


class SoilType(str, Enum):
    CLAY = "clay"
    LOAM = "loam"
    SANDY = "sandy"
    WELL_DRAINING = "well_draining"


class SoilPh(str, Enum):
    ACIDIC = "acidic"
    NEUTRAL = "neutral"
    ALKALINE = "alkaline"


class FertilizerNeeds(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class PruningNeeds(str, Enum):
    MINIMAL = "minimal"
    MODERATE = "moderate"
    HEAVY = "heavy"


class PlantingSeason(str, Enum):
    SPRING = "spring"
    SUMMER = "summer"
    FALL = "fall"
    WINTER = "winter"


class PlantSource(str, Enum):
    NURSERY = "nursery"
    SEED = "seed"
    CUTTING = "cutting"
    DIVISION = "division"
    GIFT = "gift"
    OTHER = "other"


class HealthStatus(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    DEAD = "dead"


class CareEventType(str, Enum):
    WATERING = "watering"
    FERTILIZING = "fertilizing"
    PRUNING = "pruning"
    PEST_TREATMENT = "pest_treatment"
    DISEASE_TREATMENT = "disease_treatment"
    TRANSPLANTING = "transplanting"
    HARVESTING = "harvesting"
    OTHER = "other"


# =============================================================================
# PLANT DETAILS (SPECIES)
# =============================================================================

class _PlantDetailsFields(BaseModel):
    """Species-level fields shared by rows and input models. Heights and spacing are in inches."""

    scientific_name: Optional[str] = None
    common_names: Optional[List[str]] = None
    family: Optional[str] = None
    genus: Optional[str] = None
    species: Optional[str] = None
    cultivar: Optional[str] = None

    growth_habit: Optional[GrowthHabit] = None
    hardiness_zones: Optional[List[int]] = None
    sun_exposure: Optional[SunExposure] = None
    water_needs: Optional[WaterNeeds] = None
    mature_height: Optional[float] = None
    mature_width: Optional[float] = None

    bloom_time: Optional[BloomTime] = None
    bloom_duration: Optional[int] = None
    flower_color: Optional[List[str]] = None
    foliage_color: Optional[List[str]] = None

    soil_type: Optional[SoilType] = None
    soil_ph: Optional[SoilPh] = None
    fertilizer_needs: Optional[FertilizerNeeds] = None
    pruning_needs: Optional[PruningNeeds] = None

    planting_season: Optional[PlantingSeason] = None
    planting_depth: Optional[float] = None
    spacing: Optional[float] = None


class PlantDetails(_PlantDetailsFields):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PlantDetailsCreate(_PlantDetailsFields):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=200)


class PlantDetailsUpdate(_PlantDetailsFields):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=200)


# =============================================================================
# PLANT INSTANCES
# =============================================================================

class PlantInstance(BaseModel):
    """An individual plant: one pin in one bed, linked to a species."""

    model_config = ConfigDict(extra="allow")

    id: str
    plant_details_id: str
    bed_id: str
    pin_id: Optional[str] = None
    planted_date: Optional[date] = None
    source: Optional[PlantSource] = None
    source_notes: Optional[str] = None
    cost: Optional[Decimal] = None
    health_status: Optional[HealthStatus] = None
    notes: Optional[str] = None
    plant_details: Optional[PlantDetails] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PlantInstanceCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    plant_details_id: str
    bed_id: str
    pin_id: str
    planted_date: Optional[date] = None
    source: Optional[PlantSource] = None
    source_notes: Optional[str] = None
    cost: Optional[Decimal] = Field(None, ge=0)
    health_status: Optional[HealthStatus] = None
    notes: Optional[str] = None


class PlantInstanceUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    plant_details_id: Optional[str] = None
    bed_id: Optional[str] = None
    pin_id: Optional[str] = None
    planted_date: Optional[date] = None
    source: Optional[PlantSource] = None
    source_notes: Optional[str] = None
    cost: Optional[Decimal] = Field(None, ge=0)
    health_status: Optional[HealthStatus] = None
    notes: Optional[str] = None


# =============================================================================
# CARE EVENTS
# =============================================================================

class CareEvent(BaseModel):
    """One entry in a plant instance's care history."""

    model_config = ConfigDict(extra="allow")

    id: str
    plant_instance_id: str
    event_type: Optional[CareEventType] = None
    event_date: date
    description: str
    notes: Optional[str] = None
    cost: Optional[Decimal] = None
    images: Optional[List[str]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CareEventCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    plant_instance_id: str
    event_type: CareEventType
    event_date: date
    description: str = Field(..., min_length=1)
    notes: Optional[str] = None
    cost: Optional[Decimal] = Field(None, ge=0)
    images: Optional[List[str]] = None


class CareEventUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    event_type: Optional[CareEventType] = None
    event_date: Optional[date] = None
    description: Optional[str] = Field(None, min_length=1)
    notes: Optional[str] = None
    cost: Optional[Decimal] = Field(None, ge=0)
    images: Optional[List[str]] = None
