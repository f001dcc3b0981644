# 📄 File: gardenbeds/modules/garden/domain/models/search.py
# 🧭 Purpose (Layman Explanation):
# The shape of a plant lookup answer: a full species sheet with sensible defaults filled in.
# 🧪 Purpose (Technical Summary):
# PlantSearchResult (normalised plant lookup result stored in plant_search_cache) and the
# merged result type returned by the enhanced search across pins and the lookup API.
# 🔗 Dependencies:
# pydantic
# 🔄 Connected Modules / Calls From:
# plant_search_service.py, backend_service.py, plants API router

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .plant import (
    BloomTime,
    FertilizerNeeds,
    GrowthHabit,
    PlantingSeason,
    PruningNeeds,
    SoilPh,
    SoilType,
    SunExposure,
    WaterNeeds,
)


class PlantSearchResult(BaseModel):
    """A normalised species record; every field has a value."""

    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    name: str
    scientific_name: str = ""
    common_names: List[str] = Field(default_factory=list)
    family: str = "Unknown"
    genus: str = "Unknown"
    species: str = "Unknown"
    growth_habit: GrowthHabit = GrowthHabit.PERENNIAL
    hardiness_zones: List[int] = Field(default_factory=lambda: [5, 6, 7, 8, 9])
    sun_exposure: SunExposure = SunExposure.FULL_SUN
    water_needs: WaterNeeds = WaterNeeds.MODERATE
    mature_height: float = 24
    mature_width: float = 18
    bloom_time: BloomTime = BloomTime.SUMMER
    bloom_duration: int = 4
    flower_color: List[str] = Field(default_factory=lambda: ["Unknown"])
    foliage_color: List[str] = Field(default_factory=lambda: ["Green"])
    soil_type: SoilType = SoilType.WELL_DRAINING
    soil_ph: SoilPh = SoilPh.NEUTRAL
    fertilizer_needs: FertilizerNeeds = FertilizerNeeds.LOW
    pruning_needs: PruningNeeds = PruningNeeds.MINIMAL
    planting_season: PlantingSeason = PlantingSeason.SPRING
    planting_depth: float = 0.5
    spacing: float = 12


class EnhancedSearchResult(BaseModel):
    """One hit of the combined search over garden pins and the plant lookup API."""

    model_config = ConfigDict(extra="allow")

    source: Literal["database", "api"]
    name: Optional[str] = None
    scientific_name: Optional[str] = None
    id: Optional[Union[str, int]] = None

    def dedupe_key(self) -> Optional[str]:
        key = self.scientific_name or self.name
        return key.lower() if key else None
