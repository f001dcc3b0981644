# 📄 File: gardenbeds/modules/garden/application/plant_catalog.py
# 🧭 Purpose (Layman Explanation):
# A small built-in book of common garden plants, used for plant lookups when the online
# plant database cannot be reached or no access key is configured.
#
# 🧪 Purpose (Technical Summary):
# Static PlantSearchResult records keyed by a lowercase short name, plus the substring
# matcher used by the offline plant search.
#
# 🔗 Dependencies:
# - gardenbeds.modules.garden.domain.models.search.PlantSearchResult
#
# 🔄 Connected Modules / Calls From:
# - gardenbeds.modules.garden.application.plant_search_service

from typing import Dict, List

from gardenbeds.modules.garden.domain.models.search import PlantSearchResult

ZONES_2_11 = list(range(2, 12))
ZONES_3_10 = list(range(3, 11))
ZONES_5_9 = list(range(5, 10))


def _plant(**fields) -> PlantSearchResult:
    fields.setdefault("foliage_color", ["green"])
    fields.setdefault("soil_type", "well_draining")
    fields.setdefault("planting_season", "spring")
    return PlantSearchResult(**fields)


SAMPLE_PLANTS: Dict[str, PlantSearchResult] = {
    "calendula": _plant(
        name="Calendula", scientific_name="Calendula officinalis",
        common_names=["Pot Marigold", "English Marigold"],
        family="Asteraceae", genus="Calendula", species="officinalis",
        growth_habit="annual", hardiness_zones=ZONES_2_11, sun_exposure="full_sun", water_needs="moderate",
        mature_height=24, mature_width=12, bloom_time="spring", bloom_duration=16,
        flower_color=["orange", "yellow"], soil_ph="neutral", fertilizer_needs="low",
        pruning_needs="minimal", planting_depth=0.25, spacing=12,
    ),
    "tomato": _plant(
        name="Tomato", scientific_name="Solanum lycopersicum",
        common_names=["Tomato", "Love Apple"],
        family="Solanaceae", genus="Solanum", species="lycopersicum",
        growth_habit="annual", hardiness_zones=ZONES_2_11, sun_exposure="full_sun", water_needs="moderate",
        mature_height=60, mature_width=24, bloom_time="summer", bloom_duration=12,
        flower_color=["yellow"], soil_ph="neutral", fertilizer_needs="moderate",
        pruning_needs="moderate", planting_depth=0.25, spacing=24,
    ),
    "basil": _plant(
        name="Basil", scientific_name="Ocimum basilicum",
        common_names=["Sweet Basil", "Common Basil"],
        family="Lamiaceae", genus="Ocimum", species="basilicum",
        growth_habit="annual", hardiness_zones=ZONES_2_11, sun_exposure="full_sun", water_needs="moderate",
        mature_height=18, mature_width=12, bloom_time="summer", bloom_duration=8,
        flower_color=["white", "pink"], soil_ph="neutral", fertilizer_needs="low",
        pruning_needs="minimal", planting_depth=0.25, spacing=12,
    ),
    "rose": _plant(
        name="Rose", scientific_name="Rosa",
        common_names=["Rose", "Garden Rose"],
        family="Rosaceae", genus="Rosa", species="",
        growth_habit="shrub", hardiness_zones=ZONES_3_10, sun_exposure="full_sun", water_needs="moderate",
        mature_height=48, mature_width=36, bloom_time="spring", bloom_duration=16,
        flower_color=["red", "pink", "white", "yellow", "orange"], soil_ph="neutral",
        fertilizer_needs="moderate", pruning_needs="moderate", planting_depth=1, spacing=36,
    ),
    "lavender": _plant(
        name="Lavender", scientific_name="Lavandula angustifolia",
        common_names=["English Lavender", "Common Lavender"],
        family="Lamiaceae", genus="Lavandula", species="angustifolia",
        growth_habit="perennial", hardiness_zones=ZONES_5_9, sun_exposure="full_sun", water_needs="low",
        mature_height=24, mature_width=18, bloom_time="summer", bloom_duration=8,
        flower_color=["purple", "blue"], foliage_color=["silver", "green"], soil_ph="alkaline",
        fertilizer_needs="low", pruning_needs="minimal", planting_depth=0.5, spacing=18,
    ),
    "sunflower": _plant(
        name="Sunflower", scientific_name="Helianthus annuus",
        common_names=["Common Sunflower", "Annual Sunflower"],
        family="Asteraceae", genus="Helianthus", species="annuus",
        growth_habit="annual", hardiness_zones=ZONES_2_11, sun_exposure="full_sun", water_needs="moderate",
        mature_height=120, mature_width=24, bloom_time="summer", bloom_duration=8,
        flower_color=["yellow"], soil_ph="neutral", fertilizer_needs="low",
        pruning_needs="minimal", planting_depth=0.5, spacing=24,
    ),
    "mint": _plant(
        name="Mint", scientific_name="Mentha",
        common_names=["Mint", "Peppermint", "Spearmint"],
        family="Lamiaceae", genus="Mentha", species="",
        growth_habit="perennial", hardiness_zones=ZONES_3_10, sun_exposure="partial_sun", water_needs="high",
        mature_height=24, mature_width=36, bloom_time="summer", bloom_duration=6,
        flower_color=["purple", "white"], soil_ph="neutral", fertilizer_needs="low",
        pruning_needs="minimal", planting_depth=0.25, spacing=18,
    ),
    "pepper": _plant(
        name="Pepper", scientific_name="Capsicum annuum",
        common_names=["Bell Pepper", "Sweet Pepper", "Capsicum"],
        family="Solanaceae", genus="Capsicum", species="annuum",
        growth_habit="annual", hardiness_zones=ZONES_2_11, sun_exposure="full_sun", water_needs="moderate",
        mature_height=36, mature_width=18, bloom_time="summer", bloom_duration=12,
        flower_color=["white"], soil_ph="neutral", fertilizer_needs="moderate",
        pruning_needs="minimal", planting_depth=0.25, spacing=18,
    ),
    "zinnia": _plant(
        name="Zinnia", scientific_name="Zinnia elegans",
        common_names=["Common Zinnia", "Youth-and-old-age"],
        family="Asteraceae", genus="Zinnia", species="elegans",
        growth_habit="annual", hardiness_zones=ZONES_2_11, sun_exposure="full_sun", water_needs="moderate",
        mature_height=36, mature_width=12, bloom_time="summer", bloom_duration=12,
        flower_color=["red", "pink", "orange", "yellow", "white", "purple"], soil_ph="neutral",
        fertilizer_needs="low", pruning_needs="minimal", planting_depth=0.25, spacing=12,
    ),
    "marigold": _plant(
        name="Marigold", scientific_name="Tagetes",
        common_names=["Marigold", "French Marigold", "African Marigold"],
        family="Asteraceae", genus="Tagetes", species="",
        growth_habit="annual", hardiness_zones=ZONES_2_11, sun_exposure="full_sun", water_needs="moderate",
        mature_height=24, mature_width=12, bloom_time="summer", bloom_duration=16,
        flower_color=["orange", "yellow", "red"], soil_ph="neutral", fertilizer_needs="low",
        pruning_needs="minimal", planting_depth=0.25, spacing=12,
    ),
}


def search_sample_plants(term: str, limit: int = 5) -> List[PlantSearchResult]:
    """Sample plants whose key, name, scientific name or a common name contains ``term``."""
    term = term.lower()
    matches = [
        plant
        for key, plant in SAMPLE_PLANTS.items()
        if term in key
        or term in plant.name.lower()
        or term in plant.scientific_name.lower()
        or any(term in name.lower() for name in plant.common_names)
    ]
    return [plant.model_copy(deep=True) for plant in matches[:limit]]
