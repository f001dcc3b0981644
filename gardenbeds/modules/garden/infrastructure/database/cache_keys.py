# 📄 File: gardenbeds/modules/garden/infrastructure/database/cache_keys.py
#
# 🧭 Purpose (Layman Explanation):
# One place that names every remembered answer and every label used to forget answers
# when the garden data changes.
#
# 🧪 Purpose (Technical Summary):
# Deterministic cache keys for garden reads and the invalidation tags attached to them.
# A list read carries its entity type's list tag; a single-entity read carries the entity tag.
#
# 🔄 Connected Modules / Calls From:
# - Garden repositories

from typing import Optional

# List tags: any write to the entity type invalidates every list of it
BEDS_LIST = "beds:list"
BED_IMAGES_LIST = "bed_images:list"
PINS_LIST = "pins:list"
PLANT_DETAILS_LIST = "plant_details:list"
PLANT_INSTANCES_LIST = "plant_instances:list"
CARE_EVENTS_LIST = "care_events:list"
MEDIA_LIST = "media:list"

# Keys
BEDS_ALL = "beds:all"
PLANT_DETAILS_ALL = "plant_details:all"


def bed(bed_id: str) -> str:
    return f"bed:{bed_id}"


def beds_by_section(section: str) -> str:
    return f"beds:section:{section}"


def bed_images(bed_id: str) -> str:
    return f"bed_images:{bed_id}"


def pin(pin_id: str) -> str:
    return f"pin:{pin_id}"


def pins_by_section(section_id: str) -> str:
    return f"pins:section:{section_id}"


def pins_by_bed(bed_id: str) -> str:
    return f"pins:bed:{bed_id}"


def pins_search(query: str, section_id: Optional[str] = None) -> str:
    return f"pins:search:{section_id or '*'}:{query.lower()}"


def pin_stats(section_id: Optional[str] = None) -> str:
    return f"pins:stats:{section_id or '*'}"


def plant_details(details_id: str) -> str:
    return f"plant_details:{details_id}"


def plant_details_search(query: str) -> str:
    return f"plant_details:search:{query.lower()}"


def plant_instance(instance_id: str) -> str:
    return f"plant_instance:{instance_id}"


def plant_instance_by_pin(pin_id: str) -> str:
    return f"plant_instance:pin:{pin_id}"


def plant_instances_by_bed(bed_id: str) -> str:
    return f"plant_instances:bed:{bed_id}"


def care_event(event_id: str) -> str:
    return f"care_event:{event_id}"


def care_events(plant_instance_id: str) -> str:
    return f"care_events:{plant_instance_id}"


def recent_care_events(limit: int) -> str:
    return f"care_events:recent:{limit}"


def pin_media(pin_id: str) -> str:
    return f"pin_media:{pin_id}"


def plant_media(plant_id: str) -> str:
    return f"plant_media:{plant_id}"
