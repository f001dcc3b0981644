import asyncio

import pytest

from gardenbeds.modules.garden.domain.models.bed import BedCreate, BedImageCreate, BedUpdate
from gardenbeds.modules.garden.domain.models.media import MediaUpload
from gardenbeds.modules.garden.domain.models.pin import PinBatchUpdate, PinCreate, PinUpdate
from gardenbeds.modules.garden.domain.models.plant import (
    CareEventCreate,
    PlantDetailsUpdate,
    PlantInstanceCreate,
)
from gardenbeds.shared.core.exceptions import DatabaseError, NotFoundError, StorageError, ValidationError

PUBLIC_PREFIX = "https://example.supabase.co/storage/v1/object/public"


def pin_input(**overrides) -> PinCreate:
    fields = {"bed_id": "bed-1", "section_id": "front", "x": 0.25, "y": 0.75, "name": "Tomato"}
    fields.update(overrides)
    return PinCreate(**fields)


# =============================================================================
# Read-through caching and invalidation
# =============================================================================

@pytest.mark.asyncio
async def test_repeated_reads_are_served_from_cache(data_service, client):
    client.seed("pins", {"bed_id": "bed-1", "section_id": "front", "x": 0.1, "y": 0.2})

    first = await data_service.get_pins_by_section("front")
    second = await data_service.get_pins_by_section("front")

    assert len(first) == len(second) == 1
    assert client.count_calls("pins") == 1


@pytest.mark.asyncio
async def test_missing_entity_is_none_and_cached(data_service, client):
    assert await data_service.get_pin("nope") is None
    assert await data_service.get_pin("nope") is None
    assert client.count_calls("pins") == 1


@pytest.mark.asyncio
async def test_creating_a_pin_invalidates_pin_lists(data_service, client):
    assert await data_service.get_pins_by_section("front") == []

    created = await data_service.create_pin(pin_input())
    pins = await data_service.get_pins_by_section("front")

    assert [pin.id for pin in pins] == [created.id]
    assert client.count_calls("pins") == 2


@pytest.mark.asyncio
async def test_write_during_an_in_flight_read_is_not_hidden_by_the_cache(data_service, monkeypatch):
    fetch_rows = data_service.pins._fetch_many
    rows_fetched = asyncio.Event()
    release = asyncio.Event()

    async def paused_fetch(query, operation, *args, **kwargs):
        rows = await fetch_rows(query, operation, *args, **kwargs)
        if operation == "get_pins_by_section":
            rows_fetched.set()
            await release.wait()
        return rows

    monkeypatch.setattr(data_service.pins, "_fetch_many", paused_fetch)

    read = asyncio.ensure_future(data_service.get_pins_by_section("front"))
    await rows_fetched.wait()
    created = await data_service.create_pin(pin_input())
    release.set()

    assert await read == []
    assert [pin.id for pin in await data_service.get_pins_by_section("front")] == [created.id]


@pytest.mark.asyncio
async def test_pin_write_invalidates_bed_lists(data_service, client):
    client.seed("beds_latest", {"section": "front", "name": "Herbs", "pin_count": 0})
    await data_service.list_beds_by_section("front")

    await data_service.create_pin(pin_input())
    await data_service.list_beds_by_section("front")

    assert client.count_calls("beds_latest") == 2


@pytest.mark.asyncio
async def test_unrelated_writes_keep_other_entries(data_service, client):
    [bed] = client.seed("beds", {"section": "front", "name": "Herbs"})
    await data_service.get_bed(bed["id"])

    await data_service.create_care_event(CareEventCreate(
        plant_instance_id="instance-1", event_type="watering", event_date="2024-06-01", description="Deep soak",
    ))
    await data_service.get_bed(bed["id"])

    assert client.count_calls("beds") == 1


@pytest.mark.asyncio
async def test_store_failures_propagate_and_are_not_cached(data_service, client):
    client.seed("beds", {"section": "front", "name": "Herbs"})
    client.fail("beds", "select", code="57014", message="statement timeout")

    with pytest.raises(DatabaseError) as exc_info:
        await data_service.get_beds()

    assert exc_info.value.code == "57014"
    assert exc_info.value.message == "Failed to fetch beds: statement timeout"
    assert exc_info.value.details["table"] == "beds"

    client.heal("beds", "select")
    assert [bed.name for bed in await data_service.get_beds()] == ["Herbs"]


# =============================================================================
# Beds
# =============================================================================

@pytest.mark.asyncio
async def test_bed_crud_round_trip(data_service, client):
    bed = await data_service.create_bed(BedCreate(section="back", name="Roses"))
    assert [b.id for b in await data_service.get_beds()] == [bed.id]

    updated = await data_service.update_bed(bed.id, BedUpdate(name="Old Roses"))
    assert updated.name == "Old Roses"
    assert (await data_service.get_bed(bed.id)).name == "Old Roses"

    await data_service.delete_bed(bed.id)
    assert await data_service.get_bed(bed.id) is None
    assert await data_service.get_beds() == []


@pytest.mark.asyncio
async def test_update_without_fields_is_rejected_before_querying(data_service, client):
    with pytest.raises(ValidationError):
        await data_service.update_bed("bed-1", BedUpdate())
    assert client.count_calls("beds", "update") == 0


@pytest.mark.asyncio
async def test_update_of_missing_row_raises_not_found(data_service):
    with pytest.raises(NotFoundError) as exc_info:
        await data_service.update_pin("missing", PinUpdate(name="Basil"))

    assert exc_info.value.details == {"resource_type": "pin", "resource_id": "missing"}


@pytest.mark.asyncio
async def test_bed_detail_combines_bed_newest_image_and_pins(data_service, client):
    [bed] = client.seed("beds", {"section": "front", "name": "Herbs"})
    client.seed(
        "bed_images",
        {"bed_id": bed["id"], "image_path": "beds/old.jpg"},
        {"bed_id": bed["id"], "image_path": "beds/new.jpg"},
    )
    client.seed("pins", {"bed_id": bed["id"], "x": 0.5, "y": 0.5, "name": "Basil"})

    detail = await data_service.get_bed_detail(bed["id"])

    assert detail.bed.name == "Herbs"
    assert detail.image.image_path == "beds/new.jpg"
    assert [pin.name for pin in detail.pins] == ["Basil"]
    assert detail.public_url == f"{PUBLIC_PREFIX}/plant-images/beds/new.jpg"


@pytest.mark.asyncio
async def test_bed_detail_without_images_has_empty_url(data_service, client):
    [bed] = client.seed("beds", {"section": "front", "name": "Herbs"})

    detail = await data_service.get_bed_detail(bed["id"])

    assert detail.image is None
    assert detail.public_url == ""


@pytest.mark.asyncio
async def test_bed_detail_for_unknown_bed_is_none(data_service):
    assert await data_service.get_bed_detail("missing") is None


@pytest.mark.asyncio
async def test_public_urls_are_cached_on_images_cache(data_service, caches):
    url = await data_service.get_image_public_url("beds/a.jpg")

    assert url == f"{PUBLIC_PREFIX}/plant-images/beds/a.jpg"
    assert caches.images.keys() == ["url:plant-images:beds/a.jpg"]


@pytest.mark.asyncio
async def test_bed_image_create_and_delete_removes_stored_file(data_service, client):
    [bed] = client.seed("beds", {"section": "front", "name": "Herbs"})
    image = await data_service.create_bed_image(BedImageCreate(bed_id=bed["id"], image_path="beds/a.jpg"))
    assert [i.id for i in await data_service.list_images_for_bed(bed["id"])] == [image.id]

    await data_service.delete_bed_image(image.id)

    assert client.storage.removed == [("plant-images", "beds/a.jpg")]
    assert await data_service.list_images_for_bed(bed["id"]) == []


@pytest.mark.asyncio
async def test_deleting_unknown_bed_image_is_a_no_op(data_service, client):
    await data_service.delete_bed_image("missing")

    assert client.storage.removed == []
    assert client.count_calls("bed_images", "delete") == 0


# =============================================================================
# Pins
# =============================================================================

@pytest.mark.asyncio
async def test_search_matches_name_or_notes_case_insensitively(data_service, client):
    client.seed(
        "pins",
        {"bed_id": "b", "section_id": "front", "x": 0, "y": 0, "name": "Cherry Tomato"},
        {"bed_id": "b", "section_id": "back", "x": 0, "y": 0, "name": "Basil", "notes": "next to the tomatoes"},
        {"bed_id": "b", "section_id": "front", "x": 0, "y": 0, "name": "Mint"},
    )

    everywhere = await data_service.search_pins("TOMATO")
    front_only = await data_service.search_pins("tomato", section_id="front")

    assert sorted(pin.name for pin in everywhere) == ["Basil", "Cherry Tomato"]
    assert [pin.name for pin in front_only] == ["Cherry Tomato"]


@pytest.mark.asyncio
async def test_blank_search_matches_nothing_without_querying(data_service, client):
    assert await data_service.search_pins("   ") == []
    assert client.count_calls("pins") == 0


@pytest.mark.asyncio
async def test_pin_stats_count_statuses(data_service, client):
    client.seed(
        "pins",
        {"bed_id": "b", "section_id": "front", "x": 0, "y": 0, "status": "active"},
        {"bed_id": "b", "section_id": "front", "x": 0, "y": 0, "status": "active"},
        {"bed_id": "b", "section_id": "front", "x": 0, "y": 0, "status": "dead"},
        {"bed_id": "b", "section_id": "back", "x": 0, "y": 0, "status": "dormant"},
    )

    stats = await data_service.get_pin_stats()
    front = await data_service.get_pin_stats("front")

    assert (stats.total, stats.active, stats.dormant, stats.dead) == (4, 2, 1, 1)
    assert (front.total, front.dormant) == (3, 0)


@pytest.mark.asyncio
async def test_batch_create_retries_transient_failures(data_service, client, sleep):
    client.fail("pins", "insert", code="08006", times=1)

    result = await data_service.batch_create_pins_detailed([pin_input(name="A"), pin_input(name="B")])

    assert result.all_succeeded
    assert sorted(pin.name for pin in result.succeeded) == ["A", "B"]
    assert client.count_calls("pins", "insert") == 3
    assert sleep.delays == [0.01]


@pytest.mark.asyncio
async def test_batch_create_reports_members_that_exhaust_retries(data_service, client):
    client.fail("pins", "insert", code="08006")

    result = await data_service.batch_create_pins_detailed([pin_input(name="A"), pin_input(name="B")])

    assert result.succeeded == []
    assert sorted(failure.index for failure in result.failed) == [0, 1]
    assert {failure.code for failure in result.failed} == {"RETRY_EXHAUSTED"}
    assert client.count_calls("pins", "insert") == 6


@pytest.mark.asyncio
async def test_batch_update_keeps_going_past_a_failed_member(data_service, client):
    [existing] = client.seed("pins", {"bed_id": "b", "x": 0.1, "y": 0.1, "name": "Old"})

    result = await data_service.batch_update_pins_detailed([
        PinBatchUpdate(id=existing["id"], updates=PinUpdate(name="New")),
        PinBatchUpdate(id="missing", updates=PinUpdate(name="Ghost")),
    ])

    assert [pin.name for pin in result.succeeded] == ["New"]
    assert [(failure.index, failure.code) for failure in result.failed] == [(1, "NOT_FOUND")]
    assert [pin.name for pin in await data_service.batch_update_pins([])] == []


@pytest.mark.asyncio
async def test_batch_create_returns_only_successful_pins(data_service):
    pins = await data_service.batch_create_pins([pin_input(name="A")])

    assert [pin.name for pin in pins] == ["A"]


# =============================================================================
# Plants and care
# =============================================================================

@pytest.mark.asyncio
async def test_plant_instance_reads_embed_species(data_service, client):
    [details] = client.seed("plant_details", {"name": "Basil", "scientific_name": "Ocimum basilicum"})
    instance = await data_service.create_plant_instance(
        PlantInstanceCreate(plant_details_id=details["id"], bed_id="bed-1", pin_id="pin-1")
    )

    by_pin = await data_service.get_plant_instance_by_pin("pin-1")

    assert by_pin.id == instance.id
    assert by_pin.plant_details.name == "Basil"


@pytest.mark.asyncio
async def test_species_update_invalidates_embedded_instance_reads(data_service, client):
    [details] = client.seed("plant_details", {"name": "Basil"})
    client.seed("plant_instances", {"plant_details_id": details["id"], "bed_id": "bed-1", "pin_id": "pin-1"})
    await data_service.list_plant_instances_by_bed("bed-1")

    await data_service.update_plant_details(details["id"], PlantDetailsUpdate(name="Thai Basil"))
    [instance] = await data_service.list_plant_instances_by_bed("bed-1")

    assert instance.plant_details.name == "Thai Basil"


@pytest.mark.asyncio
async def test_plant_details_search(data_service, client):
    client.seed(
        "plant_details",
        {"name": "Basil", "scientific_name": "Ocimum basilicum"},
        {"name": "Rose", "scientific_name": "Rosa"},
    )

    assert [d.name for d in await data_service.search_plant_details("ocimum")] == ["Basil"]
    assert [d.name for d in await data_service.list_plant_details()] == ["Basil", "Rose"]


@pytest.mark.asyncio
async def test_care_history_is_newest_first_and_refreshed_on_create(data_service):
    def event(day: str) -> CareEventCreate:
        return CareEventCreate(
            plant_instance_id="instance-1", event_type="watering", event_date=day, description="Water",
        )

    await data_service.create_care_event(event("2024-06-01"))
    assert len(await data_service.get_care_events("instance-1")) == 1

    await data_service.create_care_event(event("2024-06-03"))
    history = await data_service.get_care_events("instance-1")
    recent = await data_service.get_recent_care_events(limit=1)

    assert [str(e.event_date) for e in history] == ["2024-06-03", "2024-06-01"]
    assert [str(e.event_date) for e in recent] == ["2024-06-03"]


# =============================================================================
# Media
# =============================================================================

def photo(**overrides) -> MediaUpload:
    fields = {"filename": "leaf.PNG", "content": b"png-bytes", "content_type": "image/png", "caption": "New leaf"}
    fields.update(overrides)
    return MediaUpload(**fields)


@pytest.mark.asyncio
async def test_pin_media_upload_stores_file_then_row(data_service, client):
    media = await data_service.upload_pin_media("pin-1", photo())

    [(path, content)] = client.storage.files["plant-images"].items()
    assert path.startswith("pin/pin-1/") and path.endswith(".png")
    assert content == b"png-bytes"
    assert client.storage.options[("plant-images", path)]["upsert"] == "false"
    assert media.storage_path == path
    assert media.url == f"{PUBLIC_PREFIX}/plant-images/{path}"
    assert [m.id for m in await data_service.get_pin_media("pin-1")] == [media.id]


@pytest.mark.asyncio
async def test_failed_row_insert_removes_uploaded_file(data_service, client):
    client.fail("plant_media", "insert")

    with pytest.raises(DatabaseError):
        await data_service.upload_plant_media("plant-1", photo(pin_id="pin-1"))

    assert client.storage.files["plant-media"] == {}
    [(bucket, path)] = client.storage.removed
    assert bucket == "plant-media" and path.startswith("plant-1/")


@pytest.mark.asyncio
async def test_storage_failure_skips_row_insert(data_service, client):
    client.storage.fail_uploads = True

    with pytest.raises(StorageError):
        await data_service.upload_pin_media("pin-1", photo())

    assert client.count_calls("pin_media", "insert") == 0


@pytest.mark.asyncio
async def test_plant_media_delete_removes_file_and_row(data_service, client):
    media = await data_service.upload_plant_media("plant-1", photo(filename="no-extension"))
    assert media.storage_path.endswith(".jpg")

    await data_service.delete_plant_media(media.id)

    assert client.storage.files["plant-media"] == {}
    assert await data_service.get_plant_media("plant-1") == []


# =============================================================================
# Maintenance
# =============================================================================

@pytest.mark.asyncio
async def test_health_check_reports_latency(data_service):
    health = await data_service.health_check()

    assert health["healthy"] is True
    assert health["latency_ms"] >= 0


@pytest.mark.asyncio
async def test_health_check_never_raises(data_service, client):
    client.fail("pins", "select", message="connection refused")

    health = await data_service.health_check()

    assert health["healthy"] is False
    assert "connection refused" in health["error"]


@pytest.mark.asyncio
async def test_cleanup_counts_rows_and_collects_step_errors(data_service, client, caches):
    client.seed(
        "plant_instances",
        {"plant_details_id": "d", "bed_id": "b", "pin_id": None},
        {"plant_details_id": "d", "bed_id": "b", "pin_id": "pin-1"},
    )
    client.seed("care_events", {"plant_instance_id": None, "event_date": "2024-06-01", "description": "x"})
    client.fail("plant_media", "delete", message="permission denied")
    caches.database.set("something", 1)

    result = await data_service.cleanup_orphaned_records()

    assert result["deleted"] == 2
    assert result["errors"] == ["Failed to cleanup orphaned media: Failed to cleanup_plant_media: permission denied"]
    assert len(client.tables["plant_instances"]) == 1
    assert caches.database.size() == 0


@pytest.mark.asyncio
async def test_performance_stats_track_operations(data_service):
    await data_service.get_beds()

    stats = data_service.get_performance_stats()

    assert stats["get_beds"]["count"] == 1
