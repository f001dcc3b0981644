import time

import pytest

from gardenbeds.modules.garden.application.backend_service import BackendService
from gardenbeds.modules.garden.domain.models.pin import PinCreate
from tests.fakes import FakeClock, FakeHTTPResponse, FakeHTTPSession, FakeSupabaseClient, RecordingSleep


def build_backend(settings, client=None, session=None, token=None) -> BackendService:
    if token:
        settings = settings.model_copy(update={"TREFLE_API_TOKEN": token})
    return BackendService.create(
        settings,
        client or FakeSupabaseClient(),
        session=session or FakeHTTPSession(),
        clock=FakeClock(),
        sleep=RecordingSleep(),
    )


def trefle_page(*records):
    return FakeHTTPResponse(200, {"data": list(records), "meta": {"total": len(records)}})


def test_create_wires_collaborators_from_settings(settings):
    backend = build_backend(settings)

    assert backend.caches.names() == ["database", "api", "search", "images"]
    assert backend.caches.database.options.ttl == settings.CACHE_DATABASE_TTL
    assert backend.plant_api is None
    assert backend.get_config() == {"has_plant_api": False, "cache_enabled": True, "retry_enabled": True}
    assert [m.id for m in backend.migrations.get_migrations()] == ["001_initial_schema", "002_plant_details_tables"]


def test_token_enables_plant_api(settings):
    backend = build_backend(settings, token="secret")

    assert backend.get_config()["has_plant_api"] is True
    assert backend.plant_search.plant_client is backend.plant_api


def test_injected_clock_drives_caches_but_not_rate_limiters(settings):
    clock = FakeClock()
    backend = BackendService.create(settings, FakeSupabaseClient(), session=FakeHTTPSession(), clock=clock)

    backend.caches.database.set("beds:all", [])
    clock.advance(settings.CACHE_DATABASE_TTL + 1)

    assert backend.caches.database.get("beds:all") is None
    assert backend.api_client.rate_limiters.clock is time.monotonic


@pytest.mark.asyncio
async def test_start_and_close_manage_sweepers_and_migrations_table(settings):
    client = FakeSupabaseClient()
    session = FakeHTTPSession()
    backend = build_backend(settings, client=client, session=session)

    await backend.start()
    await backend.start()

    assert backend.caches.database.sweeper_running
    assert client.count_calls("rpc", "create_migrations_table_if_not_exists") == 1

    await backend.close()

    assert not backend.caches.database.sweeper_running
    assert session.closed is False


@pytest.mark.asyncio
async def test_health_check_reports_each_component(settings):
    backend = build_backend(settings)

    health = await backend.health_check()

    assert health["overall"] is True
    assert health["database"]["healthy"] is True
    assert health["api"]["rate_limit_status"]["trefle.io"]["remaining"] == settings.RATE_LIMIT_REQUESTS
    assert set(health["cache"]["stats"]) == {"database", "api", "search", "images"}


@pytest.mark.asyncio
async def test_health_check_reports_unreachable_store(settings):
    client = FakeSupabaseClient()
    client.fail("pins", "select", message="connection refused")
    backend = build_backend(settings, client=client)

    health = await backend.health_check()

    assert health["database"]["healthy"] is False
    assert "connection refused" in health["database"]["error"]


@pytest.mark.asyncio
async def test_health_check_survives_a_failing_component(settings, mocker):
    backend = build_backend(settings)
    mocker.patch.object(backend, "get_cache_stats", side_effect=RuntimeError("stats broken"))

    health = await backend.health_check()

    assert health["overall"] is False
    assert health["cache"] == {"healthy": False, "stats": {}}
    assert health["database"]["healthy"] is True


@pytest.mark.asyncio
async def test_enhanced_search_merges_and_deduplicates(settings):
    client = FakeSupabaseClient()
    client.seed("pins", {"bed_id": "b", "x": 0.1, "y": 0.1, "name": "Rosa canina"})
    session = FakeHTTPSession(trefle_page(
        {"id": 1, "common_name": "Dog Rose", "scientific_name": "Rosa canina"},
        {"id": 2, "common_name": "Rugosa Rose", "scientific_name": "Rosa rugosa"},
        {"id": 3, "common_name": "Japanese Rose", "scientific_name": "ROSA RUGOSA"},
    ))
    backend = build_backend(settings, client=client, session=session, token="secret")

    results = await backend.enhanced_plant_search("rosa")

    assert [(r.source, r.name) for r in results] == [("database", "Rosa canina"), ("api", "Rugosa Rose")]
    assert session.requests[0]["params"] == {"q": "rosa", "limit": 5}


@pytest.mark.asyncio
async def test_enhanced_search_keeps_database_hits_when_api_fails(settings):
    client = FakeSupabaseClient()
    client.seed("pins", {"bed_id": "b", "x": 0.1, "y": 0.1, "name": "Basil"})
    session = FakeHTTPSession(*(FakeHTTPResponse(500, text="down") for _ in range(settings.REQUEST_RETRIES)))
    backend = build_backend(settings, client=client, session=session, token="secret")

    results = await backend.search_plants("basil")

    assert [(r.source, r.name) for r in results] == [("database", "Basil")]


@pytest.mark.asyncio
async def test_enhanced_search_keeps_api_hits_when_store_fails(settings):
    client = FakeSupabaseClient()
    client.fail("pins", "select")
    session = FakeHTTPSession(trefle_page({"id": 9, "common_name": "Basil", "scientific_name": "Ocimum basilicum"}))
    backend = build_backend(settings, client=client, session=session, token="secret")

    results = await backend.enhanced_plant_search("basil")

    assert [(r.source, r.scientific_name) for r in results] == [("api", "Ocimum basilicum")]


@pytest.mark.asyncio
async def test_enhanced_search_is_capped_at_ten(settings):
    client = FakeSupabaseClient()
    client.seed("pins", *({"bed_id": "b", "x": 0, "y": 0, "name": f"Mint {n}"} for n in range(12)))
    backend = build_backend(settings, client=client)

    assert len(await backend.enhanced_plant_search("mint")) == 10


@pytest.mark.asyncio
async def test_lookup_plant_details_transforms_record(settings):
    session = FakeHTTPSession(FakeHTTPResponse(200, {"data": {"id": 7, "common_name": "Basil", "water_needs": "High"}}))
    backend = build_backend(settings, session=session, token="secret")

    details = await backend.lookup_plant_details("7")

    assert details.name == "Basil"
    assert details.water_needs == "high"


@pytest.mark.asyncio
async def test_lookup_plant_details_without_token_is_none(settings):
    assert await build_backend(settings).lookup_plant_details("7") is None


@pytest.mark.asyncio
async def test_lookup_plant_details_unknown_id_is_none(settings):
    session = FakeHTTPSession(*(FakeHTTPResponse(404, text="not found") for _ in range(3)))
    backend = build_backend(settings, session=session, token="secret")

    assert await backend.lookup_plant_details("999") is None


@pytest.mark.asyncio
async def test_cache_maintenance(settings):
    backend = build_backend(settings)
    backend.caches.database.set("a", 1)
    backend.caches.api.set("b", 2)
    backend.caches.search.set("c", 3)

    backend.clear_database_cache()
    assert backend.caches.database.size() == 0
    assert backend.caches.api.size() == 1

    backend.clear_api_cache()
    assert backend.caches.api.size() == 0

    backend.clear_all_caches()
    assert backend.caches.search.size() == 0


@pytest.mark.asyncio
async def test_pass_throughs_reach_the_store(settings):
    backend = build_backend(settings)

    pin = await backend.create_pin(PinCreate(bed_id="bed-1", section_id="front", x=0.5, y=0.5))

    assert (await backend.get_pin(pin.id)).id == pin.id
    assert [p.id for p in await backend.get_pins_by_section("front")] == [pin.id]


@pytest.mark.asyncio
async def test_system_stats_and_migrations(settings):
    backend = build_backend(settings)

    run = await backend.run_migrations()
    status = await backend.get_migration_status()
    validation = await backend.validate_migrations()
    rollback = await backend.rollback_migrations(1)
    stats = await backend.get_system_stats()

    assert run.applied == 2
    assert status.pending == 0
    assert validation.valid
    assert rollback.rolled_back_ids == ["002_plant_details_tables"]
    assert stats["database"]["total"] == 0
    assert "client" in stats["api"]
    assert "get_pin_stats" in stats["performance"]
