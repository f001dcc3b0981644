import pytest
from fastapi.testclient import TestClient

from gardenbeds.main import create_application
from gardenbeds.modules.garden.application.backend_service import BackendService
from tests.fakes import FakeClock, FakeHTTPSession, FakeSupabaseClient, RecordingSleep


@pytest.fixture
def backend(settings, client) -> BackendService:
    return BackendService.create(
        settings,
        client,
        session=FakeHTTPSession(),
        clock=FakeClock(),
        sleep=RecordingSleep(),
    )


@pytest.fixture
def api(settings, backend) -> TestClient:
    # No context manager: the lifespan would build its own backend from the environment
    return TestClient(create_application(settings, backend=backend))


@pytest.fixture
def seeded(client: FakeSupabaseClient):
    [bed] = client.seed("beds", {"id": "bed-1", "section": "north", "name": "Herb spiral"})
    client.seed(
        "pins",
        {"id": "pin-1", "bed_id": "bed-1", "section_id": "north", "name": "Basil", "x": 0.2, "y": 0.4,
         "status": "active"},
        {"id": "pin-2", "bed_id": "bed-1", "section_id": "north", "name": "Thyme", "x": 0.6, "y": 0.1,
         "status": "dormant"},
    )
    return bed
