"""Service test fixtures — in-memory backends, pipeline, and FastAPI test client.

Invariants:
    - Every test gets fresh fakes; nothing is shared across tests
    - The pipeline clock is pinned to FIXED_NOW
    - get_pipeline dependency overridden; the app lifespan (real clients) never runs
"""

import pytest
from httpx import ASGITransport, AsyncClient

from exam_gateway.api.dependencies import get_pipeline
from exam_gateway.main import app
from exam_gateway.services.durable_writer import DurableWriter
from exam_gateway.services.exam_pipeline import ExamPipeline
from exam_gateway.services.notification_publisher import NotificationPublisher
from tests.exam_factory import (
    FIXED_NOW,
    TEST_BUCKET,
    FakeMessageBroker,
    FakeObjectStore,
)


@pytest.fixture
def store():
    return FakeObjectStore()


@pytest.fixture
def broker():
    return FakeMessageBroker()


@pytest.fixture
def writer(store):
    return DurableWriter(store, TEST_BUCKET)


@pytest.fixture
def publisher(broker):
    return NotificationPublisher(broker)


@pytest.fixture
def pipeline(writer, publisher):
    return ExamPipeline(writer, publisher, clock=lambda: FIXED_NOW)


@pytest.fixture
async def client(pipeline, store, broker):
    """FastAPI test client with the pipeline dependency overridden."""
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    app.state.object_store = store
    app.state.message_broker = broker

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    del app.state.object_store
    del app.state.message_broker


@pytest.fixture
def auth_headers():
    return {"hospital_id": "b" * 64, "hospital_key": "c" * 64}
