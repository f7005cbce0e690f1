# backend/tests/conftest.py

import copy
import json
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from dotenv import load_dotenv

# Load environment variables FIRST, before any kaani imports, so the
# settings singleton is built from the test configuration.
load_dotenv(dotenv_path=Path(__file__).resolve().parent.parent / ".env.test")

from kaani.config.settings import Settings, DEFAULT_FLOWS_DIR  # noqa: E402
from kaani.main import app  # noqa: E402
from kaani.models.flow import FlowDefinition  # noqa: E402
from kaani.services.conversation_service import ConversationService  # noqa: E402
from kaani.services.conversation_store import InMemoryConversationStore  # noqa: E402
from kaani.workflows.loader import FlowRegistry  # noqa: E402


# A small intake flow: three required slots asked in order, then an
# optional irrigation question. Each step loops on itself while its slot
# is missing, so the navigator walks forward as slots fill.
GUIDED_FLOW = {
    "id": "default",
    "version": "1.0.0",
    "audience": "loan_officer",
    "dialectsSupported": ["english", "tagalog"],
    "intro": {"title": "Intake", "description": "Test intake flow"},
    "slots": [
        {
            "key": "crop", "label": "Crop", "type": "select", "required": True,
            "options": [{"value": "palay", "label": "Rice"}, {"value": "corn", "label": "Mais"}],
        },
        {
            "key": "hectares", "label": "Farm size", "type": "number", "required": True,
            "validation": {"min": 0.01, "max": 1000},
        },
        {"key": "province", "label": "Province", "type": "text", "required": True},
        {
            "key": "irrigationType", "label": "Irrigation", "type": "select", "required": False,
            "options": [{"value": "rainfed", "label": "Rain-fed"}, {"value": "irrigated", "label": "Canal"}],
        },
    ],
    "steps": [
        {
            "id": "ask_crop", "title": "Crop", "prompt": "What is the primary crop?", "slotKeys": [],
            "suggestions": ["Palay", "Mais"],
            "next": {"when": [{"slotKey": "crop", "op": "missing"}], "go": "ask_crop"},
        },
        {
            "id": "ask_hectares", "title": "Farm size", "prompt": "How many hectares?", "slotKeys": [],
            "next": {"when": [{"slotKey": "hectares", "op": "missing"}], "go": "ask_hectares"},
        },
        {
            "id": "ask_province", "title": "Location", "prompt": "Which province?", "slotKeys": [],
            "next": {"when": [{"slotKey": "province", "op": "missing"}], "go": "ask_province"},
        },
        {
            "id": "ask_irrigation", "title": "Irrigation", "prompt": "Rain-fed or irrigated?", "slotKeys": [],
            "next": {"when": [{"slotKey": "irrigationType", "op": "missing"}], "go": "ask_irrigation"},
        },
    ],
}


@pytest.fixture
def guided_flow_data():
    """A fresh, mutable copy of the test flow document."""
    return copy.deepcopy(GUIDED_FLOW)


@pytest.fixture
def guided_flow(guided_flow_data) -> FlowDefinition:
    return FlowDefinition.model_validate(guided_flow_data)


@pytest.fixture
def make_flow():
    """Builds a FlowDefinition from just slots and steps."""
    def _make(slots, steps, audience="loan_officer"):
        return FlowDefinition.model_validate({
            "id": "test",
            "version": "1",
            "audience": audience,
            "dialectsSupported": ["english"],
            "intro": {"title": "Test", "description": "Test flow"},
            "slots": slots,
            "steps": steps,
        })
    return _make


@pytest.fixture
def flows_dir(tmp_path, guided_flow_data):
    """Directory holding the test flow as the default flow for both audiences."""
    for audience in ("loan_officer", "farmer"):
        data = dict(guided_flow_data, audience=audience)
        (tmp_path / f"{audience}.default.flow.json").write_text(json.dumps(data), encoding="utf-8")
    return tmp_path


@pytest.fixture
def engine_settings():
    return Settings(
        deployment_profile="DEV",
        strict_flow_validation=False,
        history_limit=10,
        generation_timeout_seconds=1.0,
        log_hash_salt="test-salt",
    )


@pytest.fixture
def memory_store():
    return InMemoryConversationStore()


@pytest.fixture
def mock_generator():
    generator = AsyncMock()
    generator.generate.return_value = "Salamat! Ilang ektarya po ang sakahan?"
    return generator


@pytest.fixture
def conversation_service(memory_store, mock_generator, flows_dir, engine_settings):
    return ConversationService(memory_store, mock_generator, FlowRegistry(str(flows_dir)), engine_settings)


@pytest.fixture(scope="function")
def test_client(mock_generator, engine_settings):
    """
    Provides a TestClient for API integration tests. The engine built during
    startup is replaced with one using an in-memory store, the bundled
    flows, and a mocked generator.
    """
    with TestClient(app) as client:
        app.state.conversation_service = ConversationService(
            InMemoryConversationStore(),
            mock_generator,
            FlowRegistry(DEFAULT_FLOWS_DIR),
            engine_settings,
        )
        yield client
