"""
Shared test fixtures.

The OCR service is always replaced by FakeOcrService; no test talks to the
real API.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

import pytest

from models.mapping import MappingEntry
from services.item_state_machine import ItemStateMachine
from services.pipeline_scheduler import PipelineScheduler
from services.session_service import RenameSession
from tests.factories import FakeOcrService


# ===================
# FIXTURES
# ===================

MAPPING_TEXT = (
    "Name\tIMS Game Code\tGame Provider\n"
    "Book of Dead\tbookofdead\tPlaytech\n"
    "Starburst\tstarburst\tNetEnt\n"
    "Age of the Gods\taogs\t\n"
)


@pytest.fixture
def mapping_text() -> str:
    """Valid tab-separated mapping table with three rows."""
    return MAPPING_TEXT


@pytest.fixture
def sample_mappings() -> list[MappingEntry]:
    """Entries matching mapping_text."""
    return [
        MappingEntry(game_name="Book of Dead", code="bookofdead", provider="Playtech"),
        MappingEntry(game_name="Starburst", code="starburst", provider="NetEnt"),
        MappingEntry(game_name="Age of the Gods", code="aogs"),
    ]


@pytest.fixture
def fake_ocr() -> FakeOcrService:
    """FakeOcrService with no canned responses (returns None)."""
    return FakeOcrService()


@pytest.fixture
def session(mapping_text) -> RenameSession:
    """Session with a credential and mapping text set."""
    session = RenameSession(credential="test-key")
    session.set_mapping_text(mapping_text)
    return session


@pytest.fixture
def state_machine(fake_ocr) -> ItemStateMachine:
    return ItemStateMachine(ocr_service=fake_ocr)


@pytest.fixture
def scheduler(session, state_machine) -> PipelineScheduler:
    return PipelineScheduler(session, state_machine=state_machine)


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client():
    """
    Create FastAPI test client over a fresh session.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/api/session")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app
    from services.session_service import reset_session

    reset_session()
    with TestClient(app) as client:
        yield client
    reset_session()
