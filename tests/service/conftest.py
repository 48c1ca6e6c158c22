"""
Pytest fixtures for brag service tests.
"""

import os

# Set environment variables BEFORE any imports from brag_service so that
# ServiceSettings is configured correctly when first loaded.
os.environ["ENVIRONMENT"] = "development"
os.environ["BRAG_OFFLINE"] = "true"
os.environ["CORS_ORIGINS"] = ""

import pytest
from fastapi.testclient import TestClient

from brag.common.llm_client import GenerationResult
from brag.achievements.entry_store import EntryStore
from brag.services.brag_service import BragService


class ScriptedTextGenerator:
    """Replays scripted response texts; fails once the script runs out."""

    def __init__(self, *responses: str):
        self.responses = list(responses)
        self.prompts = []

    def generate(self, prompt, options):
        self.prompts.append(prompt)
        if not self.responses:
            return GenerationResult.failure("backend offline")
        return GenerationResult(ok=True, text=self.responses.pop(0), model="scripted")


@pytest.fixture
def llm():
    return ScriptedTextGenerator()


@pytest.fixture
def store(tmp_path):
    return EntryStore(tmp_path / "data")


@pytest.fixture
def service(llm, store):
    return BragService(llm, store)


@pytest.fixture
def client(service):
    """FastAPI test client with the brag service pointed at tmp_path."""
    from brag_service.app import app
    from brag_service.routes.brag import get_brag_service

    app.dependency_overrides[get_brag_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def tasks_payload():
    return [
        {
            "title": "Prepare sprint planning notes",
            "steps": ["Collect open tickets (~10 min)", "Draft agenda (~15 min)"],
            "completed_at": "2024-05-01T10:00:00Z",
            "id": "t-1",
        },
        {
            "title": "Write onboarding guide",
            "steps": ["Outline sections", "Draft content", "Share for review"],
            "completed_at": "2024-05-02T10:00:00Z",
            "elapsed_minutes": 50,
        },
    ]
