"""
Global fixtures for all unit tests.

This conftest provides:
- Environment isolation (no real model endpoint, data dir under tmp_path)
- A scripted fake text generator that records every call
- Task and entry factories

No test in tests/unit/ talks to a real text generation backend.
"""

import json
from typing import List, Optional, Union

import pytest

from brag.common.config import Config
from brag.common.llm_client import GenerationOptions, GenerationResult
from brag.achievements.entry_store import EntryStore
from brag.achievements.statement_generator import StatementGenerator
from brag.achievements.types import (
    AchievementEntry,
    BatchSummary,
    CompletedTaskRecord,
    GenerationBatch,
)


class FakeTextGenerator:
    """
    TextGenerator double that replays scripted responses.

    Strings become ok results; GenerationResult objects are returned as-is;
    exceptions are raised. Once the script runs out, every call fails.
    """

    def __init__(self, *responses: Union[str, GenerationResult, Exception]):
        self.responses = list(responses)
        self.calls: List[tuple] = []

    def generate(self, prompt: str, options: GenerationOptions) -> GenerationResult:
        self.calls.append((prompt, options))
        if not self.responses:
            return GenerationResult.failure("no scripted response")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, GenerationResult):
            return response
        return GenerationResult(ok=True, text=response, model="fake")

    @property
    def call_count(self) -> int:
        return len(self.calls)


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch, tmp_path):
    """
    Isolate tests from real configuration.

    - Points the data directory at tmp_path
    - Points the model endpoint at an address nothing listens on
    """
    monkeypatch.setattr(Config, "BRAG_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setattr(Config, "LLM_BASE_URL", "http://127.0.0.1:9/v1")
    monkeypatch.setattr(Config, "LLM_MAX_ATTEMPTS", 1)
    monkeypatch.setenv("DEBUG_MODE", "false")


@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


@pytest.fixture
def store(data_dir):
    return EntryStore(data_dir)


@pytest.fixture
def fake_llm():
    """Fake text generator with an empty script (every call fails)."""
    return FakeTextGenerator()


@pytest.fixture
def make_generator():
    """Build a StatementGenerator around a scripted fake."""

    def _make(*responses):
        llm = FakeTextGenerator(*responses)
        return StatementGenerator(llm), llm

    return _make


@pytest.fixture
def make_task():
    """Factory for CompletedTaskRecord with sensible defaults."""

    def _make(
        title: str = "Prepare sprint planning notes",
        steps: Optional[List[str]] = None,
        elapsed_minutes: Optional[int] = None,
        core_why: str = "",
        outcome_confirmations: Optional[dict] = None,
        task_id: Optional[str] = None,
    ) -> CompletedTaskRecord:
        return CompletedTaskRecord(
            title=title,
            steps=steps if steps is not None else ["Collect open tickets (~10 min)", "Draft agenda (~15 min)"],
            completed_at="2024-05-01T10:00:00+00:00",
            elapsed_minutes=elapsed_minutes,
            core_why=core_why,
            outcome_confirmations=outcome_confirmations or {},
            task_id=task_id,
        )

    return _make


@pytest.fixture
def sample_entries():
    return [
        AchievementEntry(
            title="Prepared sprint planning",
            bullet="Prepared 4 action items, enabling informed decision-making",
            metrics="~45min invested across 1 task(s)",
            category="Planning",
            tags=["PLANNING"],
            overall_impact="Gave the team a clear agenda.",
            task_ids=[1],
            confidence="medium",
        ),
        AchievementEntry(
            title="Documented onboarding steps",
            bullet="Documented 3 action items, improving information accessibility",
            metrics="~30min invested across 1 task(s)",
            category="Delivery",
            tags=["DOCUMENTATION"],
            task_ids=[2],
            confidence="low",
        ),
        AchievementEntry(
            title="Reviewed release checklist",
            bullet="Reviewed 5 action items, reducing risk of oversight",
            metrics="~60min invested across 1 task(s)",
            category="Operations",
            tags=["OPERATIONS"],
            task_ids=[3],
            confidence="high",
        ),
    ]


@pytest.fixture
def sample_batch(sample_entries):
    return GenerationBatch(
        entries=sample_entries,
        summary=BatchSummary(
            total_tasks=3,
            total_time_invested="~2.2h",
            top_category="Planning",
            overall_impact="Kept planning, docs and releases on track.",
        ),
        source="model",
        run_id="abc123def456",
    )


@pytest.fixture
def batch_response():
    """Serialize a model-style batch response."""

    def _serialize(entries: List[dict], summary: Optional[dict] = None) -> str:
        return json.dumps({
            "entries": entries,
            "summary": summary if summary is not None else {
                "total_tasks": len(entries),
                "total_time_invested": "~1h",
                "top_category": "Delivery",
                "overall_impact": "Kept delivery on schedule.",
            },
        })

    return _serialize


@pytest.fixture
def scripted_llm():
    """Factory for a FakeTextGenerator with the given script."""
    return FakeTextGenerator
