"""
Unit tests for brag/services/brag_service.py

Tests:
- from_config wiring (offline mode never touches the backend)
- Dict inputs are normalized before generation
- accept by index vs standalone entry
- Error propagation for stale indices
"""

import pytest
from pydantic import ValidationError

from brag.common.errors import NotFound
from brag.common.llm_client import LangChainTextGenerator, UnavailableTextGenerator
from brag.services.brag_service import BragService


@pytest.fixture
def service(scripted_llm, store):
    return BragService(scripted_llm(), store)


class TestFromConfig:

    def test_offline_uses_unavailable_generator(self, data_dir):
        service = BragService.from_config(offline=True, data_dir=data_dir)

        assert isinstance(service.text_generator, UnavailableTextGenerator)
        assert service.store.data_dir == data_dir

    def test_online_uses_langchain_generator(self, data_dir):
        service = BragService.from_config(data_dir=data_dir)
        assert isinstance(service.text_generator, LangChainTextGenerator)


class TestGeneration:

    def test_generate_batch_from_dicts(self, service, store):
        result = service.generate_batch(
            [
                {"title": "Email triage", "steps": ["Sort inbox (~10 min)"], "completedAt": "2024-05-01"},
                {"title": "Write release notes", "subtasks": [{"text": "Draft notes"}], "elapsedMinutes": 30},
            ],
            mode="senior",
        )

        assert result.batch.source == "fallback"
        assert result.persisted is True
        assert [e.task_ids for e in result.batch.entries] == [[1], [2]]
        assert store.read_all().batch is not None

    def test_generate_single_from_dict(self, service):
        single = service.generate_single({"task_title": "Prepare budget", "steps": ["Collect numbers"]})

        assert single.source == "fallback"
        assert single.headline == "Completed: Prepare budget"

    def test_generate_single_rejects_invalid(self, service):
        with pytest.raises(ValidationError):
            service.generate_single({"task_title": "", "steps": []})

    def test_value_statement(self, service):
        result = service.value_statement("Fix login bug")

        assert result.source == "fallback"
        assert result.overall_impact.startswith("Restored system reliability")


class TestReview:

    def test_accept_by_index(self, service, store, sample_batch):
        store.save_generation_batch(sample_batch)

        result = service.accept(index=0)

        assert result.ledger_written and result.batch_marked
        assert service.read_all().batch.entries[0].accepted is True

    def test_accept_standalone_entry(self, service, store, sample_entries):
        result = service.accept(entry=sample_entries[1])

        assert result.ledger_written is True
        assert result.batch_marked is False
        assert store.list_ledger_entries()[0].entry_id == result.ledger_entry_id

    def test_accept_requires_target(self, service):
        with pytest.raises(ValueError):
            service.accept()

    def test_update_and_delete_generated(self, service, store, sample_batch):
        store.save_generation_batch(sample_batch)

        updated = service.update_generated(0, {"metrics": "~1h invested"})
        removed = service.delete_generated(2)

        assert updated.metrics == "~1h invested"
        assert removed.title == "Reviewed release checklist"
        with pytest.raises(NotFound):
            service.delete_generated(2)

    def test_delete_ledger_by_id_and_position(self, service, sample_entries):
        first = service.accept(entry=sample_entries[0])
        service.accept(entry=sample_entries[1])

        by_id = service.delete_ledger_by_id(first.ledger_entry_id)
        by_position = service.delete_ledger(0)

        assert by_id.title == "Prepared sprint planning"
        assert by_position.title == "Documented onboarding steps"
        assert service.read_all().ledger_entries == []
