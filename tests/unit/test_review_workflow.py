"""
Unit tests for brag/achievements/review_workflow.py

Tests:
- generate_and_save persists batches and reports persistence failures
- accept_generated_entry: ledger append, batch marker, idempotence
- ReviewSession state transitions and index bookkeeping
- Best-effort write-back to the task source
"""

from unittest.mock import MagicMock, patch

import pytest

from brag.common.errors import InvalidTransition, NotFound, PersistenceFailure
from brag.achievements.review_workflow import (
    ReviewSession,
    ReviewState,
    accept_generated_entry,
    generate_and_save,
)


@pytest.fixture
def tasks(make_task):
    return [
        make_task(title="Prepare sprint planning notes", task_id="t-1"),
        make_task(title="Write onboarding guide", steps=["Outline sections", "Draft content"], task_id="t-2"),
        make_task(title="Review release checklist", steps=["Check items"], task_id="t-3"),
    ]


@pytest.fixture
def session(make_generator, store):
    generator, _ = make_generator()
    return ReviewSession(generator, store)


class TestGenerateAndSave:

    def test_fallback_batch_is_persisted(self, make_generator, store, tasks):
        generator, llm = make_generator()

        result = generate_and_save(generator, store, tasks)

        assert result.persisted is True
        assert result.batch.source == "fallback"
        assert llm.call_count == 1
        assert len(store.read_all().batch.entries) == 3

    def test_empty_tasks_are_not_saved(self, make_generator, store, sample_batch):
        store.save_generation_batch(sample_batch)
        generator, llm = make_generator()

        result = generate_and_save(generator, store, [])

        assert result.batch.entries == []
        assert result.persisted is False
        assert llm.call_count == 0
        assert len(store.read_all().batch.entries) == 3

    def test_persistence_failure_keeps_entries(self, make_generator, store, tasks):
        generator, _ = make_generator()
        store.save_generation_batch = MagicMock(side_effect=PersistenceFailure("Could not save: disk full"))

        result = generate_and_save(generator, store, tasks)

        assert result.persisted is False
        assert "disk full" in result.persistence_error
        assert len(result.batch.entries) == 3


class TestAcceptGeneratedEntry:

    def test_accept_appends_and_marks(self, store, sample_batch):
        store.save_generation_batch(sample_batch)

        result = accept_generated_entry(store, 0)

        assert result.success
        assert result.ledger_written and result.batch_marked
        entry = store.read_all().batch.entries[0]
        assert entry.accepted is True
        assert entry.ledger_entry_id == result.ledger_entry_id
        assert [r.entry_id for r in store.list_ledger_entries()] == [result.ledger_entry_id]

    def test_accept_twice_is_idempotent(self, store, sample_batch):
        store.save_generation_batch(sample_batch)

        first = accept_generated_entry(store, 1)
        second = accept_generated_entry(store, 1)

        assert second.already_accepted is True
        assert second.success
        assert second.ledger_entry_id == first.ledger_entry_id
        assert len(store.list_ledger_entries()) == 1

    def test_accept_invalid_index(self, store, sample_batch):
        store.save_generation_batch(sample_batch)

        with pytest.raises(NotFound):
            accept_generated_entry(store, 5)
        assert store.list_ledger_entries() == []

    def test_accept_without_batch(self, store):
        with pytest.raises(NotFound):
            accept_generated_entry(store, 0)

    def test_marker_failure_reports_partial_success(self, store, sample_batch):
        store.save_generation_batch(sample_batch)

        with patch.object(store, "update_generated_entry", side_effect=PersistenceFailure("read-only")):
            result = accept_generated_entry(store, 0)

        assert result.ledger_written is True
        assert result.batch_marked is False
        assert "read-only" in result.error
        assert len(store.list_ledger_entries()) == 1


class TestReviewSession:

    def test_load_without_batch(self, session):
        assert session.load() == ReviewState.NO_BATCH
        assert session.entries == []

    def test_load_existing_batch(self, session, store, sample_batch):
        sample_batch.entries[2].accepted = True
        store.save_generation_batch(sample_batch)

        assert session.load() == ReviewState.BATCH_READY
        assert len(session.entries) == 3
        assert session.accepted_indices == frozenset({2})

    def test_generate_ends_batch_ready(self, session, tasks):
        result = session.generate(tasks, mode="lead")

        assert session.state == ReviewState.BATCH_READY
        assert result.batch.source == "fallback"
        assert session.last_result is result
        assert session.entries[0].title == "Led: Prepare sprint planning notes"

    def test_generate_clears_accepted_state(self, session, tasks):
        session.generate(tasks)
        session.accept(0)

        session.generate(tasks)

        assert session.accepted_indices == frozenset()

    def test_actions_require_a_batch(self, session):
        with pytest.raises(InvalidTransition, match="Cannot accept while no_batch"):
            session.accept(0)
        with pytest.raises(InvalidTransition):
            session.begin_edit(0)
        with pytest.raises(InvalidTransition):
            session.delete(0)

    def test_accept_is_idempotent_within_session(self, session, store, tasks):
        session.generate(tasks)

        first = session.accept(1)
        second = session.accept(1)

        assert first.ledger_written
        assert second.already_accepted
        assert session.accepted_indices == frozenset({1})
        assert session.entries[1].accepted is True
        assert len(store.list_ledger_entries()) == 1

    def test_accept_out_of_range(self, session, tasks):
        session.generate(tasks)

        with pytest.raises(NotFound):
            session.accept(3)
        assert session.state == ReviewState.BATCH_READY

    def test_edit_flow(self, session, store, tasks):
        session.generate(tasks)

        draft = session.begin_edit(0)
        assert session.state == ReviewState.EDITING_ENTRY
        assert draft.title == session.entries[0].title

        session.update_draft(bullet="Organized 2 action items for the sprint")
        saved = session.save_edit()

        assert session.state == ReviewState.BATCH_READY
        assert saved.bullet == "Organized 2 action items for the sprint"
        assert store.read_all().batch.entries[0].bullet == saved.bullet
        assert session.draft is None

    def test_cannot_accept_while_editing(self, session, tasks):
        session.generate(tasks)
        session.begin_edit(0)

        with pytest.raises(InvalidTransition, match="editing_entry"):
            session.accept(0)

    def test_cancel_edit_discards_draft(self, session, store, tasks):
        session.generate(tasks)
        original = session.entries[0].bullet

        session.begin_edit(0)
        session.update_draft(bullet="Something else")
        session.cancel_edit()

        assert session.state == ReviewState.BATCH_READY
        assert session.entries[0].bullet == original
        assert store.read_all().batch.entries[0].bullet == original

    def test_failed_save_stays_in_edit(self, session, store, tasks):
        session.generate(tasks)
        session.begin_edit(0)
        session.update_draft(title="")

        with pytest.raises(ValueError):
            session.save_edit()
        assert session.state == ReviewState.EDITING_ENTRY

        session.cancel_edit()
        assert session.state == ReviewState.BATCH_READY

    def test_save_edit_after_external_delete(self, session, store, tasks):
        session.generate(tasks)
        session.begin_edit(2)
        store.delete_generated_entry(2)

        with pytest.raises(NotFound):
            session.save_edit()
        assert session.state == ReviewState.EDITING_ENTRY

    def test_generate_discards_edit(self, session, tasks):
        session.generate(tasks)
        session.begin_edit(0)

        session.generate(tasks)

        assert session.state == ReviewState.BATCH_READY
        assert session.draft is None

    def test_delete_shifts_accepted_indices(self, session, store, tasks):
        session.generate(tasks)
        session.accept(0)
        session.accept(2)

        removed = session.delete(1)

        assert removed.task_ids == [2]
        assert session.accepted_indices == frozenset({0, 1})
        assert len(session.entries) == 2
        assert len(store.read_all().batch.entries) == 2

    def test_delete_accepted_entry_keeps_ledger(self, session, store, tasks):
        session.generate(tasks)
        session.accept(0)

        session.delete(0)

        assert session.accepted_indices == frozenset()
        assert len(store.list_ledger_entries()) == 1

    def test_unsaved_batch_refuses_store_actions(self, session, store, sample_batch, tasks):
        store.save_generation_batch(sample_batch)
        store.save_generation_batch = MagicMock(side_effect=PersistenceFailure("Could not save: disk full"))

        result = session.generate(tasks)

        assert result.persistence_error
        assert session.unsaved is True
        assert session.entries[0].title == "Completed: Prepare sprint planning notes"
        with pytest.raises(InvalidTransition, match="unsaved"):
            session.accept(0)
        with pytest.raises(InvalidTransition, match="unsaved"):
            session.begin_edit(0)
        with pytest.raises(InvalidTransition, match="unsaved"):
            session.delete(0)
        assert store.list_ledger_entries() == []
        assert len(store.read_all().batch.entries) == 3
        assert session.state == ReviewState.BATCH_READY

    def test_reload_after_unsaved_batch_acts_on_stored_entries(self, session, store, sample_batch, tasks):
        store.save_generation_batch(sample_batch)
        store.save_generation_batch = MagicMock(side_effect=PersistenceFailure("Could not save: disk full"))
        session.generate(tasks)
        del store.save_generation_batch

        session.load()
        session.accept(0)

        assert session.unsaved is False
        assert [r.title for r in store.list_ledger_entries()] == ["Prepared sprint planning"]

    def test_saved_regenerate_clears_unsaved(self, session, store, tasks):
        store.save_generation_batch = MagicMock(side_effect=PersistenceFailure("Could not save: disk full"))
        session.generate(tasks)
        del store.save_generation_batch

        session.generate(tasks)
        session.accept(0)

        assert session.unsaved is False
        assert len(store.list_ledger_entries()) == 1


class TestWriteBack:

    def test_single_task_entry_is_written_back(self, make_generator, store, tasks):
        generator, _ = make_generator()
        task_source = MagicMock()
        session = ReviewSession(generator, store, task_source=task_source)
        session.generate(tasks)

        session.accept(1)

        entry = session.entries[1]
        task_source.save_accepted_statement.assert_called_once_with("t-2", entry.bullet, entry.overall_impact)

    def test_write_back_failure_does_not_fail_accept(self, make_generator, store, tasks):
        generator, _ = make_generator()
        task_source = MagicMock()
        task_source.save_accepted_statement.side_effect = RuntimeError("task store offline")
        session = ReviewSession(generator, store, task_source=task_source)
        session.generate(tasks)

        result = session.accept(0)

        assert result.success
        assert session.state == ReviewState.BATCH_READY

    def test_grouped_entry_is_not_written_back(self, make_generator, store, make_task):
        generator, _ = make_generator()
        task_source = MagicMock()
        session = ReviewSession(generator, store, task_source=task_source)
        session.generate([
            make_task(title="Review pull request 12", task_id="a"),
            make_task(title="Review pull request 13", task_id="b"),
        ])

        session.accept(0)

        task_source.save_accepted_statement.assert_not_called()
