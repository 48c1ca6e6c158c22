"""
Review/Accept Workflow.

State machine for one user reviewing one generated batch:

    NO_BATCH -> GENERATING -> BATCH_READY -> (EDITING_ENTRY | ACCEPTING | DELETING) -> BATCH_READY

Generation always ends in BATCH_READY (a fallback batch at worst). Store
errors propagate to the caller as typed exceptions and are never retried
here: retrying a NotFound against a stale index is itself wrong.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import FrozenSet, List, Optional, Protocol, Sequence, Set

from brag.common.errors import InvalidTransition, NotFound, PersistenceFailure
from brag.common.logger import get_logger
from brag.achievements.entry_store import EntryStore
from brag.achievements.schemas import EntryUpdate
from brag.achievements.statement_generator import StatementGenerator
from brag.achievements.types import (
    AcceptResult,
    AchievementEntry,
    BatchGenerationResult,
    CompletedTaskRecord,
    GenerationBatch,
)

logger = get_logger(__name__, component="review")


class ReviewState(str, Enum):
    NO_BATCH = "no_batch"
    GENERATING = "generating"
    BATCH_READY = "batch_ready"
    EDITING_ENTRY = "editing_entry"
    ACCEPTING = "accepting"
    DELETING = "deleting"


class TaskSource(Protocol):
    """Optional collaborator that caches accepted statements on the originating task."""

    def save_accepted_statement(self, task_ref: str, statement: str, overall_impact: Optional[str]) -> None:
        ...


@dataclass
class EditDraft:
    """In-place editable copy of an entry's wording."""

    index: int
    title: str
    bullet: str
    metrics: str


def generate_and_save(
    generator: StatementGenerator,
    store: EntryStore,
    tasks: Sequence[CompletedTaskRecord],
    mode: str = "ic",
    wording: str = "safe",
) -> BatchGenerationResult:
    """
    Generate a batch and persist it, replacing the previous one.

    A persistence failure is reported on the result instead of discarding the
    generated entries. An empty task list is returned without being saved.
    """
    result = generator.generate_batch(tasks, mode, wording)
    if not tasks:
        return result
    try:
        store.save_generation_batch(result.batch)
        result.persisted = True
    except PersistenceFailure as e:
        result.persistence_error = str(e)
    return result


def accept_generated_entry(store: EntryStore, index: int) -> AcceptResult:
    """
    Copy the batch entry at index into the ledger and mark it accepted.

    Idempotent: an entry already marked accepted is a no-op success. The ledger
    append and the batch marker are independent writes; if the marker write
    fails after the append, the result reports ledger_written=True with
    batch_marked=False and the error.

    Raises:
        NotFound: No batch, or index out of range
        PersistenceFailure: The batch could not be read or the ledger append failed
    """
    batch = store.get_generation_batch()
    if not 0 <= index < len(batch.entries):
        raise NotFound(f"Invalid index {index}", index=index, document="generated")

    entry = batch.entries[index]
    if entry.accepted:
        logger.info(f"Entry {index} already accepted; nothing to do")
        return AcceptResult(
            ledger_written=False,
            batch_marked=True,
            already_accepted=True,
            ledger_entry_id=entry.ledger_entry_id,
            path=str(store.ledger_path),
        )

    path, entry_id = store.append_ledger_entry(entry)

    try:
        store.update_generated_entry(index, EntryUpdate(accepted=True, ledger_entry_id=entry_id))
    except (NotFound, PersistenceFailure) as e:
        logger.error(f"Ledger entry {entry_id} written but batch entry {index} not marked accepted: {e}")
        return AcceptResult(
            ledger_written=True,
            batch_marked=False,
            ledger_entry_id=entry_id,
            path=str(path),
            error=str(e),
        )

    return AcceptResult(ledger_written=True, batch_marked=True, ledger_entry_id=entry_id, path=str(path))


class ReviewSession:
    """
    One user's review of the current generated batch.

    Usage:
        session = ReviewSession(generator, store)
        session.load()
        session.generate(tasks, mode="senior")
        session.accept(0)
        session.begin_edit(1)
        session.update_draft(bullet="Coordinated 4 action items, improving visibility")
        session.save_edit()
    """

    def __init__(
        self,
        generator: StatementGenerator,
        store: EntryStore,
        task_source: Optional[TaskSource] = None,
    ):
        self.generator = generator
        self.store = store
        self.task_source = task_source

        self._state = ReviewState.NO_BATCH
        self._batch: Optional[GenerationBatch] = None
        self._tasks: List[CompletedTaskRecord] = []
        self._accepted: Set[int] = set()
        self._draft: Optional[EditDraft] = None
        self.last_result: Optional[BatchGenerationResult] = None
        self._unsaved = False

    # ----- read-only view -----

    @property
    def state(self) -> ReviewState:
        return self._state

    @property
    def batch(self) -> Optional[GenerationBatch]:
        return self._batch

    @property
    def entries(self) -> List[AchievementEntry]:
        return list(self._batch.entries) if self._batch else []

    @property
    def accepted_indices(self) -> FrozenSet[int]:
        return frozenset(self._accepted)

    @property
    def draft(self) -> Optional[EditDraft]:
        return self._draft

    @property
    def unsaved(self) -> bool:
        """True while the batch on screen failed to save and differs from the stored one."""
        return self._unsaved

    # ----- helpers -----

    def _require(self, *states: ReviewState, action: str) -> None:
        if self._state not in states:
            raise InvalidTransition(f"Cannot {action} while {self._state.value}")

    def _require_saved(self, action: str) -> None:
        if self._unsaved:
            raise InvalidTransition(f"Cannot {action} while the generated batch is unsaved; reload or regenerate")

    def _require_index(self, index: int) -> AchievementEntry:
        if self._batch is None or not 0 <= index < len(self._batch.entries):
            raise NotFound(f"Invalid index {index}", index=index, document="generated")
        return self._batch.entries[index]

    def _reset_entry_state(self) -> None:
        self._accepted = set()
        self._draft = None

    # ----- transitions -----

    def load(self) -> ReviewState:
        """Pick up the persisted batch, if any."""
        self._require(ReviewState.NO_BATCH, ReviewState.BATCH_READY, action="load")
        self._batch = self.store.read_all().batch
        self._reset_entry_state()
        self._unsaved = False
        if self._batch is not None:
            self._accepted = {i for i, e in enumerate(self._batch.entries) if e.accepted}
        self._state = ReviewState.BATCH_READY if self._batch is not None else ReviewState.NO_BATCH
        return self._state

    def generate(
        self,
        tasks: Sequence[CompletedTaskRecord],
        mode: str = "ic",
        wording: str = "safe",
    ) -> BatchGenerationResult:
        """
        Replace the batch with a freshly generated one.

        Clears accepted and edit state, since indices no longer refer to the
        same entries. An in-progress edit is discarded.

        If the batch could not be saved, accept, edit and delete raise
        InvalidTransition until load() or a generate that saves.
        """
        self._require(
            ReviewState.NO_BATCH, ReviewState.BATCH_READY, ReviewState.EDITING_ENTRY,
            action="generate",
        )
        self._state = ReviewState.GENERATING
        self._reset_entry_state()
        try:
            result = generate_and_save(self.generator, self.store, tasks, mode, wording)
        finally:
            self._state = ReviewState.BATCH_READY

        self._tasks = list(tasks)
        self._batch = result.batch
        self.last_result = result
        self._unsaved = bool(result.persistence_error)
        if result.persistence_error:
            logger.error(f"Generated batch not saved: {result.persistence_error}")
        return result

    def accept(self, index: int) -> AcceptResult:
        """Accept one entry into the ledger; accepting twice is a no-op success."""
        self._require(ReviewState.BATCH_READY, action="accept")
        self._require_saved("accept")
        entry = self._require_index(index)

        if index in self._accepted:
            return AcceptResult(
                ledger_written=False,
                batch_marked=entry.accepted,
                already_accepted=True,
                ledger_entry_id=entry.ledger_entry_id,
            )

        self._state = ReviewState.ACCEPTING
        try:
            result = accept_generated_entry(self.store, index)
        finally:
            self._state = ReviewState.BATCH_READY

        self._accepted.add(index)
        if result.batch_marked:
            self._batch.entries[index] = replace(
                entry, accepted=True, ledger_entry_id=result.ledger_entry_id or entry.ledger_entry_id
            )
        if result.ledger_written:
            self._write_back(entry)
        return result

    def _write_back(self, entry: AchievementEntry) -> None:
        """Cache the accepted statement on a single source task, best effort."""
        if self.task_source is None or len(entry.task_ids) != 1:
            return
        position = entry.task_ids[0]
        if not 1 <= position <= len(self._tasks) or not self._tasks[position - 1].task_id:
            return
        task_ref = self._tasks[position - 1].task_id
        try:
            self.task_source.save_accepted_statement(task_ref, entry.bullet, entry.overall_impact)
        except Exception as e:
            logger.warning(f"Could not cache accepted statement on task {task_ref}: {e}")

    def begin_edit(self, index: int) -> EditDraft:
        self._require(ReviewState.BATCH_READY, action="edit")
        self._require_saved("edit")
        entry = self._require_index(index)
        self._draft = EditDraft(index=index, title=entry.title, bullet=entry.bullet, metrics=entry.metrics)
        self._state = ReviewState.EDITING_ENTRY
        return self._draft

    def update_draft(
        self,
        title: Optional[str] = None,
        bullet: Optional[str] = None,
        metrics: Optional[str] = None,
    ) -> EditDraft:
        """Change the draft's title, bullet or metrics; None leaves a field as is."""
        self._require(ReviewState.EDITING_ENTRY, action="update draft")
        if title is not None:
            self._draft.title = title
        if bullet is not None:
            self._draft.bullet = bullet
        if metrics is not None:
            self._draft.metrics = metrics
        return self._draft

    def save_edit(self) -> AchievementEntry:
        """
        Persist the draft and return to BATCH_READY.

        On a store error the session stays in EDITING_ENTRY so the user can
        retry or cancel.
        """
        self._require(ReviewState.EDITING_ENTRY, action="save edit")
        draft = self._draft
        update = EntryUpdate(title=draft.title, bullet=draft.bullet, metrics=draft.metrics)
        saved = self.store.update_generated_entry(draft.index, update)

        self._batch.entries[draft.index] = saved
        self._draft = None
        self._state = ReviewState.BATCH_READY
        return saved

    def cancel_edit(self) -> None:
        self._require(ReviewState.EDITING_ENTRY, action="cancel edit")
        self._draft = None
        self._state = ReviewState.BATCH_READY

    def delete(self, index: int) -> AchievementEntry:
        """Remove an entry from the batch; accepted indices above it shift down."""
        self._require(ReviewState.BATCH_READY, action="delete")
        self._require_saved("delete")
        self._require_index(index)

        self._state = ReviewState.DELETING
        try:
            removed = self.store.delete_generated_entry(index)
        finally:
            self._state = ReviewState.BATCH_READY

        self._batch.entries.pop(index)
        self._accepted = {i if i < index else i - 1 for i in self._accepted if i != index}
        return removed
