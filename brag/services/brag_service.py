"""
Brag list operations surface.

Stateless verbs over the generator and the store, one call per user action.
Each method either returns a result or raises a typed error:

- NotFound: the addressed entry/document does not exist (refresh, don't retry)
- PersistenceFailure: a document read/write failed
- ValueError / pydantic.ValidationError: invalid input
"""

from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union

from brag.common.llm_client import LangChainTextGenerator, TextGenerator, UnavailableTextGenerator
from brag.common.logger import get_logger
from brag.achievements.entry_store import EntryStore
from brag.achievements.review_workflow import accept_generated_entry, generate_and_save
from brag.achievements.schemas import EntryUpdate, SingleTaskInput
from brag.achievements.statement_generator import StatementGenerator
from brag.achievements.types import (
    AcceptResult,
    AchievementEntry,
    BatchGenerationResult,
    CompletedTaskRecord,
    LedgerRecord,
    ReadAllResult,
    SingleAchievement,
    ValueStatement,
)
from brag.achievements.value_statement import ValueStatementGenerator

logger = get_logger(__name__, component="service")


class BragService:
    """
    Operations exposed to the HTTP surface and the command line.

    Usage:
        service = BragService.from_config()
        result = service.generate_batch(tasks, mode="senior")
        service.accept(index=0)
    """

    def __init__(
        self,
        text_generator: TextGenerator,
        store: Optional[EntryStore] = None,
    ):
        self.text_generator = text_generator
        self.store = store or EntryStore()
        self.generator = StatementGenerator(text_generator)
        self.value_statements = ValueStatementGenerator(text_generator)

    @classmethod
    def from_config(
        cls,
        offline: bool = False,
        data_dir: Optional[Union[str, Path]] = None,
    ) -> "BragService":
        """
        Build a service from Config.

        Args:
            offline: Skip the text generation backend; everything uses fallback
            data_dir: Override the data directory
        """
        text_generator: TextGenerator = (
            UnavailableTextGenerator() if offline else LangChainTextGenerator()
        )
        return cls(text_generator, EntryStore(data_dir))

    # ===== generation =====

    def generate_batch(
        self,
        tasks: Sequence[Union[CompletedTaskRecord, Dict[str, Any]]],
        mode: str = "ic",
        wording: str = "safe",
    ) -> BatchGenerationResult:
        """Generate and persist a new batch; persistence errors are reported on the result."""
        records = [
            t if isinstance(t, CompletedTaskRecord) else CompletedTaskRecord.from_dict(t)
            for t in tasks
        ]
        return generate_and_save(self.generator, self.store, records, mode, wording)

    def generate_single(self, task_input: Union[SingleTaskInput, Dict[str, Any]]) -> SingleAchievement:
        if not isinstance(task_input, SingleTaskInput):
            task_input = SingleTaskInput.model_validate(task_input)
        return self.generator.generate_single(task_input)

    def value_statement(self, task: str) -> ValueStatement:
        return self.value_statements.generate(task)

    # ===== review =====

    def accept(self, index: Optional[int] = None, entry: Optional[AchievementEntry] = None) -> AcceptResult:
        """
        Accept a batch entry by index, or append a standalone entry to the ledger.

        A standalone entry is not part of the batch, so batch_marked is False.
        """
        if index is not None:
            return accept_generated_entry(self.store, index)
        if entry is None:
            raise ValueError("Either index or entry is required")

        path, entry_id = self.store.append_ledger_entry(entry)
        logger.info(f"Accepted standalone entry {entry_id} ({entry.title!r})")
        return AcceptResult(ledger_written=True, batch_marked=False, ledger_entry_id=entry_id, path=str(path))

    def update_generated(self, index: int, update: Union[EntryUpdate, Dict[str, Any]]) -> AchievementEntry:
        return self.store.update_generated_entry(index, update)

    def delete_generated(self, index: int) -> AchievementEntry:
        return self.store.delete_generated_entry(index)

    def delete_ledger(self, index: int) -> LedgerRecord:
        """Positional delete; prefer delete_ledger_by_id for blocks that carry an id."""
        return self.store.delete_ledger_entry_at(index)

    def delete_ledger_by_id(self, entry_id: str) -> LedgerRecord:
        return self.store.delete_ledger_entry(entry_id)

    def read_all(self) -> ReadAllResult:
        return self.store.read_all()
