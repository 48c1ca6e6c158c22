"""
Achievement statement ("brag list") generation.

Turns completed tasks into vocabulary-constrained, role-aware achievement
statements, keeps them in a reviewable batch, and records accepted ones in a
human-readable ledger.
"""

from brag.achievements.entry_store import EntryStore
from brag.achievements.fallback import FallbackSynthesizer
from brag.achievements.review_workflow import (
    ReviewSession,
    ReviewState,
    TaskSource,
    accept_generated_entry,
    generate_and_save,
)
from brag.achievements.schemas import EntryUpdate, SingleTaskInput, merge_entry
from brag.achievements.statement_generator import StatementGenerator
from brag.achievements.types import (
    AcceptResult,
    AchievementEntry,
    BatchGenerationResult,
    BatchSummary,
    CompletedTaskRecord,
    GenerationBatch,
    LedgerRecord,
    ReadAllResult,
    SingleAchievement,
    ValueStatement,
)
from brag.achievements.value_statement import ValueStatementGenerator

__all__ = [
    # Types
    "AcceptResult",
    "AchievementEntry",
    "BatchGenerationResult",
    "BatchSummary",
    "CompletedTaskRecord",
    "GenerationBatch",
    "LedgerRecord",
    "ReadAllResult",
    "SingleAchievement",
    "ValueStatement",
    "EntryUpdate",
    "SingleTaskInput",
    "merge_entry",
    # Components
    "EntryStore",
    "FallbackSynthesizer",
    "StatementGenerator",
    "ValueStatementGenerator",
    # Workflow
    "ReviewSession",
    "ReviewState",
    "TaskSource",
    "accept_generated_entry",
    "generate_and_save",
]
