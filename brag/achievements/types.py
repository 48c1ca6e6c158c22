"""
Data types for the brag list builder.

These types represent the inputs and outputs of achievement generation:
- CompletedTaskRecord: A finished unit of work (read-only input)
- AchievementEntry: One curated achievement statement
- BatchSummary / GenerationBatch: The persisted result of one generation run
- BatchGenerationResult: A batch plus warnings surfaced to the user
- SingleAchievement: Output of the single-task variant
- LedgerRecord / ReadAllResult / AcceptResult: Store and workflow results
- ValueStatement: Executive-ready statement for one task
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

DEFAULT_STEP_MINUTES = 10
_STEP_MINUTES = re.compile(r"\(~?(\d+)\s*min\)$", re.IGNORECASE)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_step_minutes(step_text: str) -> int:
    """
    Estimated minutes encoded as a "(~N min)" suffix on a step.

    Steps without a suffix count as DEFAULT_STEP_MINUTES.
    """
    if not isinstance(step_text, str):
        return DEFAULT_STEP_MINUTES
    match = _STEP_MINUTES.search(step_text.strip())
    return int(match.group(1)) if match else DEFAULT_STEP_MINUTES


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """First present key wins (accepts snake_case and camelCase documents)."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _as_list(value: Any) -> List[Any]:
    """Lists pass through; a scalar or string means the field is unusable."""
    return list(value) if isinstance(value, (list, tuple)) else []


def _as_position(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


@dataclass(frozen=True)
class CompletedTaskRecord:
    """
    A finished task as supplied by the task source.

    Outcome confirmations are user-asserted flags, never inferred.
    """

    title: str
    steps: List[str] = field(default_factory=list)
    completed_at: str = ""
    elapsed_minutes: Optional[int] = None
    core_why: str = ""
    outcome_confirmations: Dict[str, bool] = field(default_factory=dict)
    task_id: Optional[str] = None

    @property
    def step_count(self) -> int:
        return len(self.steps)

    @property
    def total_minutes(self) -> int:
        """Tracked minutes if given, else the sum of per-step estimates."""
        if self.elapsed_minutes is not None:
            return max(0, int(self.elapsed_minutes))
        return sum(parse_step_minutes(s) for s in self.steps)

    @property
    def confirmed_outcomes(self) -> List[str]:
        """Names of outcome flags that are true."""
        return [name for name, value in self.outcome_confirmations.items() if value is True]

    @property
    def has_notes(self) -> bool:
        return bool(self.core_why.strip())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompletedTaskRecord":
        """Build from a loosely-shaped dict; missing fields mean no evidence."""
        if not isinstance(data, dict):
            data = {}
        steps = []
        for step in _as_list(_pick(data, "steps", "subtasks")):
            if isinstance(step, dict):
                step = step.get("text", "")
            if isinstance(step, str) and step.strip():
                steps.append(step)

        confirmations = _pick(data, "outcome_confirmations", "outcomeConfirmations", default={})
        if not isinstance(confirmations, dict):
            confirmations = {}

        elapsed = _pick(data, "elapsed_minutes", "elapsedMinutes", "total_minutes", "totalMinutes")
        try:
            elapsed = int(elapsed) if elapsed is not None else None
        except (TypeError, ValueError):
            elapsed = None

        return cls(
            title=str(_pick(data, "title", "text", default="")),
            steps=steps,
            completed_at=str(_pick(data, "completed_at", "completedAt", default="")),
            elapsed_minutes=elapsed,
            core_why=str(_pick(data, "core_why", "coreWhy", default="")),
            outcome_confirmations={str(k): v is True for k, v in confirmations.items()},
            task_id=_pick(data, "task_id", "id"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "steps": list(self.steps),
            "completed_at": self.completed_at,
            "elapsed_minutes": self.elapsed_minutes,
            "core_why": self.core_why,
            "outcome_confirmations": dict(self.outcome_confirmations),
            "task_id": self.task_id,
        }


@dataclass
class AchievementEntry:
    """
    One achievement statement the user curates.

    bullet/metrics/overall_impact must not contain banned vocabulary and
    must not assert unconfirmed outcomes; both are checked after generation
    and surfaced as warnings.
    """

    title: str
    bullet: str
    metrics: str
    category: str = "Delivery"
    tags: List[str] = field(default_factory=list)
    overall_impact: Optional[str] = None
    task_ids: List[int] = field(default_factory=list)   # 1-based positions in the input batch
    frequency: str = "One-time"
    confidence: str = "medium"
    accepted: bool = False
    ledger_entry_id: Optional[str] = None

    @property
    def count(self) -> int:
        """Number of source tasks summarized by this entry."""
        return len(self.task_ids)

    def text_for_validation(self) -> str:
        return " ".join(p for p in (self.title, self.bullet, self.metrics) if p)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "bullet": self.bullet,
            "metrics": self.metrics,
            "category": self.category,
            "tags": list(self.tags),
            "overall_impact": self.overall_impact,
            "task_ids": list(self.task_ids),
            "frequency": self.frequency,
            "confidence": self.confidence,
            "accepted": self.accepted,
            "ledger_entry_id": self.ledger_entry_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AchievementEntry":
        return cls(
            title=str(data.get("title", "")),
            bullet=str(data.get("bullet", "")),
            metrics=str(data.get("metrics", "")),
            category=str(data.get("category") or "Delivery"),
            tags=[t for t in _as_list(data.get("tags")) if isinstance(t, str)],
            overall_impact=_pick(data, "overall_impact", "overallImpact"),
            task_ids=[
                p for p in map(_as_position, _as_list(_pick(data, "task_ids", "taskIds"))) if p is not None
            ],
            frequency=str(data.get("frequency") or "One-time"),
            confidence=str(data.get("confidence") or "medium"),
            accepted=bool(data.get("accepted", False)),
            ledger_entry_id=_pick(data, "ledger_entry_id", "ledgerEntryId"),
        )


@dataclass
class BatchSummary:
    """Aggregate statistics for a generation run."""

    total_tasks: int
    total_time_invested: str
    top_category: str
    overall_impact: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_tasks": self.total_tasks,
            "total_time_invested": self.total_time_invested,
            "top_category": self.top_category,
            "overall_impact": self.overall_impact,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BatchSummary":
        return cls(
            total_tasks=int(_pick(data, "total_tasks", "totalTasks", default=0)),
            total_time_invested=str(_pick(data, "total_time_invested", "totalTimeInvested", default="0 min")),
            top_category=str(_pick(data, "top_category", "topCategory", default="None")),
            overall_impact=str(_pick(data, "overall_impact", "overallImpact", default="")),
        )

    @classmethod
    def empty(cls) -> "BatchSummary":
        return cls(
            total_tasks=0,
            total_time_invested="0 min",
            top_category="None",
            overall_impact="No completed tasks to analyze.",
        )


@dataclass
class GenerationBatch:
    """
    The persisted result of one generation run.

    Overwritten wholesale on regeneration; single entries may be edited or
    removed by index without regenerating the rest.
    """

    entries: List[AchievementEntry]
    summary: BatchSummary
    source: str                        # "model" | "fallback"
    generated_at: str = field(default_factory=utc_now_iso)
    run_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entries": [e.to_dict() for e in self.entries],
            "summary": self.summary.to_dict(),
            "source": self.source,
            "generated_at": self.generated_at,
            "run_id": self.run_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GenerationBatch":
        source = str(data.get("source", "fallback"))
        if source == "ollama":
            source = "model"
        return cls(
            entries=[AchievementEntry.from_dict(e) for e in data.get("entries", [])],
            summary=BatchSummary.from_dict(data.get("summary") or {}),
            source=source,
            generated_at=str(_pick(data, "generated_at", "generatedAt", default="")),
            run_id=data.get("run_id"),
        )


@dataclass
class BatchGenerationResult:
    """A generation batch plus everything the user should see alongside it."""

    batch: GenerationBatch
    vocabulary_warnings: List[str] = field(default_factory=list)
    outcome_warnings: List[str] = field(default_factory=list)
    fallback_reason: Optional[str] = None
    persisted: bool = False
    persistence_error: Optional[str] = None

    @property
    def source(self) -> str:
        return self.batch.source

    def to_dict(self) -> Dict[str, Any]:
        data = self.batch.to_dict()
        data.update({
            "vocabulary_warnings": list(self.vocabulary_warnings),
            "outcome_warnings": list(self.outcome_warnings),
            "fallback_reason": self.fallback_reason,
            "persisted": self.persisted,
            "persistence_error": self.persistence_error,
        })
        return data


@dataclass
class SingleAchievement:
    """Output of single-task generation."""

    headline: str
    impact_sentence: str
    copy_text: str
    confidence: str
    scope_context: str = ""
    evidence: List[str] = field(default_factory=list)
    disallowed_claims: List[str] = field(default_factory=list)
    source: str = "model"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "headline": self.headline,
            "impact_sentence": self.impact_sentence,
            "scope_context": self.scope_context,
            "evidence": list(self.evidence),
            "confidence": self.confidence,
            "disallowed_claims": list(self.disallowed_claims),
            "copy_text": self.copy_text,
            "source": self.source,
        }


@dataclass
class LedgerRecord:
    """One entry block parsed back out of the ledger document."""

    position: int
    title: str
    text: str
    entry_id: Optional[str] = None     # None for blocks written before ids existed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": self.position,
            "entry_id": self.entry_id,
            "title": self.title,
            "text": self.text,
        }


@dataclass
class ReadAllResult:
    """Everything the UI needs to render, always available."""

    ledger_text: str = ""
    ledger_entries: List[LedgerRecord] = field(default_factory=list)
    batch: Optional[GenerationBatch] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.ledger_text,
            "ledger_entries": [r.to_dict() for r in self.ledger_entries],
            "generated": self.batch.to_dict() if self.batch else None,
        }


@dataclass
class AcceptResult:
    """
    Outcome of accepting one entry.

    Ledger append and batch marking are independent writes; both results are
    reported because either can succeed without the other.
    """

    ledger_written: bool
    batch_marked: bool
    already_accepted: bool = False
    ledger_entry_id: Optional[str] = None
    path: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.already_accepted or self.ledger_written

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "ledger_written": self.ledger_written,
            "batch_marked": self.batch_marked,
            "already_accepted": self.already_accepted,
            "ledger_entry_id": self.ledger_entry_id,
            "path": self.path,
            "error": self.error,
        }


@dataclass
class ValueStatement:
    """Executive-ready statement for a single completed task."""

    statement: str
    overall_impact: str
    source: str
    disallowed_claims: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "statement": self.statement,
            "overall_impact": self.overall_impact,
            "source": self.source,
            "disallowed_claims": list(self.disallowed_claims),
        }
