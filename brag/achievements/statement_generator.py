"""
Statement Generator.

Turns completed tasks into achievement entries using the text generation
backend, with rule-based QA on the result:
- Banned vocabulary is detected and surfaced as warnings, never filtered
- Outcome claims are checked against the tasks' confirmation flags
- Missing confidence values are back-filled from the source tasks

Backend failures (unreachable, timeout, unusable output) are never errors
for the caller: they switch to the Fallback Synthesizer.

Usage:
    generator = StatementGenerator(LangChainTextGenerator())
    result = generator.generate_batch(tasks, mode="senior", wording="safe")
    print(result.source, result.vocabulary_warnings)
"""

import uuid
from typing import Any, Dict, List, Literal, Optional, Sequence

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from brag.common.config import Config
from brag.common.errors import GenerationUnavailable, MalformedGenerationOutput
from brag.common.json_utils import try_parse_llm_json
from brag.common.llm_client import GenerationOptions, TextGenerator
from brag.common.logger import get_logger
from brag.achievements.fallback import FallbackSynthesizer
from brag.achievements.prompts.brag_prompts import (
    build_brag_list_prompt,
    build_single_brag_prompt,
    get_brag_list_system_prompt,
    get_single_brag_system_prompt,
)
from brag.achievements.schemas import SingleTaskInput
from brag.achievements.types import (
    AchievementEntry,
    BatchGenerationResult,
    BatchSummary,
    CompletedTaskRecord,
    GenerationBatch,
    SingleAchievement,
)
from brag.achievements.vocabulary import (
    CONFIDENCE_LEVELS,
    TAG_VOCABULARY,
    calculate_confidence,
    detect_banned_vocabulary,
    detect_unconfirmed_outcomes,
    normalize_seniority,
    normalize_wording,
)

MAX_TAGS = 3
DEFAULT_TAG = "DELIVERY"


def _normalize_confidence(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip().lower() in CONFIDENCE_LEVELS:
        return value.strip().lower()
    return None


# ===== SCHEMA VALIDATION =====

class AchievementEntryModel(BaseModel):
    """Pydantic model for validating one generated entry."""

    model_config = ConfigDict(extra="ignore")

    title: str = Field(..., min_length=1)
    bullet: str = Field(..., min_length=1)
    metrics: str = ""
    category: str = "Delivery"
    tags: List[str] = Field(default_factory=list)
    overall_impact: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("overall_impact", "overallImpact")
    )
    task_ids: List[int] = Field(
        default_factory=list, validation_alias=AliasChoices("task_ids", "taskIds")
    )
    frequency: str = "One-time"
    confidence: Optional[Literal["high", "medium", "low"]] = None

    @field_validator("title", "bullet", "metrics", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("•") or v.startswith("-"):
                v = v[1:].strip()
        return v

    @field_validator("category", "frequency", mode="before")
    @classmethod
    def default_blank(cls, v: Any, info) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return "Delivery" if info.field_name == "category" else "One-time"
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: Any) -> List[str]:
        if isinstance(v, str):
            v = [v]
        if not isinstance(v, list):
            v = []
        tags: List[str] = []
        for tag in v:
            if not isinstance(tag, str):
                continue
            tag = tag.strip().upper()
            if tag in TAG_VOCABULARY and tag not in tags:
                tags.append(tag)
        return tags[:MAX_TAGS]

    @field_validator("task_ids", mode="before")
    @classmethod
    def keep_numeric_ids(cls, v: Any) -> List[int]:
        ids: List[int] = []
        for item in v if isinstance(v, list) else []:
            try:
                ids.append(int(item))
            except (TypeError, ValueError, OverflowError):
                continue
        return ids

    @field_validator("confidence", mode="before")
    @classmethod
    def lenient_confidence(cls, v: Any) -> Optional[str]:
        return _normalize_confidence(v)

    def to_entry(self) -> AchievementEntry:
        category_tag = self.category.upper()
        tags = self.tags or [category_tag if category_tag in TAG_VOCABULARY else DEFAULT_TAG]
        return AchievementEntry(
            title=self.title,
            bullet=self.bullet,
            metrics=self.metrics,
            category=self.category,
            tags=tags,
            overall_impact=self.overall_impact,
            task_ids=self.task_ids,
            frequency=self.frequency,
            confidence=self.confidence or "",
        )


class SummaryModel(BaseModel):
    """Pydantic model for the batch summary."""

    model_config = ConfigDict(extra="ignore")

    total_tasks: int = Field(default=0, validation_alias=AliasChoices("total_tasks", "totalTasks"))
    total_time_invested: str = Field(
        default="", validation_alias=AliasChoices("total_time_invested", "totalTimeInvested")
    )
    top_category: str = Field(default="", validation_alias=AliasChoices("top_category", "topCategory"))
    overall_impact: str = Field(
        default="", validation_alias=AliasChoices("overall_impact", "overallImpact")
    )

    @field_validator("total_time_invested", "top_category", "overall_impact", mode="before")
    @classmethod
    def stringify(cls, v: Any) -> str:
        return "" if v is None else str(v)


class BatchResponseModel(BaseModel):
    """Pydantic model for validating the full batch response."""

    model_config = ConfigDict(extra="ignore")

    entries: List[AchievementEntryModel] = Field(..., min_length=1)
    summary: SummaryModel


class SingleResponseModel(BaseModel):
    """Pydantic model for validating a single-task response."""

    model_config = ConfigDict(extra="ignore")

    headline: str = Field(..., min_length=1)
    impact_sentence: str = ""
    scope_context: str = ""
    evidence: List[str] = Field(default_factory=list)
    confidence: Optional[Literal["high", "medium", "low"]] = None
    copy_text: str = Field(..., min_length=1)

    @field_validator("confidence", mode="before")
    @classmethod
    def lenient_confidence(cls, v: Any) -> Optional[str]:
        return _normalize_confidence(v)

    @field_validator("scope_context", "impact_sentence", mode="before")
    @classmethod
    def stringify(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("evidence", mode="before")
    @classmethod
    def evidence_list(cls, v: Any) -> List[str]:
        if isinstance(v, str):
            return [v]
        return [str(item) for item in (v or [])]


def _validation_errors(e: ValidationError) -> str:
    return "; ".join(
        f"{' -> '.join(str(x) for x in err['loc'])}: {err['msg']}" for err in e.errors()
    )


# ===== STATEMENT GENERATOR =====

class StatementGenerator:
    """
    Generates achievement statements from completed tasks.

    Uses the text generation backend for wording and rule-based checks for
    credibility; falls back to deterministic templates on any backend problem.
    """

    def __init__(
        self,
        text_generator: TextGenerator,
        fallback: Optional[FallbackSynthesizer] = None,
    ):
        """
        Initialize the generator.

        Args:
            text_generator: Backend capability (never raises, returns ok/not ok)
            fallback: Deterministic synthesizer (created if not provided)
        """
        self.text_generator = text_generator
        self.fallback = fallback or FallbackSynthesizer()
        self._logger = get_logger(__name__, component="generator")

    @staticmethod
    def create_run_id() -> str:
        return uuid.uuid4().hex[:12]

    # ----- shared -----

    def _request(self, prompt: str, options: GenerationOptions) -> Dict[str, Any]:
        """
        Call the backend and parse its output.

        Raises:
            GenerationUnavailable: Backend failed or raised
            MalformedGenerationOutput: Output could not be repaired into JSON
        """
        try:
            result = self.text_generator.generate(prompt, options)
        except Exception as e:
            raise GenerationUnavailable(f"Text generator raised {type(e).__name__}: {e}") from e

        if not result.ok:
            raise GenerationUnavailable(result.error_message or "Text generation failed")

        parsed = try_parse_llm_json(result.text)
        if parsed is None:
            raise MalformedGenerationOutput(f"No JSON could be recovered: {result.text[:200]!r}")
        return parsed

    # ----- batch path -----

    def _related_tasks(
        self, entry: AchievementEntry, tasks: Sequence[CompletedTaskRecord]
    ) -> List[CompletedTaskRecord]:
        return [tasks[i - 1] for i in entry.task_ids if 1 <= i <= len(tasks)]

    def _backfill_confidence(
        self, entry: AchievementEntry, related: List[CompletedTaskRecord]
    ) -> str:
        if not related:
            return calculate_confidence({}, 0, False, False)
        mean_steps = sum(t.step_count for t in related) / len(related)
        return calculate_confidence(
            {"any_confirmed": any(t.confirmed_outcomes for t in related)},
            mean_steps,
            any(t.total_minutes > 0 for t in related),
            any(t.has_notes for t in related),
        )

    def _generate_model_batch(
        self,
        tasks: Sequence[CompletedTaskRecord],
        mode: str,
        wording: str,
        run_id: str,
    ) -> BatchGenerationResult:
        prompt = build_brag_list_prompt(tasks, mode, wording)
        options = GenerationOptions(
            temperature=Config.BATCH_TEMPERATURE,
            max_tokens=Config.BATCH_MAX_TOKENS,
            system_prompt=get_brag_list_system_prompt(mode, wording),
        )
        parsed = self._request(prompt, options)

        try:
            validated = BatchResponseModel.model_validate(parsed)
        except ValidationError as e:
            raise MalformedGenerationOutput(f"Schema validation failed: {_validation_errors(e)}") from e

        logger = self._logger.bind(run_id=run_id)
        entries = [m.to_entry() for m in validated.entries]

        all_text = " ".join(e.text_for_validation() for e in entries)
        violations = detect_banned_vocabulary(all_text)
        if violations:
            logger.warning(f"Banned vocabulary detected in generated output: {violations}")

        outcome_warnings: List[str] = []
        for position, entry in enumerate(entries, start=1):
            related = self._related_tasks(entry, tasks)
            claim_text = " ".join(p for p in (entry.bullet, entry.metrics, entry.overall_impact) if p)
            for outcome in detect_unconfirmed_outcomes(
                claim_text, [t.outcome_confirmations for t in related]
            ):
                outcome_warnings.append(f"Entry {position} claims unconfirmed outcome: {outcome}")
            if not entry.confidence:
                entry.confidence = self._backfill_confidence(entry, related)

        if outcome_warnings:
            logger.warning(f"Unconfirmed outcome claims: {outcome_warnings}")

        summary = BatchSummary(
            total_tasks=validated.summary.total_tasks or len(tasks),
            total_time_invested=validated.summary.total_time_invested or "unknown",
            top_category=validated.summary.top_category or entries[0].category,
            overall_impact=validated.summary.overall_impact,
        )
        batch = GenerationBatch(entries=entries, summary=summary, source="model", run_id=run_id)
        return BatchGenerationResult(
            batch=batch,
            vocabulary_warnings=violations,
            outcome_warnings=outcome_warnings,
        )

    def generate_batch(
        self,
        tasks: Sequence[CompletedTaskRecord],
        mode: str = "ic",
        wording: str = "safe",
    ) -> BatchGenerationResult:
        """
        Generate achievement entries for a batch of completed tasks.

        Args:
            tasks: Completed tasks (an empty list short-circuits)
            mode: Seniority mode (ic, senior, lead)
            wording: Wording mode (safe, ambitious)

        Returns:
            BatchGenerationResult with source "model" or "fallback"; never raises
            for backend problems
        """
        mode = normalize_seniority(mode)
        wording = normalize_wording(wording)
        run_id = self.create_run_id()
        logger = self._logger.bind(run_id=run_id)

        if not tasks:
            logger.info("No completed tasks; returning empty summary")
            return BatchGenerationResult(
                batch=GenerationBatch(
                    entries=[], summary=BatchSummary.empty(), source="fallback", run_id=run_id
                )
            )

        logger.info(f"Generating brag list for {len(tasks)} task(s) (mode={mode}, wording={wording})")

        try:
            result = self._generate_model_batch(tasks, mode, wording, run_id)
        except (GenerationUnavailable, MalformedGenerationOutput) as e:
            logger.warning(f"{type(e).__name__}: {e}. Using fallback synthesis")
            batch = self.fallback.synthesize(tasks, mode, wording, run_id=run_id)
            return BatchGenerationResult(batch=batch, fallback_reason=f"{type(e).__name__}: {e}")

        logger.info(
            f"Generated {len(result.batch.entries)} entries "
            f"({len(result.vocabulary_warnings)} vocabulary warning(s))"
        )
        return result

    # ----- single-task path -----

    def _generate_model_single(self, task: SingleTaskInput) -> SingleAchievement:
        prompt = build_single_brag_prompt(task)
        options = GenerationOptions(
            temperature=Config.SINGLE_TEMPERATURE,
            max_tokens=Config.SINGLE_MAX_TOKENS,
            system_prompt=get_single_brag_system_prompt(task.user_role_mode, task.wording_toggle),
        )
        parsed = self._request(prompt, options)

        try:
            validated = SingleResponseModel.model_validate(parsed)
        except ValidationError as e:
            raise MalformedGenerationOutput(f"Schema validation failed: {_validation_errors(e)}") from e

        text = " ".join((validated.headline, validated.impact_sentence, validated.copy_text))
        disallowed = detect_banned_vocabulary(text)
        disallowed.extend(
            f"unconfirmed outcome: {outcome}"
            for outcome in detect_unconfirmed_outcomes(text, [task.outcome_confirmations])
        )
        if disallowed:
            self._logger.warning(f"Disallowed claims in single entry: {disallowed}")

        confidence = validated.confidence or calculate_confidence(
            task.outcome_confirmations,
            len(task.steps),
            task.time_spent_minutes is not None,
            bool(task.optional_notes),
        )

        return SingleAchievement(
            headline=validated.headline,
            impact_sentence=validated.impact_sentence,
            scope_context=validated.scope_context,
            evidence=validated.evidence[:3],
            confidence=confidence,
            disallowed_claims=disallowed,
            copy_text=validated.copy_text,
            source="model",
        )

    def generate_single(self, task: SingleTaskInput) -> SingleAchievement:
        """
        Generate one entry for one task.

        Disallowed language is recorded on the result, not substituted.
        Backend problems fall back to a deterministic template.
        """
        try:
            return self._generate_model_single(task)
        except (GenerationUnavailable, MalformedGenerationOutput) as e:
            self._logger.warning(f"{type(e).__name__}: {e}. Using single-entry fallback")
            return self.fallback.synthesize_single(task)
