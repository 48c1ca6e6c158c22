"""
Pydantic schemas for validated input to the brag list builder.

- SingleTaskInput: the richer input of single-task generation
- EntryUpdate: a partial AchievementEntry with explicit absence semantics

Merging an update is field-by-field: an absent field preserves the stored
value, an explicit null clears an optional field, and an explicit null on a
required field is rejected.
"""

from dataclasses import replace
from typing import Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from brag.achievements.types import AchievementEntry
from brag.achievements.vocabulary import normalize_seniority, normalize_wording

REQUIRED_ENTRY_FIELDS = ("title", "bullet", "metrics", "category", "tags", "task_ids", "frequency", "confidence", "accepted")
CLEARABLE_ENTRY_FIELDS = ("overall_impact", "ledger_entry_id")


class SingleTaskInput(BaseModel):
    """Input schema for single-task generation."""

    model_config = ConfigDict(extra="ignore")

    task_title: str = Field(..., min_length=1, description="Title of the completed task")
    steps: List[str] = Field(..., min_length=1, description="Step texts, in order")
    time_spent_minutes: Optional[int] = Field(default=None, ge=0)
    category_tag: str = Field(default="Delivery")
    user_role_mode: str = Field(default="ic")
    wording_toggle: str = Field(default="safe")
    outcome_confirmations: Dict[str, bool] = Field(default_factory=dict)
    optional_notes: str = Field(default="")

    @field_validator("task_title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("task_title must not be blank")
        return v

    @field_validator("steps")
    @classmethod
    def validate_steps(cls, v: List[str]) -> List[str]:
        steps = [s.strip() for s in v if s and s.strip()]
        if not steps:
            raise ValueError("steps must contain at least one non-blank step")
        return steps

    @field_validator("category_tag", mode="before")
    @classmethod
    def default_category(cls, v: Optional[str]) -> str:
        return v or "Delivery"

    @field_validator("user_role_mode", mode="before")
    @classmethod
    def validate_role_mode(cls, v: Optional[str]) -> str:
        return normalize_seniority(v)

    @field_validator("wording_toggle", mode="before")
    @classmethod
    def validate_wording(cls, v: Optional[str]) -> str:
        return normalize_wording(v)

    @field_validator("optional_notes", mode="before")
    @classmethod
    def default_notes(cls, v: Optional[str]) -> str:
        return v or ""

    @property
    def confirmed_outcomes(self) -> List[str]:
        return [k for k, v in self.outcome_confirmations.items() if v]


class EntryUpdate(BaseModel):
    """Partial AchievementEntry; only explicitly provided fields are applied."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: Optional[str] = None
    bullet: Optional[str] = None
    metrics: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    overall_impact: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("overall_impact", "overallImpact")
    )
    task_ids: Optional[List[int]] = Field(
        default=None, validation_alias=AliasChoices("task_ids", "taskIds")
    )
    frequency: Optional[str] = None
    confidence: Optional[Literal["high", "medium", "low"]] = None
    accepted: Optional[bool] = None
    ledger_entry_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("ledger_entry_id", "ledgerEntryId")
    )

    @field_validator("title", "bullet")
    @classmethod
    def reject_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("must not be blank")
        return v

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        tags: List[str] = []
        for tag in v:
            tag = tag.strip().upper()
            if tag and tag not in tags:
                tags.append(tag)
        if not 1 <= len(tags) <= 3:
            raise ValueError("tags must contain 1-3 entries")
        return tags

    def provided_fields(self) -> Dict[str, object]:
        """Fields explicitly present in the update, including explicit nulls."""
        return {name: getattr(self, name) for name in self.model_fields_set}

    @property
    def is_empty(self) -> bool:
        return not self.model_fields_set


def check_update(update: EntryUpdate) -> None:
    """
    Reject updates that explicitly null a required field.

    Raises:
        ValueError: Naming the first offending field
    """
    for name, value in update.provided_fields().items():
        if value is None and name in REQUIRED_ENTRY_FIELDS:
            raise ValueError(f"Field '{name}' is required and cannot be cleared")


def merge_entry(entry: AchievementEntry, update: EntryUpdate) -> AchievementEntry:
    """
    Apply an EntryUpdate over an entry, returning a new entry.

    Absent fields are preserved, explicit None clears optional fields.

    Raises:
        ValueError: If the update explicitly nulls a required field
    """
    check_update(update)
    return replace(entry, **update.provided_fields())
