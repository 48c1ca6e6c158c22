"""
Fallback Synthesizer.

Builds achievement entries without any text generation backend, so the brag
list always works offline. Grouping is a cheap, deterministic approximation:
tasks whose titles share the same first three words (case-insensitive) are
treated as the same kind of work. It is not semantic clustering.

All generated wording comes from the seniority verb lists and the
pre-approved theme phrase table. Task titles and steps are quoted with any
word that forms banned vocabulary removed, so fallback output never needs a
banned-vocabulary check afterwards.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from brag.common.logger import get_logger
from brag.achievements.schemas import SingleTaskInput
from brag.achievements.types import (
    AchievementEntry,
    BatchSummary,
    CompletedTaskRecord,
    GenerationBatch,
    SingleAchievement,
)
from brag.achievements.vocabulary import (
    calculate_confidence,
    get_seniority_config,
    impact_phrase_for,
    infer_impact_theme,
    normalize_seniority,
    normalize_wording,
    strip_banned_vocabulary,
)

GROUP_KEY_WORDS = 3
AMBITIOUS_VERB_INDEX = 3
FALLBACK_CATEGORY = "Delivery"
FALLBACK_TAG = "DELIVERY"
FALLBACK_SUBJECT = "task work"


def group_key(title: str) -> str:
    """Lower-cased first three words of a task title."""
    return " ".join((title or "").lower().split()[:GROUP_KEY_WORDS])


def group_tasks(tasks: Sequence[CompletedTaskRecord]) -> List[List[Tuple[int, CompletedTaskRecord]]]:
    """
    Group tasks by title prefix, preserving first-seen order.

    Each member keeps its 1-based position in the input.
    """
    groups: Dict[str, List[Tuple[int, CompletedTaskRecord]]] = {}
    for position, task in enumerate(tasks, start=1):
        groups.setdefault(group_key(task.title), []).append((position, task))
    return list(groups.values())


def select_verb(mode: str, wording: str) -> str:
    """
    First allowed verb for the seniority mode.

    Ambitious wording escalates to a stronger verb from the same list,
    except for individual contributors.
    """
    verbs = get_seniority_config(mode).allowed_verbs
    if normalize_wording(wording) == "ambitious" and normalize_seniority(mode) != "ic":
        return verbs[min(AMBITIOUS_VERB_INDEX, len(verbs) - 1)]
    return verbs[0]


def format_time_invested(total_minutes: int) -> str:
    """"~1.5h" at an hour or more, "~45min" below."""
    hours = round(total_minutes / 60, 1)
    return f"~{hours:g}h" if hours >= 1 else f"~{total_minutes}min"


def _tags_for(theme: str) -> List[str]:
    theme_tag = theme.upper()
    return [FALLBACK_TAG] if theme_tag == FALLBACK_TAG else [FALLBACK_TAG, theme_tag]


class FallbackSynthesizer:
    """
    Deterministic, template-based entry builder.

    Usage:
        batch = FallbackSynthesizer().synthesize(tasks, mode="senior", wording="safe")
    """

    def __init__(self):
        self._logger = get_logger(__name__, component="fallback")

    def _build_entry(
        self,
        members: List[Tuple[int, CompletedTaskRecord]],
        verb: str,
    ) -> AchievementEntry:
        group = [task for _, task in members]
        first = group[0]
        count = len(group)
        total_minutes = sum(t.total_minutes for t in group)
        total_steps = sum(t.step_count for t in group)
        has_confirmed_outcome = any(t.confirmed_outcomes for t in group)

        confidence = calculate_confidence(
            {"any_confirmed": has_confirmed_outcome},
            total_steps,
            total_minutes > 0,
            any(t.has_notes for t in group),
        )

        theme = infer_impact_theme(
            first.core_why or FALLBACK_CATEGORY,
            [step for t in group for step in t.steps],
        )
        impact_phrase = impact_phrase_for(theme)
        verb_cap = verb.capitalize()

        subject = strip_banned_vocabulary(first.title) or FALLBACK_SUBJECT
        title = f"{verb_cap} {count}x: {subject}" if count > 1 else f"{verb_cap}: {subject}"

        return AchievementEntry(
            title=title,
            bullet=f"{verb_cap} {total_steps} action items, {impact_phrase}",
            metrics=f"~{total_minutes}min invested across {count} task(s)",
            category=FALLBACK_CATEGORY,
            tags=_tags_for(theme),
            overall_impact=(
                f"{verb_cap} {total_steps} action items across {count} task(s), {impact_phrase}."
            ),
            task_ids=[position for position, _ in members],
            frequency="Recurring" if count > 1 else "One-time",
            confidence=confidence,
        )

    def synthesize(
        self,
        tasks: Sequence[CompletedTaskRecord],
        mode: str = "ic",
        wording: str = "safe",
        run_id: Optional[str] = None,
    ) -> GenerationBatch:
        """
        Build a complete batch from tasks without a text generation backend.

        Entry task ids are the 1-based input positions of the grouped tasks.
        """
        logger = self._logger.bind(run_id=run_id)
        verb = select_verb(mode, wording)

        entries = [self._build_entry(members, verb) for members in group_tasks(tasks)]

        total_minutes = sum(t.total_minutes for t in tasks)
        total_steps = sum(t.step_count for t in tasks)
        summary = BatchSummary(
            total_tasks=len(tasks),
            total_time_invested=format_time_invested(total_minutes),
            top_category=FALLBACK_CATEGORY,
            overall_impact=(
                f"Completed {len(tasks)} task(s) with {total_steps} total steps, "
                f"maintaining execution quality."
            ),
        )

        logger.info(f"Synthesized {len(entries)} fallback entries from {len(tasks)} task(s)")
        return GenerationBatch(entries=entries, summary=summary, source="fallback", run_id=run_id)

    def synthesize_single(self, task: SingleTaskInput) -> SingleAchievement:
        """Deterministic single-task entry using the first allowed verb."""
        verb = get_seniority_config(task.user_role_mode).allowed_verbs[0]
        verb_cap = verb.capitalize()
        step_count = len(task.steps)

        confidence = calculate_confidence(
            task.outcome_confirmations,
            step_count,
            task.time_spent_minutes is not None,
            bool(task.optional_notes),
        )
        time_phrase = (
            f", investing ~{task.time_spent_minutes} minutes" if task.time_spent_minutes else ""
        )
        subject = strip_banned_vocabulary(task.task_title) or FALLBACK_SUBJECT
        evidence = [clean for clean in (strip_banned_vocabulary(s) for s in task.steps[:3]) if clean]

        return SingleAchievement(
            headline=f"{verb_cap}: {subject}",
            impact_sentence=f"{verb_cap} {step_count} action items, ensuring execution quality.",
            scope_context="",
            evidence=evidence,
            confidence=confidence,
            disallowed_claims=[],
            copy_text=strip_banned_vocabulary(
                f"{verb_cap} {subject}{time_phrase}. "
                f"Completed {step_count} steps, maintaining delivery standards."
            ),
            source="fallback",
        )
