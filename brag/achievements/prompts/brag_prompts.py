"""
Prompts for Brag List Generation.

Credibility-focused prompts for turning completed tasks into achievement
statements:
- Only claim what the user controlled (quality, clarity, risk reduction)
- Never fabricate metrics or claim unconfirmed external outcomes
- Adapt language to seniority mode and wording mode
"""

from datetime import datetime
from typing import Sequence

from brag.achievements.schemas import SingleTaskInput
from brag.achievements.types import CompletedTaskRecord
from brag.achievements.vocabulary import (
    BANNED_PHRASES,
    BANNED_WORDS,
    IMPACT_THEMES,
    TAG_VOCABULARY,
    get_seniority_config,
    get_wording_config,
    normalize_seniority,
    normalize_wording,
)

BANNED_WORDS_IN_PROMPT = 15
BANNED_PHRASES_IN_PROMPT = 5
SINGLE_PROMPT_VERBS = 10

_MODE_DESCRIPTIONS = {
    "ic": "individual contributor focusing on personal execution quality",
    "senior": "senior professional who may reference team impact and standardization",
    "lead": "team lead who may reference cross-functional coordination and organizational scope",
}

_WORDING_DESCRIPTIONS = {
    "safe": "conservative, factual, and defensible",
    "ambitious": "confident and assertive while remaining accurate",
}

_SCOPE_NOTES = {
    "ic": "Keep scope to individual contributions only.",
    "senior": "You may reference team-level scope and mentoring.",
    "lead": "You may reference cross-team coordination or organizational scope.",
}


def _format_date(completed_at: str) -> str:
    """Short "Mon D" date for the task list, or "undated"."""
    if not completed_at:
        return "undated"
    try:
        parsed = datetime.fromisoformat(completed_at.replace("Z", "+00:00"))
    except ValueError:
        return "undated"
    return f"{parsed.strftime('%b')} {parsed.day}"


def _format_task(position: int, task: CompletedTaskRecord) -> str:
    confirmed = ", ".join(task.confirmed_outcomes) or "none"
    return (
        f'{position}. "{task.title}" ({_format_date(task.completed_at)}, '
        f"{task.step_count} steps, ~{task.total_minutes}min)\n"
        f"   Context: {task.core_why or 'Task completed'}\n"
        f"   Confirmed outcomes: {confirmed}"
    )


def build_brag_list_prompt(
    tasks: Sequence[CompletedTaskRecord],
    mode: str = "ic",
    wording: str = "safe",
) -> str:
    """
    Build the batch brag list prompt.

    Only confirmed outcome NAMES are included, never the full flag map, so the
    model cannot be tempted by outcomes that were explicitly marked false.

    Args:
        tasks: Completed tasks, numbered from 1 in the prompt
        mode: Seniority mode (ic, senior, lead)
        wording: Wording mode (safe, ambitious)

    Returns:
        User prompt for batch generation
    """
    mode = normalize_seniority(mode)
    wording = normalize_wording(wording)
    seniority = get_seniority_config(mode)
    wording_config = get_wording_config(wording)

    tasks_list = "\n\n".join(_format_task(i + 1, t) for i, t in enumerate(tasks))
    allowed_verbs = ", ".join(seniority.allowed_verbs)
    banned_words = ", ".join(BANNED_WORDS[:BANNED_WORDS_IN_PROMPT])
    banned_phrases = ", ".join(BANNED_PHRASES[:BANNED_PHRASES_IN_PROMPT])
    impact_themes = ", ".join(IMPACT_THEMES.keys())
    tags = ", ".join(TAG_VOCABULARY)

    assertiveness_note = (
        "Use confident framing. Emphasize scope and ownership where accurate."
        if wording_config.assertiveness_level >= 4
        else "Use neutral, factual framing. Avoid superlatives."
    )

    return f"""You are a Performance Review Assistant that produces CREDIBLE, NON-FLUFFY achievement statements.

**SENIORITY LEVEL:** {mode.upper()}
**WORDING STYLE:** {wording.upper()}

**MY COMPLETED TASKS:**
{tasks_list}

**YOUR TASK:**
Convert these into professional achievement statements that:
1. Describe what I CONTROLLED: quality, clarity, readiness, risk reduction, execution, enablement
2. NEVER claim external outcomes unless explicitly listed under "Confirmed outcomes"
3. Are short and copy-pasteable

**ALLOWED VERBS (use only these):**
{allowed_verbs}

**BANNED WORDS (never use):**
{banned_words}

**IMPACT THEMES (frame achievements around these):**
{impact_themes}

**TONE RULES:**
- {assertiveness_note}
- {_SCOPE_NOTES[mode]}
- Never fabricate metrics. If time was spent, mention effort, not savings.
- If a task is generic (e.g., "Process inbox"), keep claims narrow.

**CONFIDENCE SCORING:**
- "high": Confirmed outcome + rich input (3+ steps, time tracked)
- "medium": Good input but no confirmed outcome
- "low": Sparse input or generic task

**REPLY WITH ONLY THIS JSON:**
{{
  "entries": [
    {{
      "title": "Short headline (5-10 words)",
      "bullet": "[Verb] + [what you did] + [internal impact]",
      "metrics": "Only mention effort invested, NOT fabricated savings",
      "category": "Delivery | Planning | Communication | Operations | Leadership",
      "tags": ["1-3 tags from: {tags}"],
      "overall_impact": "1-2 sentences describing the cumulative value of this entry",
      "task_ids": [1, 2],
      "frequency": "Recurring | One-time | Daily practice",
      "confidence": "high | medium | low"
    }}
  ],
  "summary": {{
    "total_tasks": {len(tasks)},
    "total_time_invested": "sum of minutes as hours",
    "top_category": "most common category",
    "overall_impact": "1 sentence about execution quality, NOT business outcomes"
  }}
}}

**CRITICAL RULES:**
1. GROUP similar tasks - maximum 5-7 entries
2. NEVER use: {banned_phrases}
3. Focus on WHAT YOU DID, not what supposedly happened as a result
4. Keep bullets under 15 words
5. If no outcome is confirmed, use phrases like "prepared", "enabled", "reduced risk of"

JSON response:"""


def get_brag_list_system_prompt(mode: str = "ic", wording: str = "safe") -> str:
    """System prompt for batch brag list generation."""
    mode = normalize_seniority(mode)
    wording = normalize_wording(wording)

    return f"""You are a Performance Review Assistant that produces CREDIBLE achievement statements.

Your role: Writing for a {_MODE_DESCRIPTIONS[mode]}.
Your style: {_WORDING_DESCRIPTIONS[wording]}.

STRICT RULES:
1. Never claim outcomes you cannot prove (no "won", "secured", "drove growth")
2. Never fabricate metrics (no "saved X hours" unless explicitly provided)
3. Focus on what the person CONTROLLED: quality, preparation, clarity, risk reduction
4. Use neutral corporate language, no hype words
5. If unsure about impact, describe the ACTION and EFFORT, not the result

BANNED VOCABULARY:
- Hype verbs: spearheaded, revolutionized, transformed, crushed, nailed
- Unverifiable outcomes: winning, secured, closed, landed
- Fluffy phrases: build trust, move the needle, game-changing, world-class
- Business claims (unless confirmed): drove growth, increased revenue, generated leads

ALLOWED IMPACT THEMES:
{", ".join(IMPACT_THEMES.keys())}

Always respond with valid JSON only."""


def build_single_brag_prompt(task: SingleTaskInput) -> str:
    """
    Build the prompt for one task with the full input schema.

    With a single task the outcome map itself is shown, since there is no
    risk of one task's confirmations leaking into another's statement.
    """
    seniority = get_seniority_config(task.user_role_mode)
    wording_config = get_wording_config(task.wording_toggle)

    confirmed = [name.replace("_", " ") for name in task.confirmed_outcomes]
    steps_formatted = "\n".join(f"  {i + 1}. {s}" for i, s in enumerate(task.steps))
    time_note = (
        f"Time invested: ~{task.time_spent_minutes} minutes"
        if task.time_spent_minutes
        else "Time: not tracked"
    )
    notes_line = f"NOTES: {task.optional_notes}" if task.optional_notes else ""
    confirmations_map = ", ".join(
        f"{k}={'yes' if v else 'no'}" for k, v in task.outcome_confirmations.items()
    ) or "none provided"
    confirmations_note = (
        f"CONFIRMED OUTCOMES: {', '.join(confirmed)}"
        if confirmed
        else "NO CONFIRMED OUTCOMES - do not claim external results"
    )
    assertiveness = (
        "Be confident and assertive in framing."
        if wording_config.assertiveness_level >= 4
        else "Be factual and conservative."
    )
    outcome_rule = (
        f"You MAY reference confirmed outcomes: {', '.join(confirmed)}"
        if confirmed
        else "Do NOT claim any external outcome"
    )

    return f"""Generate a credible brag entry for this completed task.

**TASK:** {task.task_title}
**CATEGORY:** {task.category_tag}
**STEPS COMPLETED:**
{steps_formatted}
{time_note}
{notes_line}

**OUTCOME CONFIRMATIONS:** {confirmations_map}
{confirmations_note}

**SENIORITY:** {task.user_role_mode.upper()}
**WORDING:** {task.wording_toggle.upper()} - {assertiveness}

**ALLOWED VERBS:** {", ".join(seniority.allowed_verbs[:SINGLE_PROMPT_VERBS])}

**OUTPUT FORMAT (JSON only):**
{{
  "headline": "5-10 word title describing what was achieved",
  "impact_sentence": "One sentence: [verb] + [what was done] + [internal impact]",
  "scope_context": "Optional team/project context, or empty string",
  "evidence": ["1-3 short items drawn from the steps"],
  "confidence": "high|medium|low",
  "copy_text": "Final 2-3 line statement ready for a performance review"
}}

**CRITICAL RULES:**
1. NEVER use first person ("I", "my", "we")
2. NEVER fabricate numbers; only mention time if it was tracked
3. {outcome_rule}
4. NEVER use banned words: {", ".join(BANNED_WORDS[:BANNED_WORDS_IN_PROMPT])}
5. Keep copy_text under 50 words

JSON response:"""


def get_single_brag_system_prompt(mode: str = "ic", wording: str = "safe") -> str:
    """System prompt for single-task brag generation."""
    mode = normalize_seniority(mode)
    wording = normalize_wording(wording)
    assertiveness = "confident but accurate" if wording == "ambitious" else "conservative and defensible"

    return f"""You write credible performance review statements for one completed task.

ROLE: {mode.upper()} contributor ({_MODE_DESCRIPTIONS[mode]})
STYLE: {assertiveness}

{_SCOPE_NOTES[mode]}

RULES:
- Describe what the person controlled: preparation, clarity, quality, risk reduction
- Claim external results only when they are listed as confirmed
- No hype words, no invented metrics, no first person

Respond with valid JSON only."""
