"""
Brag List Vocabulary Policy.

Defines allowed/banned words, impact themes, and seniority-specific rules
for generating credible, non-fluffy performance review language.

Everything here is read-only process configuration plus pure functions over
it. The functions are total: missing or malformed input counts as "no
evidence" and flows toward the low/default branches instead of raising.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Literal, Mapping, Optional, Sequence, Tuple

SeniorityMode = Literal["ic", "senior", "lead"]
WordingMode = Literal["safe", "ambitious"]
ConfidenceLevel = Literal["high", "medium", "low"]

SENIORITY_MODES: Tuple[str, ...] = ("ic", "senior", "lead")
WORDING_MODES: Tuple[str, ...] = ("safe", "ambitious")
CONFIDENCE_LEVELS: Tuple[str, ...] = ("high", "medium", "low")

DEFAULT_SENIORITY: SeniorityMode = "ic"
DEFAULT_WORDING: WordingMode = "safe"
DEFAULT_THEME = "execution_quality"


# ============================================
# IMPACT THEMES (Allowlist)
# ============================================
# The only outcome categories a statement may claim. They describe what the
# user controlled, not external results.

@dataclass(frozen=True)
class ImpactTheme:
    name: str
    description: str
    verbs: Tuple[str, ...]


IMPACT_THEMES: Mapping[str, ImpactTheme] = MappingProxyType({
    theme.name: theme
    for theme in (
        ImpactTheme("clarity", "Made information easier to understand or find",
                    ("clarified", "documented", "outlined", "structured")),
        ImpactTheme("risk_reduction", "Reduced likelihood of problems or errors",
                    ("mitigated", "prevented", "identified", "flagged")),
        ImpactTheme("decision_readiness", "Enabled others to make informed decisions",
                    ("prepared", "summarized", "compiled", "synthesized")),
        ImpactTheme("predictability", "Made timelines or outcomes more foreseeable",
                    ("scheduled", "planned", "estimated", "tracked")),
        ImpactTheme("coordination", "Improved alignment between people or teams",
                    ("aligned", "coordinated", "facilitated", "synchronized")),
        ImpactTheme("execution_quality", "Delivered work that met or exceeded standards",
                    ("completed", "delivered", "executed", "finalized")),
        ImpactTheme("enablement", "Unblocked or empowered others to do their work",
                    ("enabled", "unblocked", "supported", "provided")),
        ImpactTheme("standardization", "Created consistency or reusable patterns",
                    ("standardized", "templated", "established", "defined")),
        ImpactTheme("transparency", "Made status or progress visible to stakeholders",
                    ("reported", "shared", "communicated", "updated")),
        ImpactTheme("ownership", "Took responsibility and drove work forward",
                    ("owned", "drove", "led", "managed")),
    )
})

# Phrases the fallback synthesizer is allowed to use, one per theme.
# None of them contains a banned word or phrase.
THEME_IMPACT_PHRASES: Mapping[str, str] = MappingProxyType({
    "clarity": "improving information accessibility",
    "risk_reduction": "reducing risk of oversight",
    "decision_readiness": "enabling informed decision-making",
    "predictability": "improving delivery predictability",
    "coordination": "maintaining team alignment",
    "execution_quality": "ensuring execution quality",
    "enablement": "supporting team productivity",
    "standardization": "establishing consistent processes",
    "transparency": "maintaining visibility for stakeholders",
    "ownership": "driving work forward",
})
DEFAULT_IMPACT_PHRASE = "supporting team objectives"

TAG_VOCABULARY: Tuple[str, ...] = (
    "DELIVERY", "PLANNING", "COMMUNICATION", "OPERATIONS",
    "LEADERSHIP", "ANALYSIS", "DOCUMENTATION", "COORDINATION",
)

CATEGORIES: Tuple[str, ...] = ("Delivery", "Planning", "Communication", "Operations", "Leadership")


# ============================================
# BANNED VOCABULARY
# ============================================
# Words/phrases that claim outcomes the user cannot prove.

BANNED_WORDS: Tuple[str, ...] = (
    # Unverifiable outcome claims
    "winning", "won", "secured", "closed", "landed", "signed",
    # Hype verbs
    "spearheaded", "revolutionized", "transformed", "disrupted", "pioneered",
    "crushed", "smashed", "nailed",
    # Business outcome claims (unless confirmed)
    "driving growth", "increased revenue", "boosted sales", "grew the business",
    "saved the company", "generated leads", "expanded market",
    # Emotional/fluffy language
    "delighted", "thrilled", "excited", "passionate", "amazing", "incredible",
    "game-changing", "world-class",
    # Generic fluff
    "build trust", "improve productivity", "add value", "make an impact",
    "move the needle", "best practices", "synergy", "leverage", "optimize", "streamline",
    # Self-promotional
    "single-handedly", "heroically", "brilliantly", "expertly",
)

BANNED_PHRASES: Tuple[str, ...] = (
    "resulted in significant",
    "led to major improvements",
    "drove substantial growth",
    "delivered exceptional results",
    "exceeded all expectations",
    "transformed the way we",
    "revolutionized our approach",
    "took it to the next level",
    "went above and beyond",
    "knocked it out of the park",
)


# ============================================
# SENIORITY / WORDING CONFIGURATION
# ============================================

@dataclass(frozen=True)
class SeniorityConfig:
    allowed_verbs: Tuple[str, ...]
    scope_prefix: str
    emphasis_areas: Tuple[str, ...]
    max_claim_scope: Literal["self", "team", "cross-team"]


@dataclass(frozen=True)
class WordingConfig:
    assertiveness_level: int  # 1-5
    length_multiplier: float
    scope_escalation: bool
    verb_strength: Literal["neutral", "confident"]
    quantifier_style: Literal["conservative", "direct"]


SENIORITY_CONFIG: Mapping[str, SeniorityConfig] = MappingProxyType({
    "ic": SeniorityConfig(
        allowed_verbs=(
            "completed", "delivered", "prepared", "created", "documented",
            "updated", "drafted", "compiled", "organized", "researched",
            "analyzed", "reviewed", "tested", "fixed", "implemented",
        ),
        scope_prefix="",
        emphasis_areas=("execution_quality", "clarity", "risk_reduction"),
        max_claim_scope="self",
    ),
    "senior": SeniorityConfig(
        allowed_verbs=(
            "completed", "delivered", "prepared", "created", "documented",
            "coordinated", "facilitated", "mentored", "guided", "established",
            "standardized", "designed", "architected", "led", "owned",
        ),
        scope_prefix="Owned",
        emphasis_areas=("standardization", "enablement", "coordination", "ownership"),
        max_claim_scope="team",
    ),
    "lead": SeniorityConfig(
        allowed_verbs=(
            "led", "coordinated", "facilitated", "established", "standardized",
            "aligned", "defined", "shaped", "drove", "managed", "oversaw",
            "sponsored", "championed", "enabled", "structured",
        ),
        scope_prefix="Led",
        emphasis_areas=("coordination", "standardization", "predictability", "transparency"),
        max_claim_scope="cross-team",
    ),
})

WORDING_CONFIG: Mapping[str, WordingConfig] = MappingProxyType({
    "safe": WordingConfig(
        assertiveness_level=2,
        length_multiplier=1.0,
        scope_escalation=False,
        verb_strength="neutral",
        quantifier_style="conservative",
    ),
    "ambitious": WordingConfig(
        assertiveness_level=4,
        length_multiplier=1.2,
        scope_escalation=True,
        verb_strength="confident",
        quantifier_style="direct",
    ),
})


def normalize_seniority(mode: Optional[str]) -> SeniorityMode:
    """Map any input to a known seniority mode (unknown -> "ic")."""
    value = (mode or "").strip().lower()
    return value if value in SENIORITY_MODES else DEFAULT_SENIORITY  # type: ignore[return-value]


def normalize_wording(wording: Optional[str]) -> WordingMode:
    """Map any input to a known wording mode (unknown -> "safe")."""
    value = (wording or "").strip().lower()
    return value if value in WORDING_MODES else DEFAULT_WORDING  # type: ignore[return-value]


def get_seniority_config(mode: Optional[str]) -> SeniorityConfig:
    return SENIORITY_CONFIG[normalize_seniority(mode)]


def get_wording_config(wording: Optional[str]) -> WordingConfig:
    return WORDING_CONFIG[normalize_wording(wording)]


# ============================================
# VALIDATION FUNCTIONS
# ============================================

def detect_banned_vocabulary(text: Optional[str]) -> List[str]:
    """
    Check text for banned words and phrases (case-insensitive substring scan).

    Returns every match, not just the first, as the literal from the banned
    lists so callers can display it. Words are reported before phrases.

    Example:
        >>> detect_banned_vocabulary("We CRUSHED it and went above and beyond")
        ['crushed', 'went above and beyond']
    """
    if not text or not isinstance(text, str):
        return []

    lower_text = text.lower()
    violations: List[str] = []

    for word in BANNED_WORDS:
        if word.lower() in lower_text:
            violations.append(word)

    for phrase in BANNED_PHRASES:
        if phrase.lower() in lower_text:
            violations.append(phrase)

    return violations


def strip_banned_vocabulary(text: Optional[str]) -> str:
    """
    Drop every word that takes part in a banned word or phrase.

    Used where user-supplied text (task titles, steps) is quoted into
    generated output. Matching is the same substring scan as
    detect_banned_vocabulary, so "Designed" goes because it contains
    "signed". Returns "" when nothing clean is left.

    Example:
        >>> strip_banned_vocabulary("Closed out sprint tickets")
        'out sprint tickets'
    """
    if not text or not isinstance(text, str):
        return ""

    words = text.split()
    while words:
        lower_words = [w.lower() for w in words]
        joined = " ".join(lower_words)
        violations = detect_banned_vocabulary(joined)
        if not violations:
            break
        start = joined.find(violations[0].lower())
        end = start + len(violations[0])

        kept: List[str] = []
        offset = 0
        for word, lower_word in zip(words, lower_words):
            word_end = offset + len(lower_word)
            if word_end <= start or offset >= end:
                kept.append(word)
            offset = word_end + 1
        words = kept

    return " ".join(words)


def _count_confirmed(outcome_confirmations: Optional[Mapping[str, object]]) -> int:
    if not isinstance(outcome_confirmations, Mapping):
        return 0
    return sum(1 for value in outcome_confirmations.values() if value is True)


def calculate_confidence(
    outcome_confirmations: Optional[Mapping[str, object]],
    step_count: Optional[float],
    has_time_tracked: Optional[bool],
    has_notes: Optional[bool],
) -> ConfidenceLevel:
    """
    Determine confidence from outcome confirmations and input richness.

    Confirmed-outcome evidence dominates richness of input, which dominates
    the default:
    - high: at least one confirmed outcome AND 3+ steps AND time tracked
    - medium: 3+ steps, OR time tracked with notes
    - low: everything else
    """
    try:
        steps = float(step_count or 0)
    except (TypeError, ValueError):
        steps = 0.0
    timed = bool(has_time_tracked)
    noted = bool(has_notes)

    if _count_confirmed(outcome_confirmations) > 0 and steps >= 3 and timed:
        return "high"

    if steps >= 3 or (timed and noted):
        return "medium"

    return "low"


# Precedence cascade: categories first, then step keywords, in literal order
_CATEGORY_THEMES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("planning", "preparation"), "decision_readiness"),
    (("delivery", "execution"), "execution_quality"),
    (("communication", "meeting"), "coordination"),
    (("documentation", "writing"), "clarity"),
)

_STEP_THEMES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("review", "check"), "risk_reduction"),
    (("share", "update", "report"), "transparency"),
    (("template", "standard"), "standardization"),
    (("unblock", "help", "support"), "enablement"),
)


def infer_impact_theme(category: Optional[str], steps: Optional[Iterable[str]]) -> str:
    """
    Return the single impact theme for a task category and its steps.

    Category keywords take priority over step keywords; within each group
    the first matching rule wins. Unmatched input yields "execution_quality".
    """
    category_lower = category.lower() if isinstance(category, str) else ""
    step_texts = [s for s in (steps or []) if isinstance(s, str)]
    steps_text = " ".join(step_texts).lower()

    for keywords, theme in _CATEGORY_THEMES:
        if any(k in category_lower for k in keywords):
            return theme

    for keywords, theme in _STEP_THEMES:
        if any(k in steps_text for k in keywords):
            return theme

    return DEFAULT_THEME


def impact_phrase_for(theme: str) -> str:
    """Pre-approved impact phrase for a theme."""
    return THEME_IMPACT_PHRASES.get(theme, DEFAULT_IMPACT_PHRASE)


# ============================================
# OUTCOME CLAIMS
# ============================================
# Phrases that assert an external result. A statement may only use them when
# the matching confirmation flag is true on every contributing task.

OUTCOME_CLAIM_PHRASES: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "proposal_submitted": ("submitted the proposal", "proposal submitted", "proposal was submitted"),
    "proposal_accepted": ("proposal accepted", "proposal was accepted", "proposal approved"),
    "deal_progressed": ("deal progressed", "advanced the deal", "moved the deal forward"),
    "shipped_to_production": (
        "shipped to production", "released to production", "deployed to production", "live in production",
    ),
    "client_approved": ("client approved", "approved by the client", "client sign-off", "client signoff"),
    "metric_improved": ("improved by", "increased by", "reduced by", "% improvement", "percent improvement"),
})


def detect_unconfirmed_outcomes(
    text: Optional[str],
    confirmations_per_task: Sequence[Optional[Mapping[str, object]]],
) -> List[str]:
    """
    Find outcome claims in text that are not confirmed on every contributing task.

    Args:
        text: Generated statement text
        confirmations_per_task: Outcome confirmation maps of the tasks the
            statement summarizes

    Returns:
        Outcome names claimed without confirmation (empty when clean)
    """
    if not text or not isinstance(text, str):
        return []

    lower_text = text.lower()
    maps: List[Dict[str, object]] = [
        dict(m) if isinstance(m, Mapping) else {} for m in confirmations_per_task
    ]
    unconfirmed: List[str] = []

    for outcome, phrases in OUTCOME_CLAIM_PHRASES.items():
        if not any(p in lower_text for p in phrases):
            continue
        confirmed_everywhere = bool(maps) and all(m.get(outcome) is True for m in maps)
        if not confirmed_everywhere:
            unconfirmed.append(outcome)

    return unconfirmed
