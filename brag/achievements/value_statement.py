"""
Value statement generation.

One executive-ready sentence for a single completed task, plus an "overall
impact" line chosen from a fixed keyword table. Falls back to a template
whenever the backend fails or returns something unusable.

The model path and the fallback path use different tables: the model table
also looks at the generated sentence, the fallback table only at the task
title and with a few more task keywords.
"""

import re
from typing import List, Tuple

from brag.common.config import Config
from brag.common.llm_client import GenerationOptions, TextGenerator
from brag.common.logger import get_logger
from brag.achievements.prompts.value_statement_prompts import (
    VALUE_STATEMENT_SYSTEM_PROMPT,
    build_value_statement_prompt,
)
from brag.achievements.types import ValueStatement
from brag.achievements.vocabulary import (
    detect_banned_vocabulary,
    detect_unconfirmed_outcomes,
    strip_banned_vocabulary,
)

MAX_STATEMENT_LENGTH = 300

_LABEL = re.compile(r"^value statement:\s*", re.IGNORECASE)
_QUOTES = re.compile(r"^[\"']|[\"']$")

FOCUS_IMPACT = "Recovered focus time by clearing decision backlog and eliminating notification debt."
DECISION_IMPACT = "Accelerated team decision-making by front-loading blockers and priorities."
SELF_SERVE_IMPACT = "Freed stakeholder capacity by enabling self-serve access to critical information."
RISK_IMPACT = "De-risked delivery by catching issues before they reached production."
VELOCITY_IMPACT = "Protected execution velocity by removing uncertainty from upcoming work."
MOMENTUM_IMPACT = "Maintained release momentum, keeping downstream teams unblocked."
VISIBILITY_IMPACT = "Preserved stakeholder trust through proactive visibility into progress."
RELIABILITY_IMPACT = "Restored system reliability, eliminating friction for affected users."
QUALITY_IMPACT = "Protected release quality by validating behavior before deployment."
RETRIEVAL_IMPACT = "Reduced retrieval friction, enabling faster handoffs and fewer interruptions."
DEFAULT_OVERALL_IMPACT = "Freed capacity for strategic work by eliminating operational friction."

# (statement keywords, task keywords, overall impact); first match wins
MODEL_IMPACT_RULES: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...], str], ...] = (
    ((), ("email", "inbox", "message"), FOCUS_IMPACT),
    (("alignment",), ("meeting", "sync"), DECISION_IMPACT),
    (("clarity",), ("document", "write"), SELF_SERVE_IMPACT),
    (("risk",), ("review", "check"), RISK_IMPACT),
    (("predictability",), ("plan", "prepare"), VELOCITY_IMPACT),
    (("delivery",), ("ship", "deploy"), MOMENTUM_IMPACT),
    (("communication",), ("update", "report"), VISIBILITY_IMPACT),
    ((), ("fix", "bug", "resolve"), RELIABILITY_IMPACT),
    ((), ("test", "qa"), QUALITY_IMPACT),
    ((), ("clean", "organiz", "sort"), RETRIEVAL_IMPACT),
)

# (task keywords, overall impact); first match wins
FALLBACK_IMPACT_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("email", "inbox", "message"), FOCUS_IMPACT),
    (("meeting", "sync", "standup"), DECISION_IMPACT),
    (("document", "write", "draft"), SELF_SERVE_IMPACT),
    (("review", "check", "audit"), RISK_IMPACT),
    (("plan", "prepare", "schedule"), VELOCITY_IMPACT),
    (("ship", "deploy", "release"), MOMENTUM_IMPACT),
    (("update", "report"), VISIBILITY_IMPACT),
    (("fix", "bug", "resolve"), RELIABILITY_IMPACT),
    (("test", "qa"), QUALITY_IMPACT),
    (("clean", "organiz", "sort", "file"), RETRIEVAL_IMPACT),
)


def overall_impact_for(task: str, statement: str) -> str:
    """Overall impact for a model statement, from statement and task keywords."""
    lower_task = task.lower()
    lower_statement = statement.lower()
    for statement_keywords, task_keywords, impact in MODEL_IMPACT_RULES:
        if any(k in lower_statement for k in statement_keywords):
            return impact
        if any(k in lower_task for k in task_keywords):
            return impact
    return DEFAULT_OVERALL_IMPACT


def fallback_overall_impact(task: str) -> str:
    """Overall impact for the template statement, from task keywords only."""
    lower_task = task.lower()
    for task_keywords, impact in FALLBACK_IMPACT_RULES:
        if any(k in lower_task for k in task_keywords):
            return impact
    return DEFAULT_OVERALL_IMPACT


def disallowed_claims_in(statement: str, overall_impact: str) -> List[str]:
    """Banned vocabulary and outcome claims in the statement or its impact line."""
    text = f"{statement} {overall_impact}"
    claims = detect_banned_vocabulary(text)
    # a bare task title carries no confirmations, so every outcome claim is unconfirmed
    claims.extend(f"unconfirmed outcome: {outcome}" for outcome in detect_unconfirmed_outcomes(text, [{}]))
    return claims


def clean_statement(text: str) -> str:
    """Strip a leading label and surrounding quotes; end with a period."""
    statement = _LABEL.sub("", text.strip()).strip()
    statement = _QUOTES.sub("", statement).strip()
    if statement and not statement.endswith("."):
        statement += "."
    return statement


def fallback_value_statement(task: str) -> ValueStatement:
    subject = strip_banned_vocabulary(task).lower() or "the task"
    return ValueStatement(
        statement=f"Delivered on {subject}, contributing to team execution quality.",
        overall_impact=fallback_overall_impact(task),
        source="fallback",
    )


class ValueStatementGenerator:
    """
    Generates value statements for completed task titles.

    Usage:
        result = ValueStatementGenerator(LangChainTextGenerator()).generate("Prepare Q3 roadmap")
        print(result.statement, result.source)
    """

    def __init__(self, text_generator: TextGenerator):
        self.text_generator = text_generator
        self._logger = get_logger(__name__, component="value-statement")

    def generate(self, task: str) -> ValueStatement:
        """
        Generate a value statement; a blank task yields an empty fallback result.

        Banned vocabulary and outcome claims in the model's sentence or its
        impact line are reported in disallowed_claims, not removed.
        """
        task = (task or "").strip()
        if not task:
            return ValueStatement(statement="", overall_impact="", source="fallback")

        options = GenerationOptions(
            temperature=Config.VALUE_STATEMENT_TEMPERATURE,
            max_tokens=Config.VALUE_STATEMENT_MAX_TOKENS,
            system_prompt=VALUE_STATEMENT_SYSTEM_PROMPT,
        )
        try:
            result = self.text_generator.generate(build_value_statement_prompt(task), options)
        except Exception as e:
            self._logger.warning(f"Value statement generation raised {type(e).__name__}: {e}")
            return fallback_value_statement(task)
        if not result.ok:
            self._logger.warning(f"Value statement generation failed: {result.error_message}")
            return fallback_value_statement(task)

        statement = clean_statement(result.text)
        if not statement or len(statement) > MAX_STATEMENT_LENGTH:
            self._logger.warning(f"Unusable value statement ({len(statement)} chars); using fallback")
            return fallback_value_statement(task)

        overall_impact = overall_impact_for(task, statement)
        claims = disallowed_claims_in(statement, overall_impact)
        if claims:
            self._logger.warning(f"Disallowed claims in value statement: {claims}")

        return ValueStatement(
            statement=statement,
            overall_impact=overall_impact,
            source="model",
            disallowed_claims=claims,
        )
