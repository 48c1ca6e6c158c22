"""
Prompts for value statement generation.

A value statement is one executive-ready sentence describing the controlled
value of a single completed task.
"""

VALUE_STATEMENT_SYSTEM_PROMPT = """You write one-sentence value statements for completed work.

Frame the work around what the person controlled: alignment, clarity,
predictability, risk reduction, execution quality. Use neutral corporate
language. Never claim revenue, growth, wins, or metrics that were not given.
Reply with the sentence only."""


def build_value_statement_prompt(task: str) -> str:
    """Build the user prompt for a value statement."""
    return f"""Completed task: "{task}"

Write ONE sentence (under 30 words) describing the value this work created
for the team or stakeholders. Start with a past-tense verb. No quotes, no
preamble.

Value statement:"""
