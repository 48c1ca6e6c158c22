"""
Prompts for brag list generation.

- brag_prompts: batch and single-task achievement statements
- value_statement_prompts: one-sentence value statements
"""

from brag.achievements.prompts.brag_prompts import (
    build_brag_list_prompt,
    get_brag_list_system_prompt,
    build_single_brag_prompt,
    get_single_brag_system_prompt,
)
from brag.achievements.prompts.value_statement_prompts import (
    VALUE_STATEMENT_SYSTEM_PROMPT,
    build_value_statement_prompt,
)

__all__ = [
    "build_brag_list_prompt",
    "get_brag_list_system_prompt",
    "build_single_brag_prompt",
    "get_single_brag_system_prompt",
    "VALUE_STATEMENT_SYSTEM_PROMPT",
    "build_value_statement_prompt",
]
