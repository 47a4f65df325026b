"""Prompt preprocessing for the external model calls."""

from .prompt_builder import (
    ANALYSIS_SYSTEM_PROMPT,
    MATCHING_SYSTEM_PROMPT,
    build_analysis_prompt,
    build_assistant_system_prompt,
    build_matching_prompt,
    parse_json_reply,
    strip_code_fence,
    truncate_text,
)

__all__ = [
    "ANALYSIS_SYSTEM_PROMPT",
    "MATCHING_SYSTEM_PROMPT",
    "build_analysis_prompt",
    "build_assistant_system_prompt",
    "build_matching_prompt",
    "parse_json_reply",
    "strip_code_fence",
    "truncate_text",
]
