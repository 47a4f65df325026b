"""Prompt Preprocessing Module

Purpose: Turn case data into model prompts and model replies back into JSON

The classification and matching calls share a fixed reply contract: a single
JSON value, which models sometimes wrap in a markdown code fence. This module
builds the prompts for both calls (plus the assistant's system prompt) and
owns the fence-stripping and JSON decoding that precede schema validation.

Key Functions:
- build_analysis_prompt(): Classification prompt for one case
- build_matching_prompt(): Ranking prompt for an analysis and its candidates
- build_assistant_system_prompt(): System prompt for the legal assistant
- parse_json_reply(): Fence-stripped JSON decoding, raising MalformedAIResponse

Design Principles:
- Stay within model context limits (descriptions truncated)
- Send only the reduced advocate projection, never full profiles
"""

import json
import logging
import re
from typing import Any, Dict, Iterable, Optional

from lsp_core_lib.models.analysis import AIAnalysis
from lsp_core_lib.models.case import AdvocateCandidate
from lsp_core_lib.models.exceptions import MalformedAIResponse

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_CHARS = 8000

ANALYSIS_SYSTEM_PROMPT = "You are a legal analysis AI. Always respond with valid JSON only."
MATCHING_SYSTEM_PROMPT = "You are an advocate matching AI. Always respond with valid JSON only."

_FENCE_RE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\n?(.*?)\n?[ \t]*```$", re.DOTALL)

ANALYSIS_PROMPT = """You are an expert legal analyst AI. Analyze the following legal case and provide a structured assessment.

Case Title: {title}
Description: {description}
Category: {category}

Analyze and respond with ONLY a JSON object (no markdown, no code blocks) containing:
{{
  "urgencyLevel": "low" | "medium" | "high" | "critical",
  "riskScore": (number 1-100),
  "caseType": "string describing specific case type",
  "requiredSpecialization": ["array of required legal specializations"],
  "estimatedDuration": "string like '2-3 months'",
  "keyIssues": ["array of key legal issues identified"],
  "recommendedActions": ["array of immediate actions to take"],
  "reasoning": "brief explanation of the analysis"
}}"""

MATCHING_PROMPT = """You are a legal advocate matching system. Given a case analysis and a list of advocates, rank the advocates by suitability.

Case Analysis:
{analysis}

Available Advocates:
{advocates}

Respond with ONLY a JSON array covering every advocate above exactly once, ranked by suitability with integer match scores from 0 to 100:
[
  {{ "advocateId": "id", "matchScore": 95, "reason": "brief reason" }}
]"""

ASSISTANT_SYSTEM_PROMPT = """You are a helpful legal assistant AI for the Legal Services Platform.
You provide general legal information and guidance.
Important: Always remind users that your responses are informational only and not legal advice.
Current context: {context}"""


def truncate_text(text: str, max_chars: int = MAX_DESCRIPTION_CHARS) -> str:
    """Truncate text to max_chars, marking the cut."""
    if len(text) <= max_chars:
        return text
    logger.debug(f"Truncating prompt text from {len(text)} to {max_chars} chars")
    return text[:max_chars] + "\n...[truncated]..."


def build_analysis_prompt(title: str, description: str, category: Optional[str]) -> str:
    return ANALYSIS_PROMPT.format(
        title=title,
        description=truncate_text(description or ""),
        category=category or "Not specified",
    )


def build_matching_prompt(analysis: AIAnalysis, candidates: Iterable[AdvocateCandidate]) -> str:
    """
    Build the ranking prompt.

    Args:
        analysis: Case analysis (sent without its timestamp)
        candidates: Candidates in the caller's order

    Returns:
        Prompt string
    """
    analysis_payload = analysis.model_dump(mode="json", by_alias=True, exclude={"analyzed_at"})
    advocates_payload = [candidate.to_prompt_dict() for candidate in candidates]
    return MATCHING_PROMPT.format(
        analysis=json.dumps(analysis_payload, indent=2),
        advocates=json.dumps(advocates_payload, indent=2),
    )


def build_assistant_system_prompt(context: Optional[Dict[str, Any]] = None) -> str:
    return ASSISTANT_SYSTEM_PROMPT.format(context=json.dumps(context or {}, default=str))


def strip_code_fence(content: str) -> str:
    """Remove a markdown code fence wrapping the whole reply, if present."""
    content = content.strip()
    match = _FENCE_RE.match(content)
    if match:
        return match.group(1).strip()
    return content


def parse_json_reply(content: Optional[str]) -> Any:
    """
    Decode a model reply into JSON.

    Raises:
        MalformedAIResponse: If the reply is empty or not JSON
    """
    if content is None or not content.strip():
        raise MalformedAIResponse("Model returned empty content")

    cleaned = strip_code_fence(content)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise MalformedAIResponse(
            f"Model reply is not valid JSON: {e}",
            context={"preview": cleaned[:200]},
        ) from e
