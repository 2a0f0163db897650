"""Prompt templates for the LLM-backed stages.

Modules:
    extraction_prompts: Claim extraction prompt and JSON schema
    adjudication_prompts: Adjudication prompt, source rendering and JSON schema
"""

from hallucination_detector.config.prompts.adjudication_prompts import (
    ADJUDICATION_PROMPT,
    VERDICT_JSON_SCHEMA,
    format_sources,
)
from hallucination_detector.config.prompts.extraction_prompts import (
    CLAIM_EXTRACTION_PROMPT,
    CLAIMS_JSON_SCHEMA,
)

__all__ = [
    "ADJUDICATION_PROMPT",
    "VERDICT_JSON_SCHEMA",
    "format_sources",
    "CLAIM_EXTRACTION_PROMPT",
    "CLAIMS_JSON_SCHEMA",
]
