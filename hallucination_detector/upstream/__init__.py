"""Upstream capability clients.

Each client talks to one provider and returns raw decoded payloads:
- AnthropicClient: extract_claims / adjudicate (international pair)
- DeepSeekClient: extract_claims / adjudicate (domestic pair)
- ExaClient: search (international pair)
- BochaClient: search (domestic pair)
"""

from hallucination_detector.upstream.anthropic_client import AnthropicClient
from hallucination_detector.upstream.base import UpstreamClient, extract_json_from_text
from hallucination_detector.upstream.bocha_client import BochaClient
from hallucination_detector.upstream.deepseek_client import DeepSeekClient
from hallucination_detector.upstream.exa_client import ExaClient, build_search_query

__all__ = [
    "AnthropicClient",
    "BochaClient",
    "DeepSeekClient",
    "ExaClient",
    "UpstreamClient",
    "build_search_query",
    "extract_json_from_text",
]
