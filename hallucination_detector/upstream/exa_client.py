"""Exa search client (international evidence retrieval).

The claim is expanded with verification keywords before searching: Chinese
keywords when the claim looks Chinese, English ones otherwise.
"""

from typing import Any, Optional

import httpx

from hallucination_detector.upstream.base import UpstreamClient

CHINESE_MARKERS = ("的", "是", "在")
CHINESE_KEYWORDS = "事实 真相 验证"
ENGLISH_KEYWORDS = "facts verification truth"
QUERY_SUFFIX = " \n\nHere is a web page that helps verify this:"


def build_search_query(claim: str) -> str:
    """Expand a claim into the Exa search query."""
    if any(marker in claim for marker in CHINESE_MARKERS):
        keywords = CHINESE_KEYWORDS
    else:
        keywords = ENGLISH_KEYWORDS
    return f"{claim} {keywords}{QUERY_SUFFIX}"


class ExaClient(UpstreamClient):
    """Neural web search with page contents through Exa."""

    name = "exa"

    def __init__(
        self,
        base_url: str = "https://api.exa.ai",
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(base_url=base_url, timeout=timeout, http_client=http_client)

    async def search(self, query: str, api_key: str, limit: int = 10) -> Any:
        """Search and return the raw Exa response (``{"results": [...]}``)."""
        payload = {
            "query": build_search_query(query),
            "type": "auto",
            "numResults": limit,
            "contents": {"text": True},
        }
        headers = {"x-api-key": api_key, "Content-Type": "application/json"}
        return await self._post_json("/search", payload, headers)
