"""Bocha web search client (domestic evidence retrieval)."""

from typing import Any, Optional

import httpx

from hallucination_detector.upstream.base import UpstreamClient
from hallucination_detector.verification.errors import classify_status


class BochaClient(UpstreamClient):
    """Web search through the Bocha API.

    Bocha can answer HTTP 200 with a non-200 ``code`` in the body; those
    responses are classified like HTTP errors.
    """

    name = "bocha"

    def __init__(
        self,
        base_url: str = "https://api.bochaai.com",
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(base_url=base_url, timeout=timeout, http_client=http_client)

    async def search(self, query: str, api_key: str, limit: int = 10) -> Any:
        """Search and return the raw Bocha response."""
        payload = {
            "query": query,
            "summary": True,
            "freshness": "noLimit",
            "count": limit,
        }
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        body = await self._post_json("/v1/web-search", payload, headers)

        if isinstance(body, dict):
            code = body.get("code")
            if isinstance(code, int) and code != 200:
                raise classify_status(code, str(body.get("msg") or ""), provider=self.name)
        return body
