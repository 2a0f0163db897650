"""Shared HTTP plumbing for upstream capability clients.

Each concrete client (Anthropic, DeepSeek, Exa, Bocha) posts JSON to one
provider and returns the raw decoded payload. Shape normalisation is the job
of the verification adapters, never of these clients.

Transport failures are classified here into the stage error taxonomy:
- 401/403 -> AuthError, 402 -> QuotaExceeded, 429 -> RateLimited
- timeouts -> UpstreamTimeout
- other HTTP or network failures, undecodable bodies -> UpstreamError
"""

import json
import re
from abc import ABC
from typing import Any, Optional

import httpx

from hallucination_detector.config.logging import get_logger
from hallucination_detector.verification.errors import (
    UpstreamError,
    UpstreamTimeout,
    classify_status,
)


class UpstreamClient(ABC):
    """
    Base class for upstream provider clients.

    The httpx.AsyncClient can be injected so several clients share one
    connection pool (and so tests can pass an httpx.MockTransport). When not
    injected, the client is created lazily and closed by ``close()``.

    Attributes:
        name: Provider name used in errors and logs
        base_url: Provider API root
        timeout: Per-request timeout in seconds
    """

    name = "upstream"

    def __init__(
        self,
        base_url: str,
        timeout: float = 60.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None
        self.logger = get_logger(f"upstream.{self.name}")

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                limits=httpx.Limits(max_connections=20),
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _post_json(
        self,
        path: str,
        payload: dict,
        headers: dict[str, str],
    ) -> Any:
        """
        POST a JSON payload and decode the JSON response.

        Args:
            path: Path relative to base_url
            payload: Request body
            headers: Provider auth headers

        Returns:
            Decoded JSON response body

        Raises:
            AuthError, RateLimited, QuotaExceeded, UpstreamTimeout, UpstreamError
        """
        client = await self._get_client()
        url = f"{self.base_url}{path}"

        try:
            response = await client.post(
                url,
                json=payload,
                headers=headers,
                timeout=httpx.Timeout(self.timeout),
            )
            response.raise_for_status()
        except httpx.TimeoutException as e:
            self.logger.warning(f"Request timed out after {self.timeout}s: {url}")
            raise UpstreamTimeout(
                f"{self.name} request timed out after {self.timeout}s",
                provider=self.name,
            ) from e
        except httpx.HTTPStatusError as e:
            error = classify_status(
                e.response.status_code, e.response.text, provider=self.name
            )
            self.logger.warning(
                f"HTTP error {e.response.status_code} from {self.name} ({error.kind})"
            )
            raise error from e
        except (httpx.RequestError, httpx.InvalidURL) as e:
            self.logger.warning(f"Request to {self.name} failed: {e}")
            raise UpstreamError(
                f"{self.name} request failed: {e}", provider=self.name
            ) from e

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(
                f"{self.name} returned a non-JSON body", provider=self.name
            ) from e


def extract_json_from_text(response_text: str) -> Any:
    """
    Extract a JSON value from LLM response text, handling markdown blocks.

    The model may return JSON in various formats:
    - Raw JSON
    - JSON in a markdown code block (```json ... ```)
    - JSON with surrounding text

    Args:
        response_text: Raw text content from the model

    Returns:
        Parsed JSON value

    Raises:
        UpstreamError: If no JSON value can be decoded
    """
    text = (response_text or "").strip()

    json_match = re.search(r"```(?:json)?\s*([\s\S]*?)```", text)
    if json_match:
        text = json_match.group(1).strip()

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    # Fall back to the outermost object or array in the text
    object_match = re.search(r"[\[{][\s\S]*[\]}]", text)
    if object_match:
        try:
            return json.loads(object_match.group(0))
        except json.JSONDecodeError as e:
            raise UpstreamError(f"Model returned malformed JSON: {e}") from e

    raise UpstreamError("Model response contained no JSON")
