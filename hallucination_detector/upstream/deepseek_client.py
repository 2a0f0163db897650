"""DeepSeek chat completions client (domestic extraction and adjudication).

DeepSeek exposes an OpenAI-compatible API. JSON mode is requested and the
message content is decoded with the same markdown-tolerant parser used for
other text responses.
"""

from typing import Any, Optional

import httpx

from hallucination_detector.config.prompts import (
    ADJUDICATION_PROMPT,
    CLAIM_EXTRACTION_PROMPT,
    format_sources,
)
from hallucination_detector.upstream.base import UpstreamClient, extract_json_from_text
from hallucination_detector.verification.errors import UpstreamError
from hallucination_detector.verification.schemas import Evidence


class DeepSeekClient(UpstreamClient):
    """Claim extraction and adjudication through DeepSeek chat models."""

    name = "deepseek"

    def __init__(
        self,
        base_url: str = "https://api.deepseek.com",
        model: str = "deepseek-chat",
        timeout: float = 60.0,
        temperature: float = 0.1,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(base_url=base_url, timeout=timeout, http_client=http_client)
        self.model = model
        self.temperature = temperature

    async def extract_claims(self, text: str, api_key: str) -> Any:
        prompt = CLAIM_EXTRACTION_PROMPT.format(content=text)
        return await self._json_completion(prompt, api_key)

    async def adjudicate(
        self,
        claim: str,
        original_text: str,
        evidence: list[Evidence],
        api_key: str,
    ) -> Any:
        prompt = ADJUDICATION_PROMPT.format(
            sources=format_sources(evidence),
            original_text=original_text,
            claim=claim,
        )
        return await self._json_completion(prompt, api_key)

    async def _json_completion(self, prompt: str, api_key: str) -> Any:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": "You only answer with valid JSON."},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "response_format": {"type": "json_object"},
        }
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

        body = await self._post_json("/chat/completions", payload, headers)

        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise UpstreamError(
                "DeepSeek response has no message content", provider=self.name
            ) from e

        try:
            return extract_json_from_text(content)
        except UpstreamError as e:
            e.provider = self.name
            raise
