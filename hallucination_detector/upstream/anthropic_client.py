"""Anthropic Messages API client for claim extraction and adjudication.

Structured output is requested through a forced tool call, so the tool input
is the JSON object produced by the model. The payload is returned untouched:
the model occasionally emits the ``claims`` array as a JSON string, and it is
the claim extraction adapter that repairs that.

Usage:
    client = AnthropicClient(base_url="https://api.anthropic.com")
    raw = await client.extract_claims(text, api_key)
"""

from typing import Any, Optional

import httpx

from hallucination_detector.config.prompts import (
    ADJUDICATION_PROMPT,
    CLAIM_EXTRACTION_PROMPT,
    CLAIMS_JSON_SCHEMA,
    VERDICT_JSON_SCHEMA,
    format_sources,
)
from hallucination_detector.upstream.base import UpstreamClient, extract_json_from_text
from hallucination_detector.verification.errors import UpstreamError
from hallucination_detector.verification.schemas import Evidence


class AnthropicClient(UpstreamClient):
    """
    Claim extraction and adjudication through Anthropic models.

    Attributes:
        extraction_model: Model used by extract_claims
        adjudication_model: Model used by adjudicate
        api_version: Value of the anthropic-version header
    """

    name = "anthropic"

    def __init__(
        self,
        base_url: str = "https://api.anthropic.com",
        extraction_model: str = "claude-3-5-haiku-20241022",
        adjudication_model: str = "claude-3-5-sonnet-20241022",
        api_version: str = "2023-06-01",
        timeout: float = 60.0,
        max_tokens: int = 4096,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(base_url=base_url, timeout=timeout, http_client=http_client)
        self.extraction_model = extraction_model
        self.adjudication_model = adjudication_model
        self.api_version = api_version
        self.max_tokens = max_tokens

    async def extract_claims(self, text: str, api_key: str) -> Any:
        """Ask the extraction model for the claims contained in ``text``."""
        prompt = CLAIM_EXTRACTION_PROMPT.format(content=text)
        return await self._structured_call(
            model=self.extraction_model,
            prompt=prompt,
            tool_name="record_claims",
            tool_description="Record every verifiable claim found in the text",
            schema=CLAIMS_JSON_SCHEMA,
            api_key=api_key,
        )

    async def adjudicate(
        self,
        claim: str,
        original_text: str,
        evidence: list[Evidence],
        api_key: str,
    ) -> Any:
        """Ask the adjudication model for a verdict on ``claim`` given ``evidence``."""
        prompt = ADJUDICATION_PROMPT.format(
            sources=format_sources(evidence),
            original_text=original_text,
            claim=claim,
        )
        return await self._structured_call(
            model=self.adjudication_model,
            prompt=prompt,
            tool_name="record_verdict",
            tool_description="Record the fact-check verdict for the claim",
            schema=VERDICT_JSON_SCHEMA,
            api_key=api_key,
        )

    async def _structured_call(
        self,
        model: str,
        prompt: str,
        tool_name: str,
        tool_description: str,
        schema: dict,
        api_key: str,
    ) -> Any:
        payload = {
            "model": model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
            "tools": [
                {
                    "name": tool_name,
                    "description": tool_description,
                    "input_schema": schema,
                }
            ],
            "tool_choice": {"type": "tool", "name": tool_name},
        }
        headers = {
            "x-api-key": api_key,
            "anthropic-version": self.api_version,
            "content-type": "application/json",
        }

        body = await self._post_json("/v1/messages", payload, headers)
        self.logger.debug(f"{model} responded to {tool_name}")
        return self._parse_message(body)

    def _parse_message(self, body: Any) -> Any:
        """Return the tool input, or JSON found in a text block as a fallback."""
        if not isinstance(body, dict):
            raise UpstreamError("Unexpected Anthropic response body", provider=self.name)

        blocks = body.get("content") or []
        for block in blocks:
            if isinstance(block, dict) and block.get("type") == "tool_use":
                return block.get("input")

        for block in blocks:
            if isinstance(block, dict) and block.get("type") == "text":
                return extract_json_from_text(block.get("text", ""))

        raise UpstreamError(
            "Anthropic response contained no tool call or text", provider=self.name
        )
