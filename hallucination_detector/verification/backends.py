"""Capability interfaces consumed by the verification adapters.

Concrete implementations live in ``hallucination_detector.upstream``. Each
call returns a raw, semi-structured payload whose shape varies by backend;
the adapters normalise it.
"""

import asyncio
from typing import Any, Awaitable, Optional, Protocol, TypeVar

from hallucination_detector.verification.errors import UpstreamTimeout
from hallucination_detector.verification.schemas import Evidence

T = TypeVar("T")


class ClaimExtractionBackend(Protocol):
    async def extract_claims(self, text: str, api_key: str) -> Any: ...


class SearchBackend(Protocol):
    async def search(self, query: str, api_key: str, limit: int = 10) -> Any: ...


class AdjudicationBackend(Protocol):
    async def adjudicate(
        self,
        claim: str,
        original_text: str,
        evidence: list[Evidence],
        api_key: str,
    ) -> Any: ...


async def call_with_timeout(
    awaitable: Awaitable[T],
    timeout: Optional[float],
    provider: str,
) -> T:
    """Await an upstream call under a stage timeout.

    A timeout is reported as UpstreamTimeout so callers handle it like any
    other upstream failure.
    """
    if timeout is None:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise UpstreamTimeout(
            f"{provider} call exceeded {timeout}s", provider=provider
        ) from e
