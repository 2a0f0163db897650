"""Evidence retrieval adapter over the two search backends.

Normalises Exa and Bocha responses into canonical Evidence records.

Ordering:
- Exa (international): the native result order is reversed, so the first
  result returned by Exa ends up last. Callers truncating from the front
  therefore keep the last results Exa returned.
- Bocha (domestic): native order is preserved.

Accepted envelopes, tried in order:
- Exa: {"results": [...]}, {"data": {"results": [...]}}, [...]
- Bocha: {"data": {"webPages": {"value": [...]}}}, {"webPages": {"value": [...]}}, [...]
Any other shape is an UpstreamError.

Usage:
    provider = EvidenceProvider(backends={ProviderPair.INTERNATIONAL: exa_client, ...})
    evidence = await provider.fetch_evidence(claim, ProviderPair.INTERNATIONAL, creds, limit=10)
"""

from typing import Any, Optional

import structlog

from hallucination_detector.verification.backends import SearchBackend, call_with_timeout
from hallucination_detector.verification.errors import InvalidInput, UpstreamError
from hallucination_detector.verification.schemas import (
    Evidence,
    ProviderCredentials,
    ProviderPair,
)

UNTITLED = "Untitled"

SEARCH_CREDENTIALS = {
    ProviderPair.INTERNATIONAL: "exa_api_key",
    ProviderPair.DOMESTIC: "bocha_api_key",
}


class EvidenceProvider:
    """Fetch evidence for a claim from the search backend of a provider pair."""

    def __init__(
        self,
        backends: dict[ProviderPair, SearchBackend],
        timeout: Optional[float] = 30.0,
    ) -> None:
        """Initialize EvidenceProvider.

        Args:
            backends: Search backend per provider pair.
            timeout: Seconds allowed for each search call (None disables).
        """
        self._backends = backends
        self.timeout = timeout
        self._logger = structlog.get_logger().bind(component="EvidenceProvider")

    async def fetch_evidence(
        self,
        query: str,
        provider: ProviderPair,
        credentials: ProviderCredentials,
        limit: int = 10,
    ) -> list[Evidence]:
        """Search for evidence about ``query``.

        Args:
            query: Claim text used as the search query.
            provider: Provider pair whose search backend is used.
            credentials: Run credentials.
            limit: Number of results requested from the backend.

        Returns:
            Canonical Evidence list, possibly empty.

        Raises:
            InvalidInput: Empty or whitespace-only query.
            AuthError, RateLimited, QuotaExceeded, UpstreamError: Backend failure.
        """
        if not isinstance(query, str) or not query.strip():
            raise InvalidInput("Search query must be a non-empty string")

        backend = self._backends.get(provider)
        if backend is None:
            raise UpstreamError(f"No search backend configured for {provider.value}")

        api_key = getattr(credentials, SEARCH_CREDENTIALS[provider])
        raw = await call_with_timeout(
            backend.search(query.strip(), api_key, limit),
            self.timeout,
            provider=provider.value,
        )

        if provider == ProviderPair.INTERNATIONAL:
            evidence = normalize_exa_results(raw)
        else:
            evidence = normalize_bocha_results(raw)

        self._logger.info(
            "evidence_fetched",
            provider=provider.value,
            query=query[:80],
            results=len(evidence),
        )
        return evidence


def normalize_exa_results(raw: Any) -> list[Evidence]:
    """Map an Exa response to Evidence, reversing the native order."""
    items = _unwrap_exa(raw)
    evidence = [
        record
        for record in (
            _to_evidence(
                url=item.get("url"),
                title=item.get("title"),
                text=item.get("text"),
                published_date=item.get("publishedDate"),
                score=item.get("score"),
            )
            for item in items
            if isinstance(item, dict)
        )
        if record is not None
    ]
    evidence.reverse()
    return evidence


def normalize_bocha_results(raw: Any) -> list[Evidence]:
    """Map a Bocha web-search response to Evidence in native order."""
    items = _unwrap_bocha(raw)
    evidence = []
    for item in items:
        if not isinstance(item, dict):
            continue
        record = _to_evidence(
            url=item.get("url"),
            title=item.get("name") or item.get("title"),
            text=item.get("summary") or item.get("snippet") or item.get("text"),
            published_date=item.get("datePublished") or item.get("dateLastCrawled"),
            score=item.get("score"),
        )
        if record is not None:
            evidence.append(record)
    return evidence


def _unwrap_exa(raw: Any) -> list:
    if isinstance(raw, list):
        return raw
    if isinstance(raw, dict):
        if isinstance(raw.get("results"), list):
            return raw["results"]
        data = raw.get("data")
        if isinstance(data, dict) and isinstance(data.get("results"), list):
            return data["results"]
    raise UpstreamError("Unrecognised Exa response shape", provider="exa")


def _unwrap_bocha(raw: Any) -> list:
    if isinstance(raw, list):
        return raw
    if isinstance(raw, dict):
        container = raw.get("data") if isinstance(raw.get("data"), dict) else raw
        web_pages = container.get("webPages")
        if isinstance(web_pages, dict):
            value = web_pages.get("value")
            if value is None:
                return []
            if isinstance(value, list):
                return value
    raise UpstreamError("Unrecognised Bocha response shape", provider="bocha")


def _to_evidence(
    url: Any,
    title: Any,
    text: Any,
    published_date: Any,
    score: Any,
) -> Optional[Evidence]:
    if not isinstance(url, str) or not url.strip():
        return None
    return Evidence(
        url=url,
        title=title if isinstance(title, str) and title.strip() else UNTITLED,
        text=text if isinstance(text, str) else None,
        published_date=str(published_date) if published_date else None,
        score=_as_float(score),
    )


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
