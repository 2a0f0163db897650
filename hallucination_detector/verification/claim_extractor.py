"""Claim extraction adapter over the two LLM backends.

Upstream models return the claim list in inconsistent envelopes. Shapes are
tried in a fixed priority order:

1. {"claims": [...]}              expected shape
2. {"data": {"claims": [...]}}    nested one level under "data"
3. [...]                          bare list taken as the claims themselves

Any other shape yields no claims and a warning. A known quirk returns the
claims array as a JSON-encoded string; it is decoded, and if decoding fails
the original schema failure is raised as ResponseShapeError rather than
silently dropping data.

Entries without claim text are dropped. An empty result is not an error.

Transient failures (UpstreamError, timeouts) are retried with exponential
backoff; credential, throttling, quota and shape failures are not.
"""

import json
from typing import Any, Optional

import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from hallucination_detector.verification.backends import (
    ClaimExtractionBackend,
    call_with_timeout,
)
from hallucination_detector.verification.errors import (
    InvalidInput,
    ResponseShapeError,
    UpstreamError,
)
from hallucination_detector.verification.schemas import (
    Claim,
    ProviderCredentials,
    ProviderPair,
)

EXTRACTION_CREDENTIALS = {
    ProviderPair.INTERNATIONAL: "anthropic_api_key",
    ProviderPair.DOMESTIC: "deepseek_api_key",
}

_logger = structlog.get_logger().bind(component="ClaimExtractor")


def _is_transient(error: BaseException) -> bool:
    return isinstance(error, UpstreamError) and not isinstance(error, ResponseShapeError)


class ClaimExtractor:
    """Extract canonical claims from text through the pair's LLM backend."""

    def __init__(
        self,
        backends: dict[ProviderPair, ClaimExtractionBackend],
        max_attempts: int = 3,
        timeout: Optional[float] = 60.0,
        backoff_min: float = 1.0,
        backoff_max: float = 10.0,
    ) -> None:
        """Initialize ClaimExtractor.

        Args:
            backends: Extraction backend per provider pair.
            max_attempts: Attempts per extraction for transient failures.
            timeout: Seconds allowed for each backend call (None disables).
            backoff_min: Minimum wait between attempts (seconds).
            backoff_max: Maximum wait between attempts (seconds).
        """
        self._backends = backends
        self.max_attempts = max_attempts
        self.timeout = timeout
        self.backoff_min = backoff_min
        self.backoff_max = backoff_max

    async def extract_claims(
        self,
        text: str,
        provider: ProviderPair,
        credentials: ProviderCredentials,
    ) -> list[Claim]:
        """Extract the verifiable claims contained in ``text``.

        Raises:
            InvalidInput: Text is empty after trimming.
            ResponseShapeError: Stringified claims could not be decoded.
            AuthError, RateLimited, QuotaExceeded, UpstreamError: Backend failure.
        """
        if not isinstance(text, str) or not text.strip():
            raise InvalidInput("Text must be a non-empty string")

        backend = self._backends.get(provider)
        if backend is None:
            raise UpstreamError(f"No extraction backend configured for {provider.value}")

        api_key = getattr(credentials, EXTRACTION_CREDENTIALS[provider])

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, min=self.backoff_min, max=self.backoff_max),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        ):
            with attempt:
                attempt_number = attempt.retry_state.attempt_number
                if attempt_number > 1:
                    _logger.warning(
                        "extraction_retry",
                        provider=provider.value,
                        attempt=attempt_number,
                        max_attempts=self.max_attempts,
                    )
                raw = await call_with_timeout(
                    backend.extract_claims(text, api_key),
                    self.timeout,
                    provider=provider.value,
                )

        claims = parse_claims_payload(raw)
        _logger.info(
            "claims_extracted",
            provider=provider.value,
            text_length=len(text),
            claims=len(claims),
        )
        return claims


def parse_claims_payload(raw: Any) -> list[Claim]:
    """Normalise a raw extraction payload into a list of Claims."""
    entries = _unwrap_claims(raw)

    claims: list[Claim] = []
    for entry in entries:
        claim = _to_claim(entry)
        if claim is None:
            _logger.debug("claim_dropped", entry=str(entry)[:80])
            continue
        claims.append(claim)
    return claims


def _unwrap_claims(raw: Any) -> list:
    if isinstance(raw, dict) and "claims" in raw:
        return _claims_field(raw["claims"])

    if isinstance(raw, dict) and isinstance(raw.get("data"), dict) and "claims" in raw["data"]:
        return _claims_field(raw["data"]["claims"])

    if isinstance(raw, list):
        return raw

    _logger.warning("unrecognised_claims_shape", payload_type=type(raw).__name__)
    return []


def _claims_field(value: Any) -> list:
    if isinstance(value, list):
        return value

    if isinstance(value, str):
        _logger.warning("stringified_claims_array")
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError as e:
            raise ResponseShapeError(
                "Field 'claims' is a string that is not valid JSON"
            ) from e
        if not isinstance(decoded, list):
            raise ResponseShapeError(
                f"Field 'claims' decoded to {type(decoded).__name__}, expected a list"
            )
        return decoded

    if value is None:
        return []

    raise ResponseShapeError(
        f"Field 'claims' has type {type(value).__name__}, expected a list"
    )


def _to_claim(entry: Any) -> Optional[Claim]:
    if not isinstance(entry, dict):
        return None
    text = entry.get("claim")
    if not isinstance(text, str) or not text.strip():
        return None
    original = entry.get("original_text")
    if not isinstance(original, str) or not original.strip():
        original = text
    return Claim(claim=text, original_text=original)
