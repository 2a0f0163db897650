"""Adjudication adapter over the two LLM backends.

Verdict envelopes are tried in priority order:

1. {"claims": {...}}  (a list here is taken as its first element)
2. {"data": {...}}
3. the object itself

Missing fields fall back to defaults: assessment "Unknown", summary "".
The verdict always carries the input claim, whatever claim text the model
echoes back. ``confidence_score`` is coerced to a number in [0, 100];
anything unparseable becomes 0.

After parsing, the time-sensitivity rule runs identically for both backends.

``adjudicate_batch`` judges up to MAX_BATCH_CLAIMS claims that already carry
their sources. Entries are processed in order and fail independently.
"""

import math
from typing import Any, Optional, Sequence, Union

import structlog
from pydantic import ValidationError

from hallucination_detector.verification.backends import (
    AdjudicationBackend,
    call_with_timeout,
)
from hallucination_detector.verification.errors import (
    DetectionError,
    InvalidInput,
    UpstreamError,
    UpstreamStageError,
)
from hallucination_detector.verification.schemas import (
    Assessment,
    BatchAdjudicationResult,
    BatchClaimInput,
    BatchItemError,
    BatchVerdict,
    Evidence,
    ProviderCredentials,
    ProviderPair,
    Verdict,
)
from hallucination_detector.verification.time_sensitivity import TimeSensitivityRule

ADJUDICATION_CREDENTIALS = {
    ProviderPair.INTERNATIONAL: "anthropic_api_key",
    ProviderPair.DOMESTIC: "deepseek_api_key",
}

MAX_BATCH_CLAIMS = 10


class Adjudicator:
    """Judge one claim against its evidence through the pair's LLM backend."""

    def __init__(
        self,
        backends: dict[ProviderPair, AdjudicationBackend],
        time_rule: Optional[TimeSensitivityRule] = None,
        timeout: Optional[float] = 90.0,
    ) -> None:
        """Initialize Adjudicator.

        Args:
            backends: Adjudication backend per provider pair.
            time_rule: Time-sensitivity rule applied to every verdict.
            timeout: Seconds allowed for each backend call (None disables).
        """
        self._backends = backends
        self.time_rule = time_rule or TimeSensitivityRule()
        self.timeout = timeout
        self._logger = structlog.get_logger().bind(component="Adjudicator")

    async def adjudicate(
        self,
        claim: str,
        original_text: str,
        evidence: list[Evidence],
        provider: ProviderPair,
        credentials: ProviderCredentials,
    ) -> Verdict:
        """Produce a verdict for ``claim`` given non-empty ``evidence``.

        Raises:
            InvalidInput: Empty claim, empty original text or no evidence.
            AuthError, RateLimited, QuotaExceeded, UpstreamError: Backend failure.
        """
        if not isinstance(claim, str) or not claim.strip():
            raise InvalidInput("Claim must be a non-empty string")
        if not isinstance(original_text, str) or not original_text.strip():
            raise InvalidInput("Original text must be a non-empty string")
        if not evidence:
            raise InvalidInput("Adjudication requires at least one evidence item")

        backend = self._backends.get(provider)
        if backend is None:
            raise UpstreamError(f"No adjudication backend configured for {provider.value}")

        api_key = getattr(credentials, ADJUDICATION_CREDENTIALS[provider])
        raw = await call_with_timeout(
            backend.adjudicate(claim, original_text, evidence, api_key),
            self.timeout,
            provider=provider.value,
        )

        verdict = parse_verdict_payload(raw, claim)
        verdict = self.time_rule.apply(verdict, claim)

        self._logger.info(
            "claim_adjudicated",
            provider=provider.value,
            assessment=verdict.assessment,
            confidence=verdict.confidence_score,
            evidence_count=len(evidence),
            time_sensitive=verdict.time_sensitivity_note is not None,
        )
        return verdict

    async def adjudicate_batch(
        self,
        items: Sequence[Union[BatchClaimInput, dict[str, Any]]],
        provider: ProviderPair,
        credentials: ProviderCredentials,
    ) -> BatchAdjudicationResult:
        """Adjudicate several claims, each against its own sources.

        Entries are judged sequentially. A malformed entry or a failed
        backend call is reported in ``errors`` under the entry's index and
        never stops the remaining entries.

        Raises:
            InvalidInput: ``items`` is empty or longer than MAX_BATCH_CLAIMS.
        """
        if not items:
            raise InvalidInput("Batch must contain at least one claim")
        if len(items) > MAX_BATCH_CLAIMS:
            raise InvalidInput(
                f"Batch allows at most {MAX_BATCH_CLAIMS} claims, got {len(items)}"
            )

        results: list[BatchVerdict] = []
        errors: list[BatchItemError] = []

        for index, item in enumerate(items):
            try:
                entry = (
                    item
                    if isinstance(item, BatchClaimInput)
                    else BatchClaimInput.model_validate(item)
                )
            except ValidationError:
                errors.append(
                    BatchItemError(
                        index=index,
                        error="Each claim must include claim, original_text and sources",
                        error_kind="invalid_input",
                    )
                )
                continue

            try:
                verdict = await self.adjudicate(
                    entry.claim, entry.original_text, entry.sources, provider, credentials
                )
            except Exception as e:
                self._logger.warning(
                    "batch_claim_failed",
                    index=index,
                    provider=provider.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                errors.append(
                    BatchItemError(index=index, error=str(e), error_kind=_error_kind(e))
                )
                continue

            results.append(BatchVerdict(index=index, **verdict.model_dump()))

        self._logger.info(
            "batch_adjudicated",
            provider=provider.value,
            total=len(items),
            successful=len(results),
            failed=len(errors),
        )
        return BatchAdjudicationResult(
            results=results,
            errors=errors,
            total_processed=len(items),
            successful=len(results),
            failed=len(errors),
        )


def parse_verdict_payload(raw: Any, claim: str) -> Verdict:
    """Normalise a raw adjudication payload into a Verdict for ``claim``."""
    data = _unwrap_verdict(raw)

    assessment = data.get("assessment")
    if not isinstance(assessment, str) or not assessment.strip():
        assessment = Assessment.UNKNOWN.value

    summary = data.get("summary")
    if not isinstance(summary, str):
        summary = ""

    return Verdict(
        claim=claim,
        assessment=assessment.strip(),
        confidence_score=coerce_confidence(data.get("confidence_score")),
        summary=summary,
        fixed_original_text=_optional_text(data.get("fixed_original_text")),
        time_sensitivity_note=_optional_text(data.get("time_sensitivity_note")),
    )


def coerce_confidence(value: Any) -> float:
    """Coerce a confidence value to a float clamped to [0, 100]."""
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, str):
        value = value.strip().rstrip("%")
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    return max(0.0, min(100.0, number))


def _unwrap_verdict(raw: Any) -> dict:
    if not isinstance(raw, dict):
        raise UpstreamError(
            f"Adjudication payload has type {type(raw).__name__}, expected an object"
        )

    if "claims" in raw:
        inner = raw["claims"]
        if isinstance(inner, list):
            inner = inner[0] if inner else None
        if isinstance(inner, dict):
            return inner
        raise UpstreamError("Field 'claims' does not hold a verdict object")

    if isinstance(raw.get("data"), dict):
        return raw["data"]

    return raw


def _optional_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _error_kind(error: Exception) -> str:
    if isinstance(error, UpstreamStageError):
        return error.kind
    if isinstance(error, InvalidInput):
        return "invalid_input"
    if isinstance(error, DetectionError):
        return type(error).__name__
    return UpstreamError.kind
