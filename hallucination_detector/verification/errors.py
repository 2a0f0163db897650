"""Error taxonomy for the detection pipeline.

Two families of errors exist:

- Run-level errors (InvalidInput, MissingCredentials, ExtractionFailed) escape
  ``run_detection`` and abort the run.
- Stage errors (UpstreamStageError and subclasses) are raised by the upstream
  clients and adapters. The orchestrator converts them into synthetic
  verdicts for search and adjudication; only extraction turns them fatal.

Usage:
    from hallucination_detector.verification.errors import AuthError, classify_status

    raise classify_status(401, "invalid x-api-key", provider="anthropic")
"""

from typing import Optional


class DetectionError(Exception):
    """Base class for every error raised by the detection pipeline."""


class InvalidInput(DetectionError):
    """Caller-supplied arguments are malformed (empty text, wrong types)."""


class MissingCredentials(DetectionError):
    """A credential required by the selected provider pair is absent."""

    def __init__(self, missing: list[str], provider_pair: str) -> None:
        self.missing = list(missing)
        self.provider_pair = provider_pair
        super().__init__(
            f"Missing credentials for {provider_pair} providers: "
            f"{', '.join(self.missing)}"
        )


class ExtractionFailed(DetectionError):
    """Claim extraction could not produce a valid response. Fatal to the run."""

    stage = "extraction"

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        self.cause = cause
        super().__init__(message)


class UpstreamStageError(DetectionError):
    """Failure reported by (or while talking to) an upstream service.

    Attributes:
        provider: Upstream name (anthropic, deepseek, exa, bocha).
        status_code: HTTP status when one was received.
    """

    kind = "upstream_error"

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        self.provider = provider
        self.status_code = status_code
        super().__init__(message)


class AuthError(UpstreamStageError):
    """Upstream rejected the credential."""

    kind = "auth_error"


class RateLimited(UpstreamStageError):
    """Upstream throttled the request."""

    kind = "rate_limited"


class QuotaExceeded(UpstreamStageError):
    """Upstream account has no remaining quota."""

    kind = "quota_exceeded"


class UpstreamError(UpstreamStageError):
    """Any other upstream, network or parse failure."""

    kind = "upstream_error"


class UpstreamTimeout(UpstreamError):
    """Upstream call exceeded its stage timeout."""

    kind = "timeout"


class ResponseShapeError(UpstreamError):
    """Upstream payload does not match any known response schema."""

    kind = "response_shape"


def classify_status(
    status_code: int,
    body: str = "",
    provider: Optional[str] = None,
) -> UpstreamStageError:
    """Map an HTTP status and error body to the matching stage error.

    Specific status codes decide first. Body markers are consulted only for
    other 4xx statuses, because several providers report credential and quota
    problems with a 400. Server errors always map to UpstreamError.
    """
    lowered = (body or "").lower()
    message = f"{provider or 'upstream'} returned HTTP {status_code}: {body[:200]}"

    if status_code in (401, 403):
        error_class = AuthError
    elif status_code == 402:
        error_class = QuotaExceeded
    elif status_code == 429:
        error_class = RateLimited
    elif status_code >= 500:
        error_class = UpstreamError
    elif "api key" in lowered or "unauthorized" in lowered:
        error_class = AuthError
    elif "insufficient_quota" in lowered:
        error_class = QuotaExceeded
    elif "rate limit" in lowered:
        error_class = RateLimited
    else:
        error_class = UpstreamError
    return error_class(message, provider=provider, status_code=status_code)
