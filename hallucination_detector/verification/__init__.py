"""Verification core: claim extraction, evidence retrieval and adjudication.

Core workflow:
1. Provider policy fixes the backend pair for the run (international or domestic)
2. ClaimExtractor turns input text into canonical claims
3. EvidenceProvider retrieves sources for each claim
4. Adjudicator judges each claim against its sources
5. aggregate() summarises the verdicts

VerificationOrchestrator sequences these steps and emits progress events.
Upstream payloads are normalised by the adapters; nothing past them sees a
raw provider response.
"""

from hallucination_detector.verification.adjudicator import Adjudicator
from hallucination_detector.verification.aggregator import aggregate
from hallucination_detector.verification.claim_extractor import ClaimExtractor
from hallucination_detector.verification.errors import (
    AuthError,
    DetectionError,
    ExtractionFailed,
    InvalidInput,
    MissingCredentials,
    QuotaExceeded,
    RateLimited,
    ResponseShapeError,
    UpstreamError,
    UpstreamStageError,
    UpstreamTimeout,
)
from hallucination_detector.verification.events import ProgressEvent, ProgressEventName
from hallucination_detector.verification.evidence_provider import EvidenceProvider
from hallucination_detector.verification.orchestrator import VerificationOrchestrator
from hallucination_detector.verification.provider_policy import (
    ProviderSelection,
    select_providers,
)
from hallucination_detector.verification.schemas import (
    Assessment,
    BatchAdjudicationResult,
    BatchClaimInput,
    Claim,
    ClaimVerification,
    DetectionConfig,
    DetectionResult,
    DetectionSummary,
    Evidence,
    ProviderCredentials,
    ProviderPair,
    Verdict,
)
from hallucination_detector.verification.time_sensitivity import TimeSensitivityRule

__all__ = [
    "Adjudicator",
    "ClaimExtractor",
    "EvidenceProvider",
    "VerificationOrchestrator",
    "TimeSensitivityRule",
    "aggregate",
    "select_providers",
    "ProviderSelection",
    "ProgressEvent",
    "ProgressEventName",
    "Assessment",
    "Claim",
    "ClaimVerification",
    "BatchAdjudicationResult",
    "BatchClaimInput",
    "DetectionConfig",
    "DetectionResult",
    "DetectionSummary",
    "Evidence",
    "ProviderCredentials",
    "ProviderPair",
    "Verdict",
    "DetectionError",
    "InvalidInput",
    "MissingCredentials",
    "ExtractionFailed",
    "UpstreamStageError",
    "AuthError",
    "RateLimited",
    "QuotaExceeded",
    "UpstreamError",
    "UpstreamTimeout",
    "ResponseShapeError",
]
