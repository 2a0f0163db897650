"""Canonical records for the detection pipeline.

Every upstream response is normalised into these shapes by the adapters
before it reaches the orchestrator:

- Claim: one verifiable assertion extracted from the input text
- Evidence: one retrieved document/snippet for a claim
- Verdict: adjudication outcome for one claim
- ClaimVerification: Verdict plus the per-claim payload returned to callers
- TransparencyStep / ClaimProcessLog: per-claim audit trail
- DetectionSummary / DetectionResult: the aggregate of one run
- BatchClaimInput / BatchAdjudicationResult: batch adjudication of
  claims that already carry their sources

DetectionConfig and ProviderCredentials are the per-run inputs.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ProviderPair(str, Enum):
    """Backend bundle used consistently for extraction, search and adjudication.

    INTERNATIONAL: Anthropic for extraction/adjudication, Exa for search.
    DOMESTIC: DeepSeek for extraction/adjudication, Bocha for search.
    """

    INTERNATIONAL = "international"
    DOMESTIC = "domestic"


class Assessment(str, Enum):
    """Assessment values a verdict may carry.

    TRUE, FALSE, PARTIALLY_TRUE and INSUFFICIENT_INFORMATION come from the
    adjudication model. UNKNOWN and ERROR are synthetic values injected by
    the orchestrator.
    """

    TRUE = "True"
    FALSE = "False"
    PARTIALLY_TRUE = "Partially True"
    INSUFFICIENT_INFORMATION = "Insufficient Information"
    UNKNOWN = "Unknown"
    ERROR = "Error"


# Assessments counted by name in the summary; everything else is "unknown".
CANONICAL_ASSESSMENTS = (
    Assessment.TRUE,
    Assessment.FALSE,
    Assessment.PARTIALLY_TRUE,
    Assessment.INSUFFICIENT_INFORMATION,
)


class Claim(BaseModel):
    """A single verifiable claim and the source fragment containing it."""

    claim: str = Field(..., min_length=1, description="Verifiable claim text")
    original_text: str = Field(
        ..., description="Fragment of the input text containing the claim"
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("claim")
    @classmethod
    def claim_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("claim must not be blank")
        return value


class Evidence(BaseModel):
    """A retrieved source for one claim, in the canonical shape."""

    title: str = Field(default="Untitled", description="Source title")
    url: str = Field(..., description="Source URL")
    text: Optional[str] = Field(default=None, description="Page text or snippet")
    published_date: Optional[str] = Field(
        default=None,
        alias="publishedDate",
        description="Publication date as reported by the search backend",
    )
    score: Optional[float] = Field(default=None, description="Backend relevance score")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def snippet(self, length: int = 150) -> str:
        """Shortened text used in transparency records."""
        if not self.text:
            return ""
        if len(self.text) <= length:
            return self.text
        return self.text[:length] + "..."


class Verdict(BaseModel):
    """Adjudication outcome for one claim.

    ``assessment`` keeps whatever string the model produced. Aggregation goes
    through ``canonical_assessment`` which maps unrecognised values to UNKNOWN.
    """

    claim: str
    assessment: str = Field(default=Assessment.UNKNOWN.value)
    confidence_score: float = Field(default=0.0, ge=0.0, le=100.0)
    summary: str = ""
    fixed_original_text: Optional[str] = None
    time_sensitivity_note: Optional[str] = None

    @field_validator("assessment", mode="before")
    @classmethod
    def assessment_as_string(cls, value: Any) -> str:
        if isinstance(value, Assessment):
            return value.value
        return value

    @property
    def canonical_assessment(self) -> Assessment:
        for assessment in CANONICAL_ASSESSMENTS:
            if self.assessment == assessment.value:
                return assessment
        return Assessment.UNKNOWN


TransparencyStepName = Literal["search_sources", "ai_analysis", "verification_error"]
TransparencyStepStatus = Literal["started", "completed", "failed"]


class TransparencyStep(BaseModel):
    """One step record in a claim's audit trail.

    Step-specific payload (sources_found, model, result, error...) is kept as
    extra fields so each step only carries what it produced.
    """

    step: TransparencyStepName
    status: TransparencyStepStatus
    timestamp: datetime = Field(default_factory=utc_now)

    model_config = ConfigDict(extra="allow")


class ClaimProcessLog(BaseModel):
    """Append-only audit trail for one claim, closed with ``end_time``."""

    claim_index: int = Field(..., ge=0)
    claim: str
    start_time: datetime = Field(default_factory=utc_now)
    end_time: Optional[datetime] = None
    steps: list[TransparencyStep] = Field(default_factory=list)

    def add_step(
        self,
        step: TransparencyStepName,
        status: TransparencyStepStatus,
        **payload: Any,
    ) -> TransparencyStep:
        if self.end_time is not None:
            raise ValueError(f"Process log for claim {self.claim_index} is closed")
        record = TransparencyStep(step=step, status=status, **payload)
        self.steps.append(record)
        return record

    def close(self) -> None:
        if self.end_time is None:
            self.end_time = utc_now()

    @property
    def closed(self) -> bool:
        return self.end_time is not None


class ClaimVerification(Verdict):
    """Verdict enriched with the per-claim payload returned to the caller."""

    original_text: str
    sources: list[Evidence] = Field(default_factory=list)
    transparency: Optional[ClaimProcessLog] = None


class TransparencyReport(BaseModel):
    """Run-level transparency block."""

    total_steps: int
    completed_steps: int
    processing_time: datetime = Field(default_factory=utc_now)
    detailed_log: list[ClaimProcessLog] = Field(default_factory=list)
    search_engine: str
    ai_model: str
    api_calls: int = 0


class DetectionSummary(BaseModel):
    """Summary statistics over the verdicts of one run."""

    total_claims: int = 0
    true_claims: int = 0
    false_claims: int = 0
    partially_true_claims: int = 0
    insufficient_claims: int = 0
    unknown_claims: int = 0
    accuracy_rate: float = 0.0
    high_confidence_claims: int = 0


class ProviderCredentials(BaseModel):
    """Per-provider API keys. Read-only input to a run."""

    anthropic_api_key: Optional[str] = Field(default=None, repr=False)
    exa_api_key: Optional[str] = Field(default=None, repr=False)
    deepseek_api_key: Optional[str] = Field(default=None, repr=False)
    bocha_api_key: Optional[str] = Field(default=None, repr=False)

    model_config = ConfigDict(frozen=True)

    def has(self, field_name: str) -> bool:
        value = getattr(self, field_name, None)
        return bool(value and value.strip())


class DetectionConfig(BaseModel):
    """Optional per-run configuration.

    ``include_sources`` and ``include_transparency`` only control the size of
    the returned payload; they never change what is computed.
    """

    max_search_results: int = Field(
        default=3, ge=1, description="Evidence items passed to adjudication"
    )
    confidence_threshold: float = Field(
        default=80, ge=0, le=100, description="High-confidence cut-off for the summary"
    )
    include_sources: bool = True
    include_transparency: bool = True
    use_domestic_providers: bool = Field(
        default=False, description="Use the domestic provider pair for every stage"
    )
    search_result_limit: int = Field(
        default=10, ge=1, description="Results requested from the search backend"
    )
    strict_credentials: bool = Field(
        default=False, description="Also validate credential formats before the run"
    )
    credentials: ProviderCredentials = Field(default_factory=ProviderCredentials)


class DetectionResult(BaseModel):
    """Terminal aggregate of one detection run."""

    success: bool = True
    provider_pair: ProviderPair
    claims: list[Claim] = Field(default_factory=list)
    verifications: list[ClaimVerification] = Field(default_factory=list)
    summary: DetectionSummary = Field(default_factory=DetectionSummary)
    transparency: Optional[TransparencyReport] = None
    message: str = ""


class BatchClaimInput(BaseModel):
    """One entry of a batch adjudication request: a claim and its own sources."""

    claim: str = Field(..., min_length=1)
    original_text: str = Field(..., min_length=1)
    sources: list[Evidence] = Field(
        ..., min_length=1, validation_alias=AliasChoices("sources", "exasources")
    )

    @field_validator("claim", "original_text")
    @classmethod
    def text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class BatchVerdict(Verdict):
    """Verdict of one batch entry, keyed by its position in the request."""

    index: int = Field(..., ge=0)


class BatchItemError(BaseModel):
    """Failure of one batch entry; the other entries are unaffected."""

    index: int = Field(..., ge=0)
    error: str
    error_kind: str


class BatchAdjudicationResult(BaseModel):
    """Outcome of a batch adjudication request."""

    results: list[BatchVerdict] = Field(default_factory=list)
    errors: list[BatchItemError] = Field(default_factory=list)
    total_processed: int = 0
    successful: int = 0
    failed: int = 0
