"""Verification orchestrator driving one end-to-end detection run.

Run flow:
1. Validate the text and resolve the provider pair (no events, no network)
2. Extract claims once (failure is fatal: ExtractionFailed)
3. For each claim, strictly in order:
   a. Search evidence (failure counts as zero evidence)
   b. Zero evidence -> synthetic "Insufficient Information", no adjudication
   c. Otherwise adjudicate the first ``max_search_results`` evidence items
      (failure -> synthetic "Error" verdict, the run continues)
4. Aggregate verdicts into the summary

Backend exceptions outside the DetectionError taxonomy are wrapped as
UpstreamError before the per-claim fallbacks apply.

Progress bands: start 0, extracting 10, extracted 25, claim i starts at
25 + floor(70 * i / n), completed 100.

Usage:
    from hallucination_detector.verification import VerificationOrchestrator

    orchestrator = VerificationOrchestrator(extractor, evidence_provider, adjudicator)
    result = await orchestrator.run_detection(text, config, on_progress=print)
"""

from typing import Any, Optional

from hallucination_detector.utils.logging import get_structured_logger, new_run_id
from hallucination_detector.verification.adjudicator import Adjudicator
from hallucination_detector.verification.aggregator import aggregate
from hallucination_detector.verification.claim_extractor import ClaimExtractor
from hallucination_detector.verification.errors import (
    DetectionError,
    ExtractionFailed,
    InvalidInput,
    UpstreamError,
    UpstreamStageError,
)
from hallucination_detector.verification.events import (
    PROGRESS_CLAIMS_EXTRACTED,
    PROGRESS_COMPLETE,
    PROGRESS_EXTRACTION_START,
    ProgressEmitter,
    ProgressEventName,
    ProgressSink,
    claim_progress,
)
from hallucination_detector.verification.evidence_provider import EvidenceProvider
from hallucination_detector.verification.provider_policy import (
    ProviderSelection,
    select_providers,
)
from hallucination_detector.verification.schemas import (
    Assessment,
    Claim,
    ClaimProcessLog,
    ClaimVerification,
    DetectionConfig,
    DetectionResult,
    Evidence,
    ProviderPair,
    TransparencyReport,
    Verdict,
)

SEARCH_ENGINE_LABELS = {
    "exa": "Exa.ai",
    "bocha": "Bocha Web Search",
}

DEFAULT_AI_MODELS = {
    ProviderPair.INTERNATIONAL: "claude-3-5-sonnet-20241022",
    ProviderPair.DOMESTIC: "deepseek-chat",
}

NO_SOURCES_SUMMARY = "No relevant sources were found to verify this claim."


class VerificationOrchestrator:
    """Sequences extraction, evidence retrieval and adjudication for one text."""

    def __init__(
        self,
        claim_extractor: ClaimExtractor,
        evidence_provider: EvidenceProvider,
        adjudicator: Adjudicator,
        ai_models: Optional[dict[ProviderPair, str]] = None,
    ) -> None:
        """Initialize VerificationOrchestrator.

        Args:
            claim_extractor: Claim extraction adapter.
            evidence_provider: Evidence retrieval adapter.
            adjudicator: Adjudication adapter.
            ai_models: Adjudication model label per pair, reported in events
                and the transparency block.
        """
        self.claim_extractor = claim_extractor
        self.evidence_provider = evidence_provider
        self.adjudicator = adjudicator
        self.ai_models = {**DEFAULT_AI_MODELS, **(ai_models or {})}
        self._logger = get_structured_logger(
            __name__, component="VerificationOrchestrator"
        )

    async def run_detection(
        self,
        text: str,
        config: Optional[DetectionConfig] = None,
        on_progress: Optional[ProgressSink] = None,
    ) -> DetectionResult:
        """Run the full detection pipeline over ``text``.

        Args:
            text: Input text to check.
            config: Per-run configuration (defaults when omitted).
            on_progress: Optional sink receiving ``(event_name, payload)``.

        Returns:
            DetectionResult with one verification per extracted claim.

        Raises:
            InvalidInput: Empty text or malformed credentials in strict mode.
            MissingCredentials: The selected pair lacks a credential.
            ExtractionFailed: Claim extraction failed.
        """
        if not isinstance(text, str) or not text.strip():
            raise InvalidInput("Text must be a non-empty string")

        config = config or DetectionConfig()
        selection = select_providers(config)

        run = _DetectionRun(self, text, config, selection, on_progress)
        return await run.execute()


class _DetectionRun:
    """State of a single run. Not shared between runs."""

    def __init__(
        self,
        orchestrator: VerificationOrchestrator,
        text: str,
        config: DetectionConfig,
        selection: ProviderSelection,
        on_progress: Optional[ProgressSink],
    ) -> None:
        self.orchestrator = orchestrator
        self.text = text
        self.config = config
        self.selection = selection
        self.pair = selection.pair
        self.run_id = new_run_id()
        self.emitter = ProgressEmitter(on_progress, run_id=self.run_id)
        self.search_engine = SEARCH_ENGINE_LABELS.get(
            selection.search_provider, selection.search_provider
        )
        self.ai_model = orchestrator.ai_models[self.pair]
        self.api_calls = 0
        self.completed_steps = 0
        self.logs: list[ClaimProcessLog] = []
        self._logger = orchestrator._logger.bind(run_id=self.run_id)

    async def execute(self) -> DetectionResult:
        self._logger.info(
            "detection_started",
            provider_pair=self.pair.value,
            text_length=len(self.text),
        )
        await self.emitter.emit(
            ProgressEventName.START,
            "Starting hallucination detection",
            0,
            input_length=len(self.text),
            provider_pair=self.pair.value,
        )

        claims = await self._extract()

        if not claims:
            return await self._finish_without_claims()

        verifications = []
        for index, claim in enumerate(claims):
            verifications.append(await self._verify_claim(index, claim, len(claims)))

        summary = aggregate(verifications, self.config.confidence_threshold)
        self.completed_steps += 1

        await self.emitter.emit(
            ProgressEventName.COMPLETED,
            "Hallucination detection completed",
            PROGRESS_COMPLETE,
            summary=summary.model_dump(),
        )
        self._logger.info(
            "detection_completed",
            claims=len(claims),
            accuracy_rate=summary.accuracy_rate,
            api_calls=self.api_calls,
        )

        return DetectionResult(
            success=True,
            provider_pair=self.pair,
            claims=claims,
            verifications=verifications,
            summary=summary,
            transparency=self._report(total_steps=len(claims) * 3 + 2),
            message=f"Verified {len(claims)} claims",
        )

    async def _extract(self) -> list[Claim]:
        await self.emitter.emit(
            ProgressEventName.EXTRACTING_CLAIMS,
            "Analysing text and extracting verifiable claims",
            PROGRESS_EXTRACTION_START,
        )
        self.api_calls += 1
        try:
            claims = await self.orchestrator.claim_extractor.extract_claims(
                self.text, self.pair, self.config.credentials
            )
        except Exception as e:
            self._logger.error(
                "extraction_failed",
                provider=self.selection.extraction_provider,
                error=str(e),
                error_type=type(e).__name__,
            )
            await self.emitter.emit(
                ProgressEventName.ERROR,
                f"Hallucination detection failed: {e}",
                error=str(e),
                error_type=type(e).__name__,
                stage=ExtractionFailed.stage,
            )
            raise ExtractionFailed(f"Claim extraction failed: {e}", cause=e) from e

        self.completed_steps += 1
        await self.emitter.emit(
            ProgressEventName.CLAIMS_EXTRACTED,
            f"Extracted {len(claims)} claims",
            PROGRESS_CLAIMS_EXTRACTED,
            claims=[claim.model_dump() for claim in claims],
            claims_count=len(claims),
        )
        return claims

    async def _finish_without_claims(self) -> DetectionResult:
        summary = aggregate([], self.config.confidence_threshold)
        self.completed_steps += 1
        await self.emitter.emit(
            ProgressEventName.COMPLETED,
            "Detection completed: no verifiable claims found",
            PROGRESS_COMPLETE,
            summary=summary.model_dump(),
        )
        self._logger.info("detection_completed", claims=0, api_calls=self.api_calls)
        return DetectionResult(
            success=True,
            provider_pair=self.pair,
            summary=summary,
            transparency=self._report(total_steps=2),
            message="No verifiable claims found",
        )

    async def _verify_claim(self, index: int, claim: Claim, total: int) -> ClaimVerification:
        position = index + 1
        await self.emitter.emit(
            ProgressEventName.VERIFYING_CLAIM,
            f"Verifying claim {position}/{total}",
            claim_progress(index, total),
            claim=claim.claim,
            current_claim=position,
            total_claims=total,
        )

        log = ClaimProcessLog(claim_index=index, claim=claim.claim)
        self.logs.append(log)

        evidence = await self._search(position, claim, log)
        if not evidence:
            await self.emitter.emit(
                ProgressEventName.SOURCES_INSUFFICIENT,
                f"Claim {position}: not enough sources found",
                claim=claim.claim,
            )
            self.completed_steps += 1
            log.close()
            verdict = Verdict(
                claim=claim.claim,
                assessment=Assessment.INSUFFICIENT_INFORMATION,
                confidence_score=0,
                summary=NO_SOURCES_SUMMARY,
            )
            return self._verification(claim, verdict, [], log)

        used = evidence[: self.config.max_search_results]
        await self.emitter.emit(
            ProgressEventName.ANALYZING_CLAIM,
            f"Analysing claim {position} with {self.ai_model}",
            claim=claim.claim,
            ai_model=self.ai_model,
            sources_used=len(used),
        )
        log.add_step("ai_analysis", "started", model=self.ai_model, sources_used=len(used))

        self.api_calls += 1
        try:
            verdict = await self.orchestrator.adjudicator.adjudicate(
                claim.claim,
                claim.original_text,
                used,
                self.pair,
                self.config.credentials,
            )
        except Exception as e:
            return await self._claim_error(position, claim, log, _as_stage_error(e))

        log.add_step(
            "ai_analysis",
            "completed",
            result={
                "assessment": verdict.assessment,
                "confidence": verdict.confidence_score,
                "reasoning": verdict.summary,
            },
        )
        self.completed_steps += 2
        log.close()

        await self.emitter.emit(
            ProgressEventName.CLAIM_VERIFIED,
            f"Claim {position} verified: {verdict.assessment} "
            f"({verdict.confidence_score:g}%)",
            claim=claim.claim,
            assessment=verdict.assessment,
            confidence=verdict.confidence_score,
            summary=verdict.summary,
            time_sensitivity_note=verdict.time_sensitivity_note,
        )
        return self._verification(claim, verdict, used, log)

    async def _search(
        self, position: int, claim: Claim, log: ClaimProcessLog
    ) -> list[Evidence]:
        await self.emitter.emit(
            ProgressEventName.SEARCHING_SOURCES,
            f"Searching sources for claim {position}",
            claim=claim.claim,
            search_engine=self.search_engine,
        )
        log.add_step("search_sources", "started")

        self.api_calls += 1
        try:
            evidence = await self.orchestrator.evidence_provider.fetch_evidence(
                claim.claim,
                self.pair,
                self.config.credentials,
                limit=self.config.search_result_limit,
            )
        except Exception as e:
            error = _as_stage_error(e)
            self._logger.warning(
                "search_failed",
                claim_index=log.claim_index,
                provider=self.selection.search_provider,
                error=str(error),
                error_kind=_error_kind(error),
            )
            log.add_step(
                "search_sources", "failed", error=str(error), error_kind=_error_kind(error)
            )
            self.completed_steps += 1
            return []

        used = evidence[: self.config.max_search_results]
        log.add_step(
            "search_sources",
            "completed",
            sources_found=len(evidence),
            sources=[_source_digest(item) for item in used],
        )
        self.completed_steps += 1

        await self.emitter.emit(
            ProgressEventName.SOURCES_FOUND,
            f"Found {len(evidence)} relevant sources",
            claim=claim.claim,
            sources_count=len(evidence),
            sources=[item.model_dump(by_alias=True) for item in used],
        )
        return evidence

    async def _claim_error(
        self,
        position: int,
        claim: Claim,
        log: ClaimProcessLog,
        error: DetectionError,
    ) -> ClaimVerification:
        self._logger.warning(
            "adjudication_failed",
            claim_index=log.claim_index,
            provider=self.selection.adjudication_provider,
            error=str(error),
            error_kind=_error_kind(error),
        )
        log.add_step(
            "verification_error", "failed", error=str(error), error_kind=_error_kind(error)
        )
        self.completed_steps += 1
        log.close()

        await self.emitter.emit(
            ProgressEventName.CLAIM_ERROR,
            f"Claim {position} verification failed: {error}",
            claim=claim.claim,
            error=str(error),
            error_kind=_error_kind(error),
        )
        verdict = Verdict(
            claim=claim.claim,
            assessment=Assessment.ERROR,
            confidence_score=0,
            summary=f"Verification failed: {error}",
        )
        return self._verification(claim, verdict, [], log)

    def _verification(
        self,
        claim: Claim,
        verdict: Verdict,
        sources: list[Evidence],
        log: ClaimProcessLog,
    ) -> ClaimVerification:
        return ClaimVerification(
            **verdict.model_dump(),
            original_text=claim.original_text,
            sources=sources if self.config.include_sources else [],
            transparency=log if self.config.include_transparency else None,
        )

    def _report(self, total_steps: int) -> Optional[TransparencyReport]:
        if not self.config.include_transparency:
            return None
        return TransparencyReport(
            total_steps=total_steps,
            completed_steps=self.completed_steps,
            detailed_log=self.logs,
            search_engine=self.search_engine,
            ai_model=self.ai_model,
            api_calls=self.api_calls,
        )


def _as_stage_error(error: Exception) -> DetectionError:
    """Wrap an unclassified backend exception as an UpstreamError."""
    if isinstance(error, DetectionError):
        return error
    wrapped = UpstreamError(f"{type(error).__name__}: {error}")
    wrapped.__cause__ = error
    return wrapped


def _error_kind(error: DetectionError) -> str:
    if isinstance(error, UpstreamStageError):
        return error.kind
    return type(error).__name__


def _source_digest(evidence: Evidence) -> dict[str, Any]:
    return {
        "title": evidence.title,
        "url": evidence.url,
        "score": evidence.score,
        "snippet": evidence.snippet(),
    }
