"""Detection pipeline: settings -> upstream clients -> orchestrator.

The verification core never reads settings or builds HTTP clients itself.
This module does both and hands the orchestrator ready adapters. All four
upstream clients share one httpx connection pool owned by the pipeline.

Usage:
    from hallucination_detector.pipeline import DetectionPipeline

    async with DetectionPipeline() as pipeline:
        result = await pipeline.run("The Eiffel Tower was completed in 1889.")

    # Or one-shot:
    result = await run_detection(text, on_progress=print)
"""

from typing import Any, Optional, Sequence, Union

import httpx

from hallucination_detector.config.settings import Settings, get_settings
from hallucination_detector.upstream import (
    AnthropicClient,
    BochaClient,
    DeepSeekClient,
    ExaClient,
)
from hallucination_detector.utils.logging import get_structured_logger
from hallucination_detector.verification.adjudicator import (
    ADJUDICATION_CREDENTIALS,
    Adjudicator,
)
from hallucination_detector.verification.claim_extractor import ClaimExtractor
from hallucination_detector.verification.errors import MissingCredentials
from hallucination_detector.verification.events import ProgressSink
from hallucination_detector.verification.evidence_provider import EvidenceProvider
from hallucination_detector.verification.orchestrator import VerificationOrchestrator
from hallucination_detector.verification.schemas import (
    BatchAdjudicationResult,
    BatchClaimInput,
    DetectionConfig,
    DetectionResult,
    ProviderPair,
)
from hallucination_detector.verification.time_sensitivity import TimeSensitivityRule


class DetectionPipeline:
    """Builds and owns everything one process needs to run detections.

    Runs are independent: the pipeline holds no per-run state, so several
    ``run`` calls may be awaited concurrently.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialize DetectionPipeline.

        Args:
            settings: Application settings. Loaded from the environment if None.
            http_client: Shared HTTP client. Created and owned here if None.
        """
        self.settings = settings or get_settings()
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(
                max(
                    self.settings.extraction_timeout,
                    self.settings.search_timeout,
                    self.settings.adjudication_timeout,
                )
            ),
            limits=httpx.Limits(max_connections=20),
        )
        self.orchestrator = self._build_orchestrator()
        self._logger = get_structured_logger(__name__, component="DetectionPipeline")

    def _build_orchestrator(self) -> VerificationOrchestrator:
        s = self.settings

        anthropic = AnthropicClient(
            base_url=s.anthropic_base_url,
            extraction_model=s.anthropic_extraction_model,
            adjudication_model=s.anthropic_adjudication_model,
            api_version=s.anthropic_version,
            timeout=s.adjudication_timeout,
            http_client=self._http_client,
        )
        deepseek = DeepSeekClient(
            base_url=s.deepseek_base_url,
            model=s.deepseek_model,
            timeout=s.adjudication_timeout,
            http_client=self._http_client,
        )
        exa = ExaClient(
            base_url=s.exa_base_url,
            timeout=s.search_timeout,
            http_client=self._http_client,
        )
        bocha = BochaClient(
            base_url=s.bocha_base_url,
            timeout=s.search_timeout,
            http_client=self._http_client,
        )

        llm_backends = {
            ProviderPair.INTERNATIONAL: anthropic,
            ProviderPair.DOMESTIC: deepseek,
        }
        return VerificationOrchestrator(
            claim_extractor=ClaimExtractor(
                llm_backends,
                max_attempts=s.extraction_max_attempts,
                timeout=s.extraction_timeout,
            ),
            evidence_provider=EvidenceProvider(
                {ProviderPair.INTERNATIONAL: exa, ProviderPair.DOMESTIC: bocha},
                timeout=s.search_timeout,
            ),
            adjudicator=Adjudicator(
                llm_backends,
                time_rule=TimeSensitivityRule(keywords=s.time_sensitivity_keywords),
                timeout=s.adjudication_timeout,
            ),
            ai_models={
                ProviderPair.INTERNATIONAL: s.anthropic_adjudication_model,
                ProviderPair.DOMESTIC: s.deepseek_model,
            },
        )

    def default_config(self, **overrides) -> DetectionConfig:
        """DetectionConfig built from settings, with per-run overrides."""
        return self.settings.detection_config(**overrides)

    async def run(
        self,
        text: str,
        config: Optional[DetectionConfig] = None,
        on_progress: Optional[ProgressSink] = None,
    ) -> DetectionResult:
        """Run one detection. Settings defaults apply when ``config`` is None."""
        config = config or self.default_config()
        self._logger.debug(
            "pipeline_run",
            domestic=config.use_domestic_providers,
            text_length=len(text) if isinstance(text, str) else None,
        )
        return await self.orchestrator.run_detection(text, config, on_progress)

    async def verify_claims(
        self,
        items: Sequence[Union[BatchClaimInput, dict[str, Any]]],
        config: Optional[DetectionConfig] = None,
    ) -> BatchAdjudicationResult:
        """Adjudicate claims that already carry their sources.

        Only the adjudication credential of the selected pair is required.

        Raises:
            MissingCredentials: The pair's adjudication key is not configured.
            InvalidInput: Empty batch or more than MAX_BATCH_CLAIMS entries.
        """
        config = config or self.default_config()
        pair = (
            ProviderPair.DOMESTIC
            if config.use_domestic_providers
            else ProviderPair.INTERNATIONAL
        )
        key_name = ADJUDICATION_CREDENTIALS[pair]
        if not config.credentials.has(key_name):
            raise MissingCredentials([key_name], pair.value)

        self._logger.debug("pipeline_verify_claims", domestic=pair is ProviderPair.DOMESTIC)
        return await self.orchestrator.adjudicator.adjudicate_batch(
            items, pair, config.credentials
        )

    async def close(self) -> None:
        if self._owns_http_client and not self._http_client.is_closed:
            await self._http_client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


async def run_detection(
    text: str,
    config: Optional[DetectionConfig] = None,
    on_progress: Optional[ProgressSink] = None,
    settings: Optional[Settings] = None,
) -> DetectionResult:
    """Run one detection with a short-lived pipeline."""
    async with DetectionPipeline(settings=settings) as pipeline:
        return await pipeline.run(text, config, on_progress)
