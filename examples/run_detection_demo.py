#!/usr/bin/env python3
"""Example script showing one detection run with its progress stream.

By default the upstream providers are mocked so the script runs offline.
With --real-apis the DetectionPipeline is used and keys are read from the
environment (ANTHROPIC_API_KEY + EXA_API_KEY, or DEEPSEEK_API_KEY +
BOCHA_API_KEY with --domestic).

Usage:
    uv run python examples/run_detection_demo.py "The Eiffel Tower opened in 1889 and is 500 m tall."
    uv run python examples/run_detection_demo.py "长城全长超过两万公里。" --real-apis --domestic

The script demonstrates:
1. Wiring the adapters into a VerificationOrchestrator
2. Receiving progress events through a sink
3. Reading verdicts, the summary and the transparency block
"""

import argparse
import asyncio
from unittest.mock import AsyncMock

from hallucination_detector.utils.logging import configure_structured_logging
from hallucination_detector.verification import (
    Adjudicator,
    ClaimExtractor,
    DetectionConfig,
    DetectionResult,
    EvidenceProvider,
    ProviderCredentials,
    ProviderPair,
    VerificationOrchestrator,
)

configure_structured_logging(log_level="WARNING")


def build_mocked_orchestrator(text: str) -> VerificationOrchestrator:
    """Orchestrator whose backends answer with canned payloads."""
    sentences = [s.strip() for s in text.replace("。", ".").split(".") if s.strip()]

    llm = AsyncMock()
    llm.extract_claims = AsyncMock(
        return_value={"claims": [{"claim": s, "original_text": s} for s in sentences]}
    )
    llm.adjudicate = AsyncMock(
        side_effect=lambda claim, original_text, evidence, api_key: {
            "claim": claim,
            "assessment": "True" if len(claim) % 2 else "False",
            "confidence_score": 70 + len(claim) % 30,
            "summary": f"Checked against {len(evidence)} sources.",
        }
    )

    search = AsyncMock()
    search.search = AsyncMock(
        side_effect=lambda query, api_key, limit=10: {
            "results": [
                {
                    "title": f"Reference {n} for '{query[:30]}'",
                    "url": f"https://example.org/ref/{n}",
                    "text": "Reference material used by the demo.",
                }
                for n in range(1, 4)
            ]
        }
    )

    backends_llm = {ProviderPair.INTERNATIONAL: llm, ProviderPair.DOMESTIC: llm}
    backends_search = {ProviderPair.INTERNATIONAL: search, ProviderPair.DOMESTIC: search}
    return VerificationOrchestrator(
        claim_extractor=ClaimExtractor(backends_llm),
        evidence_provider=EvidenceProvider(backends_search),
        adjudicator=Adjudicator(backends_llm),
    )


def print_progress(event_name: str, payload: dict) -> None:
    print(f"  [{payload['progress']:>3}%] {event_name:<22} {payload['message']}")


def print_result(result: DetectionResult) -> None:
    print("\n" + "=" * 70)
    print(f"PROVIDER PAIR: {result.provider_pair.value}")
    print("=" * 70)

    for index, verification in enumerate(result.verifications, start=1):
        print(f"\n{index}. {verification.claim}")
        print(f"   Assessment: {verification.assessment} ({verification.confidence_score:g}%)")
        print(f"   Summary:    {verification.summary}")
        if verification.time_sensitivity_note:
            print(f"   Note:       {verification.time_sensitivity_note}")
        for source in verification.sources:
            print(f"   - {source.title[:60]} <{source.url}>")

    s = result.summary
    print(f"\nSUMMARY: {s.total_claims} claims, {s.true_claims} true, {s.false_claims} false, "
          f"{s.insufficient_claims} insufficient, accuracy {s.accuracy_rate}%")

    if result.transparency:
        t = result.transparency
        print(f"TRANSPARENCY: {t.completed_steps}/{t.total_steps} steps, {t.api_calls} API calls, "
              f"search via {t.search_engine}, judged by {t.ai_model}")
    print("\n" + "=" * 70)


async def run_demo(text: str, use_real_apis: bool, domestic: bool) -> None:
    print(f"\nChecking: {text}\n")

    if use_real_apis:
        from hallucination_detector.pipeline import DetectionPipeline

        async with DetectionPipeline() as pipeline:
            config = pipeline.default_config(use_domestic_providers=domestic)
            result = await pipeline.run(text, config, on_progress=print_progress)
    else:
        orchestrator = build_mocked_orchestrator(text)
        config = DetectionConfig(
            use_domestic_providers=domestic,
            credentials=ProviderCredentials(
                anthropic_api_key="demo",
                exa_api_key="demo",
                deepseek_api_key="demo",
                bocha_api_key="demo",
            ),
        )
        result = await orchestrator.run_detection(text, config, on_progress=print_progress)

    print_result(result)


def main():
    """Main entry point for the example script."""
    parser = argparse.ArgumentParser(
        description="Run a hallucination detection demo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    uv run python examples/run_detection_demo.py "Mount Everest is 8849 m tall."
    uv run python examples/run_detection_demo.py "Mount Everest is 8849 m tall." --real-apis
        """,
    )
    parser.add_argument("text", help="Text to check")
    parser.add_argument(
        "--real-apis",
        action="store_true",
        help="Use real API calls (requires credentials)",
    )
    parser.add_argument(
        "--domestic",
        action="store_true",
        help="Use the domestic provider pair",
    )
    args = parser.parse_args()

    asyncio.run(run_demo(args.text, use_real_apis=args.real_apis, domestic=args.domestic))


if __name__ == "__main__":
    main()
