"""Tests for progress events and the emitter.

Tests cover:
- Claim progress formula
- Non-decreasing progress and the current-value carry-over
- Sync and async sinks, payload shape
- Failing sinks do not propagate
"""

import pytest

from hallucination_detector.verification.events import (
    ProgressEmitter,
    ProgressEventName,
    claim_progress,
)


class TestClaimProgress:
    @pytest.mark.parametrize(
        ("index", "total", "expected"),
        [(0, 1, 25), (0, 3, 25), (1, 3, 48), (2, 3, 71), (1, 2, 60), (6, 7, 85)],
    )
    def test_formula(self, index: int, total: int, expected: int) -> None:
        assert claim_progress(index, total) == expected

    def test_event_name_set_is_closed(self) -> None:
        assert {e.value for e in ProgressEventName} == {
            "start",
            "extracting_claims",
            "claims_extracted",
            "verifying_claim",
            "searching_sources",
            "sources_found",
            "sources_insufficient",
            "analyzing_claim",
            "claim_verified",
            "claim_error",
            "completed",
            "error",
        }


class TestProgressEmitter:
    @pytest.mark.asyncio
    async def test_sync_sink_receives_payload(self) -> None:
        received = []
        emitter = ProgressEmitter(lambda name, payload: received.append((name, payload)))

        await emitter.emit(ProgressEventName.EXTRACTING_CLAIMS, "Extracting", 10, extra="x")

        assert received == [
            ("extracting_claims", {"message": "Extracting", "progress": 10, "extra": "x"})
        ]

    @pytest.mark.asyncio
    async def test_async_sink_is_awaited(self) -> None:
        received = []

        async def sink(name, payload):
            received.append(name)

        emitter = ProgressEmitter(sink)
        await emitter.emit(ProgressEventName.START, "Go", 0)
        assert received == ["start"]

    @pytest.mark.asyncio
    async def test_progress_never_decreases(self) -> None:
        emitter = ProgressEmitter()
        await emitter.emit(ProgressEventName.CLAIMS_EXTRACTED, "done", 25)
        event = await emitter.emit(ProgressEventName.ERROR, "late", 0)
        assert event.progress == 25

    @pytest.mark.asyncio
    async def test_events_without_progress_carry_current(self) -> None:
        emitter = ProgressEmitter()
        await emitter.emit(ProgressEventName.VERIFYING_CLAIM, "v", 48)
        event = await emitter.emit(ProgressEventName.SEARCHING_SOURCES, "s")
        assert event.progress == 48
        assert [e.progress for e in emitter.events] == [48, 48]

    @pytest.mark.asyncio
    async def test_failing_sink_is_ignored(self) -> None:
        def sink(name, payload):
            raise RuntimeError("UI went away")

        emitter = ProgressEmitter(sink)
        event = await emitter.emit(ProgressEventName.COMPLETED, "done", 100)
        assert event.progress == 100
        assert len(emitter.events) == 1
