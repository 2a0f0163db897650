"""Tests for the structlog helpers.

Tests cover:
- Bound run and component context on structured loggers
- Run-id format
- Progress emitter log events carrying the run id
"""

import uuid

import pytest
from structlog.testing import capture_logs

from hallucination_detector.utils.logging import get_structured_logger, new_run_id
from hallucination_detector.verification.events import ProgressEmitter, ProgressEventName


class TestStructuredLogger:
    def test_binds_run_and_extra_context(self) -> None:
        with capture_logs() as logs:
            logger = get_structured_logger("tests", run_id="run-1", component="Adjudicator")
            logger.info("claim_adjudicated", assessment="True")

        assert logs == [
            {
                "event": "claim_adjudicated",
                "assessment": "True",
                "run_id": "run-1",
                "component": "Adjudicator",
                "log_level": "info",
            }
        ]

    def test_no_run_id_bound_when_absent(self) -> None:
        with capture_logs() as logs:
            get_structured_logger("tests").info("event_without_run")
        assert "run_id" not in logs[0]

    def test_new_run_id_is_uuid(self) -> None:
        assert uuid.UUID(new_run_id()).version == 4


class TestEmitterLogging:
    @pytest.mark.asyncio
    async def test_failing_sink_logged_with_run_id(self) -> None:
        def sink(name, payload):
            raise RuntimeError("sink down")

        with capture_logs() as logs:
            emitter = ProgressEmitter(sink, run_id="run-7")
            await emitter.emit(ProgressEventName.START, "Starting", 0)

        failures = [entry for entry in logs if entry["event"] == "progress_sink_failed"]
        assert failures[0]["run_id"] == "run-7"
        assert failures[0]["component"] == "ProgressEmitter"
        assert failures[0]["error_type"] == "RuntimeError"
