"""Progress events emitted by a detection run.

The event-name set is closed (ProgressEventName). Every payload carries
``message`` and ``progress`` plus event-specific data. Progress never moves
backwards: events that do not set a new value carry the current one.

Sinks are plain callables ``(event_name, payload)``; coroutine functions are
awaited. A sink that raises is logged and otherwise ignored.
"""

import inspect
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

from pydantic import BaseModel, Field

from hallucination_detector.utils.logging import get_structured_logger

ProgressSink = Callable[[str, dict[str, Any]], Union[None, Awaitable[None]]]

PROGRESS_EXTRACTION_START = 10
PROGRESS_CLAIMS_EXTRACTED = 25
PROGRESS_CLAIMS_BAND = 70
PROGRESS_COMPLETE = 100


class ProgressEventName(str, Enum):
    START = "start"
    EXTRACTING_CLAIMS = "extracting_claims"
    CLAIMS_EXTRACTED = "claims_extracted"
    VERIFYING_CLAIM = "verifying_claim"
    SEARCHING_SOURCES = "searching_sources"
    SOURCES_FOUND = "sources_found"
    SOURCES_INSUFFICIENT = "sources_insufficient"
    ANALYZING_CLAIM = "analyzing_claim"
    CLAIM_VERIFIED = "claim_verified"
    CLAIM_ERROR = "claim_error"
    COMPLETED = "completed"
    ERROR = "error"


class ProgressEvent(BaseModel):
    """One emitted event."""

    name: ProgressEventName
    message: str
    progress: int = Field(..., ge=0, le=100)
    data: dict[str, Any] = Field(default_factory=dict)

    def payload(self) -> dict[str, Any]:
        return {"message": self.message, "progress": self.progress, **self.data}


def claim_progress(index: int, total: int) -> int:
    """Progress at the start of claim ``index`` (0-based) out of ``total``."""
    return PROGRESS_CLAIMS_EXTRACTED + (PROGRESS_CLAIMS_BAND * index) // total


class ProgressEmitter:
    """Deliver progress events of one run to an optional sink."""

    def __init__(self, sink: Optional[ProgressSink] = None, run_id: str = "") -> None:
        self._sink = sink
        self.progress = 0
        self.events: list[ProgressEvent] = []
        self._logger = get_structured_logger(
            __name__, run_id=run_id or None, component="ProgressEmitter"
        )

    async def emit(
        self,
        name: ProgressEventName,
        message: str,
        progress: Optional[int] = None,
        **data: Any,
    ) -> ProgressEvent:
        if progress is not None and progress > self.progress:
            self.progress = min(progress, PROGRESS_COMPLETE)

        event = ProgressEvent(name=name, message=message, progress=self.progress, data=data)
        self.events.append(event)

        if self._sink is not None:
            await self._deliver(event)
        return event

    async def _deliver(self, event: ProgressEvent) -> None:
        try:
            result = self._sink(event.name.value, event.payload())
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self._logger.warning(
                "progress_sink_failed",
                event_name=event.name.value,
                error=str(e),
                error_type=type(e).__name__,
            )
