"""Time-sensitivity disclosure repair for adjudication verdicts.

The adjudication model is unreliable at flagging claims that depend on
information newer than its training data. After every verdict is parsed, the
rule below runs identically for all backends:

- If the verdict already carries a non-blank ``time_sensitivity_note``, it is
  left alone.
- Otherwise, if the claim contains a marker (a year from last calendar year
  onwards, or one of the configured keywords), the fixed disclosure string is
  injected.

The marker set is configuration. It is not exhaustive and the year window
moves with the clock, so the clock is injectable for deterministic tests.

Usage:
    rule = TimeSensitivityRule()
    verdict = rule.apply(verdict, claim_text)
"""

import re
from datetime import date
from typing import Callable, Iterable, Optional

from hallucination_detector.verification.schemas import Verdict

TIME_SENSITIVITY_DISCLOSURE = (
    "This claim involves time-sensitive information. The assessment is based on "
    "the retrieved sources and the model's knowledge cutoff, which may not reflect "
    "the latest developments. Please confirm against current authoritative sources."
)

DEFAULT_TIME_SENSITIVITY_KEYWORDS = (
    "latest",
    "real-time",
    "realtime",
    "real time",
    "stock price",
    "share price",
    "as of today",
    "currently",
    "最新",
    "实时",
    "股价",
    "目前",
    "当前",
    "今年",
)

# Four-digit years not embedded in longer digit runs ("20251" is not a year)
_YEAR_PATTERN = re.compile(r"(?<!\d)(\d{4})(?!\d)")


class TimeSensitivityRule:
    """
    Deterministic post-processing rule injecting the time-sensitivity disclosure.

    Attributes:
        keywords: Lower-cased keyword markers
        disclosure: Text injected into ``time_sensitivity_note``
    """

    def __init__(
        self,
        keywords: Optional[Iterable[str]] = None,
        disclosure: str = TIME_SENSITIVITY_DISCLOSURE,
        today: Callable[[], date] = date.today,
    ) -> None:
        if keywords is None:
            keywords = DEFAULT_TIME_SENSITIVITY_KEYWORDS
        self.keywords = tuple(k.lower() for k in keywords if k and k.strip())
        self.disclosure = disclosure
        self._today = today

    @property
    def earliest_sensitive_year(self) -> int:
        return self._today().year - 1

    def find_markers(self, claim_text: str) -> list[str]:
        """Return the markers found in ``claim_text`` (years first, then keywords)."""
        if not claim_text:
            return []

        threshold = self.earliest_sensitive_year
        markers = [
            year for year in _YEAR_PATTERN.findall(claim_text) if int(year) >= threshold
        ]
        lowered = claim_text.lower()
        markers.extend(keyword for keyword in self.keywords if keyword in lowered)
        return markers

    def is_time_sensitive(self, claim_text: str) -> bool:
        return bool(self.find_markers(claim_text))

    def apply(self, verdict: Verdict, claim_text: str) -> Verdict:
        """Return ``verdict`` with the disclosure injected when required.

        Idempotent: a verdict that already has a note is returned unchanged.
        """
        if verdict.time_sensitivity_note and verdict.time_sensitivity_note.strip():
            return verdict
        if not self.is_time_sensitive(claim_text):
            return verdict
        return verdict.model_copy(update={"time_sensitivity_note": self.disclosure})
