"""Summary statistics over the verdicts of one run."""

from typing import Sequence

from hallucination_detector.verification.schemas import (
    Assessment,
    DetectionSummary,
    Verdict,
)


def aggregate(
    verdicts: Sequence[Verdict],
    confidence_threshold: float = 80,
) -> DetectionSummary:
    """
    Count verdicts by assessment and compute accuracy and confidence stats.

    Only exact matches on the four canonical assessments are counted by name;
    Unknown, Error and any unrecognised string count as ``unknown_claims``.
    ``confidence_threshold`` affects high_confidence_claims only.

    Args:
        verdicts: One verdict per claim, in claim order
        confidence_threshold: Minimum confidence_score counted as high confidence

    Returns:
        DetectionSummary for the run
    """
    counts = {assessment: 0 for assessment in Assessment}
    for verdict in verdicts:
        counts[verdict.canonical_assessment] += 1

    total = len(verdicts)
    true_count = counts[Assessment.TRUE]
    accuracy_rate = round(true_count / total * 100, 1) if total else 0.0

    return DetectionSummary(
        total_claims=total,
        true_claims=true_count,
        false_claims=counts[Assessment.FALSE],
        partially_true_claims=counts[Assessment.PARTIALLY_TRUE],
        insufficient_claims=counts[Assessment.INSUFFICIENT_INFORMATION],
        unknown_claims=counts[Assessment.UNKNOWN],
        accuracy_rate=accuracy_rate,
        high_confidence_claims=sum(
            1 for v in verdicts if v.confidence_score >= confidence_threshold
        ),
    )
