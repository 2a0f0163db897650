"""Tests for verdict aggregation.

Tests cover:
- Counting by canonical assessment
- Accuracy rate rounding and the empty case
- High-confidence threshold handling
- Unknown, Error and unrecognised assessments
"""

from hallucination_detector.verification.aggregator import aggregate
from hallucination_detector.verification.schemas import Assessment, Verdict


def _verdict(assessment: str, confidence: float = 50) -> Verdict:
    return Verdict(claim="c", assessment=assessment, confidence_score=confidence)


class TestAggregate:
    def test_one_of_each_outcome(self) -> None:
        summary = aggregate(
            [
                _verdict("True", 90),
                _verdict("False", 85),
                _verdict("Insufficient Information", 0),
            ]
        )
        assert summary.total_claims == 3
        assert summary.true_claims == 1
        assert summary.false_claims == 1
        assert summary.insufficient_claims == 1
        assert summary.unknown_claims == 0
        assert summary.accuracy_rate == 33.3
        assert summary.high_confidence_claims == 2

    def test_empty_run(self) -> None:
        summary = aggregate([])
        assert summary.total_claims == 0
        assert summary.accuracy_rate == 0.0
        assert summary.high_confidence_claims == 0

    def test_non_canonical_assessments_are_unknown(self) -> None:
        summary = aggregate(
            [
                _verdict(Assessment.ERROR.value),
                _verdict(Assessment.UNKNOWN.value),
                _verdict("Mostly True"),
                _verdict("true"),
            ]
        )
        assert summary.unknown_claims == 4
        assert summary.true_claims == 0

    def test_partially_true_counted(self) -> None:
        summary = aggregate([_verdict("Partially True"), _verdict("True")])
        assert summary.partially_true_claims == 1
        assert summary.accuracy_rate == 50.0

    def test_threshold_is_inclusive(self) -> None:
        verdicts = [_verdict("True", 80), _verdict("True", 79.9)]
        assert aggregate(verdicts, confidence_threshold=80).high_confidence_claims == 1
        assert aggregate(verdicts, confidence_threshold=50).high_confidence_claims == 2

    def test_threshold_does_not_change_counts(self) -> None:
        verdicts = [_verdict("True", 10), _verdict("False", 95)]
        low = aggregate(verdicts, confidence_threshold=0)
        high = aggregate(verdicts, confidence_threshold=100)
        assert low.true_claims == high.true_claims == 1
        assert low.accuracy_rate == high.accuracy_rate == 50.0
