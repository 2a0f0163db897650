"""Pipeline facade wiring settings, upstream clients and the verification core.

Provides:
- DetectionPipeline: owns the shared HTTP pool and the orchestrator
- run_detection: one-shot convenience wrapper
"""

from hallucination_detector.pipeline.detection_pipeline import (
    DetectionPipeline,
    run_detection,
)

__all__ = ["DetectionPipeline", "run_detection"]
