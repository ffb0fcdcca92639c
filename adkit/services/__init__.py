"""Business logic services for the media pipeline."""

from adkit.services.provider_health import (
    CircuitState,
    ProviderHealth,
    ProviderHealthTracker,
)
from adkit.services.video_pipeline import (
    AggregateStatus,
    ErrorReason,
    OutcomeKind,
    PipelineResult,
    PipelineStage,
    StepOutcome,
    VideoPipelineOrchestrator,
)

__all__ = [
    "AggregateStatus",
    "CircuitState",
    "ErrorReason",
    "OutcomeKind",
    "PipelineResult",
    "PipelineStage",
    "ProviderHealth",
    "ProviderHealthTracker",
    "StepOutcome",
    "VideoPipelineOrchestrator",
]
