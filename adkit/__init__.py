"""adkit campaign media pipeline.

This package generates the video and audio media of an advertising campaign
kit: a Japanese voiceover, platform video ads, a cinematic hero clip and a
presenter avatar video. Each step calls an external generation provider
guarded by a per-provider circuit breaker.
"""

from adkit.services.provider_health import ProviderHealthTracker
from adkit.services.video_pipeline import PipelineResult, VideoPipelineOrchestrator

__all__ = [
    "PipelineResult",
    "ProviderHealthTracker",
    "VideoPipelineOrchestrator",
]
