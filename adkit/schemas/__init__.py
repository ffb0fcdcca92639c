"""Pydantic schemas for validation and serialization."""

from adkit.schemas.pipeline import CampaignBrief, EnabledSteps, VideoPipelineRequest

__all__ = [
    "CampaignBrief",
    "EnabledSteps",
    "VideoPipelineRequest",
]
