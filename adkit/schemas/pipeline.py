"""Pipeline request and brief schemas.

Defines Pydantic models for the campaign brief consumed by the media
pipeline, the per-campaign step switches, and the payload accepted by the
internal pipeline endpoint. Field aliases are camelCase to match the JSON
the dashboard and workflow runner send.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CampaignBrief(BaseModel):
    """Creative inputs for one campaign's video/audio generation.

    Attributes:
        objective: Campaign objective (used to derive prompts)
        copy_text: Winning headline + body copy; voiceover and avatar script
        platforms: Selected platform IDs (drive video-ad aspect ratios)
        creative_direction: Free-form creative direction for video prompts
        target_audience: Audience description (informational)
        voice_id: Optional ElevenLabs voice override
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    objective: str = Field(..., min_length=1, max_length=2000)
    copy_text: str = Field(..., min_length=1, max_length=5000)
    platforms: list[str] = Field(default_factory=list)
    creative_direction: str = ""
    target_audience: str = ""
    voice_id: str | None = None

    @field_validator("objective", "copy_text")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()

    def video_prompt(self) -> str:
        """Prompt for platform video ads."""
        if self.creative_direction:
            return self.creative_direction
        return f"{self.objective} - Professional Japanese advertising video"

    def cinematic_prompt(self) -> str:
        """Prompt for the cinematic hero video."""
        if self.creative_direction:
            return f"Cinematic: {self.creative_direction}"
        return f"Cinematic Japanese advertisement for {self.objective}"


class EnabledSteps(BaseModel):
    """Per-campaign switches for pipeline steps.

    Disabled steps are not attempted and do not appear in the result.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    include_voiceover: bool = True
    include_video: bool = True
    include_cinematic: bool = True
    include_avatar: bool = True

    def is_enabled(self, stage: str) -> bool:
        """Check whether a stage ("voiceover", "video_ad", ...) is switched on."""
        return {
            "voiceover": self.include_voiceover,
            "video_ad": self.include_video,
            "cinematic": self.include_cinematic,
            "avatar": self.include_avatar,
        }[stage]

    def any_enabled(self) -> bool:
        return (
            self.include_voiceover
            or self.include_video
            or self.include_cinematic
            or self.include_avatar
        )


class VideoPipelineRequest(BaseModel):
    """Payload for POST /api/internal/video-pipeline.

    Example:
        {
            "campaignId": "5b0c...",
            "brief": {"objective": "...", "copyText": "...", "platforms": ["tiktok"]},
            "compositedImageUrls": ["https://.../hero.png"],
            "enabledSteps": {"includeAvatar": false}
        }
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    campaign_id: str = Field(..., min_length=1, max_length=64)
    brief: CampaignBrief
    composited_image_urls: list[str] = Field(default_factory=list)
    enabled_steps: EnabledSteps = Field(default_factory=EnabledSteps)
