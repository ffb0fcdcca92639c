"""Request and result types shared by generation provider clients.

Each provider client accepts one of the request dataclasses below and
returns a ProviderOutput. The pipeline orchestrator only depends on these
types and the GenerationProvider protocol, never on a concrete client.
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class VoiceoverRequest:
    """Text-to-speech input.

    Attributes:
        text: Japanese narration text (ad headline + body)
        voice_id: Provider voice ID; client default used when None
    """

    text: str
    voice_id: str | None = None


@dataclass(frozen=True)
class VideoRequest:
    """Image-to-video input shared by Kling and Runway.

    Attributes:
        image_url: Publicly reachable source image
        prompt: Motion / creative prompt
        aspect_ratio: Kling notation ("16:9", "9:16", "1:1")
        duration_seconds: Clip length (5 or 10)
    """

    image_url: str
    prompt: str
    aspect_ratio: str = "16:9"
    duration_seconds: int = 10


@dataclass(frozen=True)
class AvatarRequest:
    """Presenter (talking avatar) video input.

    Attributes:
        script: Text the avatar speaks
        width: Output width in pixels
        height: Output height in pixels
    """

    script: str
    width: int = 1080
    height: int = 1920


@dataclass(frozen=True)
class ProviderOutput:
    """Result of one successful provider call.

    Exactly one of url (remote asset to download) or content (in-memory
    bytes, e.g. TTS audio) is set.

    Attributes:
        provider_id: Provider that produced the asset
        url: Remote URL of the produced asset
        content: Raw bytes of the produced asset
        mime_type: MIME type of the asset
        duration_seconds: Actual or estimated duration
        job_id: Provider-side job/request ID, if any
    """

    provider_id: str
    url: str | None = None
    content: bytes | None = None
    mime_type: str = "video/mp4"
    duration_seconds: float = 0.0
    job_id: str | None = None


class GenerationProvider(Protocol):
    """Asynchronous generation capability for one external provider."""

    provider_id: str

    async def generate(self, request) -> ProviderOutput:  # noqa: ANN001
        ...

    async def close(self) -> None:
        ...
