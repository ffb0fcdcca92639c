"""ElevenLabs Japanese text-to-speech client.

Generates the campaign voiceover from ad copy text. This is a synchronous
API call (no polling): the response body is the MP3 itself.

Model: eleven_multilingual_v2 (best Japanese support)
Output: MP3 at 44.1kHz / 128kbps
"""

import httpx

from adkit.clients.types import ProviderOutput, VoiceoverRequest
from adkit.config import get_elevenlabs_api_key, get_voiceover_voice_id
from adkit.constants import ELEVENLABS
from adkit.exceptions import ProviderError
from adkit.utils.logging import get_logger

log = get_logger(__name__)

ELEVENLABS_API_BASE = "https://api.elevenlabs.io"
DEFAULT_MODEL_ID = "eleven_multilingual_v2"
OUTPUT_FORMAT = "mp3_44100_128"

# 128kbps MP3 is 16,000 bytes per second of audio
MP3_BYTES_PER_SECOND = 16_000


def estimate_mp3_duration(audio: bytes) -> int:
    """Estimate MP3 duration in whole seconds from its size at 128kbps."""
    return round(len(audio) / MP3_BYTES_PER_SECOND)


class ElevenLabsClient:
    """Client for ElevenLabs text-to-speech."""

    provider_id = ELEVENLABS

    def __init__(
        self,
        api_key: str | None = None,
        voice_id: str | None = None,
        model_id: str = DEFAULT_MODEL_ID,
    ) -> None:
        self._api_key = api_key
        self._voice_id = voice_id
        self.model_id = model_id
        self.base_url = ELEVENLABS_API_BASE
        self.client = httpx.AsyncClient(timeout=60.0)

    async def generate(self, request: VoiceoverRequest) -> ProviderOutput:
        """Convert Japanese text into speech.

        Args:
            request: Narration text and optional voice override

        Returns:
            ProviderOutput with MP3 bytes and an estimated duration

        Raises:
            ConfigurationError: If API key or voice ID is not configured
            ProviderError: On HTTP error or empty audio
        """
        if self._api_key is None:
            self._api_key = get_elevenlabs_api_key()
        voice_id = request.voice_id or self._voice_id or get_voiceover_voice_id()

        try:
            response = await self.client.post(
                f"{self.base_url}/v1/text-to-speech/{voice_id}",
                params={"output_format": OUTPUT_FORMAT},
                headers={"xi-api-key": self._api_key, "Content-Type": "application/json"},
                json={
                    "text": request.text,
                    "model_id": self.model_id,
                    "language_code": "ja",
                },
            )
        except httpx.HTTPError as e:
            raise ProviderError(ELEVENLABS, f"request failed: {e}") from e

        if response.status_code >= 400:
            raise ProviderError(
                ELEVENLABS, f"text-to-speech failed ({response.status_code}): {response.text[:500]}"
            )

        audio = response.content
        if not audio:
            raise ProviderError(ELEVENLABS, "text-to-speech returned empty audio")

        duration = estimate_mp3_duration(audio)
        log.info(
            "voiceover_generated",
            voice_id=voice_id,
            text_chars=len(request.text),
            audio_bytes=len(audio),
            duration_estimate=duration,
        )
        return ProviderOutput(
            provider_id=ELEVENLABS,
            content=audio,
            mime_type="audio/mpeg",
            duration_seconds=float(duration),
        )

    async def close(self) -> None:
        """Close HTTP client connection."""
        await self.client.aclose()
