"""HeyGen presenter avatar video client.

The most expensive and slowest step of the pipeline. A HeyGen avatar reads
the campaign copy with a Japanese voice; the result is a portrait MP4.

    1. POST /v2/video/generate                  -> {"data": {"video_id": ...}}
    2. GET  /v1/video_status.get?video_id={id}  -> pending | processing | completed | failed
"""

import httpx
from aiolimiter import AsyncLimiter

from adkit.clients.polling import poll_until_complete
from adkit.clients.types import AvatarRequest, ProviderOutput
from adkit.config import get_heygen_api_key, get_heygen_avatar_settings, get_poll_interval_seconds
from adkit.constants import HEYGEN
from adkit.exceptions import ProviderError
from adkit.utils.logging import get_logger

log = get_logger(__name__)

HEYGEN_API_BASE = "https://api.heygen.com"
MAX_POLL_ATTEMPTS = 120


class HeyGenClient:
    """Client for HeyGen avatar video generation."""

    provider_id = HEYGEN

    def __init__(
        self,
        api_key: str | None = None,
        avatar_id: str | None = None,
        voice_id: str | None = None,
        poll_interval: float | None = None,
        max_attempts: int = MAX_POLL_ATTEMPTS,
    ) -> None:
        self._api_key = api_key
        self._avatar_id = avatar_id
        self._voice_id = voice_id
        self.poll_interval = (
            poll_interval if poll_interval is not None else get_poll_interval_seconds()
        )
        self.max_attempts = max_attempts
        self.base_url = HEYGEN_API_BASE
        self.client = httpx.AsyncClient(timeout=30.0)
        self.rate_limiter = AsyncLimiter(max_rate=5, time_period=1)

    def _resolve_settings(self) -> tuple[str, str, str]:
        if self._api_key is None:
            self._api_key = get_heygen_api_key()
        if self._avatar_id is None or self._voice_id is None:
            self._avatar_id, self._voice_id = get_heygen_avatar_settings()
        return self._api_key, self._avatar_id, self._voice_id

    async def generate(self, request: AvatarRequest) -> ProviderOutput:
        """Generate an avatar video reading the given script.

        Args:
            request: Script text and output dimension

        Returns:
            ProviderOutput with the HeyGen-hosted MP4 URL

        Raises:
            ConfigurationError: If API key, avatar ID or voice ID is missing
            ProviderError: On submit error, failed status, or missing video URL
            ProviderTimeoutError: If the video does not finish within the poll budget
        """
        api_key, avatar_id, voice_id = self._resolve_settings()
        headers = {"X-Api-Key": api_key, "Content-Type": "application/json"}

        payload = {
            "video_inputs": [
                {
                    "character": {
                        "type": "avatar",
                        "avatar_id": avatar_id,
                        "avatar_style": "normal",
                    },
                    "voice": {
                        "type": "text",
                        "voice_id": voice_id,
                        "input_text": request.script,
                        "speed": 1.0,
                    },
                }
            ],
            "dimension": {"width": request.width, "height": request.height},
        }

        try:
            response = await self.client.post(
                f"{self.base_url}/v2/video/generate", headers=headers, json=payload
            )
        except httpx.HTTPError as e:
            raise ProviderError(HEYGEN, f"submit request failed: {e}") from e

        if response.status_code >= 400:
            raise ProviderError(
                HEYGEN, f"submit failed ({response.status_code}): {response.text[:500]}"
            )

        body = response.json()
        if body.get("error"):
            raise ProviderError(HEYGEN, f"generation error: {body['error']}")

        video_id = (body.get("data") or {}).get("video_id")
        if not video_id:
            raise ProviderError(HEYGEN, "HeyGen did not return a video_id")

        log.info("heygen_video_submitted", video_id=video_id, script_chars=len(request.script))

        async def check_video() -> ProviderOutput | None:
            async with self.rate_limiter:
                try:
                    status_response = await self.client.get(
                        f"{self.base_url}/v1/video_status.get",
                        headers={"X-Api-Key": api_key},
                        params={"video_id": video_id},
                    )
                except httpx.HTTPError as e:
                    log.warning("heygen_status_poll_error", video_id=video_id, error=str(e))
                    return None

            if status_response.status_code >= 400:
                return None

            data = status_response.json().get("data") or {}
            state = data.get("status")
            if state == "completed":
                video_url = data.get("video_url")
                if not video_url:
                    raise ProviderError(
                        HEYGEN, f"video {video_id} completed but no video_url returned"
                    )
                return ProviderOutput(
                    provider_id=HEYGEN,
                    url=video_url,
                    mime_type="video/mp4",
                    duration_seconds=float(data.get("duration") or 0.0),
                    job_id=video_id,
                )
            if state == "failed":
                raise ProviderError(
                    HEYGEN,
                    f"video generation failed for {video_id}: "
                    f"{data.get('error') or 'unknown error'}",
                )
            return None

        return await poll_until_complete(
            HEYGEN, video_id, check_video, self.poll_interval, self.max_attempts
        )

    async def close(self) -> None:
        """Close HTTP client connection."""
        await self.client.aclose()
