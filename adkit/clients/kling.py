"""Kling video generation client (fal.ai queue API).

Kling 2.6 Pro is the primary provider for platform video ads. fal.ai exposes
it through an asynchronous queue:

    1. POST   {base}/{endpoint}                          -> request_id
    2. GET    {base}/{endpoint}/requests/{id}/status     -> IN_QUEUE | IN_PROGRESS | COMPLETED | FAILED
    3. GET    {base}/{endpoint}/requests/{id}            -> {"video": {"url": ...}}

Architecture Pattern:
    Thin HTTP client - submit is never retried (each submit is billed),
    status polls tolerate transient non-2xx responses and are rate limited.

Usage:
    from adkit.clients.kling import KlingClient

    client = KlingClient()
    output = await client.generate(VideoRequest(image_url=url, prompt="...", aspect_ratio="9:16"))
    print(output.url)
    await client.close()
"""

import httpx
from aiolimiter import AsyncLimiter

from adkit.clients.polling import poll_until_complete
from adkit.clients.types import ProviderOutput, VideoRequest
from adkit.config import get_fal_key, get_poll_interval_seconds
from adkit.constants import KLING
from adkit.exceptions import ProviderError
from adkit.utils.logging import get_logger

log = get_logger(__name__)

FAL_API_BASE = "https://queue.fal.run"
IMAGE_TO_VIDEO_ENDPOINT = "fal-ai/kling-video/v2.6/pro/image-to-video"
TEXT_TO_VIDEO_ENDPOINT = "fal-ai/kling-video/v2.6/pro/text-to-video"
MAX_POLL_ATTEMPTS = 60


class KlingClient:
    """Client for Kling image-to-video generation through fal.ai.

    Attributes:
        provider_id: "kling"
        client: Async HTTP client for making requests
        rate_limiter: Caps status-poll request rate
    """

    provider_id = KLING

    def __init__(
        self,
        api_key: str | None = None,
        poll_interval: float | None = None,
        max_attempts: int = MAX_POLL_ATTEMPTS,
    ) -> None:
        """Initialize Kling client.

        Args:
            api_key: fal.ai key (read from FAL_KEY on first use when None)
            poll_interval: Seconds between status polls (config default when None)
            max_attempts: Status poll budget before timing out
        """
        self._api_key = api_key
        self.poll_interval = (
            poll_interval if poll_interval is not None else get_poll_interval_seconds()
        )
        self.max_attempts = max_attempts
        self.base_url = FAL_API_BASE
        self.client = httpx.AsyncClient(timeout=30.0)
        self.rate_limiter = AsyncLimiter(max_rate=5, time_period=1)

    def _get_headers(self) -> dict[str, str]:
        if self._api_key is None:
            self._api_key = get_fal_key()
        return {
            "Authorization": f"Key {self._api_key}",
            "Content-Type": "application/json",
        }

    async def generate(self, request: VideoRequest) -> ProviderOutput:
        """Generate a video clip from a source image.

        Args:
            request: Image URL, prompt, Kling aspect ratio and duration

        Returns:
            ProviderOutput with the fal.ai-hosted MP4 URL

        Raises:
            ConfigurationError: If FAL_KEY is not set
            ProviderError: On submit failure, FAILED status, or empty result
            ProviderTimeoutError: If the job does not finish within the poll budget
        """
        headers = self._get_headers()
        endpoint = IMAGE_TO_VIDEO_ENDPOINT if request.image_url else TEXT_TO_VIDEO_ENDPOINT

        payload: dict[str, object] = {
            "prompt": request.prompt,
            "duration": str(request.duration_seconds),
            "aspect_ratio": request.aspect_ratio,
        }
        if request.image_url:
            payload["image_url"] = request.image_url

        try:
            response = await self.client.post(
                f"{self.base_url}/{endpoint}", headers=headers, json=payload
            )
        except httpx.HTTPError as e:
            raise ProviderError(KLING, f"submit request failed: {e}") from e

        if response.status_code >= 400:
            raise ProviderError(
                KLING, f"submit failed ({response.status_code}): {response.text[:500]}"
            )

        request_id = response.json().get("request_id")
        if not request_id:
            raise ProviderError(KLING, "fal.ai did not return a request_id")

        log.info(
            "kling_job_submitted",
            request_id=request_id,
            aspect_ratio=request.aspect_ratio,
            duration_seconds=request.duration_seconds,
        )

        async def check_status() -> str | None:
            async with self.rate_limiter:
                try:
                    status_response = await self.client.get(
                        f"{self.base_url}/{endpoint}/requests/{request_id}/status",
                        headers=headers,
                    )
                except httpx.HTTPError as e:
                    log.warning("kling_status_poll_error", request_id=request_id, error=str(e))
                    return None

            if status_response.status_code >= 400:
                return None

            status = status_response.json()
            state = status.get("status")
            if state == "COMPLETED":
                return await self._fetch_result(endpoint, request_id, headers)
            if state == "FAILED":
                raise ProviderError(
                    KLING,
                    f"generation failed for request {request_id}: "
                    f"{status.get('error') or 'unknown error'}",
                )
            return None

        video_url = await poll_until_complete(
            KLING, request_id, check_status, self.poll_interval, self.max_attempts
        )
        return ProviderOutput(
            provider_id=KLING,
            url=video_url,
            mime_type="video/mp4",
            duration_seconds=float(request.duration_seconds),
            job_id=request_id,
        )

    async def _fetch_result(
        self, endpoint: str, request_id: str, headers: dict[str, str]
    ) -> str:
        response = await self.client.get(
            f"{self.base_url}/{endpoint}/requests/{request_id}", headers=headers
        )
        if response.status_code >= 400:
            raise ProviderError(
                KLING, f"result fetch failed ({response.status_code}) for request {request_id}"
            )

        result = response.json()
        video_url = (result.get("video") or {}).get("url") or (result.get("output") or {}).get("url")
        if not video_url:
            raise ProviderError(KLING, f"request {request_id} completed but no video URL in result")
        return video_url

    async def close(self) -> None:
        """Close HTTP client connection."""
        await self.client.aclose()
