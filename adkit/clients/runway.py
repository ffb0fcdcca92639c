"""Runway Gen-4 Turbo image-to-video client.

Runway is the primary provider for the single cinematic hero video and the
fallback for Kling video ads. Uses the Runway REST API directly:

    1. POST /v1/image_to_video  -> {"id": task_id}
    2. GET  /v1/tasks/{task_id} -> PENDING | THROTTLED | RUNNING | SUCCEEDED | FAILED | CANCELLED

Runway expresses ratios in pixels ("1280:720"); requests arrive in Kling
notation ("16:9") so both providers are interchangeable for fallback.
"""

import httpx
from aiolimiter import AsyncLimiter

from adkit.clients.polling import poll_until_complete
from adkit.clients.types import ProviderOutput, VideoRequest
from adkit.config import get_poll_interval_seconds, get_runway_api_secret
from adkit.constants import KLING_TO_RUNWAY_RATIO, RUNWAY
from adkit.exceptions import ProviderError
from adkit.utils.logging import get_logger

log = get_logger(__name__)

RUNWAY_API_BASE = "https://api.dev.runwayml.com/v1"
RUNWAY_API_VERSION = "2024-11-06"
RUNWAY_MODEL = "gen4_turbo"
DEFAULT_RATIO = "1280:720"
MAX_POLL_ATTEMPTS = 60


def to_runway_ratio(aspect_ratio: str) -> str:
    """Convert a Kling-style aspect ratio to Runway's pixel ratio.

    Unknown ratios fall back to landscape 1280:720; ratios already in
    Runway notation pass through unchanged.
    """
    if aspect_ratio in KLING_TO_RUNWAY_RATIO.values():
        return aspect_ratio
    return KLING_TO_RUNWAY_RATIO.get(aspect_ratio, DEFAULT_RATIO)


class RunwayClient:
    """Client for Runway image-to-video generation."""

    provider_id = RUNWAY

    def __init__(
        self,
        api_secret: str | None = None,
        poll_interval: float | None = None,
        max_attempts: int = MAX_POLL_ATTEMPTS,
    ) -> None:
        self._api_secret = api_secret
        self.poll_interval = (
            poll_interval if poll_interval is not None else get_poll_interval_seconds()
        )
        self.max_attempts = max_attempts
        self.base_url = RUNWAY_API_BASE
        self.client = httpx.AsyncClient(timeout=30.0)
        self.rate_limiter = AsyncLimiter(max_rate=5, time_period=1)

    def _get_headers(self) -> dict[str, str]:
        if self._api_secret is None:
            self._api_secret = get_runway_api_secret()
        return {
            "Authorization": f"Bearer {self._api_secret}",
            "X-Runway-Version": RUNWAY_API_VERSION,
            "Content-Type": "application/json",
        }

    async def generate(self, request: VideoRequest) -> ProviderOutput:
        """Generate a cinematic clip from a source image.

        Args:
            request: Image URL, prompt, aspect ratio (Kling notation) and duration

        Returns:
            ProviderOutput with the Runway-hosted MP4 URL

        Raises:
            ConfigurationError: If RUNWAYML_API_SECRET is not set
            ProviderError: On submit failure, FAILED/CANCELLED status, or no output
            ProviderTimeoutError: If the task does not finish within the poll budget
        """
        headers = self._get_headers()
        payload = {
            "model": RUNWAY_MODEL,
            "promptImage": request.image_url,
            "promptText": request.prompt,
            "ratio": to_runway_ratio(request.aspect_ratio),
            "duration": request.duration_seconds,
        }

        try:
            response = await self.client.post(
                f"{self.base_url}/image_to_video", headers=headers, json=payload
            )
        except httpx.HTTPError as e:
            raise ProviderError(RUNWAY, f"submit request failed: {e}") from e

        if response.status_code >= 400:
            raise ProviderError(
                RUNWAY, f"submit failed ({response.status_code}): {response.text[:500]}"
            )

        task_id = response.json().get("id")
        if not task_id:
            raise ProviderError(RUNWAY, "Runway did not return a task id")

        log.info("runway_task_submitted", task_id=task_id, ratio=payload["ratio"])

        async def check_task() -> str | None:
            async with self.rate_limiter:
                try:
                    task_response = await self.client.get(
                        f"{self.base_url}/tasks/{task_id}", headers=headers
                    )
                except httpx.HTTPError as e:
                    log.warning("runway_status_poll_error", task_id=task_id, error=str(e))
                    return None

            if task_response.status_code >= 400:
                return None

            task = task_response.json()
            state = task.get("status")
            if state == "SUCCEEDED":
                output = task.get("output") or []
                if not output:
                    raise ProviderError(
                        RUNWAY, f"task {task_id} marked SUCCEEDED but no output URL returned"
                    )
                return output[0]
            if state == "FAILED":
                raise ProviderError(
                    RUNWAY,
                    f"generation failed for task {task_id}: {task.get('failure') or 'unknown'}",
                )
            if state == "CANCELLED":
                raise ProviderError(RUNWAY, f"task {task_id} was cancelled")
            return None

        video_url = await poll_until_complete(
            RUNWAY, task_id, check_task, self.poll_interval, self.max_attempts
        )
        return ProviderOutput(
            provider_id=RUNWAY,
            url=video_url,
            mime_type="video/mp4",
            duration_seconds=float(request.duration_seconds),
            job_id=task_id,
        )

    async def close(self) -> None:
        """Close HTTP client connection."""
        await self.client.aclose()
