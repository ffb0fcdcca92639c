"""Supabase Storage client for generated campaign media.

Provider outputs are either in-memory bytes (ElevenLabs audio) or
short-lived provider-hosted URLs (Kling, Runway, HeyGen). Both are copied
into project buckets so the dashboard can serve them after the provider
URL expires.

Architecture Pattern:
    supabase-py is synchronous; calls run in a worker thread via
    asyncio.to_thread so the event loop is never blocked.
    Downloads are idempotent GETs and are retried with tenacity.
    Uploads always upsert, so re-running a campaign overwrites its objects.

Usage:
    from adkit.clients.supabase_storage import SupabaseStorageClient

    storage = SupabaseStorageClient()
    data = await storage.download("https://fal.media/files/.../video.mp4")
    await storage.upload("campaign-videos", "campaigns/42/videos/ad-9x16.mp4", data, "video/mp4")
"""

import asyncio
import threading

import httpx
from supabase import Client, create_client
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from adkit.config import get_supabase_settings
from adkit.utils.logging import get_logger

log = get_logger(__name__)

AUDIO_BUCKET = "campaign-audio"
VIDEO_BUCKET = "campaign-videos"

# Provider videos can be large; generous read timeout
DOWNLOAD_TIMEOUT = httpx.Timeout(120.0, connect=10.0)


class SupabaseStorageClient:
    """Thin async wrapper around the Supabase Storage API.

    Attributes:
        http: Async HTTP client used to download provider-hosted media
    """

    def __init__(self, client: Client | None = None) -> None:
        self._client = client
        self._client_lock = threading.Lock()
        self.http = httpx.AsyncClient(timeout=DOWNLOAD_TIMEOUT, follow_redirects=True)

    def _get_client(self) -> Client:
        with self._client_lock:
            if self._client is None:
                url, key = get_supabase_settings()
                self._client = create_client(url, key)
            return self._client

    async def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        """Upload bytes to a bucket, overwriting any existing object.

        Args:
            bucket: Storage bucket name
            path: Object key inside the bucket
            data: File contents
            content_type: MIME type stored with the object

        Returns:
            The object key (``path``).
        """
        client = self._get_client()
        await asyncio.to_thread(
            client.storage.from_(bucket).upload,
            path,
            data,
            {"content-type": content_type, "upsert": "true"},
        )
        log.info("storage_object_uploaded", bucket=bucket, path=path, size_bytes=len(data))
        return path

    @retry(
        retry=retry_if_exception_type((httpx.TransportError, httpx.HTTPStatusError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        reraise=True,
    )
    async def download(self, url: str) -> bytes:
        """Download a provider-hosted file.

        Raises:
            httpx.HTTPStatusError: If the provider keeps returning an error status
            httpx.TransportError: If the connection keeps failing
        """
        response = await self.http.get(url)
        response.raise_for_status()
        return response.content

    def public_url(self, bucket: str, path: str) -> str:
        return self._get_client().storage.from_(bucket).get_public_url(path)

    async def close(self) -> None:
        """Close HTTP client connection."""
        await self.http.aclose()
