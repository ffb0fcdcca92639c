"""Tests for SupabaseStorageClient."""

from unittest.mock import AsyncMock, MagicMock, Mock, patch

import httpx
import pytest

from adkit.clients.supabase_storage import VIDEO_BUCKET, SupabaseStorageClient


@pytest.fixture
def supabase():
    return MagicMock()


@pytest.fixture
def storage(supabase):
    return SupabaseStorageClient(client=supabase)


class TestUpload:
    @pytest.mark.asyncio
    async def test_upload_upserts(self, storage, supabase):
        key = await storage.upload(VIDEO_BUCKET, "c1/video-cinematic.mp4", b"mp4", "video/mp4")

        assert key == "c1/video-cinematic.mp4"
        supabase.storage.from_.assert_called_once_with(VIDEO_BUCKET)
        supabase.storage.from_.return_value.upload.assert_called_once_with(
            "c1/video-cinematic.mp4",
            b"mp4",
            {"content-type": "video/mp4", "upsert": "true"},
        )

    def test_public_url(self, storage, supabase):
        supabase.storage.from_.return_value.get_public_url.return_value = "https://s.example/x.mp4"

        assert storage.public_url(VIDEO_BUCKET, "x.mp4") == "https://s.example/x.mp4"

    def test_client_created_lazily_from_settings(self, monkeypatch):
        monkeypatch.setattr(
            "adkit.clients.supabase_storage.get_supabase_settings",
            lambda: ("https://proj.supabase.co", "service-key"),
        )
        with patch("adkit.clients.supabase_storage.create_client") as mock_create:
            storage = SupabaseStorageClient()
            mock_create.assert_not_called()

            storage.public_url(VIDEO_BUCKET, "a.mp4")
            storage.public_url(VIDEO_BUCKET, "b.mp4")

        mock_create.assert_called_once_with("https://proj.supabase.co", "service-key")


class TestDownload:
    @pytest.mark.asyncio
    async def test_download_returns_bytes(self, storage):
        with patch.object(storage.http, "get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = Mock(content=b"video", raise_for_status=Mock())

            data = await storage.download("https://fal.media/out.mp4")

        assert data == b"video"

    @pytest.mark.asyncio
    async def test_download_retries_transient_errors(self, storage):
        with (
            patch.object(storage.http, "get", new_callable=AsyncMock) as mock_get,
            patch("asyncio.sleep", new_callable=AsyncMock),
        ):
            mock_get.side_effect = [
                httpx.ConnectError("reset"),
                Mock(content=b"video", raise_for_status=Mock()),
            ]

            data = await storage.download("https://fal.media/out.mp4")

        assert data == b"video"
        assert mock_get.await_count == 2

    @pytest.mark.asyncio
    async def test_download_gives_up_after_three_attempts(self, storage):
        with (
            patch.object(storage.http, "get", new_callable=AsyncMock) as mock_get,
            patch("asyncio.sleep", new_callable=AsyncMock),
        ):
            mock_get.side_effect = httpx.ConnectError("reset")

            with pytest.raises(httpx.ConnectError):
                await storage.download("https://fal.media/out.mp4")

        assert mock_get.await_count == 3

    @pytest.mark.asyncio
    async def test_close(self, storage):
        with patch.object(storage.http, "aclose", new_callable=AsyncMock) as mock_close:
            await storage.close()
            mock_close.assert_called_once()
