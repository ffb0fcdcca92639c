"""Tests for StorageAssetRegistry.

Tests cover:
- Deterministic bucket/key per asset
- Audio bytes uploaded directly, video URLs downloaded first
- campaign_assets row upsert (re-runs do not duplicate)
"""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from adkit.clients.supabase_storage import AUDIO_BUCKET, VIDEO_BUCKET, SupabaseStorageClient
from adkit.models import Campaign, CampaignAsset
from adkit.services.asset_registry import StorageAssetRegistry, storage_location
from adkit.services.video_pipeline import GeneratedAsset, PipelineStage

CAMPAIGN_ID = "3e4f5a6b-7c8d-4e9f-a0b1-c2d3e4f5a6b7"


def voiceover_asset() -> GeneratedAsset:
    return GeneratedAsset(
        PipelineStage.VOICEOVER,
        "elevenlabs",
        "audio",
        "audio/mpeg",
        content=b"ID3-audio",
        duration_seconds=5.0,
    )


def video_ad_asset(provider: str = "kling") -> GeneratedAsset:
    return GeneratedAsset(
        PipelineStage.VIDEO_AD,
        provider,
        "video",
        "video/mp4",
        url=f"https://cdn.example.com/{provider}/clip.mp4",
        duration_seconds=10.0,
        aspect_ratio="9:16",
        video_type="ad",
    )


@pytest.fixture
def storage():
    storage = AsyncMock(spec=SupabaseStorageClient)
    storage.download.return_value = b"mp4-bytes"
    storage.upload.side_effect = lambda bucket, path, data, content_type: path
    return storage


@pytest_asyncio.fixture
async def campaign(session_factory):
    async with session_factory() as session:
        async with session.begin():
            session.add(Campaign(id=CAMPAIGN_ID, name="夏のキャンペーン"))
    return CAMPAIGN_ID


class TestStorageLocation:
    def test_voiceover(self):
        assert storage_location("c1", voiceover_asset()) == (AUDIO_BUCKET, "c1/voiceover.mp3")

    def test_video_ad_includes_ratio(self):
        assert storage_location("c1", video_ad_asset()) == (VIDEO_BUCKET, "c1/video-ad-9x16.mp4")

    def test_key_independent_of_provider(self):
        assert storage_location("c1", video_ad_asset("kling")) == storage_location(
            "c1", video_ad_asset("runway")
        )

    def test_avatar(self):
        asset = GeneratedAsset(
            PipelineStage.AVATAR, "heygen", "video", "video/mp4", url="https://x", video_type="avatar"
        )
        assert storage_location("c1", asset) == (VIDEO_BUCKET, "c1/video-avatar.mp4")


class TestRegister:
    @pytest.mark.asyncio
    async def test_audio_uploaded_without_download(self, storage):
        registry = StorageAssetRegistry(storage)

        key = await registry.register("c1", voiceover_asset())

        assert key == "c1/voiceover.mp3"
        storage.download.assert_not_awaited()
        storage.upload.assert_awaited_once_with(
            AUDIO_BUCKET, "c1/voiceover.mp3", b"ID3-audio", "audio/mpeg"
        )

    @pytest.mark.asyncio
    async def test_video_downloaded_then_uploaded(self, storage):
        registry = StorageAssetRegistry(storage)

        await registry.register("c1", video_ad_asset())

        storage.download.assert_awaited_once_with("https://cdn.example.com/kling/clip.mp4")
        storage.upload.assert_awaited_once_with(
            VIDEO_BUCKET, "c1/video-ad-9x16.mp4", b"mp4-bytes", "video/mp4"
        )

    @pytest.mark.asyncio
    async def test_asset_without_content_or_url(self, storage):
        registry = StorageAssetRegistry(storage)
        asset = GeneratedAsset(PipelineStage.CINEMATIC, "runway", "video", "video/mp4")

        with pytest.raises(ValueError, match="no content or URL"):
            await registry.register("c1", asset)

        storage.upload.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_row_written(self, storage, session_factory, campaign):
        registry = StorageAssetRegistry(storage, session_factory)

        await registry.register(campaign, video_ad_asset())

        async with session_factory() as session:
            row = (await session.execute(select(CampaignAsset))).scalar_one()
        assert row.campaign_id == campaign
        assert row.storage_key == f"{campaign}/video-ad-9x16.mp4"
        assert row.bucket == VIDEO_BUCKET
        assert row.file_name == "video-ad-9x16.mp4"
        assert (row.width, row.height) == (1080, 1920)
        assert row.provider == "kling"
        assert row.asset_metadata["aspectRatio"] == "9:16"

    @pytest.mark.asyncio
    async def test_rerun_updates_existing_row(self, storage, session_factory, campaign):
        registry = StorageAssetRegistry(storage, session_factory)

        await registry.register(campaign, video_ad_asset("kling"))
        await registry.register(campaign, video_ad_asset("runway"))

        async with session_factory() as session:
            count = (await session.execute(select(func.count()).select_from(CampaignAsset))).scalar_one()
            row = (await session.execute(select(CampaignAsset))).scalar_one()
        assert count == 1
        assert row.provider == "runway"
