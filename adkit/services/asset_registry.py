"""Asset registration: copy generated media into storage and record it.

Provider URLs expire (fal.ai, Runway and HeyGen links last hours to days),
so every successful pipeline output is copied into Supabase Storage and a
campaign_assets row is written for the dashboard.

Storage keys are deterministic per campaign and step variant:

    {campaign_id}/voiceover.mp3            (campaign-audio)
    {campaign_id}/video-ad-9x16.mp4        (campaign-videos)
    {campaign_id}/video-cinematic.mp4      (campaign-videos)
    {campaign_id}/video-avatar.mp4         (campaign-videos)

Uploads upsert and rows are matched on (campaign_id, storage_key), so a
re-run overwrites the previous media instead of duplicating it.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from adkit.clients.supabase_storage import AUDIO_BUCKET, VIDEO_BUCKET, SupabaseStorageClient
from adkit.constants import AVATAR_DIMENSION
from adkit.models import CampaignAsset
from adkit.services.video_pipeline import GeneratedAsset
from adkit.utils.logging import get_logger

log = get_logger(__name__)

# Output pixel sizes per Kling aspect ratio
VIDEO_DIMENSIONS: dict[str, tuple[int, int]] = {
    "16:9": (1920, 1080),
    "9:16": (1080, 1920),
    "1:1": (1080, 1080),
}


def storage_location(campaign_id: str, asset: GeneratedAsset) -> tuple[str, str]:
    """Compute the (bucket, key) for an asset.

    Example:
        >>> storage_location("c1", GeneratedAsset(..., video_type="ad", aspect_ratio="9:16"))
        ('campaign-videos', 'c1/video-ad-9x16.mp4')
    """
    if asset.kind == "audio":
        return AUDIO_BUCKET, f"{campaign_id}/voiceover.mp3"

    name = f"video-{asset.video_type or 'clip'}"
    if asset.video_type == "ad" and asset.aspect_ratio:
        name += "-" + asset.aspect_ratio.replace(":", "x")
    return VIDEO_BUCKET, f"{campaign_id}/{name}.mp4"


def _dimensions(asset: GeneratedAsset) -> tuple[int | None, int | None]:
    if asset.kind == "audio":
        return None, None
    if asset.video_type == "avatar":
        return AVATAR_DIMENSION
    return VIDEO_DIMENSIONS.get(asset.aspect_ratio or "", (None, None))


class StorageAssetRegistry:
    """Stores generated media in Supabase and records campaign_assets rows."""

    def __init__(
        self,
        storage: SupabaseStorageClient,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ):
        """Initialize registry.

        Args:
            storage: Supabase storage client
            session_factory: Database sessions; when None only storage is written
        """
        self.storage = storage
        self.session_factory = session_factory

    async def register(self, campaign_id: str, asset: GeneratedAsset) -> str:
        """Upload an asset and upsert its database row.

        Args:
            campaign_id: Owning campaign
            asset: Successful pipeline output (bytes or provider URL)

        Returns:
            Storage key of the uploaded object.

        Raises:
            ValueError: If the asset has neither content nor URL
            httpx.HTTPError: If the provider URL cannot be downloaded
        """
        bucket, key = storage_location(campaign_id, asset)

        if asset.content is not None:
            data = asset.content
        elif asset.url:
            data = await self.storage.download(asset.url)
        else:
            raise ValueError(f"{asset.stage.value} asset from {asset.provider} has no content or URL")

        await self.storage.upload(bucket, key, data, asset.mime_type)

        if self.session_factory is not None:
            await self._upsert_row(campaign_id, bucket, key, asset)

        log.info(
            "asset_registered",
            campaign_id=campaign_id,
            bucket=bucket,
            storage_key=key,
            provider=asset.provider,
            size_bytes=len(data),
        )
        return key

    async def _upsert_row(
        self, campaign_id: str, bucket: str, key: str, asset: GeneratedAsset
    ) -> None:
        width, height = _dimensions(asset)
        metadata = {
            "step": asset.stage.value,
            "videoType": asset.video_type,
            "aspectRatio": asset.aspect_ratio,
            "sourceUrl": asset.url,
        }

        async with self.session_factory() as session:
            async with session.begin():
                row = (
                    await session.execute(
                        select(CampaignAsset).where(
                            CampaignAsset.campaign_id == campaign_id,
                            CampaignAsset.storage_key == key,
                        )
                    )
                ).scalar_one_or_none()

                if row is None:
                    row = CampaignAsset(campaign_id=campaign_id, storage_key=key)
                    session.add(row)

                row.asset_type = asset.kind
                row.bucket = bucket
                row.file_name = key.rsplit("/", 1)[-1]
                row.mime_type = asset.mime_type
                row.width = width
                row.height = height
                row.duration_seconds = asset.duration_seconds
                row.provider = asset.provider
                row.asset_metadata = metadata
