"""SQLAlchemy 2.0 ORM models.

The dashboard owns the full campaign schema; this module maps only the two
tables the media pipeline writes:

- campaigns: the progress JSON column (partial merges from pipeline runs)
- campaign_assets: one row per stored audio/video object

All models use the Mapped[type] annotation pattern required by SQLAlchemy 2.0.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Index, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Get current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class Campaign(Base):
    """Campaign row as seen by the media pipeline.

    Attributes:
        id: Campaign UUID (string form).
        name: Campaign display name.
        progress: Dashboard progress JSON, e.g.
            {"voiceoverStatus": "complete", "currentStep": "...", "percentComplete": 50}
        updated_at: Timestamp of last change.
    """

    __tablename__ = "campaigns"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    progress: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    def __repr__(self) -> str:
        return f"<Campaign(id={self.id!r}, name={self.name!r})>"


class CampaignAsset(Base):
    """Stored media object produced by a pipeline step.

    Rows are keyed by (campaign_id, storage_key): storage keys are
    deterministic per campaign and step variant, so re-running a campaign
    updates existing rows instead of adding duplicates.

    Attributes:
        id: Internal UUID primary key.
        campaign_id: Owning campaign.
        asset_type: "audio" or "video".
        storage_key: Object key in Supabase Storage.
        bucket: Storage bucket name.
        file_name: Display file name.
        mime_type: MIME type of the object.
        width / height: Pixel size for videos, when known.
        duration_seconds: Media duration (estimated for MP3).
        provider: Provider that generated the asset.
        asset_metadata: Extra details (video type, aspect ratio, fallback use).
    """

    __tablename__ = "campaign_assets"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    campaign_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("campaigns.id", ondelete="CASCADE"),
        nullable=False,
    )
    asset_type: Mapped[str] = mapped_column(String(20), nullable=False)
    storage_key: Mapped[str] = mapped_column(String(500), nullable=False)
    bucket: Mapped[str] = mapped_column(String(100), nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    width: Mapped[int | None] = mapped_column(Integer, nullable=True)
    height: Mapped[int | None] = mapped_column(Integer, nullable=True)
    duration_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)
    provider: Mapped[str] = mapped_column(String(50), nullable=False)
    # "metadata" is reserved on declarative classes
    asset_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSON, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    __table_args__ = (
        Index("ix_campaign_assets_campaign_id_storage_key", "campaign_id", "storage_key", unique=True),
    )

    def __repr__(self) -> str:
        return (
            f"<CampaignAsset(campaign_id={self.campaign_id!r}, "
            f"asset_type={self.asset_type!r}, storage_key={self.storage_key!r})>"
        )
