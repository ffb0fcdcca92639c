"""Campaign progress persistence for pipeline runs.

The dashboard polls campaigns.progress to show per-step status while the
pipeline runs. Each update is a partial merge: keys present in the update
overwrite stored keys, everything else is preserved.

Architecture Pattern: "Short Transaction"
    Each update opens its own session, locks the campaign row, merges, and
    commits. No transaction is held across provider calls.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from adkit.models import Campaign
from adkit.utils.logging import get_logger

log = get_logger(__name__)


class DatabaseProgressSink:
    """Merges progress updates into campaigns.progress."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def update(self, campaign_id: str, update: dict[str, Any]) -> None:
        """Merge a partial progress update into the campaign row.

        Args:
            campaign_id: Campaign UUID
            update: Keys to set, e.g. {"videoStatus": "generating"}

        Raises:
            sqlalchemy.exc.SQLAlchemyError: On database errors (the
                orchestrator logs and continues)
        """
        async with self.session_factory() as session:
            async with session.begin():
                campaign = await session.get(Campaign, campaign_id, with_for_update=True)
                if campaign is None:
                    log.warning("progress_campaign_not_found", campaign_id=campaign_id)
                    return
                # Assign a new dict so the JSON column is flagged dirty
                campaign.progress = {**(campaign.progress or {}), **update}

        log.debug("campaign_progress_updated", campaign_id=campaign_id, keys=sorted(update))


class LoggingProgressSink:
    """Progress sink used when no database is configured."""

    async def update(self, campaign_id: str, update: dict[str, Any]) -> None:
        log.info("campaign_progress", campaign_id=campaign_id, **update)
