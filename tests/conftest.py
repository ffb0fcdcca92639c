"""Shared pytest fixtures for pipeline and persistence testing.

Provides a controllable clock, fake generation providers, recording
progress sinks, and an in-memory SQLite database.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from adkit.clients.types import ProviderOutput
from adkit.constants import ELEVENLABS, HEYGEN, KLING, RUNWAY
from adkit.database import create_test_engine
from adkit.models import Base
from adkit.schemas.pipeline import CampaignBrief
from adkit.services.provider_health import ProviderHealthTracker
from adkit.services.video_pipeline import ImageAsset, VideoPipelineOrchestrator


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self) -> None:
        self.now = datetime(2026, 1, 15, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeProvider:
    """Generation provider double.

    Raises queued ``errors`` one per call, then ``always_fail`` if set,
    otherwise returns a successful output.
    """

    def __init__(self, provider_id: str, audio: bool = False) -> None:
        self.provider_id = provider_id
        self.audio = audio
        self.calls: list[Any] = []
        self.errors: list[BaseException] = []
        self.always_fail: BaseException | None = None
        self.delay = 0.0
        self.closed = False

    async def generate(self, request: Any) -> ProviderOutput:
        self.calls.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.errors:
            raise self.errors.pop(0)
        if self.always_fail is not None:
            raise self.always_fail
        if self.audio:
            return ProviderOutput(
                self.provider_id, content=b"ID3-fake-mp3", mime_type="audio/mpeg", duration_seconds=4.0
            )
        return ProviderOutput(
            self.provider_id,
            url=f"https://cdn.example.com/{self.provider_id}/{len(self.calls)}.mp4",
            mime_type="video/mp4",
            duration_seconds=10.0,
            job_id=f"job-{len(self.calls)}",
        )

    async def close(self) -> None:
        self.closed = True


class RecordingSink:
    """Progress sink that remembers every update in order."""

    def __init__(self) -> None:
        self.updates: list[tuple[str, dict[str, Any]]] = []

    async def update(self, campaign_id: str, update: dict[str, Any]) -> None:
        self.updates.append((campaign_id, dict(update)))

    def merged(self, campaign_id: str) -> dict[str, Any]:
        state: dict[str, Any] = {}
        for cid, update in self.updates:
            if cid == campaign_id:
                state.update(update)
        return state


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tracker(clock) -> ProviderHealthTracker:
    return ProviderHealthTracker(clock=clock)


@pytest.fixture
def providers() -> dict[str, FakeProvider]:
    return {
        ELEVENLABS: FakeProvider(ELEVENLABS, audio=True),
        KLING: FakeProvider(KLING),
        RUNWAY: FakeProvider(RUNWAY),
        HEYGEN: FakeProvider(HEYGEN),
    }


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def alert() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def orchestrator(tracker, providers, sink, alert) -> VideoPipelineOrchestrator:
    return VideoPipelineOrchestrator(tracker, providers, progress_sink=sink, alert=alert)


@pytest.fixture
def brief() -> CampaignBrief:
    return CampaignBrief(
        objective="新商品のプロテインバーを20代に認知させる",
        copy_text="毎日のタンパク質を、もっとおいしく。",
        platforms=["tiktok"],
        creative_direction="明るいキッチンで朝食シーン",
    )


@pytest.fixture
def images() -> list[ImageAsset]:
    return [ImageAsset(url="https://cdn.example.com/images/hero.png", aspect_ratio="16:9")]


@pytest.fixture(autouse=True)
def no_discord(monkeypatch):
    """Keep tests from posting real Discord alerts."""
    monkeypatch.delenv("DISCORD_WEBHOOK_URL", raising=False)


@pytest_asyncio.fixture
async def session_factory():
    """In-memory SQLite session factory with all tables created.

    Yields:
        async_sessionmaker bound to a fresh database.
    """
    engine, factory = create_test_engine()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield factory

    await engine.dispose()
