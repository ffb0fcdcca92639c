"""FastAPI application for the campaign media pipeline.

This is the web service entry point. The lifespan hook is the composition
root: it builds the shared provider health tracker, the provider clients,
the progress sink and asset registry, and the pipeline orchestrator, and
closes every HTTP client on shutdown.

Run locally:
    uvicorn adkit.main:app --reload
"""

from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator

import structlog
from fastapi import FastAPI, status
from fastapi.responses import JSONResponse

from adkit import database
from adkit.clients.elevenlabs import ElevenLabsClient
from adkit.clients.heygen import HeyGenClient
from adkit.clients.kling import KlingClient
from adkit.clients.runway import RunwayClient
from adkit.clients.supabase_storage import SupabaseStorageClient
from adkit.config import get_cooldown_seconds, get_failure_threshold, get_fallbacks_enabled
from adkit.constants import FALLBACK_MAP
from adkit.routes import internal
from adkit.services.asset_registry import StorageAssetRegistry
from adkit.services.progress import DatabaseProgressSink, LoggingProgressSink
from adkit.services.provider_health import ProviderHealthTracker
from adkit.services.video_pipeline import VideoPipelineOrchestrator
from adkit.utils.logging import configure_logging

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build pipeline collaborators at startup and close them at shutdown.

    Startup:
    - Create the process-wide ProviderHealthTracker
    - Create provider clients (secrets are read lazily on first call)
    - Use the database progress sink when DATABASE_URL is set

    Shutdown:
    - Close provider and storage HTTP clients
    """
    configure_logging()

    tracker = ProviderHealthTracker(
        failure_threshold=get_failure_threshold(),
        cooldown=timedelta(seconds=get_cooldown_seconds()),
    )
    providers = {
        client.provider_id: client
        for client in (ElevenLabsClient(), KlingClient(), RunwayClient(), HeyGenClient())
    }
    storage = SupabaseStorageClient()

    session_factory = database.async_session_factory
    if session_factory is not None:
        progress_sink = DatabaseProgressSink(session_factory)
    else:
        log.warning(
            "progress_persistence_disabled",
            message="DATABASE_URL not set, progress will only be logged",
        )
        progress_sink = LoggingProgressSink()

    app.state.tracker = tracker
    app.state.orchestrator = VideoPipelineOrchestrator(
        tracker,
        providers,
        progress_sink=progress_sink,
        asset_registry=StorageAssetRegistry(storage, session_factory),
        fallbacks=FALLBACK_MAP if get_fallbacks_enabled() else None,
    )
    log.info(
        "video_pipeline_ready",
        providers=sorted(providers),
        failure_threshold=tracker.failure_threshold,
        cooldown_seconds=tracker.cooldown.total_seconds(),
    )

    yield  # Application runs here

    for client in providers.values():
        await client.close()
    await storage.close()
    log.info("video_pipeline_shutdown")


app = FastAPI(
    title="adkit - Campaign Media Pipeline",
    description="Voiceover, video ad, cinematic and avatar generation for ad campaigns",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(internal.router)


@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> JSONResponse:
    """Liveness check for deployment validation.

    Returns:
        JSONResponse: Service status
    """
    return JSONResponse(content={"status": "healthy", "service": "adkit"})
