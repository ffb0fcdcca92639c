"""Internal routes called by the workflow runner and operators.

This module provides FastAPI routes that are not exposed to dashboard users:
- POST /api/internal/video-pipeline - Run the media pipeline for a campaign
- GET  /api/internal/provider-health - Circuit state of every known provider
- GET  /api/internal/provider-health/{provider_id} - Circuit state of one provider

Pattern (video-pipeline):
- Verify HMAC signature over the raw body (fast, no DB)
- Parse payload (fast, validation)
- Await the pipeline run and return its summary
"""

import hashlib
import hmac
import time

import structlog
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from adkit.config import get_pipeline_webhook_secret
from adkit.constants import VIDEO_PROVIDERS
from adkit.exceptions import InvalidPipelineInputError
from adkit.schemas.pipeline import VideoPipelineRequest
from adkit.services.provider_health import ProviderHealth, ProviderHealthTracker
from adkit.services.video_pipeline import ImageAsset, VideoPipelineOrchestrator

log = structlog.get_logger()
router = APIRouter(prefix="/api/internal", tags=["internal"])

SIGNATURE_HEADER = "X-Signature"


def verify_pipeline_signature(body: bytes, signature: str, secret: str) -> bool:
    """Verify the workflow runner's HMAC-SHA256 signature.

    Args:
        body: Raw request body (bytes, not parsed JSON)
        signature: Hex digest from the X-Signature header
        secret: Shared secret from PIPELINE_WEBHOOK_SECRET

    Returns:
        True if signature is valid, False otherwise (always False when no
        secret is configured)
    """
    if not secret:
        log.error("pipeline_webhook_secret_not_configured")
        return False

    computed = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(computed, signature or "")


def _health_to_dict(health: ProviderHealth, tracker: ProviderHealthTracker) -> dict[str, object]:
    return {
        "providerId": health.provider_id,
        "state": tracker.circuit_state(health.provider_id).value,
        "consecutiveFailures": health.consecutive_failures,
        "lastFailureTime": (
            health.last_failure_time.isoformat() if health.last_failure_time else None
        ),
        "circuitOpen": health.circuit_open,
    }


@router.post("/video-pipeline")
async def run_video_pipeline(request: Request) -> JSONResponse:
    """Run the video/audio pipeline for one campaign.

    Returns:
        200 OK: Pipeline ran (status may still be partial or failed)
        401 Unauthorized: Missing or invalid signature
        400 Bad Request: Invalid payload format
        422 Unprocessable Entity: Payload parsed but pipeline input is unusable
        500 Internal Server Error: Unexpected failure
    """
    start_time = time.time()

    signature = request.headers.get(SIGNATURE_HEADER, "")
    body = await request.body()

    if not verify_pipeline_signature(body, signature, get_pipeline_webhook_secret()):
        log.warning(
            "pipeline_request_unauthorized",
            signature=signature[:8] + "..." if signature else None,
        )
        raise HTTPException(status_code=401, detail="Invalid signature")

    try:
        payload = VideoPipelineRequest.model_validate_json(body)
    except ValidationError as e:
        log.warning("pipeline_request_invalid_payload", error=str(e), body=body.decode()[:200])
        raise HTTPException(status_code=400, detail="Invalid payload format") from e

    orchestrator: VideoPipelineOrchestrator = request.app.state.orchestrator
    images = [ImageAsset(url=url) for url in payload.composited_image_urls]

    try:
        result = await orchestrator.run(
            payload.campaign_id, payload.brief, images, payload.enabled_steps
        )
    except InvalidPipelineInputError as e:
        log.warning("pipeline_request_rejected", campaign_id=payload.campaign_id, error=str(e))
        raise HTTPException(status_code=422, detail=str(e)) from e
    except Exception as e:
        log.exception("pipeline_request_failed", campaign_id=payload.campaign_id, error=str(e))
        raise HTTPException(status_code=500, detail="Video pipeline failed") from e

    log.info(
        "pipeline_request_completed",
        campaign_id=payload.campaign_id,
        status=result.status.value,
        elapsed_ms=(time.time() - start_time) * 1000,
    )
    return JSONResponse(status_code=200, content=result.to_dict())


@router.get("/provider-health")
async def list_provider_health(request: Request) -> JSONResponse:
    """Circuit state of every catalogued provider plus any other tracked ID."""
    tracker: ProviderHealthTracker = request.app.state.tracker
    tracked = tracker.snapshot()
    provider_ids = list(VIDEO_PROVIDERS) + [p for p in tracked if p not in VIDEO_PROVIDERS]
    return JSONResponse(
        content={
            "providers": [
                _health_to_dict(tracked.get(p) or ProviderHealth(provider_id=p), tracker)
                for p in provider_ids
            ]
        }
    )


@router.get("/provider-health/{provider_id}")
async def get_provider_health(provider_id: str, request: Request) -> JSONResponse:
    """Circuit state of one provider.

    Returns:
        200 OK: Health snapshot
        404 Not Found: Provider is neither catalogued nor tracked
    """
    tracker: ProviderHealthTracker = request.app.state.tracker
    if provider_id not in VIDEO_PROVIDERS and provider_id not in tracker.snapshot():
        raise HTTPException(status_code=404, detail=f"Unknown provider: {provider_id}")
    return JSONResponse(content=_health_to_dict(tracker.get_health(provider_id), tracker))
