"""Video/audio pipeline orchestrator for one campaign.

Runs the media generation steps for a campaign in a fixed order and turns
every step into a tagged outcome. A failing step never aborts the steps
after it: the campaign gets whatever media could be produced, plus a list
of what went wrong.

Step Order:
    1. VOICEOVER: Japanese narration via ElevenLabs (needs copy text)
    2. VIDEO_AD: One Kling clip per platform aspect ratio (needs an image)
    3. CINEMATIC: Runway hero clip, 16:9 (needs an image)
    4. AVATAR: HeyGen presenter reading the copy (needs copy text)

Per work item:
    - Input asset missing        -> DEPENDENCY_MISSING (no provider consulted)
    - Circuit open (and no usable fallback) -> CIRCUIT_OPEN (no call made)
    - Provider call succeeds     -> SUCCESS, tracker success, asset registered
    - Provider call fails/times out -> FAILED, tracker failure
    Kling and Runway back each other up when fallback routing is configured;
    a failed primary still counts against its own circuit.

Architecture Pattern: "Outcomes, not exceptions"
    - Provider clients raise; the orchestrator catches at the step boundary
    - Progress is pushed to a sink after each step; sink failures are logged
    - Cancellation records the in-flight step as failed, then propagates

Usage:
    from adkit.services.video_pipeline import VideoPipelineOrchestrator

    orchestrator = VideoPipelineOrchestrator(tracker, providers, progress_sink=sink)
    result = await orchestrator.run(campaign_id, brief, images, EnabledSteps())
    print(result.status)  # AggregateStatus.PARTIAL
"""

import asyncio
import time
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol

from pydantic import ValidationError

from adkit.clients.types import (
    AvatarRequest,
    GenerationProvider,
    ProviderOutput,
    VideoRequest,
    VoiceoverRequest,
)
from adkit.config import get_step_timeout
from adkit.constants import (
    AVATAR_DIMENSION,
    DEFAULT_VIDEO_DURATION_SECONDS,
    ELEVENLABS,
    HEYGEN,
    KLING,
    LABEL_PIPELINE_COMPLETE,
    LABEL_PIPELINE_FAILED,
    LABEL_PIPELINE_PARTIAL,
    PLATFORM_ASPECT_RATIOS,
    RUNWAY,
    STATUS_COMPLETE,
    STATUS_FAILED,
    STATUS_GENERATING,
    STATUS_SKIPPED,
    STEP_LABELS,
)
from adkit.exceptions import InvalidPipelineInputError, ProviderTimeoutError
from adkit.schemas.pipeline import CampaignBrief, EnabledSteps
from adkit.services.provider_health import ProviderHealthTracker
from adkit.utils.alerts import send_circuit_open_alert
from adkit.utils.logging import get_logger


def utcnow() -> datetime:
    """Get current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


class PipelineStage(Enum):
    """Pipeline stages in execution order."""

    VOICEOVER = "voiceover"
    VIDEO_AD = "video_ad"
    CINEMATIC = "cinematic"
    AVATAR = "avatar"


class OutcomeKind(Enum):
    """How a single work item of a stage ended."""

    SUCCESS = "success"
    CIRCUIT_OPEN = "circuit_open"
    DEPENDENCY_MISSING = "dependency_missing"
    FAILED = "failed"


class ErrorReason(Enum):
    """Reason codes attached to pipeline errors.

    DEPENDENCY_MISSING and CIRCUIT_OPEN never count against a provider's
    circuit; PROVIDER_FAILURE and PROVIDER_TIMEOUT always do.
    """

    DEPENDENCY_MISSING = "dependency_missing"
    CIRCUIT_OPEN = "circuit_open"
    PROVIDER_FAILURE = "provider_failure"
    PROVIDER_TIMEOUT = "provider_timeout"


class AggregateStatus(Enum):
    """Overall result of a pipeline run."""

    COMPLETE = "complete"  # Every attempted item succeeded
    PARTIAL = "partial"  # At least one success and one non-success
    FAILED = "failed"  # Nothing succeeded


@dataclass(frozen=True)
class StepDefinition:
    """Static description of one pipeline stage.

    Attributes:
        stage: Pipeline stage
        provider_id: Primary provider for the stage
        progress_field: Key in campaigns.progress holding the stage status
        asset_kind: "audio" or "video"
        video_type: Video role ("ad", "cinematic", "avatar"); None for audio
    """

    stage: PipelineStage
    provider_id: str
    progress_field: str
    asset_kind: str
    video_type: str | None = None


PIPELINE_STEPS: tuple[StepDefinition, ...] = (
    StepDefinition(PipelineStage.VOICEOVER, ELEVENLABS, "voiceoverStatus", "audio"),
    StepDefinition(PipelineStage.VIDEO_AD, KLING, "videoStatus", "video", "ad"),
    StepDefinition(PipelineStage.CINEMATIC, RUNWAY, "cinematicStatus", "video", "cinematic"),
    StepDefinition(PipelineStage.AVATAR, HEYGEN, "avatarStatus", "video", "avatar"),
)


@dataclass(frozen=True)
class ImageAsset:
    """Source image available to video steps.

    Attributes:
        url: Publicly reachable image URL
        aspect_ratio: Ratio the image was composited for ("9:16"), if known
    """

    url: str
    aspect_ratio: str | None = None


@dataclass
class GeneratedAsset:
    """Media produced by a successful step.

    Attributes:
        stage: Stage that produced the asset
        provider: Provider that produced it (may be a fallback)
        kind: "audio" or "video"
        mime_type: MIME type
        url: Provider-hosted URL (videos)
        content: In-memory bytes (voiceover audio)
        duration_seconds: Actual or estimated duration
        aspect_ratio: Video aspect ratio
        video_type: "ad", "cinematic" or "avatar"
        storage_key: Storage object key once registered
    """

    stage: PipelineStage
    provider: str
    kind: str
    mime_type: str
    url: str | None = None
    content: bytes | None = None
    duration_seconds: float = 0.0
    aspect_ratio: str | None = None
    video_type: str | None = None
    storage_key: str | None = None


@dataclass(frozen=True)
class PipelineError:
    """A non-success outcome, as reported back to the caller."""

    stage: PipelineStage
    provider: str
    reason: ErrorReason
    message: str
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, str]:
        return {
            "step": self.stage.value,
            "provider": self.provider,
            "reason": self.reason.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class StepOutcome:
    """Tagged outcome of one work item.

    Attributes:
        stage: Stage the work item belongs to
        kind: Outcome tag
        provider: Provider that was (or would have been) used
        asset: Produced asset (SUCCESS only)
        error: Error detail (non-success only)
        variant: Aspect ratio for video ads, else None
        fallback_used: True if a fallback provider produced the asset
        duration_seconds: Wall-clock time spent on the work item
    """

    stage: PipelineStage
    kind: OutcomeKind
    provider: str
    asset: GeneratedAsset | None = None
    error: PipelineError | None = None
    variant: str | None = None
    fallback_used: bool = False
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS


@dataclass
class PipelineResult:
    """Ordered outcomes and errors of one pipeline run."""

    campaign_id: str
    outcomes: list[StepOutcome] = field(default_factory=list)
    errors: list[PipelineError] = field(default_factory=list)

    @property
    def status(self) -> AggregateStatus:
        successes = sum(1 for outcome in self.outcomes if outcome.succeeded)
        if successes == 0:
            return AggregateStatus.FAILED
        if successes == len(self.outcomes):
            return AggregateStatus.COMPLETE
        return AggregateStatus.PARTIAL

    def outcomes_for(self, stage: PipelineStage) -> list[StepOutcome]:
        return [outcome for outcome in self.outcomes if outcome.stage is stage]

    def _assets(self, stage: PipelineStage) -> list[GeneratedAsset]:
        return [
            outcome.asset
            for outcome in self.outcomes_for(stage)
            if outcome.succeeded and outcome.asset is not None
        ]

    @property
    def voiceover(self) -> GeneratedAsset | None:
        assets = self._assets(PipelineStage.VOICEOVER)
        return assets[0] if assets else None

    @property
    def videos(self) -> list[GeneratedAsset]:
        """Video ads followed by the cinematic clip (avatar excluded)."""
        return self._assets(PipelineStage.VIDEO_AD) + self._assets(PipelineStage.CINEMATIC)

    @property
    def avatar_video(self) -> GeneratedAsset | None:
        assets = self._assets(PipelineStage.AVATAR)
        return assets[0] if assets else None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON summary returned by the internal API."""
        voiceover = self.voiceover
        avatar = self.avatar_video
        return {
            "campaignId": self.campaign_id,
            "status": self.status.value,
            "voiceover": (
                {"storageKey": voiceover.storage_key, "durationEstimate": voiceover.duration_seconds}
                if voiceover
                else None
            ),
            "videos": [
                {
                    "provider": video.provider,
                    "type": video.video_type,
                    "aspectRatio": video.aspect_ratio,
                    "storageKey": video.storage_key,
                }
                for video in self.videos
            ],
            "avatarVideo": (
                {"storageKey": avatar.storage_key, "provider": avatar.provider} if avatar else None
            ),
            "outcomes": [
                {
                    "step": outcome.stage.value,
                    "kind": outcome.kind.value,
                    "provider": outcome.provider,
                    "variant": outcome.variant,
                    "fallbackUsed": outcome.fallback_used,
                    "durationSeconds": round(outcome.duration_seconds, 2),
                }
                for outcome in self.outcomes
            ],
            "errors": [error.to_dict() for error in self.errors],
        }


class ProgressSink(Protocol):
    """Receives partial progress updates for a campaign."""

    async def update(self, campaign_id: str, update: dict[str, Any]) -> None: ...


class AssetRegistry(Protocol):
    """Persists a generated asset; returns its storage key."""

    async def register(self, campaign_id: str, asset: GeneratedAsset) -> str: ...


# Called with provider_id, consecutive_failures, cooldown and last_failure_time keywords
AlertSender = Callable[..., Awaitable[Any]]


@dataclass(frozen=True)
class _WorkItem:
    """One provider call to make (or skip) within a stage."""

    variant: str | None
    request: Any = None
    missing: str | None = None  # Set when the required input is absent


def _image_for_ratio(images: Sequence[ImageAsset], aspect_ratio: str) -> ImageAsset | None:
    for image in images:
        if image.aspect_ratio == aspect_ratio:
            return image
    return images[0] if images else None


def aspect_ratios_for_platforms(platforms: Sequence[str]) -> list[str]:
    """Distinct aspect ratios needed by the selected platforms, in first-seen order.

    Example:
        >>> aspect_ratios_for_platforms(["tiktok", "youtube", "instagram_story"])
        ['9:16', '16:9']
    """
    ratios: list[str] = []
    for platform in platforms:
        for ratio in PLATFORM_ASPECT_RATIOS.get(platform, []):
            if ratio not in ratios:
                ratios.append(ratio)
    return ratios


class VideoPipelineOrchestrator:
    """Runs the voiceover/video/cinematic/avatar pipeline for campaigns.

    The orchestrator holds no per-run state, so one instance serves
    concurrent runs for different campaigns. Runs share only the provider
    health tracker.

    Attributes:
        tracker: Shared provider health tracker
        providers: Provider ID -> generation client
        fallbacks: Provider ID -> fallback provider ID
        progress_sink: Optional progress receiver
        asset_registry: Optional asset persistence
        step_timeouts: Stage value -> per-call timeout in seconds
    """

    def __init__(
        self,
        tracker: ProviderHealthTracker,
        providers: Mapping[str, GenerationProvider],
        progress_sink: ProgressSink | None = None,
        asset_registry: AssetRegistry | None = None,
        fallbacks: Mapping[str, str] | None = None,
        step_timeouts: Mapping[str, float] | None = None,
        alert: AlertSender | None = send_circuit_open_alert,
    ):
        """Initialize orchestrator.

        Args:
            tracker: Provider health tracker shared across runs
            providers: Generation clients keyed by provider ID
            progress_sink: Receives progress updates (None disables progress)
            asset_registry: Stores produced media (None keeps provider URLs only)
            fallbacks: Fallback routing, e.g. FALLBACK_MAP (None disables)
            step_timeouts: Per-stage timeout overrides (config values otherwise)
            alert: Coroutine used to announce a newly opened circuit
                (failures are logged, never raised)
        """
        self.tracker = tracker
        self.providers = dict(providers)
        self.progress_sink = progress_sink
        self.asset_registry = asset_registry
        self.fallbacks = dict(fallbacks or {})
        self.step_timeouts = {
            definition.stage.value: get_step_timeout(definition.stage.value)
            for definition in PIPELINE_STEPS
        }
        self.step_timeouts.update(step_timeouts or {})
        self.alert = alert
        self.log = get_logger(__name__)

    async def run(
        self,
        campaign_id: str,
        brief: CampaignBrief | Mapping[str, Any],
        available_assets: Sequence[ImageAsset | str],
        enabled_steps: EnabledSteps | Mapping[str, Any] | None = None,
    ) -> PipelineResult:
        """Execute every enabled stage in order and collect the outcomes.

        Args:
            campaign_id: Campaign identifier (non-blank)
            brief: Campaign brief (model or dict in API shape)
            available_assets: Source images (ImageAsset or bare URLs)
            enabled_steps: Step switches (all enabled when None)

        Returns:
            PipelineResult with one or more outcomes per enabled stage.

        Raises:
            InvalidPipelineInputError: Before any step runs, if input is invalid
            asyncio.CancelledError: If the run is cancelled (in-flight step
                is recorded as failed first)
        """
        brief, steps = self._validate(campaign_id, brief, enabled_steps)
        images = [
            asset if isinstance(asset, ImageAsset) else ImageAsset(url=asset)
            for asset in available_assets
        ]
        log = self.log.bind(campaign_id=campaign_id)
        result = PipelineResult(campaign_id=campaign_id)

        enabled = [d for d in PIPELINE_STEPS if steps.is_enabled(d.stage.value)]
        log.info(
            "video_pipeline_started",
            steps=[d.stage.value for d in enabled],
            image_count=len(images),
        )
        started = time.monotonic()

        for index, definition in enumerate(enabled, start=1):
            await self._push_progress(
                campaign_id,
                {
                    definition.progress_field: STATUS_GENERATING,
                    "currentStep": STEP_LABELS[definition.stage.value],
                },
            )

            items = self._plan(definition, brief, images)
            outcomes: list[StepOutcome] = []
            for position, item in enumerate(items, start=1):
                try:
                    outcome = await self._execute(definition, item, campaign_id, result)
                except asyncio.CancelledError:
                    log.warning(
                        "video_pipeline_cancelled",
                        stage=definition.stage.value,
                        completed_outcomes=[
                            f"{o.stage.value}:{o.kind.value}" for o in result.outcomes
                        ],
                        errors=[error.to_dict() for error in result.errors],
                    )
                    raise
                outcomes.append(outcome)
                if len(items) > 1 and position < len(items):
                    await self._push_progress(
                        campaign_id,
                        {
                            "currentStep": (
                                f"{STEP_LABELS[definition.stage.value]} "
                                f"({position}/{len(items)})"
                            )
                        },
                    )

            await self._push_progress(
                campaign_id,
                {
                    definition.progress_field: _stage_status(outcomes),
                    "percentComplete": round(index * 100 / len(enabled)),
                },
            )

        status = result.status
        await self._push_progress(
            campaign_id,
            {
                "currentStep": {
                    AggregateStatus.COMPLETE: LABEL_PIPELINE_COMPLETE,
                    AggregateStatus.PARTIAL: LABEL_PIPELINE_PARTIAL,
                    AggregateStatus.FAILED: LABEL_PIPELINE_FAILED,
                }[status],
                "percentComplete": 100,
            },
        )

        log.info(
            "video_pipeline_finished",
            status=status.value,
            outcomes=len(result.outcomes),
            errors=len(result.errors),
            duration_seconds=round(time.monotonic() - started, 2),
        )
        return result

    def _validate(
        self,
        campaign_id: str,
        brief: CampaignBrief | Mapping[str, Any],
        enabled_steps: EnabledSteps | Mapping[str, Any] | None,
    ) -> tuple[CampaignBrief, EnabledSteps]:
        if not isinstance(campaign_id, str) or not campaign_id.strip():
            raise InvalidPipelineInputError("campaign_id must be a non-empty string")

        try:
            if not isinstance(brief, CampaignBrief):
                brief = CampaignBrief.model_validate(brief)
            if enabled_steps is None:
                enabled_steps = EnabledSteps()
            elif not isinstance(enabled_steps, EnabledSteps):
                enabled_steps = EnabledSteps.model_validate(enabled_steps)
        except ValidationError as e:
            raise InvalidPipelineInputError(f"invalid pipeline input: {e}") from e

        if not enabled_steps.any_enabled():
            raise InvalidPipelineInputError("at least one pipeline step must be enabled")
        return brief, enabled_steps

    def _plan(
        self,
        definition: StepDefinition,
        brief: CampaignBrief,
        images: Sequence[ImageAsset],
    ) -> list[_WorkItem]:
        """Build the work items for a stage from the brief and images."""
        stage = definition.stage

        if stage is PipelineStage.VOICEOVER:
            return [_WorkItem(None, VoiceoverRequest(text=brief.copy_text, voice_id=brief.voice_id))]

        if stage is PipelineStage.AVATAR:
            width, height = AVATAR_DIMENSION
            return [_WorkItem(None, AvatarRequest(script=brief.copy_text, width=width, height=height))]

        if stage is PipelineStage.CINEMATIC:
            if not images:
                return [_WorkItem("16:9", missing="no source image for cinematic video")]
            return [
                _WorkItem(
                    "16:9",
                    VideoRequest(
                        image_url=images[0].url,
                        prompt=brief.cinematic_prompt(),
                        aspect_ratio="16:9",
                        duration_seconds=DEFAULT_VIDEO_DURATION_SECONDS,
                    ),
                )
            ]

        ratios = aspect_ratios_for_platforms(brief.platforms)
        if not ratios:
            return [_WorkItem(None, missing="no video-capable platform selected")]

        items = []
        for ratio in ratios:
            image = _image_for_ratio(images, ratio)
            if image is None:
                items.append(_WorkItem(ratio, missing=f"no source image for {ratio} video ad"))
                continue
            items.append(
                _WorkItem(
                    ratio,
                    VideoRequest(
                        image_url=image.url,
                        prompt=brief.video_prompt(),
                        aspect_ratio=ratio,
                        duration_seconds=DEFAULT_VIDEO_DURATION_SECONDS,
                    ),
                )
            )
        return items

    def _provider_chain(self, provider_id: str) -> list[str]:
        chain = [provider_id]
        fallback = self.fallbacks.get(provider_id)
        if fallback and fallback != provider_id and fallback in self.providers:
            chain.append(fallback)
        return chain

    async def _execute(
        self,
        definition: StepDefinition,
        item: _WorkItem,
        campaign_id: str,
        result: PipelineResult,
    ) -> StepOutcome:
        """Run one work item and append its outcome (and error) to result."""
        stage = definition.stage
        log = self.log.bind(campaign_id=campaign_id, stage=stage.value, variant=item.variant)
        started = time.monotonic()

        if item.request is None:
            error = PipelineError(
                stage, definition.provider_id, ErrorReason.DEPENDENCY_MISSING, item.missing or ""
            )
            log.warning("pipeline_step_dependency_missing", reason=item.missing)
            return self._append(
                result,
                StepOutcome(
                    stage,
                    OutcomeKind.DEPENDENCY_MISSING,
                    definition.provider_id,
                    error=error,
                    variant=item.variant,
                ),
            )

        chain = self._provider_chain(definition.provider_id)
        failures: list[tuple[str, ErrorReason, str]] = []

        for position, provider_id in enumerate(chain):
            if not self.tracker.should_use(provider_id):
                log.warning("pipeline_step_circuit_open", provider_id=provider_id)
                continue

            try:
                output = await self._call(provider_id, stage, item.request)
            except asyncio.CancelledError:
                self.tracker.record_failure(provider_id)
                result.errors.append(
                    PipelineError(
                        stage, provider_id, ErrorReason.PROVIDER_FAILURE, "pipeline run cancelled"
                    )
                )
                log.warning("pipeline_step_cancelled", provider_id=provider_id)
                # The stage must not stay "generating" once the run is gone
                await asyncio.shield(
                    self._push_progress(
                        campaign_id,
                        {
                            definition.progress_field: STATUS_FAILED,
                            "currentStep": LABEL_PIPELINE_FAILED,
                        },
                    )
                )
                raise
            except Exception as e:
                reason = (
                    ErrorReason.PROVIDER_TIMEOUT
                    if isinstance(e, (TimeoutError, ProviderTimeoutError))
                    else ErrorReason.PROVIDER_FAILURE
                )
                message = str(e) or f"{provider_id} call timed out"
                failures.append((provider_id, reason, message))
                log.error(
                    "pipeline_step_provider_failed",
                    provider_id=provider_id,
                    reason=reason.value,
                    error=message,
                    error_type=type(e).__name__,
                )
                await self._record_failure(provider_id)
                continue

            self.tracker.record_success(provider_id)
            asset = GeneratedAsset(
                stage=stage,
                provider=provider_id,
                kind=definition.asset_kind,
                mime_type=output.mime_type,
                url=output.url,
                content=output.content,
                duration_seconds=output.duration_seconds,
                aspect_ratio=item.variant,
                video_type=definition.video_type,
            )
            await self._register(campaign_id, asset)

            outcome = StepOutcome(
                stage,
                OutcomeKind.SUCCESS,
                provider_id,
                asset=asset,
                variant=item.variant,
                fallback_used=position > 0,
                duration_seconds=time.monotonic() - started,
            )
            log.info(
                "pipeline_step_succeeded",
                provider_id=provider_id,
                fallback_used=outcome.fallback_used,
                duration_seconds=round(outcome.duration_seconds, 2),
            )
            result.outcomes.append(outcome)
            return outcome

        elapsed = time.monotonic() - started
        if not failures:
            error = PipelineError(
                stage,
                definition.provider_id,
                ErrorReason.CIRCUIT_OPEN,
                f"circuit open for {', '.join(chain)}",
            )
            kind = OutcomeKind.CIRCUIT_OPEN
        else:
            provider_id, reason, _ = failures[-1]
            error = PipelineError(
                stage,
                provider_id,
                reason,
                "; ".join(f"{p}: {m}" for p, _, m in failures),
            )
            kind = OutcomeKind.FAILED

        return self._append(
            result,
            StepOutcome(
                stage,
                kind,
                error.provider,
                error=error,
                variant=item.variant,
                duration_seconds=elapsed,
            ),
        )

    def _append(self, result: PipelineResult, outcome: StepOutcome) -> StepOutcome:
        result.outcomes.append(outcome)
        if outcome.error is not None:
            result.errors.append(outcome.error)
        return outcome

    async def _call(
        self, provider_id: str, stage: PipelineStage, request: Any
    ) -> ProviderOutput:
        provider = self.providers.get(provider_id)
        if provider is None:
            raise LookupError(f"no client configured for provider {provider_id}")
        return await asyncio.wait_for(
            provider.generate(request), timeout=self.step_timeouts[stage.value]
        )

    async def _record_failure(self, provider_id: str) -> None:
        health = self.tracker.record_failure(provider_id)
        just_opened = (
            health.circuit_open
            and health.consecutive_failures == self.tracker.failure_threshold
        )
        if not just_opened or self.alert is None:
            return
        try:
            await self.alert(
                provider_id=provider_id,
                consecutive_failures=health.consecutive_failures,
                cooldown=self.tracker.cooldown,
                last_failure_time=health.last_failure_time,
            )
        except Exception as e:
            self.log.error("circuit_alert_failed", provider_id=provider_id, error=str(e))

    async def _push_progress(self, campaign_id: str, update: dict[str, Any]) -> None:
        if self.progress_sink is None:
            return
        try:
            await self.progress_sink.update(campaign_id, update)
        except Exception as e:
            self.log.error(
                "progress_update_failed",
                campaign_id=campaign_id,
                update_keys=sorted(update),
                error=str(e),
            )

    async def _register(self, campaign_id: str, asset: GeneratedAsset) -> None:
        if self.asset_registry is None:
            return
        try:
            asset.storage_key = await self.asset_registry.register(campaign_id, asset)
        except Exception as e:
            self.log.error(
                "asset_registration_failed",
                campaign_id=campaign_id,
                stage=asset.stage.value,
                provider_id=asset.provider,
                error=str(e),
            )


def _stage_status(outcomes: Sequence[StepOutcome]) -> str:
    """Collapse a stage's outcomes into its dashboard progress status."""
    if any(outcome.succeeded for outcome in outcomes):
        return STATUS_COMPLETE
    if all(
        outcome.kind in (OutcomeKind.CIRCUIT_OPEN, OutcomeKind.DEPENDENCY_MISSING)
        for outcome in outcomes
    ):
        return STATUS_SKIPPED
    return STATUS_FAILED
