"""Configuration management for the media pipeline.

This module provides centralized configuration loading from environment variables.
Provider secrets are read on demand so a missing key only fails the step that
needs it, not application startup.

Environment Variables:
    DATABASE_URL: PostgreSQL connection URL (required for progress persistence)
    PIPELINE_WEBHOOK_SECRET: HMAC secret for the internal pipeline endpoint
    ELEVENLABS_API_KEY / ELEVENLABS_VOICE_ID_JP_FEMALE: Voiceover provider
    FAL_KEY: Kling video ads via fal.ai
    RUNWAYML_API_SECRET: Runway cinematic video
    HEYGEN_API_KEY / HEYGEN_DEFAULT_AVATAR_ID / HEYGEN_JP_VOICE_ID: Avatar video
    SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY: Asset storage
    PROVIDER_FAILURE_THRESHOLD / PROVIDER_COOLDOWN_SECONDS: Circuit breaker tuning
    PROVIDER_FALLBACKS_ENABLED: Kling <-> Runway fallback routing (default: true)

Usage:
    from adkit.config import get_failure_threshold, get_step_timeout

    threshold = get_failure_threshold()  # 3 unless overridden
    timeout = get_step_timeout("avatar")  # 900.0 seconds
"""

import os
from functools import lru_cache

import structlog

from adkit.exceptions import ConfigurationError

log = structlog.get_logger(__name__)

# Circuit breaker defaults
DEFAULT_FAILURE_THRESHOLD = 3
DEFAULT_COOLDOWN_SECONDS = 5 * 60

# Per-step provider timeouts (seconds), generous relative to observed latency
DEFAULT_STEP_TIMEOUTS: dict[str, float] = {
    "voiceover": 60.0,
    "video_ad": 600.0,
    "cinematic": 600.0,
    "avatar": 900.0,
}

DEFAULT_POLL_INTERVAL_SECONDS = 5.0


def _get_int(name: str, default: int, minimum: int, maximum: int) -> int:
    """Read an integer environment variable, clamped to [minimum, maximum].

    Invalid values are logged and replaced by the default.
    """
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        log.warning("invalid_int_config", name=name, value=raw, using_default=default)
        return default
    return max(minimum, min(maximum, value))


def _get_float(name: str, default: float, minimum: float, maximum: float) -> float:
    """Read a float environment variable, clamped to [minimum, maximum]."""
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        log.warning("invalid_float_config", name=name, value=raw, using_default=default)
        return default
    return max(minimum, min(maximum, value))


def _require(name: str, hint: str) -> str:
    value = os.getenv(name)
    if not value:
        raise ConfigurationError(f"{name} is not set. {hint}")
    return value


def get_failure_threshold() -> int:
    """Get the consecutive-failure count that opens a provider circuit.

    Environment Variable:
        PROVIDER_FAILURE_THRESHOLD: Failures before opening (default: 3, range 1-100)

    Returns:
        Failure threshold.
    """
    return _get_int("PROVIDER_FAILURE_THRESHOLD", DEFAULT_FAILURE_THRESHOLD, 1, 100)


def get_cooldown_seconds() -> float:
    """Get the cooldown before an open circuit allows a probing call.

    Environment Variable:
        PROVIDER_COOLDOWN_SECONDS: Cooldown in seconds (default: 300, range 1-86400)

    Returns:
        Cooldown in seconds.
    """
    return _get_float("PROVIDER_COOLDOWN_SECONDS", float(DEFAULT_COOLDOWN_SECONDS), 1.0, 86400.0)


def get_step_timeout(stage: str) -> float:
    """Get the overall timeout for one provider call of a pipeline stage.

    Environment Variable:
        STEP_TIMEOUT_<STAGE>_SECONDS: e.g. STEP_TIMEOUT_AVATAR_SECONDS=1200

    Args:
        stage: Stage name ("voiceover", "video_ad", "cinematic", "avatar")

    Returns:
        Timeout in seconds (minimum 1, maximum 3600).

    Raises:
        KeyError: If stage is unknown.
    """
    default = DEFAULT_STEP_TIMEOUTS[stage]
    return _get_float(f"STEP_TIMEOUT_{stage.upper()}_SECONDS", default, 1.0, 3600.0)


def get_poll_interval_seconds() -> float:
    """Get the fixed interval between provider status polls.

    Environment Variable:
        PROVIDER_POLL_INTERVAL_SECONDS: Interval (default: 5, range 0.1-60)
    """
    return _get_float(
        "PROVIDER_POLL_INTERVAL_SECONDS", DEFAULT_POLL_INTERVAL_SECONDS, 0.1, 60.0
    )


def get_fallbacks_enabled() -> bool:
    """Whether Kling and Runway back each other up for video steps.

    Environment Variable:
        PROVIDER_FALLBACKS_ENABLED: "false" disables fallback routing (default: true)
    """
    return os.getenv("PROVIDER_FALLBACKS_ENABLED", "true").lower() not in {"false", "0", "no"}


def get_pipeline_webhook_secret() -> str:
    """Get the shared HMAC secret for the internal pipeline endpoint.

    Environment Variable:
        PIPELINE_WEBHOOK_SECRET: Shared secret with the workflow runner

    Returns:
        Secret string, or empty string if not set (requests are then rejected).
    """
    return os.getenv("PIPELINE_WEBHOOK_SECRET", "")


def get_elevenlabs_api_key() -> str:
    """Get ElevenLabs API key.

    Raises:
        ConfigurationError: If ELEVENLABS_API_KEY not set.
    """
    return _require(
        "ELEVENLABS_API_KEY",
        "Get your API key from https://elevenlabs.io/app/settings/api-keys",
    )


def get_voiceover_voice_id() -> str:
    """Get the Japanese narration voice used for voiceovers.

    Environment Variable:
        ELEVENLABS_VOICE_ID_JP_FEMALE: ElevenLabs voice ID

    Raises:
        ConfigurationError: If not set.
    """
    return _require("ELEVENLABS_VOICE_ID_JP_FEMALE", "Pick a voice from GET /v1/voices.")


def get_fal_key() -> str:
    """Get fal.ai API key for Kling video generation.

    Raises:
        ConfigurationError: If FAL_KEY not set.
    """
    return _require("FAL_KEY", "Get your API key from https://fal.ai/dashboard/keys")


def get_runway_api_secret() -> str:
    """Get Runway API secret.

    Raises:
        ConfigurationError: If RUNWAYML_API_SECRET not set.
    """
    return _require("RUNWAYML_API_SECRET", "Get your API key from https://app.runwayml.com")


def get_heygen_api_key() -> str:
    """Get HeyGen API key.

    Raises:
        ConfigurationError: If HEYGEN_API_KEY not set.
    """
    return _require("HEYGEN_API_KEY", "Get your API key from https://app.heygen.com/settings")


def get_heygen_avatar_settings() -> tuple[str, str]:
    """Get the HeyGen presenter avatar and its Japanese voice.

    Environment Variables:
        HEYGEN_DEFAULT_AVATAR_ID: Avatar ID
        HEYGEN_JP_VOICE_ID: HeyGen voice ID

    Returns:
        (avatar_id, voice_id) tuple.

    Raises:
        ConfigurationError: If either value is missing.
    """
    avatar_id = os.getenv("HEYGEN_DEFAULT_AVATAR_ID")
    voice_id = os.getenv("HEYGEN_JP_VOICE_ID")
    if not avatar_id or not voice_id:
        raise ConfigurationError("HEYGEN_DEFAULT_AVATAR_ID or HEYGEN_JP_VOICE_ID not configured")
    return avatar_id, voice_id


@lru_cache
def get_supabase_settings() -> tuple[str, str]:
    """Get Supabase project URL and service role key.

    Environment Variables:
        SUPABASE_URL: Project URL (https://<ref>.supabase.co)
        SUPABASE_SERVICE_ROLE_KEY: Service role key (server-side only)

    Returns:
        (url, key) tuple.

    Raises:
        ValueError: If either value is missing.
    """
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY environment variables are required")
    return url, key


@lru_cache
def get_database_url() -> str:
    """Get database URL from environment.

    Converts postgresql:// to postgresql+asyncpg:// for async SQLAlchemy.

    Environment Variable:
        DATABASE_URL: PostgreSQL connection URL

    Returns:
        Database URL with asyncpg driver.

    Raises:
        ValueError: If DATABASE_URL not set.
    """
    url = os.getenv("DATABASE_URL")
    if not url:
        raise ValueError("DATABASE_URL environment variable is required")

    # Supabase hands out postgresql:// but we need postgresql+asyncpg://
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

    return url
