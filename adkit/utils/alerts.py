"""Discord webhook alerts for provider outages.

Posts an embed to the channel behind DISCORD_WEBHOOK_URL when a provider's
circuit opens, so operators see which generation API is down, how many calls
failed in a row, and when the pipeline will start probing it again.

Delivery is best effort: a missing webhook, a timeout, or a Discord error is
logged and reported through the return value. Nothing is raised.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

from adkit.constants import VIDEO_PROVIDERS
from adkit.utils.logging import get_logger

log = get_logger(__name__)

ALERT_COLORS = {
    "CRITICAL": 0xFF0000,
    "WARNING": 0xFFA500,
    "INFO": 0x0000FF,
    "SUCCESS": 0x00FF00,
}

# Discord limits
CONTENT_LIMIT = 2000
FIELD_VALUE_LIMIT = 1024
WEBHOOK_TIMEOUT_SECONDS = 5.0

FOOTER_TEXT = "adkit media pipeline"


def build_alert_payload(
    level: str, message: str, details: dict[str, str] | None = None
) -> dict[str, Any]:
    """Build the Discord webhook body for an alert."""
    text = message[:CONTENT_LIMIT]
    return {
        "content": f"**{level}**: {text}"[:CONTENT_LIMIT],
        "embeds": [
            {
                "title": f"{level} Alert",
                "description": text,
                "fields": [
                    {"name": name, "value": str(value)[:FIELD_VALUE_LIMIT], "inline": True}
                    for name, value in (details or {}).items()
                ],
                "color": ALERT_COLORS.get(level, 0x808080),
                "footer": {"text": FOOTER_TEXT},
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        ],
    }


async def send_alert(level: str, message: str, details: dict[str, str] | None = None) -> bool:
    """Send an alert to the Discord webhook.

    Args:
        level: "CRITICAL", "WARNING", "INFO" or "SUCCESS" (others render gray)
        message: Alert text (truncated to Discord's 2000 char limit)
        details: Embed fields, name -> value

    Returns:
        True if Discord accepted the message, False otherwise.
    """
    webhook_url = os.getenv("DISCORD_WEBHOOK_URL")
    if not webhook_url:
        log.debug("discord_webhook_not_configured", level=level, message=message[:100])
        return False

    payload = build_alert_payload(level, message, details)
    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                webhook_url, json=payload, timeout=WEBHOOK_TIMEOUT_SECONDS
            )
            response.raise_for_status()
    except httpx.TimeoutException:
        log.error("discord_webhook_timeout", level=level)
        return False
    except httpx.HTTPStatusError as e:
        log.error(
            "discord_webhook_http_error",
            status_code=e.response.status_code,
            response=e.response.text[:500],
        )
        return False
    except httpx.HTTPError as e:
        log.error("discord_webhook_failed", error=str(e))
        return False

    log.info("discord_alert_sent", level=level, message=message[:100])
    return True


async def send_circuit_open_alert(
    *,
    provider_id: str,
    consecutive_failures: int,
    cooldown: timedelta,
    last_failure_time: datetime | None = None,
) -> bool:
    """Announce that a provider's circuit just opened.

    Example:
        >>> await send_circuit_open_alert(
        ...     provider_id="kling",
        ...     consecutive_failures=3,
        ...     cooldown=timedelta(minutes=5),
        ...     last_failure_time=datetime.now(timezone.utc),
        ... )
    """
    name = VIDEO_PROVIDERS.get(provider_id, {}).get("name", provider_id)
    details = {
        "Provider": f"{name} ({provider_id})",
        "Consecutive failures": str(consecutive_failures),
        "Cooldown": f"{int(cooldown.total_seconds())}s",
    }
    if last_failure_time is not None:
        details["Probing resumes"] = (last_failure_time + cooldown).isoformat(timespec="seconds")

    return await send_alert(
        "WARNING",
        f"Provider circuit opened: {provider_id}. "
        "Pipeline steps using it are skipped until the cooldown ends.",
        details,
    )
