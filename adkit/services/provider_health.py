"""Provider health tracking with a per-provider circuit breaker.

Tracks consecutive failures per external generation provider and opens the
circuit (skips the provider) after FAILURE_THRESHOLD consecutive failures.
Once COOLDOWN has elapsed since the last failure the circuit is half-open:
callers are allowed to probe the provider again. A success closes the
circuit; a failed probe re-opens it and restarts the cooldown.

State Machine (per provider):
    closed --(>= threshold consecutive failures)--> open
    open   --(cooldown elapsed)--> half_open (computed, never stored)
    half_open --(success)--> closed
    half_open --(failure)--> open (timer restarts)

The tracker is in-memory and process-local: it resets on restart and is not
shared between server instances. Half-open is advisory, not a lock, so
concurrent callers may all probe at once.

Usage:
    tracker = ProviderHealthTracker()

    if tracker.should_use("kling"):
        try:
            url = await kling.generate(request)
            tracker.record_success("kling")
        except ProviderError:
            tracker.record_failure("kling")
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from enum import Enum

from adkit.config import DEFAULT_COOLDOWN_SECONDS, DEFAULT_FAILURE_THRESHOLD
from adkit.utils.logging import get_logger

log = get_logger(__name__)

FAILURE_THRESHOLD = DEFAULT_FAILURE_THRESHOLD
COOLDOWN = timedelta(seconds=DEFAULT_COOLDOWN_SECONDS)


def utcnow() -> datetime:
    """Get current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


class CircuitState(Enum):
    """Circuit breaker states as seen by a caller at query time."""

    CLOSED = "closed"  # Normal operation - calls flow through
    OPEN = "open"  # Failing - calls are skipped
    HALF_OPEN = "half_open"  # Cooldown elapsed - probing calls allowed


@dataclass(frozen=True)
class ProviderHealth:
    """Read-only snapshot of one provider's health.

    Attributes:
        provider_id: Provider identifier (e.g., "elevenlabs")
        consecutive_failures: Failures since the last success
        last_failure_time: When the most recent failure was recorded
        circuit_open: True once the failure threshold has been reached
    """

    provider_id: str
    consecutive_failures: int = 0
    last_failure_time: datetime | None = None
    circuit_open: bool = False


class ProviderHealthTracker:
    """Thread-safe, in-memory circuit breaker keyed by provider ID.

    One tracker is constructed by the application's composition root and
    shared by every pipeline run in the process. Entries are created lazily
    on first reference and never removed.

    The lock guards only in-memory dict operations, so it never blocks on
    I/O and is safe to use from both asyncio tasks and worker threads.

    Attributes:
        failure_threshold: Consecutive failures that open the circuit
        cooldown: Time after the last failure before a probe is allowed
    """

    def __init__(
        self,
        failure_threshold: int = FAILURE_THRESHOLD,
        cooldown: timedelta = COOLDOWN,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize an empty tracker.

        Args:
            failure_threshold: Consecutive failures before opening (>= 1)
            cooldown: Cooldown window before half-open probing
            clock: Source of "now", injectable for tests

        Raises:
            ValueError: If failure_threshold < 1 or cooldown is negative
        """
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        if cooldown < timedelta(0):
            raise ValueError("cooldown must not be negative")

        self.failure_threshold = failure_threshold
        self.cooldown = cooldown
        self._clock = clock
        self._lock = threading.Lock()
        self._health: dict[str, ProviderHealth] = {}

    def _get_or_create(self, provider_id: str) -> ProviderHealth:
        # Caller must hold self._lock
        health = self._health.get(provider_id)
        if health is None:
            health = ProviderHealth(provider_id=provider_id)
            self._health[provider_id] = health
        return health

    def _peek(self, provider_id: str) -> ProviderHealth:
        # Read without registering the provider; only record_* add entries
        with self._lock:
            health = self._health.get(provider_id)
        return health if health is not None else ProviderHealth(provider_id=provider_id)

    def _cooldown_elapsed(self, health: ProviderHealth, now: datetime) -> bool:
        if health.last_failure_time is None:
            return True
        return now - health.last_failure_time >= self.cooldown

    def record_success(self, provider_id: str) -> None:
        """Record a successful call to a provider.

        Resets consecutive failures and closes the circuit. Idempotent.

        Args:
            provider_id: Provider identifier
        """
        with self._lock:
            health = self._get_or_create(provider_id)
            was_open = health.circuit_open
            self._health[provider_id] = replace(
                health, consecutive_failures=0, circuit_open=False
            )

        if was_open:
            log.info("provider_circuit_closed", provider_id=provider_id)

    def record_failure(self, provider_id: str) -> ProviderHealth:
        """Record a failed call to a provider.

        Increments consecutive failures, stamps the failure time and opens
        the circuit once the threshold is reached. Never raises.

        Args:
            provider_id: Provider identifier

        Returns:
            Snapshot after the update, so callers can detect the transition
            to open (``circuit_open`` and ``consecutive_failures`` equal to
            the threshold).
        """
        with self._lock:
            health = self._get_or_create(provider_id)
            failures = health.consecutive_failures + 1
            updated = replace(
                health,
                consecutive_failures=failures,
                last_failure_time=self._clock(),
                circuit_open=health.circuit_open or failures >= self.failure_threshold,
            )
            self._health[provider_id] = updated

        if updated.circuit_open:
            log.warning(
                "provider_circuit_open",
                provider_id=provider_id,
                consecutive_failures=updated.consecutive_failures,
                cooldown_seconds=self.cooldown.total_seconds(),
            )
        else:
            log.info(
                "provider_failure_recorded",
                provider_id=provider_id,
                consecutive_failures=updated.consecutive_failures,
                failure_threshold=self.failure_threshold,
            )
        return updated

    def should_use(self, provider_id: str) -> bool:
        """Check whether a provider should be called right now.

        Returns True if the circuit is closed, or if it is open but the
        cooldown has elapsed since the last failure (half-open). Does not
        mutate failure state, so repeated queries give the same answer.

        Args:
            provider_id: Provider identifier

        Returns:
            True if a call may be attempted, False if the circuit is open
        """
        return self.circuit_state(provider_id) is not CircuitState.OPEN

    def circuit_state(self, provider_id: str) -> CircuitState:
        """Compute the caller-visible circuit state for a provider.

        Args:
            provider_id: Provider identifier

        Returns:
            CLOSED, OPEN, or HALF_OPEN (open with cooldown elapsed)
        """
        health = self._peek(provider_id)

        if not health.circuit_open:
            return CircuitState.CLOSED
        if self._cooldown_elapsed(health, self._clock()):
            return CircuitState.HALF_OPEN
        return CircuitState.OPEN

    def get_health(self, provider_id: str) -> ProviderHealth:
        """Get the current health snapshot for a provider.

        The returned value is immutable; later tracker updates do not
        change it and it cannot be used to change the tracker.

        Args:
            provider_id: Provider identifier

        Returns:
            ProviderHealth snapshot
        """
        return self._peek(provider_id)

    def snapshot(self) -> dict[str, ProviderHealth]:
        """Get health snapshots for every provider with a recorded call."""
        with self._lock:
            return dict(self._health)
