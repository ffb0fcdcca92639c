"""Shared exceptions for the media pipeline.

This module contains exception classes used across provider clients,
services and routes to avoid cross-module dependencies between them.
"""


class ConfigurationError(Exception):
    """Raised when required configuration is missing.

    This error indicates a configuration problem that prevents a provider
    call from proceeding (e.g., no API key set, or no HeyGen avatar ID
    configured for avatar generation).
    """

    pass


class ProviderError(Exception):
    """Raised when an external generation provider call fails.

    Covers HTTP errors on submit, non-success terminal statuses reported by
    the provider, and completed jobs that returned no usable output.

    Attributes:
        provider_id: Provider identifier (e.g., "kling", "heygen").
        message: Human-readable error message.

    Example:
        >>> raise ProviderError("kling", "submit failed (500): upstream error")
        ProviderError: [kling] submit failed (500): upstream error
    """

    def __init__(self, provider_id: str, message: str):
        self.provider_id = provider_id
        self.message = message
        super().__init__(f"[{provider_id}] {message}")


class ProviderTimeoutError(ProviderError):
    """Raised when a provider job does not reach a terminal state in time.

    The poll loop exhausted its attempt budget. Counted against the
    provider's circuit exactly like any other provider failure.
    """

    def __init__(self, provider_id: str, job_id: str, waited_seconds: float):
        self.job_id = job_id
        self.waited_seconds = waited_seconds
        super().__init__(
            provider_id,
            f"generation timed out after {waited_seconds:.0f}s for job {job_id}",
        )


class InvalidPipelineInputError(ValueError):
    """Raised when a pipeline run is requested with unusable input.

    Raised before any step executes: blank campaign ID, malformed brief,
    or no pipeline step enabled.
    """

    pass
