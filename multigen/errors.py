"""Error taxonomy for provider calls and orchestration runs."""

from __future__ import annotations

from typing import Mapping, Sequence


class MultigenError(Exception):
    """Root of every error raised by this package."""


class ProviderError(MultigenError):
    """Failure of a single provider call."""

    retryable = True

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


class ConfigurationMissing(ProviderError):
    """No credential available for the provider."""

    retryable = False

    def __init__(self, provider: str, message: str | None = None) -> None:
        super().__init__(provider, message or "credentials not configured")


class UpstreamHTTPError(ProviderError):
    """Provider answered with a non-2xx status (or the connection failed)."""

    def __init__(self, provider: str, status: int | None, message: str = "") -> None:
        label = f"HTTP {status}" if status is not None else "connection error"
        super().__init__(provider, f"{label}: {message}".rstrip(": "))
        self.status = status


class ProviderTimeout(ProviderError):
    """Call exceeded the resilience timeout ceiling."""

    def __init__(self, provider: str, timeout_seconds: float | None = None) -> None:
        detail = f"timeout after {timeout_seconds:g}s" if timeout_seconds is not None else "request timed out"
        super().__init__(provider, detail)
        self.timeout_seconds = timeout_seconds


class MalformedResponse(ProviderError):
    """Provider payload could not be parsed."""


class OrchestrationError(MultigenError):
    """Fatal failure of a whole orchestration run."""


class NoValidProviders(OrchestrationError):
    """Selection produced no usable provider; no network call was issued."""

    def __init__(self, requested: Sequence[str], available: Sequence[str] = ()) -> None:
        super().__init__(
            f"No valid providers in {list(requested)}. Available: {', '.join(sorted(available)) or 'none'}"
        )
        self.requested = list(requested)
        self.available = list(available)


class AllProvidersFailed(OrchestrationError):
    """Every dispatched provider exhausted its retries."""

    def __init__(self, providers: Sequence[str], errors: Mapping[str, str] | None = None) -> None:
        self.providers = list(providers)
        self.errors = dict(errors or {})
        detail = "; ".join(f"{p}: {e}" for p, e in self.errors.items())
        super().__init__(f"All providers failed ({', '.join(self.providers)})" + (f" [{detail}]" if detail else ""))
