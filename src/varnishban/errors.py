"""Exception types for varnishban."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from varnishban.types import HostOutcome


class VarnishBanError(Exception):
    """Base class for all varnishban errors."""


class ValidationError(VarnishBanError, ValueError):
    """Invalid tag, URL or port input, raised before any network call."""


class ConfigurationError(VarnishBanError, ValueError):
    """Invalid or unknown settings."""


class TransportError(VarnishBanError):
    """The cache layer could not be reached (refused, timeout, TLS)."""

    def __init__(self, message: str, *, host: str | None = None) -> None:
        super().__init__(message)
        self.host = host


class UpstreamError(VarnishBanError):
    """The cache layer answered one or more bans with a non-success status."""

    def __init__(self, message: str, outcomes: tuple[HostOutcome, ...]) -> None:
        super().__init__(message)
        self.outcomes = outcomes
