"""Failure taxonomy. No automatic retries: every failure ends in a user-visible terminal state."""

from __future__ import annotations


class RelayError(Exception):
    """Base for all relay failures."""


class ServiceUnavailable(RelayError):
    """Upstream not configured or unreachable. Raised before any event is produced."""

    def __init__(self, message: str = "Upstream client not initialized") -> None:
        super().__init__(message)


class InvalidRequest(RelayError):
    """Empty or malformed prompt, rejected before any event."""


class UpstreamFailure(RelayError):
    """The remote generation call failed."""


class TransportFailure(RelayError):
    """The connection dropped; handled like a cancellation."""


class DecodeFailure(RelayError):
    """A frame or message could not be parsed. The frame is dropped, the connection stays open."""
