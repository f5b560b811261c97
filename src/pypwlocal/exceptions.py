"""Exceptions raised by pypwlocal.

Every error derives from :class:`PowerwallError` so callers can use a single
``except PowerwallError`` around any client call. Nothing is retried
internally; the caller decides whether a failure is worth another attempt.
"""

from __future__ import annotations

from .constants import RATE_LIMIT_STATUSES


class PowerwallError(Exception):
    """Base exception for all pypwlocal errors."""

    pass


class ConnectivityError(PowerwallError):
    """Gateway unreachable, TLS handshake failed or the request timed out."""

    pass


class HTTPStatusError(PowerwallError):
    """Gateway answered with a non-200 status.

    429 and 503 mean the gateway is rate limiting this client.
    """

    def __init__(self, status: int, reason: str | None = None) -> None:
        """Initialize with the HTTP status details.

        Args:
            status: HTTP status code returned by the gateway
            reason: Reason phrase, if the server sent one
        """
        self.status = status
        self.reason = reason
        message = f"HTTP {status}"
        if reason:
            message = f"{message}: {reason}"
        if self.is_rate_limited:
            message = f"{message} (gateway is rate limiting)"
        super().__init__(message)

    @property
    def is_rate_limited(self) -> bool:
        """Whether the status signals rate limiting."""
        return self.status in RATE_LIMIT_STATUSES


class MalformedResponseError(PowerwallError):
    """Response body is empty, truncated or otherwise not what was asked for."""

    pass


class CodecError(PowerwallError):
    """Binary message frame could not be encoded or decoded."""

    pass


class MissingPayloadError(PowerwallError):
    """Well-formed response frame without the expected payload branch."""

    pass
