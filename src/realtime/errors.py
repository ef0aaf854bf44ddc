"""Domain-specific exceptions for call brokering.

Every error that reaches an HTTP response carries only ``default_detail``;
anything learned from upstream stays in the logs.
"""

from __future__ import annotations


class RealtimeError(Exception):
    status_code: int = 500
    default_detail: str = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_detail)
        self.detail = self.default_detail


class ConfigurationError(RealtimeError):
    """A credential or secret the request path needs is missing."""


class UpstreamRejection(RealtimeError):
    """The realtime API answered with a non-success status or was unreachable."""

    def __init__(
        self,
        message: str | None = None,
        *,
        upstream_status: int | None = None,
        upstream_body: str = "",
    ) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body


class AuthenticationFailure(RealtimeError):
    status_code = 401
    default_detail = "Invalid signature"


class ObserverTransportFailure(RealtimeError):
    """The detached observer channel broke. Logged, never returned to a caller."""
