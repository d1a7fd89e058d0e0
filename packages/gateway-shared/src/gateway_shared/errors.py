"""Exception types raised by the gateway."""

from __future__ import annotations


class GatewayError(Exception):
    """Base class for gateway failures."""


class ConfigurationError(GatewayError, ValueError):
    """Raised at startup when the gateway configuration is inconsistent."""


class RewriteError(GatewayError):
    """Raised when a path cannot be rewritten to the upstream origin."""


class UpstreamError(GatewayError):
    """Raised when a forwarded request does not produce an upstream response."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class UpstreamTimeout(UpstreamError):
    pass


class UpstreamUnavailable(UpstreamError):
    pass
