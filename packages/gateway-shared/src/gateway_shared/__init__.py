"""Shared helpers for the edge gateway in front of the personal site."""

from .config import GatewayConfig
from .errors import ConfigurationError, GatewayError, RewriteError
from .rewrite import RewriteRule, rewrite_table, rewrite_url
from .routing import PrefixRule, Verdict, classify_path, classify_request, normalize_path

__all__ = [
    "ConfigurationError",
    "GatewayConfig",
    "GatewayError",
    "PrefixRule",
    "RewriteError",
    "RewriteRule",
    "Verdict",
    "classify_path",
    "classify_request",
    "normalize_path",
    "rewrite_table",
    "rewrite_url",
]
