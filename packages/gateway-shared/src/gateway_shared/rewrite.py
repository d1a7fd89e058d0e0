"""Rewrite table mapping the reserved namespace onto the upstream origin."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .errors import RewriteError
from .routing import in_namespace

if TYPE_CHECKING:
    from .config import GatewayConfig

WILDCARD = "/:path*"


@dataclass(frozen=True)
class RewriteRule:
    """Single-capture rewrite: ``<base>/:path*`` to ``<origin><base>/:path*``.

    The wildcard captures everything after the base, including the empty
    suffix, so the rule is total over its namespace.
    """

    source: str
    destination: str
    preserve_path: bool = True

    def __post_init__(self) -> None:
        if not self.source.endswith(WILDCARD):
            raise RewriteError(f"Rewrite source must end with {WILDCARD!r}: {self.source!r}")
        if self.preserve_path and not self.destination.endswith(WILDCARD):
            raise RewriteError(f"Rewrite destination must end with {WILDCARD!r}: {self.destination!r}")

    @classmethod
    def for_config(cls, config: GatewayConfig) -> "RewriteRule":
        if not config.upstream_origin:
            raise RewriteError("No upstream origin configured")
        source = f"{config.reserved_prefix}{WILDCARD}"
        return cls(source=source, destination=f"{config.upstream_origin}{source}")

    @property
    def base(self) -> str:
        return self.source[: -len(WILDCARD)]

    def matches(self, path: str) -> bool:
        return in_namespace(path, self.base)

    def apply(self, path: str, query: str = "") -> str:
        if not self.matches(path):
            raise RewriteError(f"Path {path!r} is outside {self.base!r}")
        if self.preserve_path:
            target = self.destination[: -len(WILDCARD)] + path[len(self.base):]
        else:
            target = self.destination
        if query:
            target = f"{target}?{query}"
        return target


def rewrite_url(path: str, query: str, config: GatewayConfig) -> str:
    return RewriteRule.for_config(config).apply(path, query)


def rewrite_table(config: GatewayConfig) -> list[dict]:
    """Export the rewrite for hosting layers that apply it before app code runs.

    Only proxy deployments get an entry. The entry belongs in the platform's
    fallback phase so that local handlers keep precedence.
    """
    if config.mode != "proxy":
        return []
    rule = RewriteRule.for_config(config)
    return [{"source": rule.source, "destination": rule.destination, "phase": "fallback"}]
