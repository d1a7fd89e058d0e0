"""Runtime configuration for the edge gateway.

The configuration is built once at startup and never mutated afterwards.
All consistency checks run in ``__post_init__`` so that a broken deployment
fails before the first request is served.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Iterable, Literal, Optional
from urllib.parse import urlsplit

from .env_loader import load_project_dotenv
from .errors import ConfigurationError
from .routing import PrefixRule, in_namespace, normalize_path

Mode = Literal["reject", "proxy"]

MODES = ("reject", "proxy")
PREFIX_POLICIES = ("allow-subtree", "deny-subtree")
DEFAULT_RESERVED_PREFIX = "/api"
DEFAULT_UPSTREAM_TIMEOUT = 30.0

# Union of the endpoint lists of both middleware variants.
DEFAULT_LOCAL_ENDPOINTS = (
    "nhl",
    "nba",
    "nfl",
    "mlb",
    "celsius",
    "fahrenheit",
    "lead",
    "player-ads",
    "player-analytics",
    "player-heartbeat",
    "player-metadata",
    "weather",
    "uuid",
    "human",
    "health",
)
DEFAULT_LOCAL_PATHS = frozenset(f"{DEFAULT_RESERVED_PREFIX}/{name}" for name in DEFAULT_LOCAL_ENDPOINTS)
DEFAULT_PREFIX_RULES = (PrefixRule(f"{DEFAULT_RESERVED_PREFIX}/uuid", "allow-subtree"),)

_DEFAULT_PORTS = {"http": 80, "https": 443}
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _clean_url(value: str | None) -> str:
    return (value or "").strip().rstrip("/")


def _split_csv(value: str | None) -> list[str]:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


def _parse_bool(name: str, value: str | None, default: bool) -> bool:
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}")


def _parse_timeout(value: str | None) -> float:
    if value is None or not value.strip():
        return DEFAULT_UPSTREAM_TIMEOUT
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"GATEWAY_UPSTREAM_TIMEOUT must be a number, got {value!r}") from None


def origin_key(origin: str) -> tuple[str, str, int]:
    """Return ``(scheme, host, port)`` for an absolute http(s) origin."""
    parts = urlsplit(origin)
    scheme = parts.scheme.lower()
    if scheme not in _DEFAULT_PORTS or not parts.hostname:
        raise ConfigurationError(f"Origin must be an absolute http(s) URL: {origin!r}")
    if parts.path not in ("", "/") or parts.query or parts.fragment:
        raise ConfigurationError(f"Origin must not carry a path or query: {origin!r}")
    try:
        port = parts.port
    except ValueError:
        raise ConfigurationError(f"Origin has an invalid port: {origin!r}") from None
    return scheme, parts.hostname.lower(), port or _DEFAULT_PORTS[scheme]


@dataclass(frozen=True)
class GatewayConfig:
    mode: Mode = "reject"
    reserved_prefix: str = DEFAULT_RESERVED_PREFIX
    local_paths: frozenset[str] = DEFAULT_LOCAL_PATHS
    prefix_rules: tuple[PrefixRule, ...] = DEFAULT_PREFIX_RULES
    upstream_origin: str = ""
    local_origin: str = ""
    allowed_hosts: tuple[str, ...] = ()
    upstream_timeout: float = DEFAULT_UPSTREAM_TIMEOUT
    no_store_pages: bool = False
    log_level: str = field(default="INFO", compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "local_paths", frozenset(self.local_paths))
        object.__setattr__(self, "prefix_rules", tuple(self.prefix_rules))
        object.__setattr__(self, "allowed_hosts", tuple(h.strip().lower() for h in self.allowed_hosts if h.strip()))
        object.__setattr__(self, "upstream_origin", _clean_url(self.upstream_origin))
        object.__setattr__(self, "local_origin", _clean_url(self.local_origin))
        self._validate()

    def _validate(self) -> None:
        if self.mode not in MODES:
            raise ConfigurationError(f"Unknown gateway mode {self.mode!r}; expected one of {MODES}")

        prefix = self.reserved_prefix
        if normalize_path(prefix) != prefix or prefix == "/":
            raise ConfigurationError(f"Reserved prefix must be a normalized path below '/': {prefix!r}")

        for path in sorted(self.local_paths):
            if normalize_path(path) != path:
                raise ConfigurationError(f"Allow-listed path is not normalized: {path!r}")
            if not in_namespace(path, prefix):
                raise ConfigurationError(f"Allow-listed path {path!r} lies outside {prefix!r}")

        for rule in self.prefix_rules:
            if rule.policy not in PREFIX_POLICIES:
                raise ConfigurationError(f"Unknown prefix policy {rule.policy!r} for {rule.prefix!r}")
            if normalize_path(rule.prefix) != rule.prefix or not in_namespace(rule.prefix, prefix):
                raise ConfigurationError(f"Prefix rule {rule.prefix!r} must be a normalized path under {prefix!r}")

        if self.upstream_timeout <= 0:
            raise ConfigurationError("Upstream timeout must be positive")

        if self.mode == "proxy" and not self.upstream_origin:
            raise ConfigurationError("Proxy mode requires an upstream origin")
        if self.mode == "proxy" and not self.local_origin:
            raise ConfigurationError("Proxy mode requires a local origin for loop prevention")
        if self.upstream_origin:
            upstream = origin_key(self.upstream_origin)
            if self.local_origin and upstream == origin_key(self.local_origin):
                raise ConfigurationError(
                    f"Upstream origin {self.upstream_origin!r} equals the local origin; requests would loop"
                )

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "GatewayConfig":
        if environ is None:
            load_project_dotenv()
            environ = dict(os.environ)

        prefix = (environ.get("GATEWAY_RESERVED_PREFIX") or DEFAULT_RESERVED_PREFIX).strip()
        local_paths = _split_csv(environ.get("GATEWAY_LOCAL_PATHS"))
        allow_prefixes = environ.get("GATEWAY_LOCAL_PREFIXES")
        deny_prefixes = _split_csv(environ.get("GATEWAY_DENY_PREFIXES"))

        rules: list[PrefixRule] = []
        if allow_prefixes is None:
            rules.extend(_rebase(DEFAULT_PREFIX_RULES, prefix))
        else:
            rules.extend(PrefixRule(p, "allow-subtree") for p in _split_csv(allow_prefixes))
        rules.extend(PrefixRule(p, "deny-subtree") for p in deny_prefixes)

        return cls(
            mode=(environ.get("GATEWAY_MODE") or "reject").strip().lower(),  # type: ignore[arg-type]
            reserved_prefix=prefix,
            local_paths=frozenset(local_paths) if local_paths else _rebase_paths(DEFAULT_LOCAL_PATHS, prefix),
            prefix_rules=tuple(rules),
            upstream_origin=environ.get("GATEWAY_UPSTREAM_ORIGIN") or environ.get("API_PROXY_TARGET") or "",
            local_origin=environ.get("GATEWAY_LOCAL_ORIGIN") or "",
            allowed_hosts=tuple(_split_csv(environ.get("GATEWAY_ALLOWED_HOSTS"))),
            upstream_timeout=_parse_timeout(environ.get("GATEWAY_UPSTREAM_TIMEOUT")),
            no_store_pages=_parse_bool("GATEWAY_NO_STORE_PAGES", environ.get("GATEWAY_NO_STORE_PAGES"), False),
            log_level=(environ.get("GATEWAY_LOG_LEVEL") or "INFO").strip().upper(),
        )


def _rebase_paths(paths: Iterable[str], prefix: str) -> frozenset[str]:
    return frozenset(prefix + path[len(DEFAULT_RESERVED_PREFIX):] for path in paths)


def _rebase(rules: Iterable[PrefixRule], prefix: str) -> list[PrefixRule]:
    return [PrefixRule(prefix + rule.prefix[len(DEFAULT_RESERVED_PREFIX):], rule.policy) for rule in rules]
