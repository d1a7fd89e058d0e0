"""Host checks for requests that would be forwarded upstream.

Hostnames are compared exactly or as dot-separated subdomains, never by
substring, so ``evil-example.com`` does not pass for ``example.com``.
"""

from __future__ import annotations

from typing import Iterable, Optional

LOCALHOST_NAMES = {"localhost", "127.0.0.1", "0.0.0.0", "[::1]", "::1"}


def hostname_of(host: Optional[str]) -> str:
    if not host:
        return ""
    hostname = host.strip().lower()
    if hostname.startswith("["):
        end = hostname.find("]")
        if end != -1:
            return hostname[: end + 1]
        return hostname
    if hostname.count(":") == 1:
        return hostname.split(":", 1)[0]
    # Bare IPv6 literals carry no port.
    return hostname


def is_localhost(host: Optional[str]) -> bool:
    return hostname_of(host) in LOCALHOST_NAMES


def is_host_or_subdomain(host: Optional[str], domain: str) -> bool:
    hostname = hostname_of(host)
    if not hostname:
        return False
    target = domain.lower()
    return hostname == target or hostname.endswith(f".{target}")


def is_allowed_host(host: Optional[str], allowed: Iterable[str]) -> bool:
    """Localhost is always allowed; an empty allow-list allows every host."""
    allowed = tuple(allowed)
    if not allowed or is_localhost(host):
        return True
    return any(is_host_or_subdomain(host, domain) for domain in allowed)
