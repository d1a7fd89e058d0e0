"""Request classification for the reserved API namespace.

Every inbound request is classified by :func:`classify_path` into one of four
verdicts:

``pass-through``
    The path lies outside the reserved prefix. The gateway takes no action and
    page serving owns the request.
``local``
    The path is allow-listed and is handled by an in-process handler.
``blocked``
    The path is under the reserved prefix but not allow-listed (reject mode),
    or it falls under a deny-subtree rule. The caller answers with the fixed
    503 rejection.
``remote``
    Same as ``blocked`` but the deployment runs in proxy mode, so the request
    is forwarded to the upstream origin instead.

Classification is a pure function of the path and the frozen configuration.
It performs no I/O and keeps no state between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Optional

if TYPE_CHECKING:
    from .config import GatewayConfig

logger = logging.getLogger(__name__)

Verdict = Literal["pass-through", "local", "blocked", "remote"]
PrefixPolicy = Literal["allow-subtree", "deny-subtree"]

ROOT_PATH = "/"
REJECTION_STATUS = 503
REJECTION_BODY = "API not available"


@dataclass(frozen=True)
class PrefixRule:
    """Grants or denies a whole subtree below ``prefix``.

    The rule covers ``prefix + "/" + anything``; the bare prefix itself is not
    covered and needs its own allow-list entry.
    """

    prefix: str
    policy: PrefixPolicy = "allow-subtree"

    def matches(self, path: str) -> bool:
        return path.startswith(self.prefix + "/")


def _is_safe(path: str) -> bool:
    if path and not path.startswith("/"):
        return False
    for char in path:
        if ord(char) < 0x20 or ord(char) == 0x7F:
            return False
        if 0xD800 <= ord(char) <= 0xDFFF:
            return False
    return True


def normalize_path(path: object) -> Optional[str]:
    """Strip trailing slashes; an empty result becomes ``/``.

    Returns ``None`` for input that cannot be normalized safely instead of
    raising.
    """
    if not isinstance(path, str) or not _is_safe(path):
        return None
    return path.rstrip("/") or ROOT_PATH


def in_namespace(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def split_target(target: str) -> tuple[str, str]:
    """Split a request target into ``(path, query)``; a fragment is dropped."""
    target = target.split("#", 1)[0]
    path, _, query = target.partition("?")
    return path, query


def _unmatched(config: GatewayConfig) -> Verdict:
    return "remote" if config.mode == "proxy" else "blocked"


def classify_path(path: object, config: GatewayConfig) -> Verdict:
    normalized = normalize_path(path)
    if normalized is None:
        # Unsafe input is never forwarded upstream, even in proxy mode.
        if isinstance(path, str) and in_namespace(path.rstrip("/") or "/", config.reserved_prefix):
            return "blocked"
        return "pass-through"

    if not in_namespace(normalized, config.reserved_prefix):
        return "pass-through"

    for rule in config.prefix_rules:
        if rule.policy == "deny-subtree" and rule.matches(normalized):
            return "blocked"

    if normalized in config.local_paths:
        return "local"
    for rule in config.prefix_rules:
        if rule.policy == "allow-subtree" and rule.matches(normalized):
            return "local"

    return _unmatched(config)


def classify_request(method: str, target: str, config: GatewayConfig) -> Verdict:
    """Classify a raw request target; the method does not influence the verdict."""
    path, _ = split_target(target)
    verdict = classify_path(path, config)
    logger.debug("classified method=%s path=%s verdict=%s", method, path, verdict)
    return verdict
