"""Single-attempt forwarding of gateway requests to the upstream origin."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional
from urllib.parse import urlsplit

import requests

from .errors import UpstreamTimeout, UpstreamUnavailable

logger = logging.getLogger(__name__)

HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
}
DROPPED_RESPONSE_HEADERS = {"content-encoding", "transfer-encoding", "connection", "content-length"}
BODYLESS_METHODS = {"GET", "HEAD"}


@dataclass(frozen=True)
class UpstreamResponse:
    status_code: int
    headers: list[tuple[str, str]] = field(default_factory=list)
    content: bytes = b""


def forward_headers(headers: Iterable[tuple[str, str]], upstream_origin: str) -> dict[str, str]:
    forwarded: dict[str, str] = {}
    original_host: Optional[str] = None
    for key, value in headers:
        name = key.lower()
        if name == "host":
            original_host = value
            continue
        if name in HOP_BY_HOP_HEADERS or name == "content-length":
            continue
        if name in forwarded:
            separator = "; " if name == "cookie" else ", "
            forwarded[name] = f"{forwarded[name]}{separator}{value}"
        else:
            forwarded[name] = value

    forwarded["host"] = urlsplit(upstream_origin).netloc
    if original_host:
        forwarded["x-forwarded-host"] = original_host
    forwarded["x-forwarded-proto"] = "https"
    return forwarded


def response_headers(headers: Iterable[tuple[str, str]]) -> list[tuple[str, str]]:
    return [(key, value) for key, value in headers if key.lower() not in DROPPED_RESPONSE_HEADERS]


def _header_items(response: requests.Response) -> list[tuple[str, str]]:
    # urllib3 keeps repeated headers such as Set-Cookie apart; requests merges them.
    raw_headers = getattr(response.raw, "headers", None)
    if raw_headers is not None:
        return list(raw_headers.items())
    return list(response.headers.items())


def forward(
    method: str,
    url: str,
    headers: dict[str, str],
    body: bytes = b"",
    timeout: float = 30.0,
) -> UpstreamResponse:
    method = method.upper()
    data = None if method in BODYLESS_METHODS else body
    try:
        response = requests.request(
            method,
            url,
            headers=headers,
            data=data,
            timeout=timeout,
            allow_redirects=False,
        )
    except requests.Timeout as exc:
        logger.warning("upstream timeout method=%s url=%s", method, url)
        raise UpstreamTimeout("The upstream service did not respond in time", url) from exc
    except requests.RequestException as exc:
        logger.warning("upstream unavailable method=%s url=%s error=%s", method, url, type(exc).__name__)
        raise UpstreamUnavailable("The upstream service could not be reached", url) from exc

    logger.debug("upstream status=%s url=%s", response.status_code, url)
    return UpstreamResponse(
        status_code=response.status_code,
        headers=response_headers(_header_items(response)),
        content=response.content,
    )
