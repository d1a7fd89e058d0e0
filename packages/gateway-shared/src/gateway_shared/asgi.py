"""ASGI front for the reserved API namespace."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from starlette.concurrency import run_in_threadpool
from starlette.datastructures import MutableHeaders
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response

from .config import GatewayConfig
from .errors import UpstreamTimeout, UpstreamUnavailable
from .hosts import is_allowed_host
from .rewrite import rewrite_url
from .routing import REJECTION_BODY, REJECTION_STATUS, Verdict, classify_path, in_namespace, split_target
from .upstream import forward, forward_headers

logger = logging.getLogger(__name__)

STATIC_ASSET = re.compile(r"\.(js|css|svg|png|jpg|jpeg|gif|webp|ico|ttf|otf|woff|woff2)$", re.IGNORECASE)


def is_static_asset(path: str) -> bool:
    return bool(STATIC_ASSET.search(path)) or path.startswith("/_next/") or path.startswith("/static/")


@dataclass(frozen=True)
class Decision:
    verdict: Verdict
    status_code: Optional[int] = None
    body: Optional[str] = None
    destination: Optional[str] = None


def decide(method: str, target: str, config: GatewayConfig) -> Decision:
    """Synchronous decision for runtimes that cannot run the ASGI adapter."""
    path, query = split_target(target)
    verdict = classify_path(path, config)
    logger.debug("decided method=%s path=%s verdict=%s", method, path, verdict)
    if verdict == "blocked":
        return Decision(verdict, status_code=REJECTION_STATUS, body=REJECTION_BODY)
    if verdict == "remote":
        return Decision(verdict, destination=rewrite_url(path, query, config))
    return Decision(verdict)


def _no_store(send):
    async def wrapped(message) -> None:
        if message["type"] == "http.response.start":
            headers = MutableHeaders(scope=message)
            headers["Cache-Control"] = "no-store"
        await send(message)

    return wrapped


class GatewayASGI:
    """Gates the reserved namespace in front of a wrapped ASGI app.

    Local endpoints and paths outside the namespace reach the wrapped app
    unchanged. Everything else under the namespace is rejected with a fixed
    503 or, in proxy mode, forwarded to the upstream origin.
    """

    def __init__(self, app, config: Optional[GatewayConfig] = None) -> None:
        self.app = app
        self.config = config if config is not None else GatewayConfig.from_env()

    async def __call__(self, scope, receive, send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path")
        method = scope.get("method", "GET")
        verdict = classify_path(path, self.config)
        logger.debug("path=%s method=%s verdict=%s", path, method, verdict)

        if verdict == "local":
            await self.app(scope, receive, send)
            return

        if verdict == "pass-through":
            if self.config.no_store_pages and not is_static_asset(str(path or "")):
                send = _no_store(send)
            await self.app(scope, receive, send)
            return

        if verdict == "blocked":
            logger.info("rejected path=%s method=%s", path, method)
            response = PlainTextResponse(REJECTION_BODY, status_code=REJECTION_STATUS)
            await response(scope, receive, send)
            return

        response = await self._proxy(scope, receive)
        await response(scope, receive, send)

    def _upstream_path(self, scope) -> str:
        # raw_path keeps the client's percent-encoding intact.
        raw_path = scope.get("raw_path")
        if raw_path:
            candidate = raw_path.decode("latin-1").split("?", 1)[0]
            if in_namespace(candidate, self.config.reserved_prefix):
                return candidate
        return scope["path"]

    async def _proxy(self, scope, receive) -> Response:
        request = Request(scope, receive)
        host = request.headers.get("x-forwarded-host") or request.headers.get("host")
        if not is_allowed_host(host, self.config.allowed_hosts):
            logger.info("blocked unauthorized host=%s path=%s", host, request.url.path)
            return PlainTextResponse("Forbidden", status_code=403)

        query = scope.get("query_string", b"").decode("latin-1")
        url = rewrite_url(self._upstream_path(scope), query, self.config)
        headers = forward_headers(request.headers.items(), self.config.upstream_origin)
        body = await request.body()
        logger.info("proxying method=%s path=%s", request.method, request.url.path)

        try:
            upstream = await run_in_threadpool(
                forward, request.method, url, headers, body, self.config.upstream_timeout
            )
        except UpstreamTimeout:
            return JSONResponse(
                {"error": "Request timeout", "message": "The upstream service did not respond in time"},
                status_code=504,
            )
        except UpstreamUnavailable:
            return JSONResponse(
                {"error": "Proxy error", "message": "The upstream service could not be reached"},
                status_code=502,
            )

        response = Response(content=upstream.content, status_code=upstream.status_code)
        for key, value in upstream.headers:
            response.raw_headers.append((key.lower().encode("latin-1"), value.encode("latin-1")))
        return response
