from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI

from gateway_shared.asgi import GatewayASGI
from gateway_shared.config import GatewayConfig

from .handlers import router as local_router


def build_local_app() -> FastAPI:
    local_app = FastAPI(title="Edge local handlers", docs_url=None, redoc_url=None, openapi_url=None)
    local_app.include_router(local_router)
    return local_app


def build_app(config: Optional[GatewayConfig] = None) -> FastAPI:
    config = config if config is not None else GatewayConfig.from_env()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Edge Gateway")
    app.state.gateway_config = config

    @app.get("/healthz", include_in_schema=False)
    def healthz() -> dict:
        return {"status": "ok", "service": "AppEdge", "mode": config.mode}

    app.mount("/", GatewayASGI(build_local_app(), config=config))
    return app


app = build_app()
