from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SHARED_SRC = ROOT / "packages" / "gateway-shared" / "src"
EDGE_SRC = ROOT / "apps" / "AppEdge" / "src"

for source in (SHARED_SRC, EDGE_SRC, ROOT):
    if str(source) not in sys.path:
        sys.path.insert(0, str(source))

from gateway_shared.config import GatewayConfig  # noqa: E402

UPSTREAM = "https://backend.example"


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "GATEWAY_MODE",
        "GATEWAY_RESERVED_PREFIX",
        "GATEWAY_LOCAL_PATHS",
        "GATEWAY_LOCAL_PREFIXES",
        "GATEWAY_DENY_PREFIXES",
        "GATEWAY_UPSTREAM_ORIGIN",
        "GATEWAY_LOCAL_ORIGIN",
        "GATEWAY_ALLOWED_HOSTS",
        "GATEWAY_UPSTREAM_TIMEOUT",
        "GATEWAY_NO_STORE_PAGES",
        "API_PROXY_TARGET",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GATEWAY_ENV_FILE", str(ROOT / "tests" / "missing.env"))


@pytest.fixture
def reject_config() -> GatewayConfig:
    return GatewayConfig()


@pytest.fixture
def proxy_config() -> GatewayConfig:
    return GatewayConfig(mode="proxy", upstream_origin=UPSTREAM, local_origin="https://www.example")
