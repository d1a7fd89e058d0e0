import pytest

from gateway_shared.config import GatewayConfig
from gateway_shared.routing import (
    REJECTION_BODY,
    REJECTION_STATUS,
    PrefixRule,
    classify_path,
    classify_request,
    normalize_path,
    split_target,
)


def test_normalize_strips_trailing_slashes() -> None:
    assert normalize_path("/api/weather") == "/api/weather"
    assert normalize_path("/api/weather/") == "/api/weather"
    assert normalize_path("/api/weather///") == "/api/weather"
    assert normalize_path("/api/") == "/api"


def test_normalize_maps_empty_to_root() -> None:
    assert normalize_path("/") == "/"
    assert normalize_path("///") == "/"
    assert normalize_path("") == "/"


@pytest.mark.parametrize("path", ["/", "/api", "/api/weather//", "/dashboard/finance/", "/api/uuid/abc-123/"])
def test_normalize_is_idempotent(path: str) -> None:
    once = normalize_path(path)
    assert normalize_path(once) == once


@pytest.mark.parametrize("path", [None, 42, b"/api/weather", "api/weather", "/api/\x00weather", "/api/\ud800"])
def test_normalize_rejects_unsafe_input(path) -> None:
    assert normalize_path(path) is None


def test_split_target_separates_query() -> None:
    assert split_target("/api/nba?season=2024") == ("/api/nba", "season=2024")
    assert split_target("/api/nba") == ("/api/nba", "")
    assert split_target("/api/nba?a=1#frag") == ("/api/nba", "a=1")


def test_allow_listed_path_is_local(reject_config: GatewayConfig) -> None:
    assert classify_request("GET", "/api/weather", reject_config) == "local"


@pytest.mark.parametrize("path", ["/api/weather", "/api/weather/", "/api/weather///"])
def test_trailing_slashes_do_not_change_local_verdict(reject_config: GatewayConfig, path: str) -> None:
    assert classify_path(path, reject_config) == "local"


def test_unknown_api_path_is_blocked(reject_config: GatewayConfig) -> None:
    assert classify_request("GET", "/api/unknown-thing", reject_config) == "blocked"
    assert REJECTION_STATUS == 503
    assert REJECTION_BODY == "API not available"


@pytest.mark.parametrize("method", ["GET", "POST", "DELETE", "OPTIONS"])
@pytest.mark.parametrize("target", ["/dashboard/finance", "/", "/apix", "/apiary/api", "/dashboard?x=/api/weather"])
def test_paths_outside_namespace_pass_through(reject_config: GatewayConfig, method: str, target: str) -> None:
    assert classify_request(method, target, reject_config) == "pass-through"


def test_uuid_subtree_is_local(reject_config: GatewayConfig) -> None:
    assert classify_path("/api/uuid/5f2c", reject_config) == "local"
    assert classify_path("/api/uuid/abc-123", reject_config) == "local"
    assert classify_path("/api/uuid/generate", reject_config) == "local"


def test_bare_subtree_base_needs_own_entry() -> None:
    config = GatewayConfig(local_paths=frozenset({"/api/weather"}), prefix_rules=(PrefixRule("/api/uuid"),))
    assert classify_path("/api/uuid", config) == "blocked"
    assert classify_path("/api/uuid/", config) == "blocked"
    assert classify_path("/api/uuid/abc", config) == "local"
    assert classify_path("/api/uuidx", config) == "blocked"


def test_reserved_prefix_itself_is_blocked(reject_config: GatewayConfig) -> None:
    assert classify_path("/api/", reject_config) == "blocked"
    assert classify_path("/api", reject_config) == "blocked"


def test_query_string_does_not_affect_verdict(reject_config: GatewayConfig) -> None:
    assert classify_request("GET", "/api/weather?zip=55105", reject_config) == "local"
    assert classify_request("GET", "/api/me?next=/api/weather", reject_config) == "blocked"


def test_deny_subtree_wins_over_allow_list() -> None:
    config = GatewayConfig(
        local_paths=frozenset({"/api/player-metadata", "/api/player-metadata/internal"}),
        prefix_rules=(PrefixRule("/api/player-metadata", "deny-subtree"),),
    )
    assert classify_path("/api/player-metadata", config) == "local"
    assert classify_path("/api/player-metadata/internal", config) == "blocked"


def test_proxy_mode_forwards_unmatched_paths(proxy_config: GatewayConfig) -> None:
    assert classify_path("/api/me", proxy_config) == "remote"
    assert classify_path("/api/weather", proxy_config) == "local"
    assert classify_path("/dashboard", proxy_config) == "pass-through"


def test_unsafe_path_in_namespace_is_never_forwarded(proxy_config: GatewayConfig) -> None:
    assert classify_path("/api/\x00me", proxy_config) == "blocked"
    assert classify_path("/dashboard/\x00", proxy_config) == "pass-through"
    assert classify_path("/apix\x00", proxy_config) == "pass-through"
    assert classify_path("/api\x00", proxy_config) == "pass-through"
    assert classify_path("/api/\x00/", proxy_config) == "blocked"
    assert classify_path(None, proxy_config) == "pass-through"
