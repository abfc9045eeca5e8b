import time

import pytest

from zentao_client.config import (
    ApiResult,
    DispatchMode,
    ServerConfig,
    normalize_base_url,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("http://demo.zentao.net/", "http://demo.zentao.net/"),
        ("http://demo.zentao.net", "http://demo.zentao.net/"),
        ("https://demo.zentao.net/", "https://demo.zentao.net/"),
        ("https://demo.zentao.net", "https://demo.zentao.net/"),
        ("demo.zentao.net", "http://demo.zentao.net/"),
        ("demo.zentao.net/", "http://demo.zentao.net/"),
        ("http://demo.zentao.net/index.php", "http://demo.zentao.net/"),
        ("https://demo.zentao.net/index.php", "https://demo.zentao.net/"),
        ("demo.zentao.net/index.php", "http://demo.zentao.net/"),
        ("demo.zentao.net/zentao/", "http://demo.zentao.net/zentao/"),
    ],
)
def test_normalize_base_url(raw, expected):
    assert normalize_base_url(raw) == expected


def test_from_handshake_applies_defaults():
    config = ServerConfig.from_handshake({"version": "12.4.3", "sessionID": "sid"})

    assert config.request_type is DispatchMode.PATH_SEGMENTS
    assert config.request_fix == "-"
    assert (config.module_var, config.method_var, config.view_var) == ("m", "f", "t")
    assert config.session_name == "zentaosid"
    assert config.expired_time == 1440
    assert config.token == ""
    assert config.token_issued_at is None
    assert config.is_token_expired is True


def test_from_handshake_reads_query_mode_and_string_lifetime():
    config = ServerConfig.from_handshake(
        {"requestType": "GET", "expiredTime": "900", "sessionName": "zsid", "sessionID": "x1"}
    )

    assert config.request_type is DispatchMode.QUERY_PARAMS
    assert config.expired_time == 900
    assert config.token_auth == "zsid=x1"


def test_version_helpers():
    assert ServerConfig(version="12.4.3").main_version == 12
    assert ServerConfig(version="12.4.3").edition == "open"
    assert ServerConfig(version="pro9.0.3").main_version == 9
    assert ServerConfig(version="pro9.0.3").edition == "pro"
    assert ServerConfig(version="").main_version == 0


def test_renew_token_uses_session_cookie(monkeypatch):
    monkeypatch.setattr("zentao_client.config.time.time", lambda: 1000.0)
    config = ServerConfig(session_name="zentaosid", session_id="abc")

    config.renew_token()

    assert config.token == "zentaosid=abc"
    assert config.token_issued_at == 1000.0
    assert config.is_token_expired is False


def test_token_expiry_boundary():
    now = 1_700_000_000.0
    config = ServerConfig(expired_time=1440, token="zentaosid=abc")

    config.token_issued_at = now - 1410
    assert config.is_token_expired_at(now) is False

    config.token_issued_at = now - 1411
    assert config.is_token_expired_at(now) is True


def test_snapshot_round_trip_keeps_token_state():
    config = ServerConfig.from_handshake({"version": "12.4.3", "requestType": "GET", "sessionID": "s1"})
    config.renew_token()

    restored = ServerConfig.from_snapshot(config.to_snapshot())

    assert restored == config


def test_snapshot_without_issue_time_is_unauthenticated():
    restored = ServerConfig.from_snapshot({"sessionID": "s1", "token": "zentaosid=s1"})

    assert restored.token == ""
    assert restored.is_token_expired is True


def test_dispatch_mode_parse():
    assert DispatchMode.parse("GET") is DispatchMode.QUERY_PARAMS
    assert DispatchMode.parse("path_info") is DispatchMode.PATH_SEGMENTS
    assert DispatchMode.parse(DispatchMode.QUERY_PARAMS) is DispatchMode.QUERY_PARAMS
    with pytest.raises(ValueError):
        DispatchMode.parse("POST")


def test_api_result_helpers():
    result = ApiResult(status=1, msg="success", result={"a": 1})
    assert result.ok is True
    assert result.to_dict() == {"status": 1, "msg": "success", "result": {"a": 1}}
    assert ApiResult(status=0).ok is False


def test_fresh_token_is_not_expired():
    config = ServerConfig(token="t", token_issued_at=time.time())
    assert config.is_token_expired is False
