import time
from urllib.parse import parse_qs

import pytest
import requests
from urllib3.exceptions import InsecureRequestWarning

from zentao_client import ZentaoClient
from zentao_client.config import DispatchMode, ServerConfig
from zentao_client.exceptions import (
    ConfigurationError,
    TransportError,
    UnexpectedResponseError,
)
from zentao_client.store import JsonFileConfigStore, MemoryConfigStore

from conftest import BASE_URL, HANDSHAKE


def _authenticated_snapshot(**overrides):
    config = ServerConfig.from_handshake({**HANDSHAKE, **overrides})
    config.renew_token()
    return config.to_snapshot()


def test_constructor_normalizes_identity(make_client):
    client = make_client(url="zentao.local/index.php", session_name=None)

    assert client.url == BASE_URL
    assert client.identifier == f"demo@{BASE_URL}"
    assert client.session_name == f"zentao::demo@{BASE_URL}"
    assert client.token == ""


def test_fetch_config_replaces_server_config(make_client, zentao_server):
    client = make_client()

    config = client.fetch_config()

    assert client.server_config is config
    assert config.session_id == "abc123"
    assert config.request_type is DispatchMode.PATH_SEGMENTS
    assert zentao_server.handshake.call_count == 1


def test_fetch_config_rejects_non_object_body(make_client, requests_mock):
    requests_mock.get(f"{BASE_URL}?mode=getconfig", text="<html>maintenance</html>")
    client = make_client()

    with pytest.raises(UnexpectedResponseError):
        client.fetch_config()


def test_login_returns_user_and_persists_token(make_client, zentao_server, store):
    client = make_client()

    result = client.login()

    assert result.status == 1
    assert result.result == {"id": "1", "account": "demo", "realname": "Demo User"}
    assert client.token == "zentaosid=abc123"
    assert parse_qs(zentao_server.login.last_request.text) == {
        "account": ["demo"],
        "password": ["123456"],
    }
    snapshot = store.get("zentao::test")
    assert snapshot["token"] == "zentaosid=abc123"
    assert snapshot["tokenIssuedAt"] is not None


def test_login_without_preserve_token_skips_store(make_client, zentao_server, store):
    client = make_client(preserve_token=False)

    client.login()

    assert client.token == "zentaosid=abc123"
    assert store.get("zentao::test") is None


def test_failed_login_keeps_token_empty(make_client, requests_mock, store):
    requests_mock.get(f"{BASE_URL}?mode=getconfig", json=HANDSHAKE)
    requests_mock.post(
        f"{BASE_URL}user-login.json",
        json={"status": "failed", "reason": "wrong password"},
    )
    client = make_client()

    result = client.login()

    assert result.status == 0
    assert result.msg == "error"
    assert client.token == ""
    assert store.get("zentao::test") is None


def test_request_without_config_logs_in_once_first(make_client, zentao_server, requests_mock):
    target = requests_mock.get(
        f"{BASE_URL}product-all.json",
        json={"status": "success", "data": '{"title": "Products", "products": []}'},
    )
    client = make_client()

    result = client.request("product", "all")

    assert zentao_server.handshake.call_count == 1
    assert zentao_server.login.call_count == 1
    assert target.call_count == 1
    assert target.last_request.headers["Cookie"] == "zentaosid=abc123"
    assert result.status == 1
    assert result.result == {"title": "Products", "products": []}


def test_valid_stored_token_skips_login(zentao_server, requests_mock):
    store = MemoryConfigStore({"zentao::test": _authenticated_snapshot(sessionID="stored")})
    target = requests_mock.get(f"{BASE_URL}product-all.json", json={"status": "success", "data": {}})
    client = ZentaoClient(
        url=BASE_URL, account="demo", password="123456", session_name="test", store=store
    )

    client.request("product", "all")

    assert zentao_server.handshake.call_count == 0
    assert zentao_server.login.call_count == 0
    assert target.last_request.headers["Cookie"] == "zentaosid=stored"


def test_expired_stored_token_triggers_login(zentao_server, requests_mock):
    snapshot = _authenticated_snapshot(sessionID="stale")
    snapshot["tokenIssuedAt"] = time.time() - 5000
    store = MemoryConfigStore({"zentao::test": snapshot})
    target = requests_mock.get(f"{BASE_URL}product-all.json", json={"status": "success", "data": {}})
    client = ZentaoClient(
        url=BASE_URL, account="demo", password="123456", session_name="test", store=store
    )

    client.request("product", "all")

    assert zentao_server.login.call_count == 1
    assert target.last_request.headers["Cookie"] == "zentaosid=abc123"
    assert store.get("zentao::test")["sessionID"] == "abc123"


def test_direct_login_call_without_config_is_a_configuration_error(make_client):
    client = make_client()

    with pytest.raises(ConfigurationError):
        client.request("user", "login")


def test_create_url_requires_config(make_client):
    with pytest.raises(ConfigurationError):
        make_client().create_url("product", "all")


def test_create_url_path_segments(make_client):
    store = MemoryConfigStore({"zentao::test": _authenticated_snapshot()})
    client = make_client(store=store)

    assert client.create_url("product", "all", [("status", "noclosed")]) == (
        f"{BASE_URL}product-all-noclosed.json"
    )
    assert client.create_url("product", "all", [("", "status"), ("", "noclosed")]) == (
        f"{BASE_URL}product-all-status-noclosed.json"
    )
    assert client.create_url("user", "login") == f"{BASE_URL}user-login.json"


def test_create_url_query_params(make_client):
    store = MemoryConfigStore({"zentao::test": _authenticated_snapshot(requestType="GET")})
    client = make_client(store=store)

    assert client.request_type is DispatchMode.QUERY_PARAMS
    assert client.create_url("product", "all", [("status", "noclosed")]) == (
        f"{BASE_URL}?m=product&f=all&status=noclosed&t=json"
    )
    assert client.create_url("bug", "browse", [("orderBy", "id desc&x")]) == (
        f"{BASE_URL}?m=bug&f=browse&orderBy=id%20desc%26x&t=json"
    )


def test_access_mode_overrides_server_dispatch(make_client):
    store = MemoryConfigStore({"zentao::test": _authenticated_snapshot()})
    client = make_client(store=store, access_mode="GET")

    assert client.create_url("product", "all") == f"{BASE_URL}?m=product&f=all&t=json"


def test_query_mode_request_round_trip(make_client, requests_mock):
    requests_mock.get(f"{BASE_URL}?mode=getconfig", json={**HANDSHAKE, "requestType": "GET"})
    login = requests_mock.post(f"{BASE_URL}?m=user&f=login&t=json", json={"status": "success"})
    target = requests_mock.get(
        f"{BASE_URL}?m=product&f=all&status=noclosed&t=json",
        json={"status": "success", "data": {"products": []}},
    )
    client = make_client()

    result = client.module("product", "all", [("status", "noclosed")]).get()

    assert login.call_count == 1
    assert target.call_count == 1
    assert result.ok


def test_fields_filter_object_result(make_client, zentao_server, requests_mock):
    requests_mock.get(
        f"{BASE_URL}product-all.json",
        json={"status": "success", "data": {"title": "x", "products": [1], "extra": 1}},
    )
    client = make_client()

    result = client.request("product", "all", fields=["title", "products"])

    assert result.result == {"title": "x", "products": [1]}


def test_fields_filter_each_array_element(make_client, zentao_server, requests_mock):
    requests_mock.get(
        f"{BASE_URL}user-list.json",
        json={
            "status": "success",
            "data": '[{"id": 1, "account": "a", "secret": "s"}, {"id": 2, "account": "b"}, 3]',
        },
    )
    client = make_client()

    result = client.module("user", "list").filter_fields("id", "account").get()

    assert result.result == [{"id": 1, "account": "a"}, {"id": 2, "account": "b"}, 3]


def test_non_object_body_is_an_application_failure(make_client, zentao_server, requests_mock):
    requests_mock.get(f"{BASE_URL}product-all.json", text="<html>denied</html>")
    client = make_client()

    result = client.request("product", "all", fields=["title"])

    assert result.to_dict() == {"status": 0, "msg": "error", "result": "<html>denied</html>"}


def test_result_success_marker_and_message(make_client, zentao_server, requests_mock):
    requests_mock.get(
        f"{BASE_URL}task-view-1.json",
        json={"result": "success", "message": "saved"},
    )
    client = make_client()

    result = client.request("task", "view", params=[("taskID", 1)])

    assert result.status == 1
    assert result.msg == "saved"
    assert result.result == "success"


def test_converter_receives_raw_payload_and_runs_before_filter(make_client, zentao_server, requests_mock):
    requests_mock.get(
        f"{BASE_URL}bug-view-2.json",
        json={"status": "success", "data": {"bug": {"id": 2}, "title": "t"}, "extra": "raw"},
    )
    seen = {}

    def converter(remote_data, result):
        seen["raw"] = remote_data["extra"]
        result.result["converted"] = True
        return result

    client = make_client()

    result = client.request(
        "bug", "view", params=[("bugID", 2)], result_converter=converter, fields=["bug", "converted"]
    )

    assert seen["raw"] == "raw"
    assert result.result == {"bug": {"id": 2}, "converted": True}


def test_post_flattens_array_fields(make_client, zentao_server, requests_mock):
    target = requests_mock.post(f"{BASE_URL}dept-manageChild.json", json={"status": "success"})
    client = make_client()
    data = {"parentDeptID": 3, "depts": ["dev", "qa"]}

    client.request("dept", "manageChild", method="POST", data=data)

    body = parse_qs(target.last_request.text)
    assert body == {"parentDeptID": ["3"], "depts[0]": ["dev"], "depts[1]": ["qa"]}
    assert target.last_request.headers["Content-Type"] == "application/x-www-form-urlencoded"
    assert data == {"parentDeptID": 3, "depts": ["dev", "qa"]}


def test_url_override_bypasses_dispatch(make_client, zentao_server, requests_mock):
    target = requests_mock.get("http://elsewhere.local/custom.json", json={"status": "success"})
    client = make_client()

    client.module("product", "all").with_url("http://elsewhere.local/custom.json").get()

    assert target.call_count == 1


def test_transport_error_propagates(make_client, zentao_server, requests_mock):
    requests_mock.get(f"{BASE_URL}product-all.json", exc=requests.exceptions.ConnectTimeout)
    client = make_client()

    with pytest.raises(TransportError):
        client.request("product", "all")


def test_http_error_status_raises_transport_error(make_client, zentao_server, requests_mock):
    requests_mock.get(f"{BASE_URL}product-all.json", status_code=502, text="bad gateway")
    client = make_client()

    with pytest.raises(TransportError) as excinfo:
        client.request("product", "all")

    assert excinfo.value.status_code == 502


def test_handshake_failure_propagates_from_request(make_client, requests_mock):
    requests_mock.get(f"{BASE_URL}?mode=getconfig", exc=requests.exceptions.ConnectionError("refused"))
    client = make_client()

    with pytest.raises(TransportError) as excinfo:
        client.request("product", "all")

    assert "refused" in str(excinfo.value)


def test_request_logging_includes_session(caplog, make_client, zentao_server, requests_mock):
    requests_mock.get(f"{BASE_URL}product-all.json", json={"status": "success"})
    client = make_client()

    with caplog.at_level("INFO", logger="zentao_client.client"):
        client.request("product", "all")

    assert f"GET {BASE_URL}product-all.json (session=zentao::test)" in caplog.text


def test_debug_trace_masks_passwords(caplog, make_client, zentao_server, requests_mock):
    requests_mock.get(f"{BASE_URL}product-all-noclosed.json", json={"status": "success", "data": {}})
    client = make_client(debug=True)

    with caplog.at_level("DEBUG", logger="zentao_client.client"):
        client.request("product", "all", params={"status": "noclosed"})

    assert "> userLogin OK" in caplog.text
    assert "> productAll OK" in caplog.text
    assert "Request Parameters" in caplog.text
    assert "password: ******" in caplog.text
    assert "123456" not in caplog.text


def test_persisted_token_is_reused_by_new_instance(tmp_path, zentao_server, requests_mock):
    requests_mock.get(f"{BASE_URL}product-all.json", json={"status": "success"})
    store_path = tmp_path / "sessions.json"

    first = ZentaoClient(
        url=BASE_URL, account="demo", password="123456", store=JsonFileConfigStore(store_path)
    )
    first.request("product", "all")
    second = ZentaoClient(
        url=BASE_URL, account="demo", password="123456", store=JsonFileConfigStore(store_path)
    )
    second.request("product", "all")

    assert zentao_server.login.call_count == 1
    assert second.token == "zentaosid=abc123"


def test_disables_insecure_warning_when_verify_disabled(monkeypatch, make_client):
    captured: list[object] = []

    def fake_disable(warning):  # pragma: no cover - helper
        captured.append(warning)

    monkeypatch.setattr("zentao_client.client.urllib3.disable_warnings", fake_disable)

    make_client(verify_ssl=False)

    assert captured and captured[0] is InsecureRequestWarning
