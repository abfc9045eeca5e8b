from types import SimpleNamespace

import pytest

from zentao_client import ZentaoClient
from zentao_client.store import MemoryConfigStore

BASE_URL = "http://zentao.local/"

HANDSHAKE = {
    "version": "12.4.3",
    "requestType": "PATH_INFO",
    "requestFix": "-",
    "moduleVar": "m",
    "methodVar": "f",
    "viewVar": "t",
    "sessionVar": "zentaosid",
    "sessionName": "zentaosid",
    "sessionID": "abc123",
    "random": 7795,
    "expiredTime": "1440",
    "serverTime": 1615098427,
}

LOGIN_RESPONSE = {
    "status": "success",
    "user": {"id": "1", "account": "demo", "realname": "Demo User"},
}


@pytest.fixture
def store():
    return MemoryConfigStore()


@pytest.fixture
def zentao_server(requests_mock):
    """Register the handshake and login endpoints of a PATH_INFO server."""

    return SimpleNamespace(
        handshake=requests_mock.get(f"{BASE_URL}?mode=getconfig", json=HANDSHAKE),
        login=requests_mock.post(f"{BASE_URL}user-login.json", json=LOGIN_RESPONSE),
    )


@pytest.fixture
def make_client(store):
    def _make(**kwargs):
        options = {
            "url": "zentao.local",
            "account": "demo",
            "password": "123456",
            "session_name": "test",
            "store": store,
        }
        options.update(kwargs)
        return ZentaoClient(**options)

    return _make
