"""Configuration helpers for the ZenTao client."""

from __future__ import annotations

import re
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

FRONT_CONTROLLER = "index.php"
TOKEN_EXPIRY_MARGIN = 30
DEFAULT_TOKEN_LIFETIME = 1440


class DispatchMode(str, Enum):
    """How module, method and parameters are encoded into a request URL."""

    PATH_SEGMENTS = "PATH_INFO"
    QUERY_PARAMS = "GET"

    @classmethod
    def parse(cls, value: DispatchMode | str) -> DispatchMode:
        if isinstance(value, DispatchMode):
            return value
        normalized = value.strip().upper()
        for member in cls:
            if normalized in (member.value, member.name):
                return member
        raise ValueError(f"Unknown ZenTao access mode: {value!r}")


def normalize_base_url(url: str) -> str:
    """Return the server root URL with a scheme and a single trailing slash.

    >>> normalize_base_url("demo.zentao.net/index.php")
    'http://demo.zentao.net/'
    """

    url = url.strip()
    if url.endswith(f"/{FRONT_CONTROLLER}"):
        url = url[: -len(FRONT_CONTROLLER)]
    elif not url.endswith("/"):
        url = f"{url}/"
    if not url.startswith(("https://", "http://")):
        url = f"http://{url}"
    return url


def _parse_int(value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(slots=True)
class ServerConfig:
    """Dispatch settings reported by the server plus the session token state."""

    version: str = ""
    request_type: DispatchMode = DispatchMode.PATH_SEGMENTS
    request_fix: str = "-"
    module_var: str = "m"
    method_var: str = "f"
    view_var: str = "t"
    session_var: str = "zentaosid"
    session_name: str = "zentaosid"
    session_id: str = ""
    random: Any = None
    server_time: Any = None
    expired_time: int = DEFAULT_TOKEN_LIFETIME
    token: str = ""
    token_issued_at: float | None = None

    @classmethod
    def from_handshake(cls, payload: Mapping[str, Any]) -> ServerConfig:
        """Build an unauthenticated config from a ``?mode=getconfig`` payload."""

        request_type = (
            DispatchMode.QUERY_PARAMS
            if payload.get("requestType") == DispatchMode.QUERY_PARAMS.value
            else DispatchMode.PATH_SEGMENTS
        )
        return cls(
            version=str(payload.get("version") or ""),
            request_type=request_type,
            request_fix=payload.get("requestFix") or "-",
            module_var=payload.get("moduleVar") or "m",
            method_var=payload.get("methodVar") or "f",
            view_var=payload.get("viewVar") or "t",
            session_var=payload.get("sessionVar") or "zentaosid",
            session_name=payload.get("sessionName") or "zentaosid",
            session_id=str(payload.get("sessionID") or ""),
            random=payload.get("random"),
            server_time=payload.get("serverTime"),
            expired_time=_parse_int(payload.get("expiredTime"), DEFAULT_TOKEN_LIFETIME),
        )

    @classmethod
    def from_snapshot(cls, snapshot: Mapping[str, Any]) -> ServerConfig:
        """Restore a config previously produced by :meth:`to_snapshot`."""

        config = cls.from_handshake(snapshot)
        token = snapshot.get("token") or ""
        issued_at = snapshot.get("tokenIssuedAt")
        if token and issued_at is not None:
            config.token = str(token)
            config.token_issued_at = float(issued_at)
        return config

    def to_snapshot(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "requestType": self.request_type.value,
            "requestFix": self.request_fix,
            "moduleVar": self.module_var,
            "methodVar": self.method_var,
            "viewVar": self.view_var,
            "sessionVar": self.session_var,
            "sessionName": self.session_name,
            "sessionID": self.session_id,
            "random": self.random,
            "serverTime": self.server_time,
            "expiredTime": self.expired_time,
            "token": self.token,
            "tokenIssuedAt": self.token_issued_at,
        }

    @property
    def token_auth(self) -> str:
        return f"{self.session_name}={self.session_id}"

    @property
    def main_version(self) -> int:
        head = self.version.split(".")[0]
        match = re.search(r"\d+", head)
        return int(match.group()) if match else 0

    @property
    def edition(self) -> str:
        head = self.version.split(".")[0]
        prefix = re.match(r"[A-Za-z]*", head).group()
        return prefix.lower() or "open"

    def renew_token(self) -> None:
        """Mark the current session cookie as the authenticated token."""

        self.token = self.token_auth
        self.token_issued_at = time.time()

    def is_token_expired_at(self, now: float) -> bool:
        if self.token_issued_at is None:
            return True
        return now - self.token_issued_at > self.expired_time - TOKEN_EXPIRY_MARGIN

    @property
    def is_token_expired(self) -> bool:
        return self.is_token_expired_at(time.time())


@dataclass(slots=True)
class ClientConfig:
    """Typed configuration for `ZentaoClient`."""

    base_url: str
    account: str
    password: str = field(repr=False)
    session_name: str
    preserve_token: bool = True
    dispatch_mode: DispatchMode | None = None
    debug: bool = False
    timeout: float = 30.0
    verify_ssl: bool | str = True
    default_headers: Mapping[str, str] | None = None

    def resolved_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Accept": "application/json, text/plain, */*"}
        if self.default_headers:
            headers.update(self.default_headers)
        return headers


@dataclass(slots=True)
class ApiResult:
    """Uniform result of one API call; ``status`` is 1 on success and 0 otherwise."""

    status: int
    msg: Any = None
    result: Any = None

    @property
    def ok(self) -> bool:
        return self.status == 1

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status, "msg": self.msg, "result": self.result}
