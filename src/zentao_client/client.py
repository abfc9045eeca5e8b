"""High-level ZenTao API client."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, MutableMapping, Sequence
from typing import Any
from urllib.parse import quote, urlencode

import requests
import urllib3
from urllib3.exceptions import InsecureRequestWarning

from .builder import RequestBuilder, RequestData, ResultConverter
from .catalog import resolve_operation, snake_case_params
from .config import ApiResult, ClientConfig, DispatchMode, ServerConfig, normalize_base_url
from .exceptions import ConfigurationError, TransportError, UnexpectedResponseError
from .http import HttpResponse
from .http import request as http_request
from .params import ParamPair, RequestParams, flatten_form_data, normalize_params, slim_object, stringify_param
from .resources import (
    BugsResource,
    DeptsResource,
    ProductsResource,
    ProjectsResource,
    TasksResource,
    UsersResource,
)
from .store import ConfigStore, JsonFileConfigStore
from .trace import format_trace

logger = logging.getLogger(__name__)

LOGIN_OPERATION = "user/login"
SESSION_LABEL_PREFIX = "zentao::"
# encodeURIComponent leaves these unescaped
URI_COMPONENT_SAFE = "-_.!~*'()"


class ZentaoClient:
    """Session-aware client for the ZenTao RPC-over-HTTP API.

    The client fetches the server dispatch config, logs in on demand and keeps
    the session token fresh. When ``preserve_token`` is enabled the config and
    token are persisted under the session label so later instances can reuse
    them without logging in again.
    """

    def __init__(
        self,
        *,
        url: str,
        account: str,
        password: str,
        access_mode: DispatchMode | str | None = None,
        preserve_token: bool = True,
        session_name: str | None = None,
        debug: bool = False,
        timeout: float = 30.0,
        verify_ssl: bool | str = True,
        default_headers: Mapping[str, str] | None = None,
        session: requests.Session | None = None,
        store: ConfigStore | None = None,
    ) -> None:
        base_url = normalize_base_url(url)
        self._identifier = f"{account}@{base_url}"
        self.config = ClientConfig(
            base_url=base_url,
            account=account,
            password=password,
            session_name=f"{SESSION_LABEL_PREFIX}{session_name or self._identifier}",
            preserve_token=preserve_token,
            dispatch_mode=DispatchMode.parse(access_mode) if access_mode else None,
            debug=debug,
            timeout=timeout,
            verify_ssl=verify_ssl,
            default_headers=default_headers,
        )
        self._suppress_insecure_warning_if_needed()
        self._session = session or requests.Session()
        self._server_config: ServerConfig | None = None
        self._store: ConfigStore | None = None
        if preserve_token:
            self._store = store or JsonFileConfigStore.default()
            self._restore_server_config()

        self.depts = DeptsResource(self)
        self.users = UsersResource(self)
        self.products = ProductsResource(self)
        self.projects = ProjectsResource(self)
        self.tasks = TasksResource(self)
        self.bugs = BugsResource(self)

        logger.debug(
            "ZenTao client %s created (url=%s, preserve_token=%s, request_type=%s)",
            self.session_name,
            self.url,
            preserve_token,
            self.request_type.value,
        )

    # Context manager helpers -------------------------------------------------
    def __enter__(self) -> ZentaoClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - passthrough
        self.close()

    # Identity ----------------------------------------------------------------
    @property
    def url(self) -> str:
        return self.config.base_url

    @property
    def account(self) -> str:
        return self.config.account

    @property
    def password(self) -> str:
        return self.config.password

    @property
    def identifier(self) -> str:
        return self._identifier

    @property
    def session_name(self) -> str:
        return self.config.session_name

    @property
    def server_config(self) -> ServerConfig | None:
        return self._server_config

    @property
    def request_type(self) -> DispatchMode:
        if self.config.dispatch_mode is not None:
            return self.config.dispatch_mode
        if self._server_config is not None:
            return self._server_config.request_type
        return DispatchMode.QUERY_PARAMS

    @property
    def token(self) -> str:
        return self._server_config.token if self._server_config else ""

    # Public API --------------------------------------------------------------
    def fetch_config(self) -> ServerConfig:
        """Fetch the dispatch config from the server and replace the current one."""

        url = f"{self.url}?mode=getconfig"
        self._log_request("GET", url)
        try:
            response = self._perform_request("GET", url, headers=self.config.resolved_headers())
        except TransportError as exc:
            self._trace("fetchConfig", method="GET", url=url, error=exc)
            raise
        if not isinstance(response.data, Mapping):
            raise UnexpectedResponseError(
                "ZenTao config handshake did not return a JSON object",
                status_code=response.status_code,
                details=response.text[:200],
            )
        self._server_config = ServerConfig.from_handshake(response.data)
        self._trace(
            "fetchConfig",
            method="GET",
            url=url,
            status_code=response.status_code,
            reason=response.reason,
            raw_text=response.text,
        )
        return self._server_config

    def login(self) -> ApiResult:
        """Fetch a fresh config and log in; on success ``result`` holds the user object."""

        self.fetch_config()

        def _extract_user(remote_data: Any, result: ApiResult) -> ApiResult:
            if isinstance(remote_data, Mapping) and remote_data.get("user"):
                result.result = remote_data["user"]
            return result

        return (
            self.module("user", "login")
            .use_converter(_extract_user)
            .post({"account": self.account, "password": self.password})
        )

    def module(
        self,
        module_name: str,
        method_name: str | None = None,
        params: RequestParams = None,
    ) -> RequestBuilder:
        return RequestBuilder(self, module_name, method_name, params)

    def m(
        self,
        module_name: str,
        method_name: str | None = None,
        params: RequestParams = None,
    ) -> RequestBuilder:
        """Alias of :meth:`module`, named after the server's module variable."""
        return self.module(module_name, method_name, params)

    def request(
        self,
        module_name: str,
        method_name: str = "index",
        *,
        params: RequestParams = None,
        data: RequestData = None,
        name: str | None = None,
        method: str | None = None,
        url: str | None = None,
        result_converter: ResultConverter | None = None,
        fields: Sequence[str] | None = None,
    ) -> ApiResult:
        is_login = f"{module_name}/{method_name}".lower() == LOGIN_OPERATION
        if not is_login and (self._server_config is None or self._server_config.is_token_expired):
            self.login()

        server_config = self._server_config
        if server_config is None:
            raise ConfigurationError(
                "ZenTao config is empty, make sure the config is fetched before "
                f"requesting {module_name}-{method_name}."
            )

        pairs = normalize_params(params)
        target_url = url or self.create_url(module_name, method_name, pairs)
        display_name = name or f"{module_name}{method_name[:1].upper()}{method_name[1:]}"
        verb = (method or "GET").upper()
        headers = self._prepare_headers(server_config)
        body = self._encode_data(data, headers)

        self._log_request(verb, target_url)
        try:
            response = self._perform_request(verb, target_url, headers=headers, data_payload=body)
        except TransportError as exc:
            logger.warning("ZenTao request %s failed: %s", display_name, exc)
            self._trace(
                display_name,
                method=verb,
                url=target_url,
                params=pairs,
                headers=headers,
                data=body,
                error=exc,
            )
            raise

        remote_data = response.data
        result = self._normalize_result(remote_data)
        if result_converter is not None:
            result = result_converter(remote_data, result)
        if fields:
            result.result = self._filter_fields(result.result, fields)

        if is_login and result.status == 1:
            server_config.renew_token()
            if self._store is not None:
                self._store.set(self.session_name, server_config.to_snapshot())

        self._trace(
            display_name,
            method=verb,
            url=target_url,
            status_code=response.status_code,
            reason=response.reason,
            params=pairs,
            headers=headers,
            data=body,
            result=result,
            raw_text=response.text,
        )
        return result

    def create_url(
        self,
        module_name: str,
        method_name: str = "index",
        params: Sequence[ParamPair] | None = None,
    ) -> str:
        """Build the request URL for the active dispatch mode."""

        config = self._server_config
        if config is None:
            raise ConfigurationError(
                "ZenTao config is empty, make sure the config is fetched before building URLs."
            )

        parts = [self.url]
        if self.request_type is DispatchMode.PATH_SEGMENTS:
            parts.extend((module_name, config.request_fix, method_name))
            for _, value in params or ():
                parts.extend((config.request_fix, stringify_param(value)))
            parts.append(".json")
        else:
            parts.append(
                f"?{config.module_var}={module_name}&{config.method_var}={method_name}"
            )
            for key, value in params or ():
                encoded = quote(stringify_param(value), safe=URI_COMPONENT_SAFE)
                parts.append(f"&{key}={encoded}")
            parts.append(f"&{config.view_var}=json")
        return "".join(parts)

    def call(self, api_name: str, params: Mapping[str, Any] | None = None, **kwargs: Any) -> ApiResult:
        """Invoke a catalog operation by name, e.g. ``call("getProductList", {"status": "all"})``."""

        handler = resolve_operation(self, api_name)
        arguments = snake_case_params({**(params or {}), **kwargs})
        return handler(**arguments)

    def close(self) -> None:
        self._session.close()

    # Internal helpers -------------------------------------------------------
    def _restore_server_config(self) -> None:
        if self._store is None:
            return
        snapshot = self._store.get(self.session_name)
        if not snapshot:
            return
        self._server_config = ServerConfig.from_snapshot(snapshot)
        logger.debug("Loaded ZenTao config for %s from the session store", self.session_name)

    def _prepare_headers(self, server_config: ServerConfig) -> MutableMapping[str, str]:
        headers = self.config.resolved_headers()
        headers["Cookie"] = server_config.token_auth
        return headers

    @staticmethod
    def _encode_data(data: RequestData, headers: MutableMapping[str, str]) -> str | None:
        if data is None:
            return None
        if isinstance(data, Mapping):
            form = flatten_form_data(data)
            data = urlencode([(key, stringify_param(value)) for key, value in form.items()])
        headers["Content-Type"] = "application/x-www-form-urlencoded"
        return data

    @staticmethod
    def _normalize_result(remote_data: Any) -> ApiResult:
        if not isinstance(remote_data, MutableMapping):
            return ApiResult(status=0, msg="error", result=remote_data)

        inner = remote_data.get("data")
        if isinstance(inner, str) and inner[:1] in ("[", "{"):
            try:
                remote_data["data"] = json.loads(inner)
            except ValueError:
                logger.debug("Leaving undecodable data field as text")

        success = remote_data.get("status") == "success" or remote_data.get("result") == "success"
        message = remote_data.get("message")
        payload = remote_data.get("data")
        return ApiResult(
            status=1 if success else 0,
            msg=message if message is not None else ("success" if success else "error"),
            result=payload if payload is not None else remote_data.get("result"),
        )

    @staticmethod
    def _filter_fields(payload: Any, fields: Sequence[str]) -> Any:
        if isinstance(payload, list):
            return [slim_object(item, fields) for item in payload]
        if isinstance(payload, Mapping):
            return slim_object(payload, fields)
        return payload

    def _perform_request(
        self,
        method: str,
        url: str,
        *,
        headers: MutableMapping[str, str],
        data_payload: str | None = None,
    ) -> HttpResponse:
        try:
            return http_request(
                self._session,
                method,
                url,
                headers=headers,
                data_payload=data_payload,
                timeout=self.config.timeout,
                verify=self.config.verify_ssl,
            )
        except requests.RequestException as exc:
            reason = str(exc).strip() or exc.__class__.__name__
            raise TransportError(
                f"Failed to communicate with ZenTao server: {reason}", details=reason
            ) from exc

    def _log_request(self, method: str, url: str) -> None:
        logger.info("ZenTao request %s %s (session=%s)", method.upper(), url, self.session_name)

    def _trace(self, name: str, **attributes: Any) -> None:
        if not self.config.debug:
            return
        logger.debug("%s", format_trace(name, **attributes))

    def _suppress_insecure_warning_if_needed(self) -> None:
        if isinstance(self.config.verify_ssl, bool) and not self.config.verify_ssl:
            urllib3.disable_warnings(InsecureRequestWarning)
