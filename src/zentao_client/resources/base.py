"""Common helpers for resource wrappers."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from ..builder import ResultConverter
from ..config import ApiResult
from ..params import RequestParams

if TYPE_CHECKING:  # pragma: no cover - import-time guard
    from ..client import ZentaoClient


def reload_means_success(_remote_data: Any, result: ApiResult) -> ApiResult:
    """Treat the ``reload`` script some create forms answer with as success."""

    if not result.status and isinstance(result.result, str) and "reload" in result.result:
        result.status = 1
        result.msg = "success"
        result.result = None
    return result


def fail_marker_means_failure(_remote_data: Any, result: ApiResult) -> ApiResult:
    """Surface an embedded ``{"result": "fail"}`` payload as a failed call."""

    payload = result.result
    if isinstance(payload, Mapping) and payload.get("result") == "fail":
        result.status = 0
        result.msg = payload.get("message")
        result.result = None
    return result


class ResourceBase:
    """Provide shared helpers for resource modules."""

    def __init__(self, client: ZentaoClient) -> None:
        self._client = client

    def _get(
        self,
        module_name: str,
        method_name: str,
        *,
        name: str,
        params: RequestParams = None,
        fields: Iterable[str] = (),
        extra_fields: Iterable[str] | None = None,
        result_converter: ResultConverter | None = None,
    ) -> ApiResult:
        return self._client.request(
            module_name,
            method_name,
            name=name,
            params=params,
            fields=[*fields, *(extra_fields or ())],
            result_converter=result_converter,
        )

    def _post(
        self,
        module_name: str,
        method_name: str,
        data: Mapping[str, Any],
        *,
        name: str,
        params: RequestParams = None,
        result_converter: ResultConverter | None = None,
    ) -> ApiResult:
        return self._client.request(
            module_name,
            method_name,
            name=name,
            method="POST",
            params=params,
            data=data,
            result_converter=result_converter,
        )
