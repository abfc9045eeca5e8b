"""Fluent request builder bound to a `ZentaoClient`."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any, Union

from .config import ApiResult
from .params import RequestParams, merge_params

if TYPE_CHECKING:  # pragma: no cover - import-time guard
    from .client import ZentaoClient

ResultConverter = Callable[[Any, ApiResult], ApiResult]
RequestData = Union[str, Mapping[str, Any], None]


class RequestBuilder:
    """Accumulate the pieces of one API call, then send it.

    Example::

        client.module("product").method("all").with_params({"status": "noclosed"}).get()
    """

    def __init__(
        self,
        client: ZentaoClient,
        module_name: str,
        method_name: str | None = None,
        params: RequestParams = None,
    ) -> None:
        self.client = client
        self.module_name = module_name
        self.method_name = method_name or "index"
        self.params: RequestParams = params
        self.data: RequestData = None
        self.fields: list[str] | None = None
        self.result_converter: ResultConverter | None = None
        self.name: str | None = None
        self.url: str | None = None

    def method(self, name: str) -> RequestBuilder:
        self.method_name = name
        return self

    def f(self, name: str) -> RequestBuilder:
        """Alias of :meth:`method`, named after the server's method variable."""
        return self.method(name)

    def with_params(self, params: RequestParams) -> RequestBuilder:
        self.params = params
        return self

    def append_params(self, params: RequestParams) -> RequestBuilder:
        """Merge ``params`` into the stored ones instead of replacing them."""
        if self.params:
            self.params = merge_params(self.params, params)
        else:
            self.params = params
        return self

    def with_data(self, data: RequestData) -> RequestBuilder:
        self.data = data
        return self

    def named(self, name: str) -> RequestBuilder:
        self.name = name
        return self

    def with_url(self, url: str) -> RequestBuilder:
        self.url = url
        return self

    def use_converter(self, converter: ResultConverter) -> RequestBuilder:
        self.result_converter = converter
        return self

    def filter_fields(self, *fields: str | Iterable[str] | None) -> RequestBuilder:
        """Keep only ``fields`` in the result; nested lists are flattened and ``None`` skipped.

        Called without any field names, the filter is cleared.
        """
        flattened: list[str] = []
        for entry in fields:
            if entry is None:
                continue
            if isinstance(entry, str):
                flattened.append(entry)
            else:
                flattened.extend(item for item in entry if item is not None)
        self.fields = flattened or None
        return self

    def get(self) -> ApiResult:
        return self.request("GET")

    def post(self, data: RequestData = None) -> ApiResult:
        return self._send("POST", data if data is not None else self.data)

    def request(self, method: str | None = None) -> ApiResult:
        return self._send(method, self.data)

    def _send(self, method: str | None, data: RequestData) -> ApiResult:
        return self.client.request(
            self.module_name,
            self.method_name,
            method=method,
            params=self.params,
            data=data,
            fields=self.fields,
            result_converter=self.result_converter,
            name=self.name,
            url=self.url,
        )
