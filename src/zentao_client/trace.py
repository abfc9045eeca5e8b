"""Human-readable trace of a single API call for debug logging."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import parse_qsl

from .config import ApiResult

MASKED_FIELDS = frozenset({"password", "password1", "password2", "verifyPassword"})


def _render(value: Any) -> str:
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return repr(value)


def _form_fields(data: Any) -> list[tuple[str, Any]]:
    if isinstance(data, str):
        return parse_qsl(data, keep_blank_values=True)
    if isinstance(data, Mapping):
        return list(data.items())
    return []


def format_trace(
    name: str,
    *,
    method: str,
    url: str,
    status_code: int | None = None,
    reason: str = "",
    params: Sequence[tuple[str, Any]] | None = None,
    headers: Mapping[str, str] | None = None,
    data: Any = None,
    result: ApiResult | None = None,
    raw_text: str | None = None,
    error: BaseException | None = None,
) -> str:
    success = result.ok if result is not None else status_code == 200
    lines = [f"> {name} {'OK' if success else 'FAILED'}", f"  {method.upper()} {url}"]
    lines.append(f"    status: {status_code if status_code is not None else '-'} {reason}".rstrip())

    if params:
        lines.append("  Request Parameters")
        lines.extend(f"    {key}: {_render(value)}" for key, value in params)

    if headers:
        lines.append("  Request Headers")
        lines.extend(f"    {key}: {_render(value)}" for key, value in headers.items())

    fields = _form_fields(data)
    if fields:
        lines.append("  Request Data")
        for key, value in fields:
            shown = "******" if key in MASKED_FIELDS else _render(value)
            lines.append(f"    {key}: {shown}")

    if result is not None:
        lines.append("  Response Data")
        lines.append(f"    status: {result.status}")
        if result.msg is not None:
            lines.append(f"    msg: {_render(result.msg)}")
        if result.result is not None:
            lines.append(f"    result: {_render(result.result)}")

    if raw_text is not None and (result is None or not success or result.result is None):
        lines.append("  Response Text")
        lines.append(f"    {raw_text}")

    if error is not None:
        lines.append("  Error")
        lines.append(f"    {error}")

    return "\n".join(lines)
