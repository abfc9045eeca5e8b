"""Request parameter normalization and merging."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Union
from urllib.parse import parse_qsl

ParamPair = tuple[str, Any]
RequestParams = Union[str, Mapping[str, Any], Sequence[Any], None]


def _is_pair(item: Any) -> bool:
    return isinstance(item, (list, tuple)) and len(item) == 2


def normalize_params(params: RequestParams = None) -> list[ParamPair]:
    """Turn any supported parameter shape into an ordered list of pairs.

    Accepted shapes:

    - ``None``: no parameters.
    - a query string such as ``"foo=bar&answer=42"``; pairs keep their textual order.
    - a sequence whose items are ``(key, value)`` pairs or bare values; a bare
      value becomes the positional pair ``("", value)``.
    - a mapping; keys are emitted in sorted order and values are kept verbatim.
    """

    if params is None:
        return []
    if isinstance(params, str):
        return [(key, value) for key, value in parse_qsl(params, keep_blank_values=True)]
    if isinstance(params, Mapping):
        return [(key, params[key]) for key in sorted(params)]
    normalized: list[ParamPair] = []
    for item in params:
        if _is_pair(item):
            normalized.append((item[0], item[1]))
        else:
            normalized.append(("", item))
    return normalized


def merge_params(params: RequestParams, *others: RequestParams) -> list[ParamPair]:
    """Merge parameter sources into one list of pairs.

    A named pair whose key already exists in the accumulated result is folded
    into that entry: the existing value becomes ``[existing, value]``, or the
    value is appended when the existing value is already a list. Positional
    pairs and new keys are appended.

    >>> merge_params({"foo": "bar"}, [["foo", "ter"], ["say", "hi"]])
    [('foo', ['bar', 'ter']), ('say', 'hi')]
    """

    merged: list[list[Any]] = [[key, value] for key, value in normalize_params(params)]
    for other in others:
        for key, value in normalize_params(other):
            if isinstance(key, str) and key:
                existing = next((entry for entry in merged if entry[0] == key), None)
                if existing is not None:
                    if isinstance(existing[1], list):
                        existing[1] = [*existing[1], value]
                    else:
                        existing[1] = [existing[1], value]
                    continue
            merged.append([key, value])
    return [(key, value) for key, value in merged]


def stringify_param(value: Any) -> str:
    """Render a parameter or form value the way the server expects it."""

    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(stringify_param(item) for item in value)
    return str(value)


def slim_object(obj: Any, fields: Sequence[str]) -> Any:
    """Return a copy of ``obj`` holding only ``fields``; non-mappings pass through."""

    if not isinstance(obj, Mapping):
        return obj
    return {field: obj[field] for field in fields if field in obj}


def flatten_form_data(data: Mapping[str, Any]) -> dict[str, Any]:
    """Expand list values into indexed ``key[n]`` form fields."""

    form: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, (list, tuple)):
            for index, item in enumerate(value):
                form[f"{key}[{index}]"] = item
        else:
            form[key] = value
    return form


__all__ = [
    "ParamPair",
    "RequestParams",
    "flatten_form_data",
    "merge_params",
    "normalize_params",
    "slim_object",
    "stringify_param",
]
