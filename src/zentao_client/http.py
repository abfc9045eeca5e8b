"""HTTP utilities for ZenTao API access."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from requests import Response, Session

from .exceptions import TransportError


@dataclass(slots=True)
class HttpResponse:
    """Typed response wrapper with helper accessors."""

    status_code: int
    reason: str
    data: Any
    text: str
    headers: Mapping[str, str]


def ensure_success(response: Response) -> None:
    """Raise `TransportError` if the response signals a failure."""

    if 200 <= response.status_code < 300:
        return
    message = f"ZenTao server error {response.status_code}: {response.text[:200]}"
    raise TransportError(message, status_code=response.status_code, details=response.text)


def parse_body(response: Response) -> Any:
    """Decode a JSON body, falling back to the raw text.

    ZenTao answers some operations with HTML or script fragments instead of
    JSON, so a body that does not decode is returned as text.
    """

    text = response.text
    if not text:
        return text
    try:
        return json.loads(text)
    except ValueError:
        return text


def request(
    session: Session,
    method: str,
    url: str,
    *,
    headers: Mapping[str, str] | None = None,
    data_payload: Any | None = None,
    timeout: float | tuple[float, float] | None = None,
    verify: bool | str = True,
) -> HttpResponse:
    """Make a request and return a parsed response envelope."""

    response = session.request(
        method=method,
        url=url,
        headers=headers,
        data=data_payload,
        timeout=timeout,
        verify=verify,
    )
    ensure_success(response)

    return HttpResponse(
        status_code=response.status_code,
        reason=response.reason or "",
        data=parse_body(response),
        text=response.text,
        headers=response.headers,
    )
