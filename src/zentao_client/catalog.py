"""Registry mapping catalog operation names to resource methods."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from .exceptions import ApiNotFoundError

if TYPE_CHECKING:  # pragma: no cover - import-time guard
    from .client import ZentaoClient
    from .config import ApiResult

# operation name -> (client resource attribute, resource method)
OPERATIONS: Mapping[str, tuple[str, str]] = {
    "getDeptList": ("depts", "list"),
    "addDept": ("depts", "add"),
    "getUserList": ("users", "list"),
    "getUserCreateParams": ("users", "create_params"),
    "addUser": ("users", "add"),
    "getProductList": ("products", "list"),
    "getProduct": ("products", "get"),
    "getProductCreateParams": ("products", "create_params"),
    "addProduct": ("products", "add"),
    "getProjectList": ("projects", "list"),
    "getProject": ("projects", "get"),
    "getProjectCreateParams": ("projects", "create_params"),
    "addProject": ("projects", "add"),
    "getTaskList": ("tasks", "list"),
    "getTask": ("tasks", "get"),
    "getTaskCreateParams": ("tasks", "create_params"),
    "addTask": ("tasks", "add"),
    "getTaskFinishParams": ("tasks", "finish_params"),
    "finishTask": ("tasks", "finish"),
    "getBugList": ("bugs", "list"),
    "getBug": ("bugs", "get"),
    "getBugCreateParams": ("bugs", "create_params"),
    "addBug": ("bugs", "add"),
    "getBugResolveParams": ("bugs", "resolve_params"),
    "resolveBug": ("bugs", "resolve"),
}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def to_snake_case(name: str) -> str:
    """Convert server-style names such as ``productID`` to ``product_id``."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def snake_case_params(params: Mapping[str, Any]) -> dict[str, Any]:
    return {to_snake_case(key): value for key, value in params.items()}


def resolve_operation(client: ZentaoClient, api_name: str) -> Callable[..., ApiResult]:
    try:
        resource_name, method_name = OPERATIONS[api_name]
    except KeyError as exc:
        raise ApiNotFoundError(f'Api method named "{api_name}" is undefined.') from exc
    return getattr(getattr(client, resource_name), method_name)


__all__ = ["OPERATIONS", "resolve_operation", "snake_case_params", "to_snake_case"]
