"""High-level ZenTao client entrypoints."""
from .builder import RequestBuilder
from .client import ZentaoClient
from .config import ApiResult, DispatchMode, ServerConfig
from .exceptions import ZentaoError
from .params import merge_params, normalize_params

__all__ = [
    "ZentaoClient",
    "RequestBuilder",
    "ServerConfig",
    "DispatchMode",
    "ApiResult",
    "ZentaoError",
    "merge_params",
    "normalize_params",
]
