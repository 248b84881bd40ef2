"""Middleware-composed HTTP client."""

from .client import HttpClient, delete, get, get_default_client, head, post, put, request
from .configs import HttpcConfig, httpc_config
from .exceptions import (
    DecodingError,
    HttpcError,
    MalformedUrlError,
    StatusError,
    TooManyRedirectsError,
    TransportError,
)
from .middleware import (
    accept_encoding_middleware,
    accept_middleware,
    basic_auth_middleware,
    compose,
    content_type_middleware,
    decompression_middleware,
    default_middlewares,
    input_coercion_middleware,
    logging_middleware,
    method_middleware,
    output_coercion_middleware,
    query_params_middleware,
    redirects_middleware,
    status_middleware,
    url_middleware,
    wrap,
)
from .models import BYTE_ARRAY, Request, Response
from .transport import HttpxTransport
from .types import Middleware, NextFn

__all__ = [
    "HttpClient",
    "HttpxTransport",
    "HttpcConfig",
    "httpc_config",
    "Request",
    "Response",
    "BYTE_ARRAY",
    "Middleware",
    "NextFn",
    "HttpcError",
    "TransportError",
    "MalformedUrlError",
    "TooManyRedirectsError",
    "DecodingError",
    "StatusError",
    "compose",
    "wrap",
    "default_middlewares",
    "url_middleware",
    "method_middleware",
    "content_type_middleware",
    "accept_encoding_middleware",
    "accept_middleware",
    "basic_auth_middleware",
    "query_params_middleware",
    "output_coercion_middleware",
    "input_coercion_middleware",
    "decompression_middleware",
    "redirects_middleware",
    "status_middleware",
    "logging_middleware",
    "get_default_client",
    "request",
    "get",
    "head",
    "post",
    "put",
    "delete",
]
