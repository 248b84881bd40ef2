"""Request/response transformers and their composition.

Every middleware is a callable ``(request, next) -> response`` produced by a
factory. A middleware whose triggering field is absent hands the request to
``next`` untouched. :func:`compose` nests a list of them, outermost first,
around a transport once, yielding the handler the client calls.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import Any
from urllib.parse import urljoin

from .configs import HttpcConfig
from .content import get_charset
from .exceptions import DecodingError, MalformedUrlError, StatusError, TooManyRedirectsError
from .models import BYTE_ARRAY, Request, Response
from .types import Middleware, NextFn
from .util import base64_encode, gunzip, inflate, parse_url, url_encode, utf8_bytes

logger = logging.getLogger(__name__)

REDIRECT_STATUSES = (301, 302, 307)
DEFAULT_ACCEPT_ENCODING = "gzip, deflate"


def get_header(headers: Mapping[str, str], name: str) -> str | None:
    name = name.lower()
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def wrap(middleware: Middleware, next: NextFn) -> NextFn:
    def handler(request: Request) -> Response:
        return middleware(request, next)

    return handler


def compose(middlewares: Sequence[Middleware], transport: NextFn) -> NextFn:
    handler = transport
    for middleware in reversed(middlewares):
        handler = wrap(middleware, handler)
    return handler


# Request shaping


def url_middleware() -> Middleware:
    def middleware(request: Request, next: NextFn) -> Response:
        if request.url is None:
            return next(request)
        return next(request.merge(url=None, **parse_url(request.url)))

    return middleware


def method_middleware() -> Middleware:
    def middleware(request: Request, next: NextFn) -> Response:
        if request.method is None:
            return next(request)
        return next(request.merge(method=None, request_method=request.method.upper()))

    return middleware


def content_type_value(value: str) -> str:
    """Expand a short tag such as ``"json"`` to ``"application/json"``."""
    if "/" in value:
        return value
    return f"application/{value}"


def content_type_middleware() -> Middleware:
    def middleware(request: Request, next: NextFn) -> Response:
        if request.content_type is None:
            return next(request)
        return next(request.merge(content_type=content_type_value(request.content_type)))

    return middleware


def accept_middleware() -> Middleware:
    def middleware(request: Request, next: NextFn) -> Response:
        if request.accept is None:
            return next(request)
        return next(request.merge(accept=None).with_headers(Accept=content_type_value(request.accept)))

    return middleware


def accept_encoding_value(accept_encoding: str | Sequence[str]) -> str:
    if isinstance(accept_encoding, str):
        return accept_encoding
    return ", ".join(accept_encoding)


def accept_encoding_middleware() -> Middleware:
    def middleware(request: Request, next: NextFn) -> Response:
        if request.accept_encoding is None:
            return next(request)
        value = accept_encoding_value(request.accept_encoding)
        return next(request.merge(accept_encoding=None).with_headers(**{"Accept-Encoding": value}))

    return middleware


def basic_auth_value(user: str, password: str) -> str:
    return "Basic " + base64_encode(utf8_bytes(f"{user}:{password}"))


def basic_auth_middleware() -> Middleware:
    def middleware(request: Request, next: NextFn) -> Response:
        if request.basic_auth is None:
            return next(request)
        user, password = request.basic_auth
        return next(
            request.merge(basic_auth=None).with_headers(Authorization=basic_auth_value(user, password))
        )

    return middleware


def generate_query_string(params: Mapping[str, Any]) -> str:
    pairs = []
    for key, value in params.items():
        values = value if isinstance(value, (list, tuple)) else [value]
        for item in values:
            pairs.append(f"{url_encode(str(key))}={url_encode(str(item))}")
    return "&".join(pairs)


def query_params_middleware() -> Middleware:
    def middleware(request: Request, next: NextFn) -> Response:
        if request.query_params is None:
            return next(request)
        return next(
            request.merge(query_params=None, query_string=generate_query_string(request.query_params))
        )

    return middleware


# Body coercion


def output_coercion_middleware(default_charset: str = "UTF-8") -> Middleware:
    def middleware(request: Request, next: NextFn) -> Response:
        response = next(request.merge(as_=None))
        body = response.body
        if body is None or request.as_ == BYTE_ARRAY or isinstance(body, str):
            return response
        charset = get_charset(response.headers.get("content-type"), default_charset)
        try:
            return response.with_body(body.decode(charset))
        except (UnicodeDecodeError, LookupError) as e:
            raise DecodingError(f"response from {response.url} is not valid {charset}: {e}") from e

    return middleware


def input_coercion_middleware() -> Middleware:
    def middleware(request: Request, next: NextFn) -> Response:
        if not isinstance(request.body, str):
            return next(request)
        return next(request.merge(body=utf8_bytes(request.body), character_encoding="UTF-8"))

    return middleware


def decompression_middleware() -> Middleware:
    def middleware(request: Request, next: NextFn) -> Response:
        if get_header(request.headers, "Accept-Encoding") is not None:
            return next(request)
        response = next(request.with_headers(**{"Accept-Encoding": DEFAULT_ACCEPT_ENCODING}))
        encoding = response.headers.get("content-encoding")
        if response.body is None or encoding not in ("gzip", "deflate"):
            return response
        body = gunzip(response.body) if encoding == "gzip" else inflate(response.body)
        headers = {k: v for k, v in response.headers.items() if k != "content-encoding"}
        return replace(response, headers=headers, body=body)

    return middleware


# Redirects and status policy


def redirect_target(request: Request, response: Response) -> Request | None:
    """Return the request to re-issue for ``response``, or None to stop."""
    method = request.request_method
    if response.status in REDIRECT_STATUSES and method in ("GET", "HEAD"):
        next_method = method
    elif response.status == 303 and method == "HEAD":
        next_method = "GET"
    else:
        return None

    location = response.headers.get("location")
    if not location:
        raise MalformedUrlError(
            f"{response.status} from {request.url_string} carries no location header",
            url=request.url_string,
        )
    target = urljoin(request.url_string, location)
    return request.merge(request_method=next_method, **parse_url(target))


def redirects_middleware(max_redirects: int | None = None) -> Middleware:
    def follow(request: Request, next: NextFn, hops: list[str]) -> Response:
        response = next(request)
        target = redirect_target(request, response)
        if target is None:
            return response
        hops = [*hops, request.url_string]
        if max_redirects is not None and len(hops) > max_redirects:
            raise TooManyRedirectsError(max_redirects, [*hops, target.url_string])
        logger.debug(f"redirect {response.status}: {request.url_string} -> {target.url_string}")
        return follow(target, next, hops)

    def middleware(request: Request, next: NextFn) -> Response:
        return follow(request, next, [])

    return middleware


def status_middleware(allowed_statuses: set[int]) -> Middleware:
    def middleware(request: Request, next: NextFn) -> Response:
        response = next(request)
        if response.status not in allowed_statuses:
            raise StatusError(response)
        return response

    return middleware


def logging_middleware(logger: logging.Logger | None = None) -> Middleware:
    log = logger or logging.getLogger(__name__)

    def middleware(request: Request, next: NextFn) -> Response:
        log.info(f"-> {request.request_method} {request.url_string}")
        response = next(request)
        log.info(f"<- {response.status} ({response.latency_ms}ms)")
        return response

    return middleware


def default_middlewares(config: HttpcConfig) -> list[Middleware]:
    """The standard stack, outermost first."""
    middlewares = [
        url_middleware(),
        method_middleware(),
        content_type_middleware(),
        accept_encoding_middleware(),
        accept_middleware(),
        basic_auth_middleware(),
        query_params_middleware(),
        output_coercion_middleware(config.DEFAULT_CHARSET),
        input_coercion_middleware(),
        decompression_middleware(),
        redirects_middleware(config.MAX_REDIRECTS),
        logging_middleware(),
    ]
    if config.RAISE_ON_STATUS:
        middlewares.insert(2, status_middleware(config.ALLOWED_STATUSES))
    return middlewares
