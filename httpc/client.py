import logging
import threading
from collections.abc import Mapping
from typing import Any

from .configs import HttpcConfig, httpc_config
from .exceptions import TransportError
from .ext_logging import trace_id_generator, trace_id_var
from .middleware import compose, default_middlewares
from .models import Request, Response, normalize_fields
from .transport import HttpxTransport
from .types import Middleware, NextFn

logger = logging.getLogger(__name__)

RequestLike = Request | Mapping[str, Any] | None


class HttpClient:
    """Composed middleware stack plus the GET/HEAD/POST/PUT/DELETE facade.

    ``request`` is the raw composed handler and raises on failure. The verb
    methods turn transport failures into an error response instead; decoding
    and status errors still propagate.
    """

    def __init__(
        self,
        config: HttpcConfig | None = None,
        middlewares: list[Middleware] | None = None,
        transport: NextFn | None = None,
    ):
        self._config = config or httpc_config
        self._middlewares = middlewares if middlewares is not None else default_middlewares(self._config)
        self._transport = transport or HttpxTransport(self._config)
        self._handler = compose(self._middlewares, self._transport)

    def close(self) -> None:
        close = getattr(self._transport, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *_args: Any) -> None:
        self.close()

    def request(self, req: RequestLike = None, **fields: Any) -> Response:
        return self._handler(_build_request(req, fields))

    def _call(self, method: str, url: str, req: RequestLike, fields: dict[str, Any]) -> Response:
        request = _build_request(req, fields).merge(method=method, url=url)
        token = trace_id_var.set(trace_id_var.get() or trace_id_generator())
        try:
            return self._handler(request)
        except TransportError as e:
            logger.warning(f"{method} {url} failed: {e}")
            return Response.from_error(url, e)
        finally:
            trace_id_var.reset(token)

    def get(self, url: str, req: RequestLike = None, **fields: Any) -> Response:
        return self._call("GET", url, req, fields)

    def head(self, url: str, req: RequestLike = None, **fields: Any) -> Response:
        return self._call("HEAD", url, req, fields)

    def post(self, url: str, req: RequestLike = None, **fields: Any) -> Response:
        return self._call("POST", url, req, fields)

    def put(self, url: str, req: RequestLike = None, **fields: Any) -> Response:
        return self._call("PUT", url, req, fields)

    def delete(self, url: str, req: RequestLike = None, **fields: Any) -> Response:
        return self._call("DELETE", url, req, fields)


def _build_request(req: RequestLike, fields: dict[str, Any]) -> Request:
    if req is None:
        request = Request()
    elif isinstance(req, Request):
        request = req
    else:
        request = Request.from_dict(req)
    if fields:
        request = request.merge(**normalize_fields(fields))
    return request


_default_client: HttpClient | None = None
_default_client_lock = threading.Lock()


def get_default_client() -> HttpClient:
    global _default_client
    if _default_client is None:
        with _default_client_lock:
            if _default_client is None:
                _default_client = HttpClient()
    return _default_client


def request(req: RequestLike = None, **fields: Any) -> Response:
    """Run ``req`` through the default stack; transport errors are raised."""
    return get_default_client().request(req, **fields)


def get(url: str, req: RequestLike = None, **fields: Any) -> Response:
    return get_default_client().get(url, req, **fields)


def head(url: str, req: RequestLike = None, **fields: Any) -> Response:
    return get_default_client().head(url, req, **fields)


def post(url: str, req: RequestLike = None, **fields: Any) -> Response:
    return get_default_client().post(url, req, **fields)


def put(url: str, req: RequestLike = None, **fields: Any) -> Response:
    return get_default_client().put(url, req, **fields)


def delete(url: str, req: RequestLike = None, **fields: Any) -> Response:
    return get_default_client().delete(url, req, **fields)
