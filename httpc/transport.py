import logging
import threading
import time
from typing import Any

import httpx

from .configs import HttpcConfig, httpc_config
from .exceptions import TransportError
from .models import Request, Response

logger = logging.getLogger(__name__)


class HttpxTransport:
    """Performs one HTTP exchange for a canonical request.

    Redirects and content decoding are left to the middleware stack, so the
    underlying client never follows redirects and the body is read raw.
    """

    def __init__(
        self,
        config: HttpcConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self._config = config or httpc_config
        self._transport = transport
        self._client: httpx.Client | None = None
        self._lock = threading.Lock()

    def _ensure_client(self) -> httpx.Client:
        client = self._client
        if client is None:
            with self._lock:
                client = self._client
                if client is None:
                    client = httpx.Client(
                        limits=httpx.Limits(
                            max_connections=self._config.POOL_MAX_CONNECTIONS,
                            max_keepalive_connections=self._config.POOL_MAX_KEEPALIVE,
                            keepalive_expiry=self._config.POOL_KEEPALIVE_EXPIRY,
                        ),
                        timeout=self._config.TIMEOUT,
                        follow_redirects=False,
                        transport=self._transport,
                    )
                    # Accept-Encoding is owned by the decompression middleware.
                    client.headers.pop("Accept-Encoding", None)
                    self._client = client
        return client

    def close(self) -> None:
        with self._lock:
            if self._client:
                self._client.close()
                self._client = None

    def __enter__(self) -> "HttpxTransport":
        self._ensure_client()
        return self

    def __exit__(self, *_args: Any) -> None:
        self.close()

    def _build_headers(self, request: Request) -> dict[str, str]:
        headers = dict(request.headers)
        if request.content_type and not any(k.lower() == "content-type" for k in headers):
            value = request.content_type
            if request.character_encoding:
                value += f"; charset={request.character_encoding}"
            headers["Content-Type"] = value
        return headers

    def __call__(self, request: Request) -> Response:
        client = self._ensure_client()
        url = request.url_string
        start_time = time.time()

        try:
            with client.stream(
                method=request.request_method or "GET",
                url=url,
                headers=self._build_headers(request),
                content=request.body,
            ) as http_response:
                body = b"".join(http_response.iter_raw())
                status = http_response.status_code
                headers = {k.lower(): v for k, v in http_response.headers.items()}
        except (httpx.TransportError, httpx.InvalidURL) as e:
            raise TransportError(f"{request.request_method} {url} failed: {e}", url=url) from e

        latency_ms = int((time.time() - start_time) * 1000)

        return Response(
            status=status,
            headers=headers,
            body=body or None,
            latency_ms=latency_ms,
            url=url,
        )
