import base64
import gzip
import zlib
from typing import Any
from urllib.parse import quote, urlsplit

from .exceptions import DecodingError, MalformedUrlError


def if_pos(value: int | None) -> int | None:
    if value and value > 0:
        return value
    return None


def parse_url(url: str | None) -> dict[str, Any]:
    """Split an absolute URL into the canonical request target fields."""
    if not url:
        raise MalformedUrlError("no URL given", url=url)
    try:
        parsed = urlsplit(url)
        port = parsed.port
    except ValueError as e:
        raise MalformedUrlError(f"malformed URL {url!r}: {e}", url=url) from e
    if not parsed.scheme or not parsed.hostname:
        raise MalformedUrlError(f"malformed URL {url!r}: scheme and host are required", url=url)
    return {
        "scheme": parsed.scheme,
        "server_name": parsed.hostname,
        "server_port": if_pos(port),
        "uri": parsed.path or "/",
        "query_string": parsed.query or None,
    }


def url_encode(value: str) -> str:
    return quote(value, safe="")


def utf8_bytes(value: str) -> bytes:
    return value.encode("utf-8")


def base64_encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def gunzip(data: bytes) -> bytes:
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise DecodingError(f"invalid gzip body: {e}") from e


def inflate(data: bytes) -> bytes:
    try:
        return zlib.decompress(data)
    except zlib.error:
        pass
    # Some servers send raw deflate without the zlib wrapper.
    try:
        return zlib.decompress(data, -zlib.MAX_WBITS)
    except zlib.error as e:
        raise DecodingError(f"invalid deflate body: {e}") from e
