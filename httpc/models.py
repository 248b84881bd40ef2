import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, fields, replace
from typing import Any

BYTE_ARRAY = "byte-array"

# Fields that only exist before the middleware stack resolves them.
PRE_CANONICAL_FIELDS = (
    "url",
    "method",
    "query_params",
    "basic_auth",
    "accept",
    "accept_encoding",
    "as_",
)

DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class Request:
    scheme: str | None = None
    server_name: str | None = None
    server_port: int | None = None
    uri: str | None = None
    query_string: str | None = None
    request_method: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | str | None = None
    content_type: str | None = None
    character_encoding: str | None = None

    url: str | None = None
    method: str | None = None
    query_params: Mapping[str, Any] | None = None
    basic_auth: tuple[str, str] | None = None
    accept: str | None = None
    accept_encoding: Sequence[str] | None = None
    as_: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Request":
        """Build a request from a mapping.

        Keys may use the hyphenated wire spelling (``"server-name"``,
        ``"query-params"``, ``"as"``) or the attribute spelling.
        """
        return cls(**normalize_fields(data))

    def merge(self, **changes: Any) -> "Request":
        return replace(self, **changes)

    def with_headers(self, **headers: str) -> "Request":
        # Header names match case-insensitively; a new value replaces any spelling.
        replaced = {name.lower() for name in headers}
        kept = {k: v for k, v in self.headers.items() if k.lower() not in replaced}
        return replace(self, headers={**kept, **headers})

    def pending_fields(self) -> list[str]:
        return [name for name in PRE_CANONICAL_FIELDS if getattr(self, name) is not None]

    @property
    def url_string(self) -> str:
        scheme = self.scheme or "http"
        netloc = self.server_name or ""
        # IPv6 literals come out of parse_url without their brackets.
        if ":" in netloc:
            netloc = f"[{netloc}]"
        if self.server_port and self.server_port != DEFAULT_PORTS.get(scheme):
            netloc += f":{self.server_port}"
        target = f"{scheme}://{netloc}{self.uri or '/'}"
        if self.query_string:
            target += f"?{self.query_string}"
        return target


def normalize_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    known = {f.name for f in fields(Request)}
    normalized: dict[str, Any] = {}
    for key, value in data.items():
        name = key.replace("-", "_")
        if name == "as":
            name = "as_"
        if name not in known:
            raise TypeError(f"Unknown request field: {key!r}")
        normalized[name] = value
    return normalized


@dataclass(frozen=True)
class Response:
    status: int | None
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | str | None = None
    latency_ms: int = 0
    url: str | None = None
    error: str | None = None

    @classmethod
    def from_error(cls, url: str, exc: BaseException) -> "Response":
        return cls(status=None, url=url, error=f"{type(exc).__name__}: {exc}")

    @property
    def ok(self) -> bool:
        return self.status is not None and 200 <= self.status < 400

    @property
    def is_error(self) -> bool:
        return self.status is None

    def with_body(self, body: bytes | str | None) -> "Response":
        return replace(self, body=body)

    def json(self) -> Any:
        if self.body is None:
            return None
        return json.loads(self.body)

    def text(self) -> str:
        if self.body is None:
            return ""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body
