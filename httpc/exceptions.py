from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Response


class HttpcError(Exception):
    """Base class for every error raised by the client."""


class TransportError(HttpcError):
    """The request could not be carried out (connection, DNS, timeout, protocol)."""

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message)
        self.url = url


class MalformedUrlError(TransportError):
    pass


class TooManyRedirectsError(TransportError):
    def __init__(self, max_redirects: int, hops: list[str]):
        self.max_redirects = max_redirects
        self.hops = hops
        super().__init__(
            f"Redirect chain exceeded {max_redirects} hops: {' -> '.join(hops)}",
            url=hops[0] if hops else None,
        )


class DecodingError(HttpcError):
    """A response body could not be decompressed or decoded."""


class StatusError(HttpcError):
    def __init__(self, response: "Response"):
        self.response = response
        super().__init__(f"Unexpected status {response.status} from {response.url}")
