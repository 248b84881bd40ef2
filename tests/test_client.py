import gzip
from unittest.mock import patch

import httpx
import pytest

import httpc
from httpc.client import HttpClient
from httpc.configs import HttpcConfig
from httpc.exceptions import DecodingError, StatusError, TransportError
from httpc.ext_logging import trace_id_var
from httpc.models import BYTE_ARRAY, Request, Response
from httpc.transport import HttpxTransport


class FakeTransport:
    """Serves canned responses keyed by target URL and records what it was sent."""

    def __init__(self, routes: dict[str, Response]):
        self.routes = routes
        self.requests: list[Request] = []

    def __call__(self, request: Request) -> Response:
        self.requests.append(request)
        url = request.url_string
        if url not in self.routes:
            raise TransportError(f"connection refused: {url}", url=url)
        return self.routes[url]


def gzipped(text: str, charset: str = "utf-8") -> Response:
    return Response(
        status=200,
        headers={"content-encoding": "gzip", "content-type": f"text/plain; charset={charset}"},
        body=gzip.compress(text.encode(charset)),
    )


class TestHttpClientRequest:
    def test_simple_get(self):
        transport = FakeTransport({"https://api.example.com/data": Response(status=200, body=b'{"ok": true}')})
        with HttpClient(transport=transport) as client:
            response = client.get("https://api.example.com/data")

        assert response.status == 200
        assert response.body == '{"ok": true}'
        assert response.json() == {"ok": True}

    def test_request_is_fully_canonical_at_transport(self):
        transport = FakeTransport({"https://api.example.com/search?q=x%20y&page=2": Response(status=200)})
        with HttpClient(transport=transport) as client:
            client.post(
                "https://api.example.com/search",
                {
                    "query-params": {"q": "x y", "page": 2},
                    "basic-auth": ("bob", "secret"),
                    "accept": "json",
                    "accept-encoding": ["gzip"],
                    "content-type": "json",
                    "as": BYTE_ARRAY,
                    "body": '{"a": 1}',
                },
            )

        sent = transport.requests[0]
        assert sent.pending_fields() == []
        assert sent.request_method == "POST"
        assert sent.body == b'{"a": 1}'
        assert sent.character_encoding == "UTF-8"
        assert sent.content_type == "application/json"
        assert sent.headers == {
            "Accept-Encoding": "gzip",
            "Accept": "application/json",
            "Authorization": httpc.middleware.basic_auth_value("bob", "secret"),
        }

    def test_caller_request_untouched(self):
        base = Request(headers={"X-Api-Key": "secret"}, query_params={"a": 1})
        transport = FakeTransport({"http://h/?a=1": Response(status=200)})
        with HttpClient(transport=transport) as client:
            client.get("http://h", base)
            client.get("http://h", base)

        assert base == Request(headers={"X-Api-Key": "secret"}, query_params={"a": 1})
        assert [r.headers["X-Api-Key"] for r in transport.requests] == ["secret", "secret"]

    def test_ipv6_literal_url(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, stream=httpx.ByteStream(b"ok"))

        with HttpClient(transport=HttpxTransport(transport=httpx.MockTransport(handler))) as client:
            response = client.get("http://[::1]:8080/p")

        assert not response.is_error
        assert response.status == 200
        assert response.body == "ok"
        assert response.url == "http://[::1]:8080/p"

    def test_keyword_fields(self):
        transport = FakeTransport({"http://h/": Response(status=200, body=b"\x00\x01")})
        with HttpClient(transport=transport) as client:
            response = client.get("http://h", as_=BYTE_ARRAY, headers={"X-Test": "1"})

        assert response.body == b"\x00\x01"
        assert transport.requests[0].headers["X-Test"] == "1"

    @pytest.mark.parametrize("verb", ["get", "head", "post", "put", "delete"])
    def test_verbs_set_method(self, verb):
        transport = FakeTransport({"http://h/": Response(status=200)})
        with HttpClient(transport=transport) as client:
            getattr(client, verb)("http://h/")

        assert transport.requests[0].request_method == verb.upper()


class TestStackInteraction:
    def test_decompression_before_output_coercion(self):
        transport = FakeTransport({"http://h/": gzipped("grüße", charset="iso-8859-1")})
        with HttpClient(transport=transport) as client:
            response = client.get("http://h/")

        assert response.body == "grüße"
        assert transport.requests[0].headers == {"Accept-Encoding": "gzip, deflate"}

    def test_byte_array_still_decompressed(self):
        transport = FakeTransport({"http://h/": gzipped("hello")})
        with HttpClient(transport=transport) as client:
            response = client.get("http://h/", as_=BYTE_ARRAY)

        assert response.body == b"hello"

    def test_explicit_accept_encoding_keeps_compressed_body(self):
        compressed = gzipped("hello")
        transport = FakeTransport({"http://h/": compressed})
        with HttpClient(transport=transport) as client:
            response = client.get("http://h/", headers={"Accept-Encoding": "gzip"}, as_=BYTE_ARRAY)

        assert response.body == compressed.body
        assert transport.requests[0].headers == {"Accept-Encoding": "gzip"}

    def test_redirect_equals_direct_fetch(self):
        routes = {
            "http://a.example.com/start": Response(status=302, headers={"location": "http://b.example.com/final"}),
            "http://b.example.com/final": gzipped("héllo"),
        }
        with HttpClient(transport=FakeTransport(routes)) as client:
            redirected = client.get("http://a.example.com/start", headers={"X-Test": "1"})
            direct = client.get("http://b.example.com/final", headers={"X-Test": "1"})

        assert redirected == direct
        assert redirected.body == "héllo"

    def test_redirect_replays_headers_and_method(self):
        routes = {
            "http://h/start": Response(status=307, headers={"location": "/final"}),
            "http://h/final": Response(status=200),
        }
        transport = FakeTransport(routes)
        with HttpClient(transport=transport) as client:
            client.head("http://h/start", basic_auth=("bob", "secret"))

        first, second = transport.requests
        assert second.request_method == "HEAD"
        assert second.headers == first.headers
        assert "Authorization" in second.headers

    def test_head_303_reissued_as_get(self):
        routes = {
            "http://h/start": Response(status=303, headers={"location": "http://h/other"}),
            "http://h/other": Response(status=200),
        }
        transport = FakeTransport(routes)
        with HttpClient(transport=transport) as client:
            client.head("http://h/start")

        assert [r.request_method for r in transport.requests] == ["HEAD", "GET"]

    def test_non_2xx_passes_through(self):
        transport = FakeTransport({"http://h/": Response(status=500, body=b"boom")})
        with HttpClient(transport=transport) as client:
            response = client.get("http://h/")

        assert response.status == 500
        assert response.body == "boom"


class TestErrorTranslation:
    def test_transport_error_becomes_error_response(self):
        with HttpClient(transport=FakeTransport({})) as client:
            response = client.get("http://unreachable.example.com/x")

        assert response.is_error
        assert response.url == "http://unreachable.example.com/x"
        assert "connection refused" in response.error

    def test_malformed_url_becomes_error_response(self):
        with HttpClient(transport=FakeTransport({})) as client:
            response = client.get("not a url")

        assert response.is_error
        assert response.url == "not a url"
        assert response.error.startswith("MalformedUrlError")

    def test_redirect_loop_becomes_error_response(self):
        routes = {"http://h/loop": Response(status=302, headers={"location": "http://h/loop"})}
        with HttpClient(config=HttpcConfig(MAX_REDIRECTS=2), transport=FakeTransport(routes)) as client:
            response = client.get("http://h/loop")

        assert response.is_error
        assert response.error.startswith("TooManyRedirectsError")

    def test_request_raises(self):
        with HttpClient(transport=FakeTransport({})) as client:
            with pytest.raises(TransportError):
                client.request(url="http://h/", method="GET")

    def test_decoding_error_propagates(self):
        broken = Response(status=200, headers={"content-encoding": "gzip"}, body=b"not gzip")
        with HttpClient(transport=FakeTransport({"http://h/": broken})) as client:
            with pytest.raises(DecodingError):
                client.get("http://h/")

    def test_status_policy(self):
        config = HttpcConfig(RAISE_ON_STATUS=True)
        with HttpClient(config=config, transport=FakeTransport({"http://h/": Response(status=404)})) as client:
            with pytest.raises(StatusError) as exc_info:
                client.get("http://h/")

        assert exc_info.value.response.status == 404

    def test_unreachable_host(self):
        with HttpClient(transport=HttpxTransport(HttpcConfig(TIMEOUT=5.0))) as client:
            response = client.get("http://127.0.0.1:1")

        assert response.is_error
        assert response.url == "http://127.0.0.1:1"
        assert "http://127.0.0.1:1" in response.error

    def test_trace_id_set_during_call(self):
        seen = []

        def transport(request: Request) -> Response:
            seen.append(trace_id_var.get())
            return Response(status=200)

        with HttpClient(transport=transport) as client:
            client.get("http://h/")

        assert seen[0]
        assert trace_id_var.get() is None


class TestModuleFacade:
    def test_module_verbs_use_default_client(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers={"Content-Type": "text/plain"}, stream=httpx.ByteStream(b"hi"))

        client = HttpClient(transport=HttpxTransport(transport=httpx.MockTransport(handler)))
        with patch("httpc.client._default_client", client):
            assert httpc.get("http://h/").body == "hi"
            assert httpc.request({"url": "http://h/", "method": "put"}).status == 200
        client.close()

    def test_default_client_is_shared(self):
        with patch("httpc.client._default_client", None):
            first = httpc.get_default_client()
            assert httpc.get_default_client() is first
            first.close()
