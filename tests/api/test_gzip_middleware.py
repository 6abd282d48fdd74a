"""
API tests for GZipMiddleware on a FastAPI application.
"""
import gzip

import pytest
from fastapi import FastAPI, status
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response, StreamingResponse
from fastapi.testclient import TestClient

from gzipware import GZipMiddleware, GzipSettings, MiddlewareManager
from tests.utils import CSS_BODY, HTML_BODY, call_asgi, response_body, response_headers, response_start

STREAM_LINES = [f"event {i}\n" * 20 for i in range(10)]


def build_app(**options) -> FastAPI:
    """Create a test app with a handful of representative routes."""
    app = FastAPI()

    @app.api_route("/style.css", methods=["GET", "HEAD"])
    def stylesheet():
        return Response(CSS_BODY, media_type="text/css")

    @app.get("/")
    def index():
        return HTMLResponse(HTML_BODY)

    @app.get("/data")
    def data():
        return {"items": list(range(100))}

    @app.get("/stream")
    def stream():
        return StreamingResponse(iter(STREAM_LINES), media_type="text/plain")

    @app.get("/moved")
    def moved():
        return RedirectResponse("/", status_code=status.HTTP_302_FOUND)

    @app.get("/encoded")
    def encoded():
        return PlainTextResponse("pre-encoded", headers={"Content-Encoding": "br"})

    @app.get("/missing")
    def missing():
        return PlainTextResponse("nope", status_code=status.HTTP_404_NOT_FOUND)

    app.add_middleware(GZipMiddleware, settings=GzipSettings(), **options)
    return app


@pytest.fixture
def client() -> TestClient:
    return TestClient(build_app(match_type="css"))


class TestUncompressed:
    """Responses that must pass through untouched."""

    @pytest.mark.asyncio
    async def test_no_accept_encoding(self):
        messages = await call_asgi(build_app(match_type="css"), "/style.css")
        assert "content-encoding" not in response_headers(messages)
        assert response_body(messages) == CSS_BODY.encode()

    def test_does_not_accept_gzip(self, client):
        response = client.get("/style.css", headers={"Accept-Encoding": "deflate"})
        assert response.status_code == 200
        assert "content-encoding" not in response.headers
        assert response.text == CSS_BODY

    def test_unmatched_mime_type(self, client):
        response = client.get("/", headers={"Accept-Encoding": "gzip"})
        assert response.status_code == 200
        assert "content-encoding" not in response.headers
        assert response.text == HTML_BODY

    @pytest.mark.asyncio
    async def test_head_request(self):
        messages = await call_asgi(build_app(match_type="css"), "/style.css", {"Accept-Encoding": "gzip"}, method="HEAD")
        assert "content-encoding" not in response_headers(messages)

    @pytest.mark.asyncio
    async def test_redirect(self):
        messages = await call_asgi(build_app(), "/moved", {"Accept-Encoding": "gzip"})
        assert response_start(messages)["status"] == 302
        assert "content-encoding" not in response_headers(messages)

    @pytest.mark.asyncio
    async def test_error_status(self):
        messages = await call_asgi(build_app(), "/missing", {"Accept-Encoding": "gzip"})
        assert response_start(messages)["status"] == 404
        assert "content-encoding" not in response_headers(messages)
        assert response_body(messages) == b"nope"

    @pytest.mark.asyncio
    async def test_already_encoded(self):
        messages = await call_asgi(build_app(), "/encoded", {"Accept-Encoding": "gzip"})
        assert response_headers(messages)["content-encoding"] == "br"
        assert response_body(messages) == b"pre-encoded"

    def test_broken_client(self, client):
        response = client.get("/style.css", headers={
            "Accept-Encoding": "gzip",
            "User-Agent": "Mozilla/4.0 (compatible; MSIE 6.0; Windows NT 5.0)",
        })
        assert "content-encoding" not in response.headers


class TestCompressed:
    """Responses that must be gzip encoded."""

    def test_compressable(self, client):
        response = client.get("/style.css", headers={"Accept-Encoding": "gzip"})
        assert response.status_code == 200
        assert response.headers["content-encoding"] == "gzip"
        assert response.headers["vary"] == "Accept-Encoding"
        assert response.headers["content-type"].startswith("text/css")
        assert response.text == CSS_BODY

    def test_multiple_accept_encoding_types(self, client):
        response = client.get("/style.css", headers={"Accept-Encoding": "deflate, gzip, sdch"})
        assert response.headers["content-encoding"] == "gzip"
        assert response.text == CSS_BODY

    def test_json_with_default_match_type(self):
        client = TestClient(build_app())
        response = client.get("/data", headers={"Accept-Encoding": "gzip"})
        assert response.headers["content-encoding"] == "gzip"
        assert response.json() == {"items": list(range(100))}

    @pytest.mark.asyncio
    async def test_declared_length_is_recomputed(self):
        messages = await call_asgi(build_app(match_type="css"), "/style.css", {"Accept-Encoding": "gzip"})
        headers = response_headers(messages)
        body = response_body(messages)
        assert headers["content-length"] == str(len(body))
        assert headers["content-length"] != str(len(CSS_BODY))
        assert gzip.decompress(body) == CSS_BODY.encode()

    @pytest.mark.asyncio
    async def test_streaming_response(self):
        messages = await call_asgi(build_app(), "/stream", {"Accept-Encoding": "gzip"})
        headers = response_headers(messages)
        assert headers["content-encoding"] == "gzip"
        assert "content-length" not in headers
        assert gzip.decompress(response_body(messages)) == "".join(STREAM_LINES).encode()

    @pytest.mark.asyncio
    async def test_compress_level_option(self):
        fast = await call_asgi(build_app(compress_level=1), "/data", {"Accept-Encoding": "gzip"})
        best = await call_asgi(build_app(compress_level=9), "/data", {"Accept-Encoding": "gzip"})
        assert gzip.decompress(response_body(fast)) == gzip.decompress(response_body(best))


class TestMiddlewareManager:
    """Test cases for MiddlewareManager."""

    def test_configure_gzip(self):
        app = FastAPI()

        @app.get("/")
        def index():
            return PlainTextResponse("hello " * 100)

        MiddlewareManager().configure_gzip(match_type="text/plain", settings=GzipSettings()).apply_to_app(app)
        response = TestClient(app).get("/", headers={"Accept-Encoding": "gzip"})
        assert response.headers["content-encoding"] == "gzip"
        assert response.text == "hello " * 100

    def test_unknown_middleware(self):
        with pytest.raises(ValueError):
            MiddlewareManager().add_middleware("brotli")

    def test_disabled(self):
        manager = MiddlewareManager().configure_gzip(enabled=False)
        assert manager.middlewares == []
