"""
Helpers for driving ASGI apps directly in tests.
"""
import asyncio
from typing import Any, Dict, List, Optional

CSS_BODY = "body { font-size: 12px; color: red; }"
HTML_BODY = "<p>Wahoo!</p>"
JS_BODY = "function hello() { return 'hello world'; }\n" * 50


async def call_asgi(
    app,
    path: str,
    headers: Optional[Dict[str, str]] = None,
    method: str = "GET",
) -> List[Dict[str, Any]]:
    """Run one request through an ASGI app and return every message it sent."""
    scope = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "root_path": "",
        "query_string": b"",
        "headers": [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in (headers or {}).items()],
        "client": ("testclient", 50000),
        "server": ("testserver", 80),
    }
    request_sent = False
    messages: List[Dict[str, Any]] = []

    async def receive():
        nonlocal request_sent
        if not request_sent:
            request_sent = True
            return {"type": "http.request", "body": b"", "more_body": False}
        # Block until the response is done and the listener is cancelled
        await asyncio.Event().wait()

    async def send(message):
        messages.append(message)

    await app(scope, receive, send)
    return messages


def response_start(messages: List[Dict[str, Any]]) -> Dict[str, Any]:
    starts = [m for m in messages if m["type"] == "http.response.start"]
    assert len(starts) == 1
    return starts[0]


def response_headers(messages: List[Dict[str, Any]]) -> Dict[str, str]:
    return {k.decode("latin-1"): v.decode("latin-1") for k, v in response_start(messages)["headers"]}


def response_body(messages: List[Dict[str, Any]]) -> bytes:
    return b"".join(m.get("body", b"") for m in messages if m["type"] == "http.response.body")
