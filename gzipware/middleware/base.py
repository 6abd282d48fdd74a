# middleware/base.py
"""Base classes shared by the gzipware middlewares.

``ResponseWriter`` is the response-writing capability: status, headers,
``write_head``/``write``/``end``. ``ASGIResponseWriter`` implements it on top
of an ASGI ``send`` callable, and wrappers such as ``GzipResponseWriter``
decorate it.
"""
from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping, Optional, Tuple, Union
import logging

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..config import GzipSettings, get_settings

logger = logging.getLogger(__name__)

HeadersLike = Union[Mapping[str, str], Iterable[Tuple[bytes, bytes]]]


class ResponseWriter(ABC):
    """An outgoing HTTP response that is written incrementally."""

    status_code: int
    headers: MutableHeaders

    @property
    @abstractmethod
    def headers_sent(self) -> bool:
        """True once headers are finalized."""

    @property
    @abstractmethod
    def finished(self) -> bool:
        """True once ``end`` has completed."""

    @abstractmethod
    async def write_head(self, status_code: Optional[int] = None, headers: Optional[HeadersLike] = None) -> None:
        """Finalize status and headers."""

    @abstractmethod
    async def write(self, chunk: bytes) -> None:
        """Write a body chunk, finalizing headers first if needed."""

    @abstractmethod
    async def end(self, chunk: bytes = b"") -> None:
        """Write an optional last chunk and complete the response."""

    @abstractmethod
    def abort(self) -> None:
        """Mark the response as aborted; nothing more will be sent."""

    def apply_headers(self, headers: Optional[HeadersLike]) -> None:
        """Merge headers passed at finalization time into ``self.headers``."""
        if not headers:
            return
        if isinstance(headers, Mapping):
            for key, value in headers.items():
                self.headers[key] = str(value)
        else:
            for key, value in headers:
                self.headers.append(key.decode("latin-1"), value.decode("latin-1"))


class ASGIResponseWriter(ResponseWriter):
    """The real transport: turns writer calls into ASGI messages."""

    def __init__(self, send: Send, status_code: int = 200):
        self._send = send
        self.status_code = status_code
        self.headers = MutableHeaders(raw=[])
        self._headers_sent = False
        self._finished = False
        self.closed = False

    @property
    def headers_sent(self) -> bool:
        return self._headers_sent

    @property
    def finished(self) -> bool:
        return self._finished

    async def _transmit(self, message: Message) -> None:
        if self.closed:
            logger.debug(f"Dropping {message['type']} on closed transport")
            return
        try:
            await self._send(message)
        except OSError as e:
            # Client went away; later writes become no-ops
            self.closed = True
            logger.info(f"Client disconnected while sending response: {e}")

    async def write_head(self, status_code: Optional[int] = None, headers: Optional[HeadersLike] = None) -> None:
        if self._headers_sent:
            logger.warning("write_head called after headers were sent; ignoring")
            return
        if status_code is not None:
            self.status_code = status_code
        self.apply_headers(headers)
        self._headers_sent = True
        await self._transmit({
            "type": "http.response.start",
            "status": self.status_code,
            "headers": self.headers.raw,
        })

    async def write(self, chunk: bytes) -> None:
        if self._finished:
            logger.debug("write called after end; ignoring")
            return
        if not self._headers_sent:
            await self.write_head()
        if not chunk:
            return
        await self._transmit({"type": "http.response.body", "body": chunk, "more_body": True})

    async def end(self, chunk: bytes = b"") -> None:
        if self._finished:
            return
        if not self._headers_sent:
            await self.write_head()
        self._finished = True
        await self._transmit({"type": "http.response.body", "body": chunk, "more_body": False})

    def abort(self) -> None:
        self.closed = True
        self._finished = True


class WriterSend:
    """ASGI ``send`` callable that replays an app's messages onto a ResponseWriter."""

    def __init__(self, writer: ResponseWriter, send: Send):
        self.writer = writer
        self.send = send

    async def __call__(self, message: Message) -> None:
        message_type = message["type"]
        if message_type == "http.response.start":
            self.writer.apply_headers(message.get("headers", []))
            await self.writer.write_head(message["status"])
        elif message_type == "http.response.body":
            body = message.get("body", b"")
            if message.get("more_body", False):
                await self.writer.write(body)
            else:
                await self.writer.end(body)
        else:
            # Trailers and other extensions go straight to the server
            await self.send(message)


class GzipwareMiddleware(ABC):
    """Base class for gzipware ASGI middlewares with common functionality."""

    def __init__(self, app: ASGIApp, settings: Optional[GzipSettings] = None, **options: Any):
        self.app = app
        self.settings = (settings or get_settings()).override(**options)
        self.setup()

    def setup(self) -> None:
        """Override this method for middleware-specific setup."""
        pass

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return
        await self.dispatch(scope, receive, send)

    @abstractmethod
    async def dispatch(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Handle one HTTP request."""
