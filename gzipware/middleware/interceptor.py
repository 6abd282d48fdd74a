# middleware/interceptor.py
"""Response writer that decides on gzip when headers are finalized."""
from typing import Callable, Optional
import logging

from starlette.datastructures import MutableHeaders

from ..compressors import Compressor
from ..policy import CompressionDecision, CompressionPolicy, RequestInfo
from .base import HeadersLike, ResponseWriter
from .stream import StreamCompressor

logger = logging.getLogger(__name__)


class GzipResponseWriter(ResponseWriter):
    """
    Wraps a transport writer and compresses the body when the policy allows it.

    Headers are finalized exactly once, before any body byte reaches the
    transport, whatever order the caller uses:

    - set headers, ``write_head()``, ``write()``, ``end()``
    - set headers, ``write_head()``, ``end(chunk)``
    - ``write()``/``end()`` without ever calling ``write_head()``
    - ``write_head(status, headers)`` with headers passed directly

    The policy runs once, at finalization. On passthrough every call is
    delegated unchanged. On compress, Content-Encoding and Vary are set,
    Content-Length is removed, and body calls are routed through a
    ``StreamCompressor`` until the compressed stream completes; after that
    the writer is back on the plain transport path.
    """

    def __init__(
        self,
        transport: ResponseWriter,
        request: RequestInfo,
        policy: CompressionPolicy,
        compressor_factory: Callable[[], Compressor],
    ):
        self.transport = transport
        self.request = request
        self.policy = policy
        self.compressor_factory = compressor_factory
        self.decision: Optional[CompressionDecision] = None
        self._stream: Optional[StreamCompressor] = None

    @property
    def status_code(self) -> int:
        return self.transport.status_code

    @status_code.setter
    def status_code(self, value: int) -> None:
        self.transport.status_code = value

    @property
    def headers(self) -> MutableHeaders:
        return self.transport.headers

    @property
    def headers_sent(self) -> bool:
        return self.decision is not None

    @property
    def finished(self) -> bool:
        return self.transport.finished

    async def write_head(self, status_code: Optional[int] = None, headers: Optional[HeadersLike] = None) -> None:
        if self.decision is not None:
            logger.warning("write_head called after headers were finalized; ignoring")
            return
        if status_code is not None:
            self.status_code = status_code
        self.apply_headers(headers)

        self.decision = self.policy.decide(
            self.request,
            self.status_code,
            self.headers.get("content-type"),
            self.headers.get("content-encoding"),
        )
        logger.debug(
            f"{self.request.method} {self.request.path} -> {self.status_code}: "
            f"{'gzip' if self.decision.compress else 'identity'} ({self.decision.reason.value})"
        )
        if not self.decision.compress:
            await self.transport.write_head()
            return

        declared_length = "content-length" in self.headers
        self.headers["content-encoding"] = "gzip"
        self.headers.add_vary_header("Accept-Encoding")
        if declared_length:
            del self.headers["content-length"]

        self._stream = StreamCompressor(
            self.transport, self.compressor_factory(), buffered=declared_length
        )
        if not declared_length:
            await self.transport.write_head()

    async def write(self, chunk: bytes) -> None:
        if self.decision is None:
            await self.write_head()
        if self._stream is None:
            await self.transport.write(chunk)
        else:
            await self._stream.write(chunk)

    async def end(self, chunk: bytes = b"") -> None:
        if self.decision is None:
            await self.write_head()
        if self._stream is None:
            await self.transport.end(chunk)
            return
        stream, self._stream = self._stream, None
        await stream.close(chunk)

    def abort(self) -> None:
        self.transport.abort()
