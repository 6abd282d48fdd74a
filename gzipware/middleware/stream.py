# middleware/stream.py
"""Feeds response body chunks through a gzip compressor onto the transport."""
from typing import List
import logging

from ..compressors import Compressor
from ..exceptions import CompressionStreamError
from .base import ResponseWriter

logger = logging.getLogger(__name__)


class StreamCompressor:
    """
    Compresses a response body onto a transport writer.

    In streaming mode every piece of compressed output is written as soon as
    the compressor produces it. In buffered mode (the response declared a
    Content-Length) output is held back until the stream is complete, then
    Content-Length is set to the compressed size, headers are sent and the
    buffered chunks follow in order.
    """

    def __init__(self, transport: ResponseWriter, compressor: Compressor, buffered: bool = False):
        self.transport = transport
        self.compressor = compressor
        self.buffered = buffered
        self.closed = False
        self._chunks: List[bytes] = []

    async def _emit(self, data: bytes) -> None:
        if not data:
            return
        if self.buffered:
            self._chunks.append(data)
        else:
            await self.transport.write(data)

    async def write(self, chunk: bytes) -> None:
        if self.closed:
            logger.debug("write on a closed compression stream; ignoring")
            return
        if not chunk:
            return
        try:
            data = await self.compressor.compress(chunk)
        except CompressionStreamError as e:
            await self._abort(e)
            raise
        await self._emit(data)

    async def close(self, chunk: bytes = b"") -> None:
        """Compress the last chunk, finish the gzip stream and end the response."""
        if chunk:
            await self.write(chunk)
        if self.closed:
            return
        try:
            tail = await self.compressor.flush()
        except CompressionStreamError as e:
            await self._abort(e)
            raise
        self.closed = True
        await self.compressor.aclose()

        if not self.buffered:
            await self.transport.end(tail)
            return

        if tail:
            self._chunks.append(tail)
        total = sum(len(c) for c in self._chunks)
        self.transport.headers["content-length"] = str(total)
        logger.debug(f"Buffered gzip body complete: {total} bytes in {len(self._chunks)} chunks")
        await self.transport.write_head()
        for data in self._chunks:
            await self.transport.write(data)
        self._chunks.clear()
        await self.transport.end()

    async def _abort(self, exc: CompressionStreamError) -> None:
        """Discard buffered output and abort the transport."""
        self.closed = True
        self._chunks.clear()
        await self.compressor.aclose()
        self.transport.abort()
        logger.error(f"Compression stream failed, aborting response: {exc}")
