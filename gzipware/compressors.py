"""Gzip compressor implementations.

Both implementations satisfy the same ``Compressor`` interface so the
response path and the static cache can use either one.
"""
import asyncio
import logging
import zlib
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from .exceptions import CompressionStreamError

logger = logging.getLogger(__name__)


class Compressor(ABC):
    """Abstract base class for a single gzip stream."""

    @abstractmethod
    async def compress(self, data: bytes) -> bytes:
        """Feed ``data`` and return whatever compressed output is ready."""
        pass

    @abstractmethod
    async def flush(self) -> bytes:
        """Finish the stream and return the remaining output."""
        pass

    async def aclose(self) -> None:
        """Release any resources held by the compressor."""
        pass

    async def __aenter__(self) -> "Compressor":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


class ZlibCompressor(Compressor):
    """In-process gzip transform backed by ``zlib.compressobj``."""

    def __init__(
        self,
        level: int = 9,
        window_bits: int = 15,
        mem_level: int = 8,
        strategy: int = zlib.Z_DEFAULT_STRATEGY,
    ):
        # +16 selects the gzip container instead of raw zlib
        self._compressobj = zlib.compressobj(
            level, zlib.DEFLATED, 16 + window_bits, mem_level, strategy
        )
        self._finished = False

    async def compress(self, data: bytes) -> bytes:
        if self._finished:
            raise CompressionStreamError("Compressor already flushed")
        try:
            return self._compressobj.compress(data)
        except zlib.error as e:
            raise CompressionStreamError(f"zlib compression failed: {e}", original_exception=e)

    async def flush(self) -> bytes:
        if self._finished:
            return b""
        self._finished = True
        try:
            return self._compressobj.flush(zlib.Z_FINISH)
        except zlib.error as e:
            raise CompressionStreamError(f"zlib flush failed: {e}", original_exception=e)


class ProcessCompressor(Compressor):
    """Gzip transform that pipes the stream through an external ``gzip`` binary.

    Output is collected by a background reader task; ``compress`` returns
    whatever the process has produced so far and ``flush`` closes stdin and
    waits for the process to exit.
    """

    def __init__(self, binary: str = "gzip", flags: Sequence[str] = ("--best",), read_size: int = 64 * 1024):
        self.binary = binary
        self.flags = list(flags)
        self.read_size = read_size
        self._process: Optional[asyncio.subprocess.Process] = None
        self._reader: Optional[asyncio.Task] = None
        self._output: List[bytes] = []
        self._finished = False

    async def _start(self) -> asyncio.subprocess.Process:
        if self._process is None:
            try:
                self._process = await asyncio.create_subprocess_exec(
                    self.binary, *self.flags, "-c",
                    stdin=asyncio.subprocess.PIPE,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.DEVNULL,
                )
            except OSError as e:
                raise CompressionStreamError(
                    f"Failed to spawn {self.binary}: {e}",
                    context={"binary": self.binary, "flags": self.flags},
                    original_exception=e,
                )
            self._reader = asyncio.create_task(self._read_stdout(self._process))
        return self._process

    async def _read_stdout(self, process: asyncio.subprocess.Process) -> None:
        while True:
            chunk = await process.stdout.read(self.read_size)
            if not chunk:
                break
            self._output.append(chunk)

    def _drain_output(self) -> bytes:
        data = b"".join(self._output)
        self._output.clear()
        return data

    async def compress(self, data: bytes) -> bytes:
        if self._finished:
            raise CompressionStreamError("Compressor already flushed")
        process = await self._start()
        try:
            process.stdin.write(data)
            await process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            raise CompressionStreamError(f"{self.binary} closed its input: {e}", original_exception=e)
        return self._drain_output()

    async def flush(self) -> bytes:
        if self._finished:
            return b""
        self._finished = True
        process = await self._start()
        try:
            process.stdin.close()
            await process.stdin.wait_closed()
        except (BrokenPipeError, ConnectionResetError) as e:
            raise CompressionStreamError(f"{self.binary} closed its input: {e}", original_exception=e)
        await self._reader
        returncode = await process.wait()
        if returncode != 0:
            raise CompressionStreamError(
                f"{self.binary} exited with status {returncode}",
                context={"returncode": returncode},
            )
        return self._drain_output()

    async def aclose(self) -> None:
        process = self._process
        if process is None or process.returncode is not None:
            return
        logger.debug(f"Terminating unfinished {self.binary} process {process.pid}")
        try:
            process.kill()
        except ProcessLookupError:
            pass
        await process.wait()
        if self._reader is not None and not self._reader.done():
            self._reader.cancel()


def create_compressor(settings) -> Compressor:
    """Create a fresh compressor for one stream according to ``settings``."""
    if settings.COMPRESSOR == "process":
        return ProcessCompressor(binary=settings.GZIP_BIN, flags=settings.GZIP_FLAGS)
    return ZlibCompressor(**settings.compressor_options())


__all__ = ["Compressor", "ZlibCompressor", "ProcessCompressor", "create_compressor"]
