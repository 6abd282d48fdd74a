# cache/core.py
"""
Disk-backed cache of pre-compressed static files.

Artifacts are keyed by the source file's mtime. They are written to a
unique temporary file and atomically renamed into place, so concurrent
requests can race to build the same artifact without ever exposing a
partially written file. No locks are taken; losing a race only costs
redundant work.

Stale artifacts (for mtimes that no longer match the source) are never
deleted here. Prune the cache directory externally if that matters.
"""

import asyncio
import logging
import mimetypes
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional

from ..compressors import Compressor, create_compressor
from ..config import GzipSettings, get_settings
from ..exceptions import CompressionStreamError, ConfigurationError, FilesystemError, NotFoundError
from ..policy import CompressionPolicy, RequestInfo
from .utils import artifact_name, is_cache_file, remove_quietly, resolve_request_path, temp_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    source_path: Path
    source_mtime_ns: int
    artifact_path: Path


@dataclass(frozen=True)
class StaticResolution:
    """The file to serve for a static request."""
    path: Path
    compressed: bool
    media_type: Optional[str]
    entry: CacheEntry


class StaticGzipCache:
    """Resolves static requests to cached gzip artifacts, building them on demand."""

    def __init__(
        self,
        root,
        settings: Optional[GzipSettings] = None,
        policy: Optional[CompressionPolicy] = None,
        compressor_factory: Optional[Callable[[], Compressor]] = None,
    ):
        self.settings = settings or get_settings()
        if not root:
            raise ConfigurationError("StaticGzipCache root must be set")
        if not self.settings.EXTENSIONS and not self.settings.MIME_TYPES:
            raise ConfigurationError("StaticGzipCache needs EXTENSIONS or MIME_TYPES to whitelist")

        self.root = Path(root).resolve()
        self.cache_dir = Path(self.settings.CACHE_DIR).resolve() if self.settings.CACHE_DIR else None
        self.index_file = self.settings.INDEX_FILE
        self.chunk_size = self.settings.CHUNK_SIZE
        self.policy = policy or CompressionPolicy.from_settings(self.settings)
        self.compressor_factory = compressor_factory or (lambda: create_compressor(self.settings))

    def entry_for(self, source: Path, mtime_ns: int) -> CacheEntry:
        """Cache entry for ``source`` as of ``mtime_ns``."""
        if self.cache_dir is None:
            directory = source.parent
        else:
            directory = self.cache_dir / source.parent.relative_to(self.root)
        return CacheEntry(
            source_path=source,
            source_mtime_ns=mtime_ns,
            artifact_path=directory / artifact_name(source.name, mtime_ns),
        )

    async def _stat(self, path: Path) -> os.stat_result:
        try:
            return await asyncio.to_thread(os.stat, path)
        except (FileNotFoundError, NotADirectoryError) as e:
            raise NotFoundError(f"Static file not found: {path}", context={"path": str(path)}, original_exception=e)
        except OSError as e:
            raise FilesystemError(f"Cannot stat {path}: {e}", context={"path": str(path)}, original_exception=e)

    async def serve(self, request: RequestInfo, request_path: Optional[str] = None) -> Optional[StaticResolution]:
        """
        Resolve a static request to a servable file.

        Args:
            request: Request metadata
            request_path: URL path relative to ``root``; defaults to ``request.path``

        Returns:
            A resolution, or None when the request is not eligible and should
            go to the plain static file handler.

        Raises:
            NotFoundError: The source file does not exist
            FilesystemError: The source file could not be stat'ed
        """
        if request.method != "GET":
            return None
        source = resolve_request_path(self.root, request_path or request.path, self.index_file)
        if source is None or is_cache_file(source.name):
            return None

        media_type, _ = mimetypes.guess_type(source.name)
        decision = self.policy.decide(request, 200, media_type, None, path=str(source))
        if not decision.compress:
            logger.debug(f"Static {source}: passthrough ({decision.reason.value})")
            return None

        source_stat = await self._stat(source)
        if stat.S_ISDIR(source_stat.st_mode):
            return None

        entry = self.entry_for(source, source_stat.st_mtime_ns)
        if await asyncio.to_thread(entry.artifact_path.is_file):
            return StaticResolution(entry.artifact_path, True, media_type, entry)

        try:
            await self.build(entry)
        except (OSError, CompressionStreamError, FilesystemError) as e:
            logger.warning(f"Failed to gzip {source}, serving it uncompressed: {e}")
            return StaticResolution(source, False, media_type, entry)
        return StaticResolution(entry.artifact_path, True, media_type, entry)

    async def build(self, entry: CacheEntry) -> Path:
        """
        Compress ``entry.source_path`` into ``entry.artifact_path``.

        The output goes to a temporary file that is renamed into place only
        after compression succeeded; the temporary file is removed on any
        failure.
        """
        tmp = temp_path(entry.artifact_path)
        try:
            await asyncio.to_thread(entry.artifact_path.parent.mkdir, parents=True, exist_ok=True)
            await self._compress_file(entry.source_path, tmp)

            current = await asyncio.to_thread(os.stat, entry.source_path)
            if current.st_mtime_ns != entry.source_mtime_ns:
                raise FilesystemError(
                    f"{entry.source_path} changed while it was being compressed",
                    context={"expected_mtime_ns": entry.source_mtime_ns, "mtime_ns": current.st_mtime_ns},
                )
            await asyncio.to_thread(os.replace, tmp, entry.artifact_path)
        except BaseException:
            remove_quietly(tmp)
            raise
        logger.info(f"Generated gzip artifact {entry.artifact_path}")
        return entry.artifact_path

    async def _compress_file(self, source: Path, destination: Path) -> None:
        async with self.compressor_factory() as compressor:
            src = await asyncio.to_thread(open, source, "rb")
            try:
                dst = await asyncio.to_thread(open, destination, "wb")
                try:
                    while True:
                        chunk = await asyncio.to_thread(src.read, self.chunk_size)
                        if not chunk:
                            break
                        data = await compressor.compress(chunk)
                        if data:
                            await asyncio.to_thread(dst.write, data)
                    await asyncio.to_thread(dst.write, await compressor.flush())
                finally:
                    await asyncio.to_thread(dst.close)
            finally:
                await asyncio.to_thread(src.close)

    async def warm(self) -> Dict[str, int]:
        """
        Build missing artifacts for every whitelisted file under ``root``.

        Returns:
            Counts of ``generated``, ``cached`` (already present) and ``failed`` files
        """
        counts = {"generated": 0, "cached": 0, "failed": 0}
        for source in await asyncio.to_thread(self._whitelisted_sources):
            try:
                source_stat = await self._stat(source)
            except NotFoundError:
                continue
            entry = self.entry_for(source, source_stat.st_mtime_ns)
            if await asyncio.to_thread(entry.artifact_path.is_file):
                counts["cached"] += 1
                continue
            try:
                await self.build(entry)
                counts["generated"] += 1
            except (OSError, CompressionStreamError, FilesystemError) as e:
                logger.warning(f"Failed to gzip {source}: {e}")
                counts["failed"] += 1
        return counts

    def _whitelisted_sources(self):
        sources = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            directory = Path(dirpath)
            if self.cache_dir is not None and (directory == self.cache_dir or self.cache_dir in directory.parents):
                dirnames[:] = []
                continue
            for filename in sorted(filenames):
                if is_cache_file(filename):
                    continue
                if self.policy.whitelist.matches_path(filename):
                    sources.append(directory / filename)
        return sources
