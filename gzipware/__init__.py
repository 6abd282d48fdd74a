#main __init__.py
"""
gzipware - gzip response compression and a static gzip cache for ASGI apps.

``GZipMiddleware`` compresses dynamic responses on the fly.
``StaticGzipMiddleware`` serves pre-compressed static files from a disk cache
keyed by file modification time.
"""

__version__ = "0.1.0"

import logging
from typing import Optional

from fastapi import FastAPI
from starlette.staticfiles import StaticFiles

from .cache import StaticGzipCache
from .compressors import Compressor, ProcessCompressor, ZlibCompressor, create_compressor
from .config import GzipSettings, get_settings
from .exceptions import (
    CompressionStreamError,
    ConfigurationError,
    FilesystemError,
    GzipwareError,
    NotFoundError,
)
from .middleware import GZipMiddleware, MiddlewareManager, StaticGzipMiddleware
from .policy import CompressionDecision, CompressionPolicy, DecisionReason, RequestInfo, Whitelist

logger = logging.getLogger(__name__)


def create_app(
    static_root: Optional[str] = None,
    settings: Optional[GzipSettings] = None,
    static_path: str = "/",
    **kwargs
) -> FastAPI:
    """Create a FastAPI app serving ``static_root`` with both gzip middlewares.

    Args:
        static_root: Directory to serve; defaults to ``STATIC_ROOT``
        settings: Settings to use instead of the environment
        static_path: URL prefix the directory is mounted at
        **kwargs: Passed to ``FastAPI``
    """
    settings = settings or get_settings()
    root = static_root or settings.STATIC_ROOT
    if not root:
        raise ConfigurationError("create_app needs a static root")

    app = FastAPI(**kwargs)
    app.state.gzip_settings = settings

    prefix = static_path.rstrip("/")
    manager = MiddlewareManager()
    manager.configure_gzip(settings=settings)
    if settings.EXTENSIONS or settings.MIME_TYPES:
        manager.configure_static_gzip(root, prefix=prefix, settings=settings)
    else:
        logger.warning("No EXTENSIONS or MIME_TYPES configured; static gzip cache disabled")
    manager.apply_to_app(app)

    app.mount(prefix or "/", StaticFiles(directory=root, html=True), name="static")
    logger.info(f"Serving {root} at {prefix or '/'}")
    return app


__all__ = [
    "create_app",
    "GzipSettings",
    "get_settings",
    "GZipMiddleware",
    "StaticGzipMiddleware",
    "MiddlewareManager",
    "StaticGzipCache",
    "CompressionPolicy",
    "CompressionDecision",
    "DecisionReason",
    "RequestInfo",
    "Whitelist",
    "Compressor",
    "ZlibCompressor",
    "ProcessCompressor",
    "create_compressor",
    "GzipwareError",
    "ConfigurationError",
    "NotFoundError",
    "FilesystemError",
    "CompressionStreamError",
]
