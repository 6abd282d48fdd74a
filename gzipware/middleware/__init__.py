# middleware/__init__.py
"""
gzipware middleware

Registration helpers for the dynamic and static gzip middlewares.
"""
from typing import List, Dict, Any, Optional, Union
from starlette.applications import Starlette
import logging as log

from .base import ASGIResponseWriter, GzipwareMiddleware, ResponseWriter, WriterSend
from .compression import GZipMiddleware
from .interceptor import GzipResponseWriter
from .static import StaticGzipMiddleware
from .stream import StreamCompressor

logger = log.getLogger("gzipware.middleware")


class MiddlewareManager:
    """Manages gzip middleware registration and configuration for an app."""

    def __init__(self):
        self.middlewares: List[Dict[str, Any]] = []
        self._builtin_middlewares = {
            'gzip': GZipMiddleware,
            'static_gzip': StaticGzipMiddleware,
        }

    def add_middleware(
        self,
        middleware_class: Union[str, type],
        **options
    ) -> 'MiddlewareManager':
        """Add middleware to the stack."""
        if isinstance(middleware_class, str):
            if middleware_class not in self._builtin_middlewares:
                raise ValueError(f"Unknown middleware: {middleware_class}")
            middleware_class = self._builtin_middlewares[middleware_class]

        self.middlewares.append({
            'class': middleware_class,
            'options': options
        })
        return self

    def configure_gzip(
        self,
        enabled: bool = True,
        match_type: Optional[str] = None,
        **kwargs
    ) -> 'MiddlewareManager':
        """Configure compression of dynamic responses."""
        if enabled:
            options = dict(kwargs)
            if match_type is not None:
                options['match_type'] = match_type
            return self.add_middleware('gzip', **options)
        return self

    def configure_static_gzip(
        self,
        root: str,
        enabled: bool = True,
        extensions: Optional[List[str]] = None,
        prefix: str = "",
        **kwargs
    ) -> 'MiddlewareManager':
        """Configure cached gzip serving of static files under ``root``."""
        if enabled:
            options = {'root': root, 'prefix': prefix, **kwargs}
            if extensions is not None:
                options['extensions'] = extensions
            return self.add_middleware('static_gzip', **options)
        return self

    def apply_to_app(self, app: Starlette) -> None:
        """Apply all configured middlewares to the app.

        The first configured middleware ends up outermost.
        """
        for middleware_config in reversed(self.middlewares):
            middleware_class = middleware_config['class']
            options = middleware_config['options']

            try:
                app.add_middleware(middleware_class, **options)
                logger.info(f"Added middleware: {middleware_class.__name__}")
            except Exception as e:
                logger.error(f"Failed to add middleware {middleware_class.__name__}: {e}")
                raise


__all__ = [
    'MiddlewareManager',
    'GzipwareMiddleware',
    'GZipMiddleware',
    'StaticGzipMiddleware',
    'ResponseWriter',
    'ASGIResponseWriter',
    'GzipResponseWriter',
    'StreamCompressor',
    'WriterSend',
]
