# middleware/compression.py
"""Gzip compression middleware for dynamic responses."""
import functools
import logging

from starlette.types import Receive, Scope, Send

from ..compressors import create_compressor
from ..policy import CompressionPolicy, RequestInfo
from .base import ASGIResponseWriter, GzipwareMiddleware, WriterSend
from .interceptor import GzipResponseWriter

logger = logging.getLogger(__name__)


class GZipMiddleware(GzipwareMiddleware):
    """
    Compresses response bodies whose Content-Type matches ``MATCH_TYPE``.

    The request-side rules are checked up front; if the request can never
    get a gzip body the app talks to the raw ``send``. Otherwise the app's
    messages go through a ``GzipResponseWriter`` that makes the final
    decision when the response headers are known.

    Example:
        app.add_middleware(GZipMiddleware, match_type=r"text|json", compress_level=6)
    """

    def setup(self):
        self.policy = CompressionPolicy.from_settings(self.settings)
        self.compressor_factory = functools.partial(create_compressor, self.settings)

    async def dispatch(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = RequestInfo.from_scope(scope)
        precheck = self.policy.accepts(request)
        if not precheck.compress:
            logger.debug(f"{request.method} {request.path}: passthrough ({precheck.reason.value})")
            await self.app(scope, receive, send)
            return

        writer = GzipResponseWriter(
            ASGIResponseWriter(send),
            request,
            self.policy,
            self.compressor_factory,
        )
        await self.app(self._without_pathsend(scope), receive, WriterSend(writer, send))

    @staticmethod
    def _without_pathsend(scope: Scope) -> Scope:
        """Hide the pathsend extension so file bodies arrive as body messages."""
        extensions = scope.get("extensions") or {}
        if "http.response.pathsend" not in extensions:
            return scope
        scope = dict(scope)
        scope["extensions"] = {k: v for k, v in extensions.items() if k != "http.response.pathsend"}
        return scope
