# middleware/static.py
"""Serves pre-compressed static files from the gzip cache."""
from typing import Any, Optional
import logging

from starlette.responses import FileResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from ..cache import StaticGzipCache
from ..config import GzipSettings
from ..exceptions import NotFoundError
from ..policy import RequestInfo
from .base import GzipwareMiddleware

logger = logging.getLogger(__name__)


class StaticGzipMiddleware(GzipwareMiddleware):
    """
    Middleware that answers eligible static requests with a cached gzip copy.

    Requests that are not eligible, or whose file does not exist, go on to
    the wrapped app untouched, which is expected to serve plain static files
    (e.g. ``starlette.staticfiles.StaticFiles``) and to produce the 404.
    Filesystem errors other than not-found propagate.
    """

    def __init__(
        self,
        app: ASGIApp,
        root: Optional[str] = None,
        prefix: str = "",
        settings: Optional[GzipSettings] = None,
        **options: Any,
    ):
        self.root = root
        self.prefix = prefix.rstrip("/")
        super().__init__(app, settings, **options)

    def setup(self):
        self.cache = StaticGzipCache(self.root or self.settings.STATIC_ROOT, self.settings)

    def _relative_path(self, path: str) -> Optional[str]:
        if not self.prefix:
            return path
        if path == self.prefix or path.startswith(self.prefix + "/"):
            return path[len(self.prefix):] or "/"
        return None

    async def dispatch(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = RequestInfo.from_scope(scope)
        relative = self._relative_path(request.path)
        if relative is None:
            await self.app(scope, receive, send)
            return

        try:
            resolution = await self.cache.serve(request, relative)
        except NotFoundError as e:
            logger.debug(f"{e}; forwarding")
            resolution = None

        if resolution is None:
            await self.app(scope, receive, send)
            return

        headers = {"Vary": "Accept-Encoding"}
        if resolution.compressed:
            headers["Content-Encoding"] = "gzip"
        response = FileResponse(resolution.path, headers=headers, media_type=resolution.media_type)
        await response(scope, receive, send)
