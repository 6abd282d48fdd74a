"""
Compression policy for gzipware.

The policy is a pure decision function: identical inputs always produce the
identical decision, and nothing here touches the response.
"""
import mimetypes
import posixpath
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Pattern, FrozenSet

from starlette.datastructures import Headers
from starlette.types import Scope


class DecisionReason(str, Enum):
    """Why a response is compressed or passed through."""
    COMPRESS = "compress"
    HEAD_REQUEST = "head_request"
    STATUS = "status"
    ACCEPT_ENCODING = "accept_encoding"
    CONTENT_TYPE = "content_type"
    ALREADY_ENCODED = "already_encoded"
    BROKEN_CLIENT = "broken_client"


@dataclass(frozen=True)
class CompressionDecision:
    compress: bool
    reason: DecisionReason


@dataclass(frozen=True)
class Whitelist:
    """MIME types or file extensions eligible for compression."""
    match_type: Optional[Pattern] = None
    extensions: FrozenSet[str] = field(default_factory=frozenset)
    mime_types: FrozenSet[str] = field(default_factory=frozenset)

    def matches_content_type(self, content_type: str) -> bool:
        if not content_type:
            return False
        media_type = content_type.split(";", 1)[0].strip().lower()
        if media_type in self.mime_types:
            return True
        return bool(self.match_type and self.match_type.search(content_type))

    def matches_path(self, path: str) -> bool:
        """Static mode: exact extension match, or a whitelisted guessed MIME type."""
        ext = posixpath.splitext(path)[1].lower()
        if ext and ext in self.extensions:
            return True
        if self.mime_types:
            mime_type, _ = mimetypes.guess_type(path)
            return bool(mime_type) and mime_type.lower() in self.mime_types
        return False

    @property
    def is_empty(self) -> bool:
        return self.match_type is None and not self.extensions and not self.mime_types


@dataclass(frozen=True)
class RequestInfo:
    """The request metadata the policy looks at."""
    method: str = "GET"
    path: str = "/"
    accept_encoding: str = ""
    user_agent: str = ""

    @classmethod
    def from_scope(cls, scope: Scope) -> "RequestInfo":
        headers = Headers(scope=scope)
        return cls(
            method=scope.get("method", "GET").upper(),
            path=scope.get("path", "/"),
            accept_encoding=headers.get("accept-encoding", ""),
            user_agent=headers.get("user-agent", ""),
        )


_PASSTHROUGH = {reason: CompressionDecision(False, reason) for reason in DecisionReason}
_COMPRESS = CompressionDecision(True, DecisionReason.COMPRESS)


class CompressionPolicy:
    """Decides between gzip and identity for a single response.

    Rules are evaluated in order and the first unmet rule determines the
    passthrough reason:

    1. the request method is not HEAD
    2. the response status is exactly 200
    3. Accept-Encoding mentions gzip
    4. the content type (or, in static mode, the path) is whitelisted
    5. the response has no Content-Encoding yet
    6. the user agent is not a known-broken client
    """

    def __init__(
        self,
        whitelist: Whitelist,
        excluded_user_agent: str = "MSIE 6",
        excluded_user_agent_exempt: str = "SV1",
    ):
        self.whitelist = whitelist
        self.excluded_user_agent = excluded_user_agent
        self.excluded_user_agent_exempt = excluded_user_agent_exempt

    @classmethod
    def from_settings(cls, settings) -> "CompressionPolicy":
        return cls(
            settings.whitelist(),
            excluded_user_agent=settings.EXCLUDED_USER_AGENT,
            excluded_user_agent_exempt=settings.EXCLUDED_USER_AGENT_EXEMPT,
        )

    def accepts_gzip(self, accept_encoding: str) -> bool:
        return "gzip" in (accept_encoding or "").lower()

    def is_broken_client(self, user_agent: str) -> bool:
        if not self.excluded_user_agent or not user_agent:
            return False
        if self.excluded_user_agent not in user_agent:
            return False
        return not (self.excluded_user_agent_exempt and self.excluded_user_agent_exempt in user_agent)

    def accepts(self, request: RequestInfo) -> CompressionDecision:
        """Evaluate only the request-side rules (1, 3 and 6)."""
        if request.method == "HEAD":
            return _PASSTHROUGH[DecisionReason.HEAD_REQUEST]
        if not self.accepts_gzip(request.accept_encoding):
            return _PASSTHROUGH[DecisionReason.ACCEPT_ENCODING]
        if self.is_broken_client(request.user_agent):
            return _PASSTHROUGH[DecisionReason.BROKEN_CLIENT]
        return _COMPRESS

    def decide(
        self,
        request: RequestInfo,
        status_code: int,
        content_type: Optional[str],
        content_encoding: Optional[str],
        path: Optional[str] = None,
    ) -> CompressionDecision:
        """Decide whether to compress a response.

        Args:
            request: Request metadata
            status_code: Response status code
            content_type: Response Content-Type, if any
            content_encoding: Response Content-Encoding, if any
            path: Filesystem path of a static source; switches rule 4 to
                extension/MIME lookup

        Returns:
            The decision and the reason for it
        """
        if request.method == "HEAD":
            return _PASSTHROUGH[DecisionReason.HEAD_REQUEST]
        if status_code != 200:
            return _PASSTHROUGH[DecisionReason.STATUS]
        if not self.accepts_gzip(request.accept_encoding):
            return _PASSTHROUGH[DecisionReason.ACCEPT_ENCODING]
        if path is not None:
            eligible = self.whitelist.matches_path(path)
        else:
            eligible = self.whitelist.matches_content_type(content_type or "")
        if not eligible:
            return _PASSTHROUGH[DecisionReason.CONTENT_TYPE]
        if content_encoding:
            return _PASSTHROUGH[DecisionReason.ALREADY_ENCODED]
        if self.is_broken_client(request.user_agent):
            return _PASSTHROUGH[DecisionReason.BROKEN_CLIENT]
        return _COMPRESS


__all__ = [
    "CompressionPolicy", "CompressionDecision", "DecisionReason", "Whitelist", "RequestInfo",
]
