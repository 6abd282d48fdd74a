# cache/__init__.py
"""
gzipware static cache - pre-compressed copies of static files on disk.

Artifacts live beside their sources (or in a mirrored tree under
``CACHE_DIR``) and are named after the source file and its mtime.
"""

from .core import CacheEntry, StaticGzipCache, StaticResolution
from .utils import artifact_name, is_cache_file, resolve_request_path

__all__ = [
    "CacheEntry",
    "StaticGzipCache",
    "StaticResolution",
    "artifact_name",
    "is_cache_file",
    "resolve_request_path",
]
