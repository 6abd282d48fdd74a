# cache/utils.py
"""Naming and path helpers for the static gzip cache."""

import logging
import os
import re
import uuid
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# <name>.<mtime_ns>.gz, optionally followed by a temp suffix
_CACHE_FILE_RE = re.compile(r"\.\d+\.gz(\.\d+-[0-9a-f]{32}\.tmp)?$")


def artifact_name(filename: str, mtime_ns: int) -> str:
    """Cache artifact filename for a source file at a given mtime.

    Any change of mtime yields a different name, so artifacts are
    invalidated by renaming rather than overwritten.
    """
    return f"{filename}.{mtime_ns}.gz"


def temp_path(artifact: Path) -> Path:
    """Unique temporary path used while ``artifact`` is being generated."""
    return artifact.with_name(f"{artifact.name}.{os.getpid()}-{uuid.uuid4().hex}.tmp")


def is_cache_file(name: str) -> bool:
    """True for cache artifacts and their temporary files."""
    return bool(_CACHE_FILE_RE.search(name))


def resolve_request_path(root: Path, request_path: str, index_file: str = "index.html") -> Optional[Path]:
    """
    Map a URL path to a file under ``root``.

    Returns None for paths escaping ``root``, paths containing a NUL byte,
    and directory paths other than the root itself, which maps to
    ``index_file``.
    """
    if "\x00" in request_path:
        return None
    relative = request_path.lstrip("/")
    if not relative:
        return root / index_file
    if request_path.endswith("/"):
        return None

    candidate = Path(os.path.normpath(os.path.join(root, relative)))
    try:
        candidate.relative_to(root)
    except ValueError:
        return None
    if candidate == root:
        return None
    return candidate


def remove_quietly(path: Path) -> None:
    """Delete ``path`` if it exists."""
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove {path}: {e}")
