"""
Configuration settings for gzipware.

Settings are loaded once from environment variables (prefix ``GZIP_``) or a
``.env`` file and are frozen afterwards. Every middleware and cache receives
its settings object through its constructor.
"""
import re
import zlib
from functools import lru_cache
from typing import Any, Dict, List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings

from .policy import Whitelist


class GzipSettings(BaseSettings):
    """
    Centralized settings for the compression middlewares.
    All settings can be overridden by environment variables, e.g. GZIP_COMPRESS_LEVEL.
    """
    # --- Whitelist ---
    MATCH_TYPE: str = r"text|javascript|json"  # dynamic mode, regex over Content-Type
    EXTENSIONS: List[str] = []  # static mode, e.g. [".css", ".js"]
    MIME_TYPES: List[str] = []  # static mode, e.g. ["text/css"]

    # --- Compression tuning (passed through to the transform) ---
    COMPRESS_LEVEL: int = 9
    WINDOW_BITS: int = 15
    MEM_LEVEL: int = 8
    STRATEGY: int = zlib.Z_DEFAULT_STRATEGY

    # --- Compressor implementation ---
    COMPRESSOR: str = "zlib"  # Options: zlib, process
    GZIP_BIN: str = "gzip"
    GZIP_FLAGS: List[str] = ["--best"]

    # --- Static mode ---
    STATIC_ROOT: Optional[str] = None
    CACHE_DIR: Optional[str] = None  # None: artifacts are written beside their sources
    INDEX_FILE: str = "index.html"
    CHUNK_SIZE: int = 64 * 1024

    # --- Broken clients ---
    EXCLUDED_USER_AGENT: str = "MSIE 6"
    EXCLUDED_USER_AGENT_EXEMPT: str = "SV1"

    @field_validator("EXTENSIONS", "MIME_TYPES", "GZIP_FLAGS", mode="before")
    def parse_list(cls, v):
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("EXTENSIONS")
    def normalize_extensions(cls, v):
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in v]

    @field_validator("MATCH_TYPE")
    def validate_match_type(cls, v):
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid MATCH_TYPE pattern '{v}': {e}")
        return v

    @field_validator("COMPRESS_LEVEL")
    def validate_level(cls, v):
        if not -1 <= v <= 9:
            raise ValueError("COMPRESS_LEVEL must be between -1 and 9")
        return v

    @field_validator("WINDOW_BITS")
    def validate_window_bits(cls, v):
        if not 9 <= v <= 15:
            raise ValueError("WINDOW_BITS must be between 9 and 15")
        return v

    @field_validator("MEM_LEVEL")
    def validate_mem_level(cls, v):
        if not 1 <= v <= 9:
            raise ValueError("MEM_LEVEL must be between 1 and 9")
        return v

    @field_validator("COMPRESSOR")
    def validate_compressor(cls, v):
        if v not in ("zlib", "process"):
            raise ValueError(f"Unsupported compressor: {v}")
        return v

    def whitelist(self) -> Whitelist:
        """Build the immutable whitelist for this configuration."""
        return Whitelist(
            match_type=re.compile(self.MATCH_TYPE, re.IGNORECASE) if self.MATCH_TYPE else None,
            extensions=frozenset(self.EXTENSIONS),
            mime_types=frozenset(t.lower() for t in self.MIME_TYPES),
        )

    def compressor_options(self) -> Dict[str, Any]:
        """Tuning knobs for the compression transform."""
        return {
            "level": self.COMPRESS_LEVEL,
            "window_bits": self.WINDOW_BITS,
            "mem_level": self.MEM_LEVEL,
            "strategy": self.STRATEGY,
        }

    def override(self, **options: Any) -> "GzipSettings":
        """Return a copy with lowercase keyword options applied, e.g. ``compress_level=6``."""
        if not options:
            return self
        update = {key.upper(): value for key, value in options.items()}
        unknown = set(update) - set(type(self).model_fields)
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
        # Re-validate so overrides go through the same validators as env values
        return type(self).model_validate({**self.model_dump(), **update})

    class Config:
        env_prefix = "GZIP_"
        env_file = ".env"
        case_sensitive = True
        frozen = True


@lru_cache()
def get_settings() -> GzipSettings:
    """Get settings with caching."""
    return GzipSettings()


__all__ = ["GzipSettings", "get_settings"]
