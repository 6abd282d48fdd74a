"""
Custom exceptions for gzipware.
"""
from typing import Optional, Dict, Any


class GzipwareError(Exception):
    """Base exception for all gzipware errors."""

    def __init__(
        self,
        message: str,
        *,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            context: Additional context about the error
            original_exception: The original exception that caused this error
        """
        super().__init__(message)
        self.context = context or {}
        self.original_exception = original_exception


class ConfigurationError(GzipwareError):
    """Raised when middleware or cache configuration is invalid."""
    pass


class NotFoundError(GzipwareError):
    """Raised when a static source file does not exist."""
    pass


class FilesystemError(GzipwareError):
    """Raised on stat/read/write/rename failures other than not-found."""
    pass


class CompressionStreamError(GzipwareError):
    """Raised when the compression transform fails mid-stream."""
    pass
