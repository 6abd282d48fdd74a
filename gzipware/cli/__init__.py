"""
Command Line Interface for gzipware.

This module provides the main entry point for the gzipware CLI.
It imports and registers all commands from the commands package.
"""
from .commands import app

__all__ = ['app']

# This allows the module to be run directly with `python -m gzipware.cli`
if __name__ == "__main__":
    app()
