"""
Static cache commands.
"""
import asyncio
from pathlib import Path
from typing import List, Optional

import typer

from ..utils import console, create_progress, print_error, print_success, print_warning


def warm(
    root: Path = typer.Argument(..., exists=True, file_okay=False, help="Directory to pre-compress"),
    extension: Optional[List[str]] = typer.Option(None, "--ext", help="Extension to compress, e.g. .css"),
    cache_dir: Optional[Path] = typer.Option(None, help="Directory for gzip artifacts (default: beside sources)"),
) -> None:
    """Pre-build gzip artifacts for every whitelisted file under ROOT."""
    from gzipware import StaticGzipCache, get_settings
    from gzipware.exceptions import ConfigurationError

    options = {}
    if extension:
        options["extensions"] = extension
    if cache_dir is not None:
        options["cache_dir"] = str(cache_dir)

    try:
        settings = get_settings().override(**options)
        cache = StaticGzipCache(root, settings)
    except (ConfigurationError, ValueError) as e:
        print_error(str(e))
        raise typer.Exit(code=1)

    with create_progress() as progress:
        progress.add_task(description=f"Compressing files under {root}...", total=None)
        counts = asyncio.run(cache.warm())

    print_success(f"Generated {counts['generated']} artifact(s)")
    console.print(f"  Already cached: {counts['cached']}")
    if counts["failed"]:
        print_warning(f"Failed: {counts['failed']}")
        raise typer.Exit(code=1)
