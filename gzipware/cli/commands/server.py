"""
Server command.

Serves a static directory behind the gzip middlewares with uvicorn.
"""
from pathlib import Path
from typing import List, Optional

import typer

from ..utils import print_error, print_success


def serve(
    root: Path = typer.Argument(..., exists=True, file_okay=False, help="Directory to serve"),
    host: str = "127.0.0.1",
    port: int = 8000,
    extension: Optional[List[str]] = typer.Option(None, "--ext", help="Extension to serve from the gzip cache, e.g. .css"),
    cache_dir: Optional[Path] = typer.Option(None, help="Directory for gzip artifacts (default: beside sources)"),
    level: int = typer.Option(9, min=1, max=9, help="Compression level"),
) -> None:
    """Serve ROOT with on-the-fly and cached gzip compression."""
    # Import uvicorn only when needed
    import uvicorn

    from gzipware import create_app, get_settings
    from gzipware.exceptions import ConfigurationError

    options = {"static_root": str(root), "compress_level": level}
    if extension:
        options["extensions"] = extension
    if cache_dir is not None:
        options["cache_dir"] = str(cache_dir)

    try:
        settings = get_settings().override(**options)
        app = create_app(settings=settings)
    except (ConfigurationError, ValueError) as e:
        print_error(str(e))
        raise typer.Exit(code=1)

    print_success(f"Serving {root} at http://{host}:{port}")
    uvicorn.run(app, host=host, port=port)
