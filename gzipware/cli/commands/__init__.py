"""
Main CLI command registration.

This module sets up the main CLI command group and registers all subcommands.
"""
import logging

import typer

# Create the main command group
app = typer.Typer(help="gzipware CLI")


@app.callback()
def main_callback(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")):
    """gzipware command line interface."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


from . import server as server_module
from . import cache as cache_module

app.command("serve")(server_module.serve)
app.command("warm")(cache_module.warm)

__all__ = ['app']
