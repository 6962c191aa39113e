"""Command-line interface for sonarrimport.

The Typer application lives in :mod:`sonarrimport.cli.commands`; output is
rendered through Rich by :mod:`sonarrimport.cli.renderer`.
"""

from sonarrimport.cli.commands import app, main

__all__ = ["app", "main"]
