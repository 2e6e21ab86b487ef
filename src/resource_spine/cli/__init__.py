"""
CLI layer for resource-spine.

Provides a Typer application whose commands delegate to
:class:`~resource_spine.core.connection.Connection`. This package handles
only terminal transport: argument parsing, coloured output and table
formatting.

Entry point::

    resource-spine --help
"""

from resource_spine.cli.app import app

__all__ = ["app"]
