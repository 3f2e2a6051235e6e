"""Command line interface (``openkit``)."""

from openkit.cli.app import app

__all__ = ["app"]
