"""Command-line interface for mdcenter."""

from mdcenter.cli.main import cli, main

__all__ = ["cli", "main"]
