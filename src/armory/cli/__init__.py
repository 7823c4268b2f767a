"""Command-line interface for Armory."""

from armory.cli.typer_app import app, main

__all__ = ["app", "main"]
