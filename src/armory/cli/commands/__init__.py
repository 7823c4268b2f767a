"""Typer sub-commands of the armory CLI."""
