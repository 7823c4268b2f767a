"""Armory Shared Module.

This package contains shared utilities, types, and error handling used across Armory.
"""

__all__ = ["errors", "logging", "types"]
