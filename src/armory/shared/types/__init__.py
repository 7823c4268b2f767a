"""Shared base types."""

from .base import BaseDataclass

__all__ = ["BaseDataclass"]
