"""Command-line interface for fleet status checks."""

from .commands import cli

__all__ = ["cli"]
