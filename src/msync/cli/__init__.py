"""Command-line interface for msync."""

from .main import cli

__all__ = ["cli"]
