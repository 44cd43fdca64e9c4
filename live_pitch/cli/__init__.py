"""Command-line interface for Live Pitch."""

from .main import cli

__all__ = ["cli"]
