"""Command-line entry points for triviadedup."""

from .main import main

__all__ = ["main"]
