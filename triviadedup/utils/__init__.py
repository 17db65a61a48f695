"""Utilities for triviadedup."""

from .io import read_jsonl, write_jsonl
from .logging import StructuredFormatter, setup_logging

__all__ = [
    "read_jsonl",
    "write_jsonl",
    "setup_logging",
    "StructuredFormatter",
]
