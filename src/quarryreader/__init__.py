"""
quarryreader - Readability-style main content extraction for HTML pages.
"""

from __future__ import annotations

__version__ = "0.1.0"

# The engine package goes first; config and metadata import its submodules
from .readability import (
    Article,
    ParseAbortedError,
    Readability,
    is_probably_readerable,
    load,
    parse,
)
from .config import ParseOptions

__all__ = [
    "__version__",
    "Article",
    "ParseAbortedError",
    "ParseOptions",
    "Readability",
    "is_probably_readerable",
    "load",
    "parse",
]
