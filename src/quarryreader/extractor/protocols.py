"""
Protocols for pluggable HTML extraction strategies.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import ExtractResult


@runtime_checkable
class Extractor(Protocol):
    """Pluggable HTML-to-ExtractResult strategy."""

    name: str

    async def extract(self, html: str, *, url: str | None = None) -> ExtractResult:
        """Extract the main content of an HTML string.

        Args:
            html: HTML content to extract from
            url: Optional document URL, used to resolve relative links

        Returns:
            ExtractResult; an empty one (score 0.0) when nothing could be extracted
        """
        ...


@runtime_checkable
class ReadabilityCheck(Protocol):
    """Strategies that can tell cheaply whether extraction is worth running."""

    async def is_readerable(self, html: str) -> bool:
        """Whether the document probably contains an article."""
        ...
