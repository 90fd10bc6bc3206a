"""
Data models for article metadata.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class StructuredDataResult:
    """Article fields read from JSON-LD and ``<meta>`` tags."""

    # First schema.org article object, reduced to the fields the resolver uses
    json_ld: Dict[str, str] = field(default_factory=dict)

    # Normalized meta names (``og:title``, ``dc:creator``, ...) to their content
    meta: Dict[str, str] = field(default_factory=dict)

    errors: List[str] = field(default_factory=list)


@dataclass
class Metadata:
    """Resolved article metadata. Only the title is never absent."""

    title: str = ""
    byline: Optional[str] = None
    excerpt: Optional[str] = None
    site_name: Optional[str] = None
    dir: Optional[str] = None
    lang: Optional[str] = None
    published_time: Optional[str] = None
