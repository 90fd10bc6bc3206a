"""
Data models for parse results.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntFlag
from typing import Any, Dict, Optional


class PassFlags(IntFlag):
    """Heuristics that can be relaxed between extraction passes."""

    NONE = 0
    STRIP_UNLIKELYS = 1
    WEIGHT_CLASSES = 2
    CLEAN_CONDITIONALLY = 4

    @classmethod
    def all(cls) -> "PassFlags":
        return cls.STRIP_UNLIKELYS | cls.WEIGHT_CLASSES | cls.CLEAN_CONDITIONALLY


@dataclass(slots=True, frozen=True)
class Article:
    """Extracted article with its metadata."""

    content: str
    text_content: str
    length: int
    title: str
    byline: Optional[str] = None
    excerpt: Optional[str] = None
    site_name: Optional[str] = None
    dir: Optional[str] = None
    lang: Optional[str] = None
    published_time: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        """Result keyed by the names readers expect on the wire."""
        return {
            "content": self.content,
            "textContent": self.text_content,
            "length": self.length,
            "title": self.title,
            "byline": self.byline,
            "excerpt": self.excerpt,
            "siteName": self.site_name,
            "dir": self.dir,
            "lang": self.lang,
            "publishedTime": self.published_time,
        }
