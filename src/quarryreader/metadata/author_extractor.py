"""
Author Extractor - Byline Identification

Finds the article byline either in the document itself (an element marked up
as the author line) or in the structured metadata the page declares.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse

from bs4 import Tag

from quarryreader.readability.dom import get_attr, text_content
from quarryreader.readability.patterns import DEFAULT_PATTERNS, PatternCatalog

from .models import StructuredDataResult


def is_url(value: str) -> bool:
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc)


class BylineDetector:
    """
    Recognizes byline elements while the preprocessor sweeps the page.

    A byline is an element with ``rel="author"``, an ``itemprop`` mentioning
    ``author``, or a class/id matching the byline pattern, whose text is
    non-empty and shorter than ``max_length``.
    """

    def __init__(self, patterns: PatternCatalog = DEFAULT_PATTERNS, max_length: int = 100) -> None:
        self.patterns = patterns
        self.max_length = max_length

    def is_valid_byline(self, text: str) -> bool:
        text = text.strip()
        return 0 < len(text) < self.max_length

    def looks_like_byline(self, node: Tag, match_string: str) -> bool:
        itemprop = get_attr(node, "itemprop") or ""
        return (
            get_attr(node, "rel") == "author"
            or "author" in itemprop
            or bool(self.patterns.byline.search(match_string))
        )

    def detect(self, node: Tag, match_string: str) -> Optional[str]:
        """Byline text when ``node`` is a byline element, else None."""
        if not self.looks_like_byline(node, match_string) or not self.is_valid_byline(text_content(node)):
            return None

        # An inner itemprop="name" element holds the bare author name
        name_node = node.find(lambda tag: "name" in (get_attr(tag, "itemprop") or ""))
        return text_content(name_node if name_node is not None else node).strip()


class AuthorExtractor:
    """Byline from declared metadata, used when the page has no byline element."""

    META_KEYS = ("dc:creator", "dcterm:creator", "author", "parsely-author")

    @classmethod
    def from_structured(cls, data: StructuredDataResult) -> Optional[str]:
        byline = data.json_ld.get("byline")
        if byline:
            return byline
        for key in cls.META_KEYS:
            if data.meta.get(key):
                return data.meta[key]
        # article:author is often a profile URL rather than a name
        article_author = data.meta.get("article:author")
        if article_author and not is_url(article_author):
            return article_author
        return None
