"""
Data models for extraction results.
"""

from __future__ import annotations

from dataclasses import dataclass

from quarryreader.readability.models import Article


@dataclass(slots=True, frozen=True)
class ExtractResult:
    """Result of HTML content extraction."""

    url: str | None
    text: str
    title: str | None
    images: list[str]
    language: str | None
    score: float  # 0-1, how much the extractor trusts its own output
    byline: str | None = None
    excerpt: str | None = None
    published_time: str | None = None
    content: str = ""  # article HTML

    def __post_init__(self) -> None:
        """Validate the result."""
        if not (0.0 <= self.score <= 1.0):
            raise ValueError("Score must be between 0.0 and 1.0")

    @classmethod
    def empty(cls, url: str | None) -> ExtractResult:
        return cls(url=url, text="", title=None, images=[], language=None, score=0.0)

    @classmethod
    def from_article(cls, article: Article, *, url: str | None, text: str, images: list[str], score: float) -> ExtractResult:
        return cls(
            url=url,
            text=text,
            title=article.title or None,
            images=images,
            language=article.lang,
            score=score,
            byline=article.byline,
            excerpt=article.excerpt,
            published_time=article.published_time,
            content=article.content,
        )
