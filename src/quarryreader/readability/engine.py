"""
Readability engine: the public entry point of the extraction pipeline.

A parse runs, in order: the element-count admission check, structured data
reading (before scripts are stripped), document preparation, metadata
resolution, candidate selection with retries (scoring and cleanup happen
inside every pass), article-dependent metadata and serialization.

Only the admission check raises. Everything after it degrades toward the
best attempt and empty metadata fields.
"""

from __future__ import annotations

import time
from typing import Any, Mapping, Optional, Pattern, Union

import structlog
from bs4 import BeautifulSoup

from quarryreader.config.config import HeuristicsConfig, ParseOptions
from quarryreader.metadata.author_extractor import BylineDetector
from quarryreader.metadata.metadata_extractor import MetadataResolver
from quarryreader.metadata.structured_data_parser import StructuredDataParser
from quarryreader.observability import histogram, increment

from .cleaner import ContentCleaner
from .dom import HtmlDocument, serialize
from .errors import ParseAbortedError
from .models import Article
from .patterns import DEFAULT_PATTERNS, PatternCatalog
from .preprocessor import Preprocessor
from .scorer import NodeScorer
from .selector import CandidateSelector

logger = structlog.get_logger(__name__)

OptionsInput = Union[ParseOptions, Mapping[str, Any], None]


def build_options(options: OptionsInput = None, **overrides: Any) -> ParseOptions:
    """Merge an options object or mapping with keyword overrides; unknown keys are dropped."""
    if isinstance(options, ParseOptions):
        values = options.model_dump()
    else:
        values = dict(options or {})
    values.update(overrides)
    return ParseOptions.model_validate(values)


class Readability:
    """
    Extracts the main article of one document.

    An instance owns its document for the duration of :meth:`parse`, which
    mutates the tree; parse each document with its own instance.
    """

    def __init__(
        self,
        document: Union[HtmlDocument, BeautifulSoup],
        options: OptionsInput = None,
        *,
        patterns: PatternCatalog = DEFAULT_PATTERNS,
        heuristics: Optional[HeuristicsConfig] = None,
        **overrides: Any,
    ) -> None:
        if isinstance(document, BeautifulSoup):
            document = HtmlDocument(document)
        if not isinstance(document, HtmlDocument):
            raise TypeError(f"Expected a parsed document, got {type(document).__name__}")

        self.document = document
        self.options = build_options(options, **overrides)
        self.patterns = patterns
        self.heuristics = heuristics or HeuristicsConfig()
        debug = self.options.debug

        self.structured_parser = StructuredDataParser(patterns)
        self.resolver = MetadataResolver(patterns, self.heuristics)
        self.preprocessor = Preprocessor(
            document,
            patterns,
            self.heuristics,
            byline_detector=BylineDetector(patterns, self.heuristics.byline_max_length),
            debug=debug,
        )
        self.scorer = NodeScorer(patterns, self.heuristics, debug=debug)
        self.cleaner = ContentCleaner(
            document,
            patterns,
            self.heuristics,
            scorer=self.scorer,
            allowed_video_regex=self.allowed_video_regex,
            keep_classes=self.options.keep_classes,
            classes_to_preserve=self.options.classes_to_preserve,
            debug=debug,
        )
        self.selector = CandidateSelector(
            document,
            self.preprocessor,
            self.scorer,
            self.cleaner,
            self.resolver,
            self.options,
            patterns,
            self.heuristics,
        )

    @property
    def allowed_video_regex(self) -> Pattern[str]:
        return self.options.allowed_video_regex or self.patterns.videos

    def parse(self) -> Article:
        """Extract the article. Raises :class:`ParseAbortedError` for oversized documents."""
        started = time.perf_counter()
        with structlog.contextvars.bound_contextvars(document_url=self.document.url):
            try:
                element_count = self.preprocessor.check_size(self.options.max_elems_to_parse)
            except ParseAbortedError as e:
                logger.warning("Document too large", elements=e.element_count, limit=self.options.max_elems_to_parse)
                increment("parses_total", labels={"outcome": "aborted"})
                raise

            structured = self.structured_parser.parse_all(self.document.soup)
            page = self.preprocessor.prepare_document()
            metadata = self.resolver.resolve(self.document, structured)

            attempt = self.selector.grab_article(page, metadata.title)
            self.resolver.finalize(metadata, attempt.content, attempt.byline, attempt.dir)

            text_content = attempt.content.get_text()
            article = Article(
                content=serialize(attempt.content),
                text_content=text_content,
                length=len(text_content),
                title=metadata.title,
                byline=metadata.byline,
                excerpt=metadata.excerpt,
                site_name=metadata.site_name,
                dir=metadata.dir,
                lang=metadata.lang,
                published_time=metadata.published_time,
            )

            elapsed = time.perf_counter() - started
            increment("parses_total", labels={"outcome": "ok" if article.length else "empty"})
            increment("retry_passes_total", self.selector.passes - 1)
            histogram("parse_duration_seconds", elapsed)
            histogram("article_length_chars", article.length)
            if self.options.debug:
                logger.debug(
                    "Parse finished",
                    elements=element_count,
                    passes=self.selector.passes,
                    flags=int(attempt.flags),
                    rank=attempt.rank,
                    length=article.length,
                    duration_ms=round(elapsed * 1000, 2),
                )
            return article


def parse(document: Union[HtmlDocument, BeautifulSoup], options: OptionsInput = None, **overrides: Any) -> Article:
    """Extract the article of ``document`` with a fresh :class:`Readability`."""
    return Readability(document, options, **overrides).parse()
