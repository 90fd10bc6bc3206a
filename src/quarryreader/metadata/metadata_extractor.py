"""
Main Metadata Extractor - Article Metadata Resolution

Combines the structured data a page declares (JSON-LD, meta tags) with
heuristics over the document (``<title>`` separators, headings, bylines,
``<time>`` elements) into one :class:`Metadata` record.

Resolution happens in two steps. :meth:`MetadataResolver.resolve` runs on
the preprocessed document before content selection; :meth:`finalize` fills
in what depends on the selected article (DOM byline, text direction,
``<time>`` inside the article, paragraph excerpt).
"""

from __future__ import annotations

import html
import logging
import re
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from quarryreader.config.config import HeuristicsConfig
from quarryreader.readability.dom import HtmlDocument, get_attr, get_inner_text, get_node_ancestors, text_similarity
from quarryreader.readability.patterns import DEFAULT_PATTERNS, PatternCatalog

from .author_extractor import AuthorExtractor
from .models import Metadata, StructuredDataResult

logger = logging.getLogger(__name__)

TITLE_META_KEYS = (
    "dc:title",
    "dcterm:title",
    "og:title",
    "weibo:article:title",
    "weibo:webpage:title",
    "title",
    "twitter:title",
    "parsely-title",
)

EXCERPT_META_KEYS = (
    "dc:description",
    "dcterm:description",
    "og:description",
    "weibo:article:description",
    "weibo:webpage:description",
    "description",
    "twitter:description",
)

PUBLISHED_TIME_META_KEYS = ("article:published_time", "parsely-pub-date")

TEXT_DIRECTIONS = ("ltr", "rtl")

_WORDS = re.compile(r"\s+")


def word_count(text: str) -> int:
    return len(_WORDS.split(text))


def clean_value(value: Optional[str]) -> Optional[str]:
    """Unescape leftover entities and strip; empty values become None."""
    if value is None:
        return None
    value = html.unescape(value).strip()
    return value or None


def truncate_at_word(text: str, max_length: int, ellipsis: str = "…") -> str:
    """Cut ``text`` to at most ``max_length`` characters, on a word boundary."""
    if len(text) <= max_length:
        return text
    cut = text[: max(max_length - len(ellipsis), 0)]
    if " " in cut:
        cut = cut[: cut.rfind(" ")]
    return cut.rstrip() + ellipsis


class MetadataResolver:
    """Resolves title, byline, excerpt, site name, direction, language and publication time."""

    def __init__(
        self,
        patterns: PatternCatalog = DEFAULT_PATTERNS,
        heuristics: Optional[HeuristicsConfig] = None,
    ) -> None:
        self.patterns = patterns
        self.heuristics = heuristics or HeuristicsConfig()

    # --- Title ---

    def document_title(self, soup: BeautifulSoup, site_name: Optional[str] = None) -> str:
        """Title derived from the ``<title>`` element and the page headings."""
        title_el = soup.head.find("title") if soup.head is not None else soup.find("title")
        orig_title = get_inner_text(title_el) if title_el is not None else ""
        cur_title = orig_title
        separators = list(self.patterns.title_separator.finditer(orig_title))

        if separators:
            last = separators[-1]
            left = orig_title[: last.start()].strip()
            right = orig_title[last.end() :].strip()
            longer, shorter = (left, right) if len(left) >= len(right) else (right, left)
            if site_name and longer.lower() == site_name.strip().lower():
                cur_title = shorter
            else:
                cur_title = longer
            cur_title = self.patterns.normalize.sub(" ", cur_title.strip()) or orig_title
        else:
            if ": " in cur_title:
                headings = soup.find_all(["h1", "h2"])
                trimmed = cur_title.strip()
                if not any(heading.get_text().strip() == trimmed for heading in headings):
                    cur_title = orig_title[orig_title.rfind(":") + 1 :]
                    if word_count(cur_title) < 3:
                        cur_title = orig_title[orig_title.find(":") + 1 :]
                    elif word_count(orig_title[: orig_title.find(":")]) > 5:
                        cur_title = orig_title
            elif len(cur_title) > 150 or len(cur_title) < 15:
                h1s = soup.find_all("h1")
                if len(h1s) == 1:
                    cur_title = get_inner_text(h1s[0])

            cur_title = self.patterns.normalize.sub(" ", cur_title.strip())
            if word_count(cur_title) <= 4:
                cur_title = orig_title

        if not cur_title.strip():
            h1 = soup.find("h1")
            if h1 is not None:
                cur_title = get_inner_text(h1)
        return self.patterns.normalize.sub(" ", cur_title.strip())

    def json_ld_title(self, json_ld: dict, document_title: str) -> Optional[str]:
        """``name`` or ``headline``; when both differ, the one resembling the document title."""
        name = json_ld.get("name")
        headline = json_ld.get("headline")
        if name and headline and name != headline:
            threshold = self.heuristics.title_similarity_threshold
            name_matches = text_similarity(name, document_title, self.patterns.tokenize) > threshold
            headline_matches = text_similarity(headline, document_title, self.patterns.tokenize) > threshold
            return headline if headline_matches and not name_matches else name
        return name or headline

    # --- Document-level resolution ---

    def resolve(self, document: HtmlDocument, structured: StructuredDataResult) -> Metadata:
        json_ld, meta = structured.json_ld, structured.meta

        site_name = clean_value(json_ld.get("siteName") or meta.get("og:site_name"))
        document_title = self.document_title(document.soup, site_name)

        title = self.json_ld_title(json_ld, document_title)
        if not title:
            title = next((meta[key] for key in TITLE_META_KEYS if meta.get(key)), None)
        if not title:
            title = document_title

        excerpt = json_ld.get("description") or next((meta[key] for key in EXCERPT_META_KEYS if meta.get(key)), None)
        published = next((meta[key] for key in PUBLISHED_TIME_META_KEYS if meta.get(key)), None)

        metadata = Metadata(
            title=clean_value(title) or "",
            byline=clean_value(AuthorExtractor.from_structured(structured)),
            excerpt=clean_value(excerpt),
            site_name=site_name,
            lang=self.language(document),
            published_time=clean_value(published or json_ld.get("datePublished")),
        )
        logger.debug(f"Resolved document metadata: title={metadata.title!r} site_name={metadata.site_name!r}")
        return metadata

    @staticmethod
    def language(document: HtmlDocument) -> Optional[str]:
        for node in (document.html, document.body):
            lang = get_attr(node, "lang")
            if lang and lang.strip():
                return lang.strip()
        return None

    # --- Article-level resolution ---

    @staticmethod
    def text_direction(nodes: List[Tag]) -> Optional[str]:
        """First ``ltr``/``rtl`` ``dir`` attribute on ``nodes`` or their ancestors."""
        chain: List[Tag] = []
        for node in nodes:
            if node is None:
                continue
            chain.append(node)
            chain.extend(get_node_ancestors(node))
        for node in chain:
            direction = (get_attr(node, "dir") or "").strip().lower()
            if direction in TEXT_DIRECTIONS:
                return direction
        return None

    @staticmethod
    def article_published_time(article: Tag) -> Optional[str]:
        for time_el in article.find_all("time"):
            value = (get_attr(time_el, "datetime") or "").strip()
            if value:
                return value
        return None

    def paragraph_excerpt(self, article: Tag) -> Optional[str]:
        for paragraph in article.find_all("p"):
            text = " ".join(paragraph.get_text().split())
            if text:
                return truncate_at_word(text, self.heuristics.excerpt_max_length)
        return None

    def finalize(
        self,
        metadata: Metadata,
        article: Tag,
        dom_byline: Optional[str] = None,
        text_dir: Optional[str] = None,
    ) -> Metadata:
        """Fill in the fields that depend on the extracted article."""
        metadata.byline = clean_value(dom_byline) or metadata.byline
        metadata.dir = text_dir
        metadata.published_time = self.article_published_time(article) or metadata.published_time
        if not metadata.excerpt:
            metadata.excerpt = self.paragraph_excerpt(article)
        return metadata
