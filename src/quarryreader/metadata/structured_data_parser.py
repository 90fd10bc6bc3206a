"""
Structured Data Parser - JSON-LD and meta tags

Reads the article-level metadata a page declares about itself: the first
schema.org article object in its ``application/ld+json`` scripts, and the
Open Graph / Dublin Core / Twitter / Parse.ly / Weibo ``<meta>`` tags.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from quarryreader.readability.dom import get_attr
from quarryreader.readability.patterns import DEFAULT_PATTERNS, PatternCatalog

from .models import StructuredDataResult

logger = logging.getLogger(__name__)

_CDATA = re.compile(r"^\s*<!\[CDATA\[|\]\]>\s*$")
_SPACES = re.compile(r"\s")


class SchemaOrgParser:
    """Parser for schema.org JSON-LD article objects."""

    def __init__(self, patterns: PatternCatalog = DEFAULT_PATTERNS) -> None:
        self.patterns = patterns

    def is_article_type(self, item: Any) -> bool:
        if not isinstance(item, dict):
            return False
        item_type = item.get("@type")
        if isinstance(item_type, list):
            return any(isinstance(t, str) and self.patterns.json_ld_article_types.search(t) for t in item_type)
        return isinstance(item_type, str) and bool(self.patterns.json_ld_article_types.search(item_type))

    def has_schema_org_context(self, item: Dict[str, Any]) -> bool:
        context = item.get("@context")
        if isinstance(context, str):
            return bool(self.patterns.schema_org_context.match(context))
        if isinstance(context, dict):
            vocab = context.get("@vocab")
            return isinstance(vocab, str) and bool(self.patterns.schema_org_context.match(vocab))
        return False

    def find_article(self, data: Any) -> Optional[Dict[str, Any]]:
        """Locate the article object in a decoded JSON-LD payload."""
        if isinstance(data, list):
            data = next((item for item in data if self.is_article_type(item)), None)
        if not isinstance(data, dict) or not self.has_schema_org_context(data):
            return None
        if "@type" not in data and isinstance(data.get("@graph"), list):
            data = next((item for item in data["@graph"] if self.is_article_type(item)), None)
        if not self.is_article_type(data):
            return None
        return data

    @staticmethod
    def extract_fields(article: Dict[str, Any]) -> Dict[str, str]:
        """Reduce an article object to name/headline, byline, excerpt, site name and date."""
        fields: Dict[str, str] = {}

        for key in ("name", "headline", "description", "datePublished"):
            value = article.get(key)
            if isinstance(value, str) and value.strip():
                fields[key] = value.strip()

        author = article.get("author")
        if isinstance(author, dict) and isinstance(author.get("name"), str):
            fields["byline"] = author["name"].strip()
        elif isinstance(author, list) and author and isinstance(author[0], dict):
            names = [a["name"].strip() for a in author if isinstance(a, dict) and isinstance(a.get("name"), str)]
            if names:
                fields["byline"] = ", ".join(names)

        publisher = article.get("publisher")
        if isinstance(publisher, dict) and isinstance(publisher.get("name"), str):
            fields["siteName"] = publisher["name"].strip()

        return fields

    def parse_json_ld(self, soup: BeautifulSoup, errors: Optional[List[str]] = None) -> Dict[str, str]:
        """Fields of the first schema.org article object found in the document's scripts."""
        for script in soup.find_all("script"):
            if get_attr(script, "type") != "application/ld+json":
                continue
            content = _CDATA.sub("", script.get_text())
            try:
                data = json.loads(content)
            except json.JSONDecodeError as e:
                logger.debug(f"Invalid JSON-LD: {e}")
                if errors is not None:
                    errors.append(f"json-ld: {e}")
                continue
            article = self.find_article(data)
            if article is not None:
                return self.extract_fields(article)
        return {}


class MetaTagParser:
    """Parser for article ``<meta>`` tags."""

    def __init__(self, patterns: PatternCatalog = DEFAULT_PATTERNS) -> None:
        self.patterns = patterns

    def parse(self, soup: BeautifulSoup) -> Dict[str, str]:
        """Map normalized meta names to their trimmed content; later tags win."""
        values: Dict[str, str] = {}

        for tag in soup.find_all("meta"):
            content = get_attr(tag, "content")
            if not content:
                continue

            matched = False
            prop = get_attr(tag, "property")
            if prop:
                match = self.patterns.meta_property.search(prop)
                if match:
                    matched = True
                    values[_SPACES.sub("", match.group(0).lower())] = content.strip()

            name = get_attr(tag, "name")
            if not matched and name and self.patterns.meta_name.match(name):
                values[_SPACES.sub("", name.lower()).replace(".", ":")] = content.strip()

        return values


class StructuredDataParser:
    """
    Combined structured data parser.

    JSON-LD lives in ``<script>`` elements, so this has to run before the
    preprocessor strips scripts from the document.
    """

    def __init__(self, patterns: PatternCatalog = DEFAULT_PATTERNS) -> None:
        self.schema_parser = SchemaOrgParser(patterns)
        self.meta_parser = MetaTagParser(patterns)

    def parse_all(self, soup: BeautifulSoup) -> StructuredDataResult:
        result = StructuredDataResult()
        result.json_ld = self.schema_parser.parse_json_ld(soup, result.errors)
        result.meta = self.meta_parser.parse(soup)
        return result
