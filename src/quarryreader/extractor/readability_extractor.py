"""
Readability-based HTML content extractor.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from quarryreader.config.config import HeuristicsConfig
from quarryreader.readability.dom import DEFAULT_FEATURES, get_attr, load
from quarryreader.readability.engine import OptionsInput, Readability, build_options
from quarryreader.readability.errors import ParseAbortedError
from quarryreader.readability.readerable import is_probably_readerable

from .models import ExtractResult
from .protocols import Extractor, ReadabilityCheck

logger = logging.getLogger(__name__)


class ReadabilityExtractor(Extractor, ReadabilityCheck):
    """Extractor running the quarryreader engine in a worker thread."""

    name = "readability"

    def __init__(
        self,
        options: OptionsInput = None,
        *,
        heuristics: Optional[HeuristicsConfig] = None,
        min_text_length: int = 20,
        features: str = DEFAULT_FEATURES,
    ) -> None:
        self.options = build_options(options)
        self.heuristics = heuristics
        self.min_text_length = min_text_length
        self.features = features

    async def extract(self, html: str, *, url: str | None = None) -> ExtractResult:
        """Extract the article of an HTML document.

        Args:
            html: HTML content to extract from
            url: Optional URL for resolving relative links

        Returns:
            ExtractResult with extracted content
        """
        if not html.strip():
            logger.warning("Empty HTML, nothing to extract")
            return ExtractResult.empty(url)

        try:
            # Parsing is CPU-bound; keep it off the event loop
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, self._extract_sync, html, url)
        except ParseAbortedError as e:
            logger.warning(f"Readability extraction aborted: {e}")
            return ExtractResult.empty(url)
        except Exception as e:
            logger.warning(f"Readability extraction failed: {e}")
            return ExtractResult.empty(url)

    async def is_readerable(self, html: str) -> bool:
        if not html.strip():
            return False
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: is_probably_readerable(load(html, features=self.features)))

    def _extract_sync(self, html: str, url: str | None) -> ExtractResult:
        """Synchronous extraction."""
        document = load(html, url=url, features=self.features)
        article = Readability(document, self.options, heuristics=self.heuristics).parse()

        text = " ".join(article.text_content.split())
        return ExtractResult.from_article(
            article,
            url=url,
            text=text,
            images=self._collect_images(article.content, url),
            score=0.7 if len(text) > self.min_text_length else 0.0,
        )

    def _collect_images(self, content_html: str, url: str | None) -> list[str]:
        """Absolute URLs of the images in the article, in order, without duplicates."""
        if not content_html:
            return []
        images: list[str] = []
        for img in BeautifulSoup(content_html, self.features).find_all("img"):
            src = get_attr(img, "src")
            if not src:
                continue
            if url and not src.startswith(("http://", "https://", "data:")):
                src = urljoin(url, src)
            if src not in images:
                images.append(src)
        return images
