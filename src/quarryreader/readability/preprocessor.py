"""
Document preparation and the per-pass content sweep.

``prepare_document`` runs once per parse and normalizes markup that would
otherwise confuse scoring: noscript image fallbacks, scripts and styles,
``<br>`` chains standing in for paragraphs, ``<font>`` tags and lazy-loaded
images.

``sweep`` runs at the start of every extraction pass on a fresh copy of the
page. It removes what cannot be content (hidden nodes, the byline, the
duplicated title heading, unlikely candidates) and collects the elements the
scorer should look at.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

import structlog
from bs4 import Comment, Doctype, Tag

from quarryreader.config.config import HeuristicsConfig
from quarryreader.metadata.author_extractor import BylineDetector

from .dom import (
    HtmlDocument,
    all_tags,
    class_and_id,
    class_name,
    count_elements,
    describe,
    element_children,
    first_element_child,
    get_attr,
    get_inner_text,
    get_link_density,
    get_next_node,
    has_ancestor_tag,
    has_child_block_element,
    has_single_tag_inside_element,
    is_attached,
    is_element,
    is_element_without_content,
    is_phrasing_content,
    is_probably_visible,
    is_single_image,
    is_whitespace,
    next_significant_node,
    previous_element_sibling,
    remove_and_get_next,
    set_node_tag,
    text_similarity,
)
from .errors import ParseAbortedError
from .models import PassFlags
from .patterns import DEFAULT_PATTERNS, TAGS_TO_SCORE, UNLIKELY_ROLES, PatternCatalog

logger = structlog.get_logger(__name__)

_IMAGE_SOURCE_ATTRIBUTES = ("src", "srcset", "data-src", "data-srcset")
_CONTENTLESS_BLOCKS = frozenset(["div", "section", "header", "h1", "h2", "h3", "h4", "h5", "h6"])


@dataclass
class SweepResult:
    """Outcome of one sweep over the page."""

    elements: List[Tag] = field(default_factory=list)
    byline: Optional[str] = None


class Preprocessor:
    """Prepares a document for extraction and sweeps the page before each pass."""

    def __init__(
        self,
        document: HtmlDocument,
        patterns: PatternCatalog = DEFAULT_PATTERNS,
        heuristics: Optional[HeuristicsConfig] = None,
        byline_detector: Optional[BylineDetector] = None,
        debug: bool = False,
    ) -> None:
        self.document = document
        self.patterns = patterns
        self.heuristics = heuristics or HeuristicsConfig()
        self.byline_detector = byline_detector
        self.debug = debug

    def _debug(self, event: str, **kw) -> None:
        if self.debug:
            logger.debug(event, **kw)

    # --- Admission ---

    def check_size(self, max_elems_to_parse: int) -> int:
        """Count every element; raise when a nonzero ceiling is exceeded."""
        count = count_elements(self.document.soup)
        if max_elems_to_parse > 0 and count > max_elems_to_parse:
            raise ParseAbortedError(count)
        return count

    # --- One-time preparation ---

    def prepare_document(self) -> Tag:
        """Normalize the whole document and return the page (``<body>``)."""
        self.unwrap_noscript_images()
        self.remove_scripts()
        self.remove_comments()
        for style in all_tags(self.document.soup, ["style"]):
            style.extract()

        page = self.ensure_page()
        self.replace_brs(page)
        for font in all_tags(page, ["font"]):
            set_node_tag(font, "span")
        self.fix_lazy_images(page)
        return page

    def ensure_page(self) -> Tag:
        """Return ``<body>``, creating it around the top-level content when the tree has none."""
        soup = self.document.soup
        body = self.document.body
        if body is not None:
            return body
        html = self.document.html
        parent = html if html is not None else soup
        body = soup.new_tag("body")
        for child in list(parent.contents):
            if isinstance(child, Doctype) or (is_element(child) and child.name in ("head", "html")):
                continue
            body.append(child.extract())
        if html is None:
            html = soup.new_tag("html")
            for head in [child for child in soup.contents if is_element(child) and child.name == "head"]:
                html.append(head.extract())
            soup.append(html)
        html.append(body)
        return body

    def _has_image_source(self, img: Tag) -> bool:
        for name in img.attrs:
            if name in _IMAGE_SOURCE_ATTRIBUTES:
                return True
            if self.patterns.image_extension.search(get_attr(img, name) or ""):
                return True
        return False

    def unwrap_noscript_images(self) -> None:
        """
        Replace placeholder images with the real image from a following ``<noscript>``.

        Attributes of the placeholder that look like image sources are kept on
        the new image, renamed to ``data-old-*`` when the name is taken.
        """
        soup = self.document.soup
        for img in all_tags(soup, ["img"]):
            if not self._has_image_source(img):
                img.extract()

        for noscript in all_tags(soup, ["noscript"]):
            if not is_attached(noscript, soup) or not is_single_image(noscript):
                continue
            prev_element = previous_element_sibling(noscript)
            if prev_element is None or not is_single_image(prev_element):
                continue

            prev_img = prev_element if prev_element.name == "img" else prev_element.find("img")
            new_img = noscript.find("img")
            if prev_img is None or new_img is None:
                continue

            for name in list(prev_img.attrs):
                value = get_attr(prev_img, name)
                if not value:
                    continue
                if name in ("src", "srcset") or self.patterns.image_extension.search(value):
                    if get_attr(new_img, name) == value:
                        continue
                    target = f"data-old-{name}" if new_img.has_attr(name) else name
                    new_img[target] = value

            replacement = first_element_child(noscript).extract()
            prev_element.replace_with(replacement)
            self._debug("Unwrapped noscript image", image=describe(replacement))

    def remove_scripts(self) -> None:
        for node in all_tags(self.document.soup, ["script", "noscript"]):
            node.extract()

    def remove_comments(self) -> None:
        for comment in self.document.soup.find_all(string=lambda text: isinstance(text, Comment)):
            comment.extract()

    def replace_brs(self, root: Tag) -> None:
        """
        Turn chains of two or more ``<br>`` into paragraph boundaries.

        The first ``<br>`` of a chain becomes a ``<p>`` holding the phrasing
        content that follows it, up to the next chain.
        """
        for br in all_tags(root, ["br"]):
            replaced = False
            next_node = next_significant_node(br.next_sibling, self.patterns.whitespace)
            while next_node is not None and getattr(next_node, "name", None) == "br":
                replaced = True
                sibling = next_node.next_sibling
                next_node.extract()
                next_node = next_significant_node(sibling, self.patterns.whitespace)

            if not replaced:
                continue

            p = self.document.new_tag("p")
            br.replace_with(p)
            next_node = p.next_sibling
            while next_node is not None:
                if getattr(next_node, "name", None) == "br":
                    following = next_significant_node(next_node.next_sibling, self.patterns.whitespace)
                    if following is not None and getattr(following, "name", None) == "br":
                        break
                if not is_phrasing_content(next_node):
                    break
                sibling = next_node.next_sibling
                p.append(next_node.extract())
                next_node = sibling

            self._trim_trailing_whitespace(p)
            if p.parent is not None and p.parent.name == "p":
                set_node_tag(p.parent, "div")

    @staticmethod
    def _trim_trailing_whitespace(p: Tag) -> None:
        while p.contents and is_whitespace(p.contents[-1]):
            p.contents[-1].extract()

    def fix_lazy_images(self, root: Tag) -> None:
        """Promote lazy-load attributes of images, pictures and figures to ``src``/``srcset``."""
        for elem in all_tags(root, ["img", "picture", "figure"]):
            src = get_attr(elem, "src")
            if src:
                match = self.patterns.b64_data_url.match(src)
                if match:
                    if match.group(1) == "image/svg+xml":
                        continue
                    src_could_be_removed = any(
                        name != "src" and self.patterns.image_extension.search(get_attr(elem, name) or "")
                        for name in elem.attrs
                    )
                    if src_could_be_removed:
                        b64_length = len(src) - match.end()
                        if b64_length < self.heuristics.base64_placeholder_max_length:
                            del elem["src"]

            srcset = get_attr(elem, "srcset")
            has_source = get_attr(elem, "src") or (srcset and srcset != "null")
            if has_source and "lazy" not in class_name(elem).lower():
                continue

            for name in list(elem.attrs):
                if name in ("src", "srcset", "alt"):
                    continue
                value = get_attr(elem, name) or ""
                copy_to = None
                if self.patterns.lazy_srcset.search(value):
                    copy_to = "srcset"
                elif self.patterns.lazy_src.match(value):
                    copy_to = "src"
                if copy_to is None:
                    continue
                if elem.name in ("img", "picture"):
                    elem[copy_to] = value
                elif elem.name == "figure" and not all_tags(elem, ["img", "picture"]):
                    img = self.document.new_tag("img")
                    img[copy_to] = value
                    elem.append(img)

    # --- Per-pass sweep ---

    def _header_duplicates_title(self, node: Tag, title: str) -> bool:
        if node.name not in ("h1", "h2"):
            return False
        heading = get_inner_text(node, normalize_spaces=False)
        return text_similarity(title, heading, self.patterns.tokenize) > self.heuristics.title_similarity_threshold

    def _is_unlikely_candidate(self, node: Tag, match_string: str, page_text_length: int) -> bool:
        if not self.patterns.unlikely_candidates.search(match_string):
            return False
        if self.patterns.ok_maybe_its_a_candidate.search(match_string):
            return False
        if node.name in ("body", "a"):
            return False
        if has_ancestor_tag(node, "table", 0) or has_ancestor_tag(node, "code", 0):
            return False
        # Never strip the node that holds everything the page says
        if page_text_length > 0 and len(get_inner_text(node)) >= page_text_length:
            return False
        return True

    def _normalize_div(self, div: Tag, elements: List[Tag]) -> Tag:
        """Wrap loose phrasing content in paragraphs; collapse divs that are really paragraphs."""
        p: Optional[Tag] = None
        for child in list(div.contents):
            if is_phrasing_content(child):
                if p is not None:
                    p.append(child.extract())
                elif not is_whitespace(child):
                    p = self.document.new_tag("p")
                    child.replace_with(p)
                    p.append(child)
            elif p is not None:
                self._trim_trailing_whitespace(p)
                p = None

        if (
            has_single_tag_inside_element(div, "p", self.patterns.has_content)
            and get_link_density(div, self.patterns.hash_url) < self.heuristics.div_single_paragraph_link_density
        ):
            paragraph = element_children(div)[0].extract()
            div.replace_with(paragraph)
            elements.append(paragraph)
            return paragraph
        if not has_child_block_element(div):
            set_node_tag(div, "p")
            elements.append(div)
        return div

    def sweep(self, page: Tag, flags: PassFlags, title: str = "") -> SweepResult:
        """Remove non-content nodes from ``page`` and collect the elements to score."""
        result = SweepResult()
        strip_unlikelys = bool(flags & PassFlags.STRIP_UNLIKELYS)
        should_remove_title_header = bool(title)
        page_text_length = len(get_inner_text(page))

        node = first_element_child(page)
        while node is not None and is_attached(node, page):
            match_string = class_and_id(node)

            if not is_probably_visible(node, self.patterns):
                self._debug("Removing hidden node", node=describe(node))
                node = remove_and_get_next(node)
                continue

            if get_attr(node, "aria-modal") == "true" and get_attr(node, "role") == "dialog":
                node = remove_and_get_next(node)
                continue

            if result.byline is None and self.byline_detector is not None:
                byline = self.byline_detector.detect(node, match_string)
                if byline:
                    self._debug("Found byline", node=describe(node), byline=byline)
                    result.byline = byline
                    node = remove_and_get_next(node)
                    continue

            if should_remove_title_header and self._header_duplicates_title(node, title):
                self._debug("Removing header duplicating the title", node=describe(node))
                should_remove_title_header = False
                node = remove_and_get_next(node)
                continue

            if strip_unlikelys:
                if self._is_unlikely_candidate(node, match_string, page_text_length):
                    self._debug("Removing unlikely candidate", node=describe(node))
                    node = remove_and_get_next(node)
                    continue
                if get_attr(node, "role") in UNLIKELY_ROLES:
                    self._debug("Removing content with unlikely role", node=describe(node))
                    node = remove_and_get_next(node)
                    continue

            if node.name in _CONTENTLESS_BLOCKS and is_element_without_content(node):
                node = remove_and_get_next(node)
                continue

            if node.name in TAGS_TO_SCORE:
                result.elements.append(node)

            if node.name == "div":
                node = self._normalize_div(node, result.elements)

            node = get_next_node(node)

        return result
