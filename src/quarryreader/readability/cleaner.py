"""
Cleanup of the assembled article.

The cleaner runs its passes until the serialized article stops changing, so
calling :meth:`ContentCleaner.clean` on already cleaned content leaves it
untouched.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, FrozenSet, List, Optional, Pattern, Set
from urllib.parse import urldefrag, urljoin

import structlog
from bs4 import NavigableString, Tag

from quarryreader.config.config import HeuristicsConfig

from .dom import (
    HtmlDocument,
    all_tags,
    class_and_id,
    class_name,
    describe,
    element_children,
    first_element_child,
    get_attr,
    get_char_count,
    get_inner_text,
    get_link_density,
    get_next_node,
    get_text_density,
    has_ancestor_tag,
    has_single_tag_inside_element,
    is_attached,
    is_element_without_content,
    is_phrasing_content,
    is_text,
    next_significant_node,
    node_id,
    remove_and_get_next,
    serialize,
    set_node_tag,
    text_content,
)
from .models import PassFlags
from .patterns import (
    DEFAULT_CLASSES_TO_PRESERVE,
    DEFAULT_PATTERNS,
    DEPRECATED_SIZE_ATTRIBUTE_ELEMS,
    DIV_TO_P_ELEMS,
    EMBED_TAGS,
    MEDIA_TAGS,
    PAGE_CONTAINER_ID,
    PREFORMATTED_TAGS,
    PRESENTATIONAL_ATTRIBUTES,
    PRUNABLE_TAGS,
    PatternCatalog,
)
from .scorer import NodeScorer

logger = structlog.get_logger(__name__)

_TEXTISH_TAGS = ["span", "li", "td", *sorted(DIV_TO_P_ELEMS)]
_HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]
_TABLE_CELL_ATTRIBUTES = ("colspan", "rowspan", "headers", "scope", "abbr")
_DATA_TABLE_DESCENDANTS = ["col", "colgroup", "tfoot", "thead", "th"]
_WHITESPACE_RUN = re.compile(r"[ \t\n\r\f\v]+")


def is_container(node: Tag) -> bool:
    """Engine-made wrappers (``readability-*`` ids) are never cleaned away."""
    return node_id(node).startswith("readability")


def _parse_span(value: Optional[str]) -> int:
    try:
        return int(value) if value else 0
    except ValueError:
        return 0


class ContentCleaner:
    """Removes residual noise from an article container and normalizes its markup."""

    def __init__(
        self,
        document: HtmlDocument,
        patterns: PatternCatalog = DEFAULT_PATTERNS,
        heuristics: Optional[HeuristicsConfig] = None,
        scorer: Optional[NodeScorer] = None,
        allowed_video_regex: Optional[Pattern[str]] = None,
        keep_classes: bool = False,
        classes_to_preserve: FrozenSet[str] = frozenset(),
        debug: bool = False,
    ) -> None:
        self.document = document
        self.patterns = patterns
        self.heuristics = heuristics or HeuristicsConfig()
        self.scorer = scorer or NodeScorer(patterns, self.heuristics)
        self.allowed_video_regex = allowed_video_regex or patterns.videos
        self.keep_classes = keep_classes
        self.classes_to_preserve = frozenset(classes_to_preserve) | DEFAULT_CLASSES_TO_PRESERVE
        self.debug = debug
        self._data_tables: Dict[int, Tag] = {}

    def _debug(self, event: str, **kw) -> None:
        if self.debug:
            logger.debug(event, **kw)

    def clean(self, article: Tag, flags: PassFlags = PassFlags.all(), whole_page: bool = False) -> Tag:
        """Run every cleanup pass over ``article`` until it reaches a fixed point.

        ``whole_page`` marks an article built from every child of the page, in
        which case those children are themselves checked for share widgets.
        """
        previous = None
        for _ in range(self.heuristics.max_clean_iterations):
            self._clean_once(article, flags, whole_page)
            current = serialize(article)
            if current == previous:
                break
            previous = current
        else:
            self._debug("Cleanup did not settle", iterations=self.heuristics.max_clean_iterations)
        return article

    def _clean_once(self, article: Tag, flags: PassFlags, whole_page: bool = False) -> None:
        self.clean_styles(article)
        self.mark_data_tables(article)

        self.clean_conditionally(article, "form", flags)
        self.clean_conditionally(article, "fieldset", flags)
        for tag in ("object", "embed", "footer", "link", "aside"):
            self.remove_tags(article, tag)

        threshold = self.heuristics.share_element_threshold
        top_level_nodes = element_children(article) if whole_page else self._top_level_nodes(article)
        for top_level in top_level_nodes:
            self.clean_matched_nodes(
                top_level,
                lambda node, match_string: bool(self.patterns.share_elements.search(match_string))
                and len(text_content(node)) < threshold,
            )

        for tag in ("iframe", "input", "textarea", "select", "button"):
            self.remove_tags(article, tag)
        self.clean_headers(article, flags)

        self.clean_conditionally(article, "table", flags)
        self.clean_conditionally(article, "ul", flags)
        self.clean_conditionally(article, "div", flags)

        for h1 in all_tags(article, ["h1"]):
            set_node_tag(h1, "h2")

        self.unwrap_layout_tables(article)
        self.remove_empty_paragraphs(article)
        self.prune_empty_elements(article)

        self.fix_relative_uris(article)
        self.simplify_nested_elements(article)
        if not self.keep_classes:
            self.clean_classes(article)
        self.clean_attributes(article)
        self.collapse_whitespace(article)

    # --- Helpers ---

    @staticmethod
    def _top_level_nodes(article: Tag) -> List[Tag]:
        """Children of the article, looking through the page container."""
        nodes: List[Tag] = []
        for child in element_children(article):
            if is_container(child):
                nodes.extend(element_children(child))
            else:
                nodes.append(child)
        return nodes

    def _remove_nodes(self, article: Tag, nodes: List[Tag], should_remove: Callable[[Tag], bool]) -> None:
        """Remove nodes matching ``should_remove``, last first, skipping those already gone."""
        for node in reversed(nodes):
            if not is_attached(node, article) or node is article:
                continue
            if should_remove(node):
                node.extract()

    def _is_allowed_embed(self, node: Tag) -> bool:
        for name in node.attrs:
            if self.allowed_video_regex.search(get_attr(node, name) or ""):
                return True
        return node.name == "object" and bool(self.allowed_video_regex.search(serialize(node)))

    def _is_data_table(self, node: Tag) -> bool:
        return self._data_tables.get(id(node)) is node

    # --- Passes ---

    def clean_styles(self, article: Tag) -> None:
        """Strip presentational attributes; ``svg`` subtrees keep theirs."""
        for node in [article, *article.find_all(True)]:
            if node.name == "svg" or has_ancestor_tag(node, "svg", 0):
                continue
            for attribute in PRESENTATIONAL_ATTRIBUTES:
                if node.has_attr(attribute):
                    del node[attribute]
            if node.name in DEPRECATED_SIZE_ATTRIBUTE_ELEMS:
                for attribute in ("width", "height"):
                    if node.has_attr(attribute):
                        del node[attribute]

    @staticmethod
    def row_and_column_count(table: Tag):
        rows = 0
        columns = 0
        for tr in table.find_all("tr"):
            rows += _parse_span(get_attr(tr, "rowspan")) or 1
            columns_in_row = sum(_parse_span(get_attr(td, "colspan")) or 1 for td in tr.find_all("td"))
            columns = max(columns, columns_in_row)
        return rows, columns

    def is_data_table(self, table: Tag) -> bool:
        """Classify a table as data (kept intact) or layout (unwrapped)."""
        if get_attr(table, "role") == "presentation":
            return False
        if get_attr(table, "datatable") == "0":
            return False
        if get_attr(table, "summary"):
            return True
        caption = table.find("caption")
        if caption is not None and caption.contents:
            return True
        if any(table.find(tag) is not None for tag in _DATA_TABLE_DESCENDANTS):
            return True
        # Nested tables indicate a layout table
        if table.find("table") is not None:
            return False
        rows, columns = self.row_and_column_count(table)
        if rows == 1 or columns == 1:
            return False
        if rows >= 10 or columns > 4:
            return True
        return rows * columns > 10

    def mark_data_tables(self, article: Tag) -> None:
        self._data_tables = {id(table): table for table in all_tags(article, ["table"]) if self.is_data_table(table)}

    def remove_tags(self, article: Tag, tag: str) -> None:
        """Remove every ``tag`` element; embeds matching the video allow-list stay."""
        is_embed = tag in EMBED_TAGS

        def should_remove(node: Tag) -> bool:
            if is_embed and self._is_allowed_embed(node):
                return False
            return True

        self._remove_nodes(article, all_tags(article, [tag]), should_remove)

    def clean_matched_nodes(self, node: Tag, predicate: Callable[[Tag, str], bool]) -> None:
        """Remove descendants of ``node`` for which ``predicate(node, class_and_id)`` holds."""
        end_of_search = get_next_node(node, ignore_self_and_kids=True)
        current = get_next_node(node)
        while current is not None and current is not end_of_search:
            if predicate(current, class_and_id(current)):
                self._debug("Removing share/social widget", node=describe(current))
                current = remove_and_get_next(current)
            else:
                current = get_next_node(current)

    def clean_headers(self, article: Tag, flags: PassFlags) -> None:
        self._remove_nodes(
            article,
            all_tags(article, ["h1", "h2"]),
            lambda node: self.scorer.class_weight(node, flags) < 0,
        )

    def _should_clean_conditionally(self, node: Tag, tag: str, flags: PassFlags) -> bool:
        if is_container(node):
            return False

        inner_text = get_inner_text(node)
        is_list = tag in ("ul", "ol")
        if not is_list and inner_text:
            list_length = sum(len(get_inner_text(lst)) for lst in all_tags(node, ["ul", "ol"]))
            is_list = list_length / len(inner_text) > 0.9

        if tag == "table" and self._is_data_table(node):
            return False
        if has_ancestor_tag(node, "table", 0, self._is_data_table):
            return False
        if has_ancestor_tag(node, "code", 0):
            return False
        if any(self._is_data_table(table) for table in all_tags(node, ["table"])):
            return False

        weight = self.scorer.class_weight(node, flags)
        if weight < 0:
            return True

        if get_char_count(node, ",") >= 10:
            return False

        p = len(all_tags(node, ["p"]))
        img = len(all_tags(node, ["img"]))
        li = len(all_tags(node, ["li"])) - 100
        inputs = len(all_tags(node, ["input"]))
        heading_density = get_text_density(node, _HEADING_TAGS)

        embed_count = 0
        for embed in all_tags(node, list(EMBED_TAGS)):
            if self._is_allowed_embed(embed):
                return False
            embed_count += 1

        if self.patterns.ad_words.search(inner_text) or self.patterns.loading_words.search(inner_text):
            return True

        content_length = len(inner_text)
        link_density = get_link_density(node, self.patterns.hash_url)
        text_density = get_text_density(node, _TEXTISH_TAGS)
        is_figure_child = has_ancestor_tag(node, "figure")
        modifier = self.heuristics.link_density_modifier
        class_bonus = self.heuristics.class_weight

        reasons = []
        if not is_figure_child and img > 1 and p / img < 0.5:
            reasons.append(f"bad p to img ratio (img={img}, p={p})")
        if not is_list and li > p:
            reasons.append(f"too many li's outside of a list (li={li} > p={p})")
        if inputs > p // 3:
            reasons.append(f"too many inputs per p (input={inputs}, p={p})")
        if (
            not is_list
            and not is_figure_child
            and heading_density < 0.9
            and content_length < 25
            and (img == 0 or img > 2)
            and link_density > 0
        ):
            reasons.append(f"suspiciously short (content_length={content_length}, link_density={link_density:.2f})")
        if not is_list and weight < class_bonus and link_density > 0.2 + modifier:
            reasons.append(f"low weight and a little linky (link_density={link_density:.2f})")
        if weight >= class_bonus and link_density > 0.5 + modifier:
            reasons.append(f"high weight and mostly links (link_density={link_density:.2f})")
        if (embed_count == 1 and content_length < 75) or embed_count > 1:
            reasons.append(f"suspicious embed (embed_count={embed_count}, content_length={content_length})")
        if img == 0 and text_density == 0:
            reasons.append("no useful content")

        if not reasons:
            return False

        # Simple lists of images stay
        if is_list:
            if any(len(element_children(child)) > 1 for child in element_children(node)):
                return True
            if img == len(all_tags(node, ["li"])):
                return False

        self._debug("Cleaning conditionally", node=describe(node), reasons=reasons)
        return True

    def clean_conditionally(self, article: Tag, tag: str, flags: PassFlags) -> None:
        """Remove ``tag`` elements that look like boilerplate rather than content."""
        if not flags & PassFlags.CLEAN_CONDITIONALLY:
            return
        self._remove_nodes(
            article, all_tags(article, [tag]), lambda node: self._should_clean_conditionally(node, tag, flags)
        )

    def _cell_to_block(self, cell: Tag) -> Tag:
        for attribute in _TABLE_CELL_ATTRIBUTES:
            if cell.has_attr(attribute):
                del cell[attribute]
        phrasing = all(is_phrasing_content(child) for child in cell.contents)
        return set_node_tag(cell, "p" if phrasing else "div")

    def unwrap_layout_tables(self, article: Tag) -> None:
        """Replace layout tables by their cells, innermost tables first."""
        for table in reversed(all_tags(article, ["table"])):
            if not is_attached(table, article) or self._is_data_table(table):
                continue
            cells = [
                cell
                for cell in table.find_all(["td", "th"])
                if next((a for a in cell.parents if a.name == "table"), None) is table
            ]
            for cell in cells:
                table.insert_before(self._cell_to_block(cell.extract()))
            self._debug("Unwrapped layout table", cells=len(cells))
            table.extract()

    def remove_empty_paragraphs(self, article: Tag) -> None:
        self._remove_nodes(
            article,
            all_tags(article, ["p"]),
            lambda p: not all_tags(p, sorted(MEDIA_TAGS)) and not get_inner_text(p, normalize_spaces=False),
        )
        for br in all_tags(article, ["br"]):
            following = next_significant_node(br.next_sibling, self.patterns.whitespace)
            if following is not None and getattr(following, "name", None) == "p":
                br.extract()

    def prune_empty_elements(self, article: Tag) -> None:
        """Drop p/div/section/span with neither text nor media until none are left."""
        media = sorted(MEDIA_TAGS)
        removed = True
        while removed:
            removed = False
            for node in reversed(all_tags(article, sorted(PRUNABLE_TAGS))):
                if not is_attached(node, article) or is_container(node):
                    continue
                if node.get_text().strip() or all_tags(node, media):
                    continue
                node.extract()
                removed = True

    def _absolute_uri(self, uri: str) -> str:
        base = self.document.base_uri
        if base == self.document.url and uri.startswith("#"):
            return uri
        if not base:
            return uri
        try:
            return urljoin(base, uri)
        except ValueError:
            logger.debug("Unresolvable URI", uri=uri)
            return uri

    def fix_relative_uris(self, article: Tag) -> None:
        """Resolve links and media sources against the base URI; unwrap ``javascript:`` links."""
        for link in all_tags(article, ["a"]):
            href = get_attr(link, "href")
            if not href:
                continue
            if href.startswith("javascript:"):
                if len(link.contents) == 1 and is_text(link.contents[0]):
                    link.replace_with(NavigableString(link.get_text()))
                else:
                    span = self.document.new_tag("span")
                    for child in list(link.contents):
                        span.append(child.extract())
                    link.replace_with(span)
            else:
                link["href"] = self._absolute_uri(href)

        for media in all_tags(article, ["img", "picture", "figure", "video", "audio", "source", "iframe", "embed"]):
            for attribute in ("src", "poster"):
                value = get_attr(media, attribute)
                if value:
                    media[attribute] = self._absolute_uri(value)
            srcset = get_attr(media, "srcset")
            if srcset:
                media["srcset"] = self.patterns.srcset_url.sub(
                    lambda m: self._absolute_uri(m.group(1)) + (m.group(2) or "") + m.group(3), srcset
                )

    def simplify_nested_elements(self, article: Tag) -> None:
        """Collapse div/section wrappers around a single div/section; the child inherits attributes."""
        node: Optional[Tag] = article
        while node is not None:
            if node.parent is not None and node.name in ("div", "section") and not is_container(node):
                if is_element_without_content(node):
                    node = remove_and_get_next(node)
                    continue
                if has_single_tag_inside_element(node, "div", self.patterns.has_content) or (
                    has_single_tag_inside_element(node, "section", self.patterns.has_content)
                ):
                    child = first_element_child(node)
                    for name, value in node.attrs.items():
                        child[name] = value
                    node.replace_with(child.extract())
                    node = child
                    continue
            node = get_next_node(node)

    def clean_classes(self, article: Tag) -> None:
        """Keep only preserved classes."""
        for node in [article, *article.find_all(True)]:
            kept = [cls for cls in class_name(node).split() if cls in self.classes_to_preserve]
            if kept:
                node["class"] = kept
            elif node.has_attr("class"):
                del node["class"]

    def _anchor_targets(self, article: Tag) -> Set[str]:
        targets: Set[str] = set()
        for link in all_tags(article, ["a"]):
            href = get_attr(link, "href") or ""
            if href.startswith("#"):
                targets.add(href[1:])
            elif self.document.url:
                url, fragment = urldefrag(href)
                if fragment and url == urldefrag(self.document.url)[0]:
                    targets.add(fragment)
        targets.discard("")
        return targets

    def clean_attributes(self, article: Tag) -> None:
        """Drop inline styles, tracking hooks and ids nothing links to."""
        targets = self._anchor_targets(article)
        for node in [article, *article.find_all(True)]:
            for name in list(node.attrs):
                if name == "style" or self.patterns.tracking_attribute.match(name):
                    del node[name]
            element_id = node_id(node)
            if node.has_attr("id") and element_id != PAGE_CONTAINER_ID and element_id not in targets:
                del node["id"]

    @staticmethod
    def collapse_whitespace(article: Tag) -> None:
        article.smooth()
        for text in article.find_all(string=True):
            if not is_text(text):
                continue
            if any(parent.name in PREFORMATTED_TAGS for parent in text.parents):
                continue
            collapsed = _WHITESPACE_RUN.sub(" ", str(text))
            if collapsed != str(text):
                text.replace_with(NavigableString(collapsed))
