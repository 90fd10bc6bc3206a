"""
Tree access helpers on top of BeautifulSoup.

The engine never compares nodes with ``==``: BeautifulSoup tags compare
structurally, so two identical paragraphs would be "equal". Every membership
test in this package goes through identity.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, List, Optional, Pattern, Sequence, Union
from urllib.parse import urljoin

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.dammit import EntitySubstitution
from bs4.element import PageElement, PreformattedString
from bs4.formatter import HTMLFormatter

from .patterns import DEFAULT_PATTERNS, DIV_TO_P_ELEMS, PHRASING_ELEMS, PatternCatalog


class SourceOrderFormatter(HTMLFormatter):
    """Writes attributes in the order the tag holds them instead of sorting them."""

    def attributes(self, tag):
        if tag.attrs is None:
            return []
        return list(tag.attrs.items())


# HTML output: void elements without a closing slash, only &, < and > escaped.
HTML_FORMATTER = SourceOrderFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
)

DEFAULT_FEATURES = "lxml"

_SPACES = re.compile(r"\s{2,}")


class HtmlDocument:
    """A parsed document together with the URI it was loaded from."""

    def __init__(self, soup: BeautifulSoup, url: Optional[str] = None) -> None:
        self.soup = soup
        self.url = url

    @property
    def html(self) -> Optional[Tag]:
        return self.soup.find("html")

    @property
    def body(self) -> Optional[Tag]:
        return self.soup.find("body")

    @property
    def base_uri(self) -> Optional[str]:
        """Document URI with any ``<base href>`` applied."""
        base = self.soup.find("base", href=True)
        href = get_attr(base, "href") if base is not None else None
        if not href:
            return self.url
        if self.url:
            return urljoin(self.url, href)
        return href if re.match(r"^[a-z][a-z0-9+.-]*:", href, re.I) else None

    def new_tag(self, name: str) -> Tag:
        return self.soup.new_tag(name)


def load(markup: Union[str, bytes], url: Optional[str] = None, features: str = DEFAULT_FEATURES) -> HtmlDocument:
    """Parse markup into an :class:`HtmlDocument`."""
    return HtmlDocument(BeautifulSoup(markup, features), url=url)


# --- Node predicates ---


def is_element(node: Optional[PageElement]) -> bool:
    return isinstance(node, Tag) and not isinstance(node, BeautifulSoup)


def is_text(node: Optional[PageElement]) -> bool:
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def contains(nodes: Iterable[PageElement], node: PageElement) -> bool:
    return any(candidate is node for candidate in nodes)


def is_attached(node: PageElement, root: PageElement) -> bool:
    """True while ``node`` is still somewhere below ``root``."""
    current = node
    while current is not None:
        if current is root:
            return True
        current = current.parent
    return False


# --- Attributes ---


def get_attr(node: Optional[Tag], name: str) -> Optional[str]:
    """Attribute value as a string; multi-valued attributes are joined."""
    if node is None or not is_element(node):
        return None
    value = node.get(name)
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    return str(value)


def class_name(node: Tag) -> str:
    return get_attr(node, "class") or ""


def node_id(node: Tag) -> str:
    return get_attr(node, "id") or ""


def class_and_id(node: Tag) -> str:
    return f"{class_name(node)} {node_id(node)}"


def set_node_tag(node: Tag, name: str) -> Tag:
    """Rename an element in place, keeping attributes, children and identity."""
    node.name = name
    return node


# --- Navigation ---


def element_children(node: Tag) -> List[Tag]:
    return [child for child in node.contents if is_element(child)]


def first_element_child(node: Tag) -> Optional[Tag]:
    for child in node.contents:
        if is_element(child):
            return child
    return None


def next_element_sibling(node: PageElement) -> Optional[Tag]:
    sibling = node.next_sibling
    while sibling is not None and not is_element(sibling):
        sibling = sibling.next_sibling
    return sibling


def previous_element_sibling(node: PageElement) -> Optional[Tag]:
    sibling = node.previous_sibling
    while sibling is not None and not is_element(sibling):
        sibling = sibling.previous_sibling
    return sibling


def get_next_node(node: Tag, ignore_self_and_kids: bool = False) -> Optional[Tag]:
    """Next element in document order, optionally skipping ``node``'s subtree."""
    if not ignore_self_and_kids:
        child = first_element_child(node)
        if child is not None:
            return child
    sibling = next_element_sibling(node)
    if sibling is not None:
        return sibling
    parent = node.parent
    while parent is not None and next_element_sibling(parent) is None:
        parent = parent.parent
    return next_element_sibling(parent) if parent is not None else None


def remove_and_get_next(node: Tag) -> Optional[Tag]:
    next_node = get_next_node(node, ignore_self_and_kids=True)
    node.extract()
    return next_node


def get_node_ancestors(node: PageElement, max_depth: int = 0) -> List[Tag]:
    ancestors: List[Tag] = []
    depth = 0
    while node.parent is not None:
        ancestors.append(node.parent)
        depth += 1
        if max_depth and depth == max_depth:
            break
        node = node.parent
    return ancestors


def has_ancestor_tag(
    node: PageElement,
    tag_name: str,
    max_depth: int = 3,
    predicate: Optional[Callable[[Tag], bool]] = None,
) -> bool:
    """Whether an ancestor within ``max_depth`` levels (<= 0: any) is a ``tag_name``."""
    depth = 0
    while node.parent is not None:
        if max_depth > 0 and depth > max_depth:
            return False
        if node.parent.name == tag_name and (predicate is None or predicate(node.parent)):
            return True
        node = node.parent
        depth += 1
    return False


def next_significant_node(node: Optional[PageElement], whitespace: Pattern[str] = DEFAULT_PATTERNS.whitespace):
    """Skip forward over whitespace-only non-element nodes."""
    while node is not None and not is_element(node) and whitespace.match(str(node)):
        node = node.next_sibling
    return node


def all_tags(node: Tag, names: Sequence[str]) -> List[Tag]:
    """Descendant elements with one of ``names``, snapshotted as a list."""
    return list(node.find_all(list(names)))


def count_elements(soup: BeautifulSoup) -> int:
    return len(soup.find_all(True))


# --- Text ---


def text_content(node: PageElement) -> str:
    if is_element(node) or isinstance(node, BeautifulSoup):
        return node.get_text()
    return str(node)


def get_inner_text(node: PageElement, normalize_spaces: bool = True) -> str:
    text = text_content(node).strip()
    if normalize_spaces:
        return _SPACES.sub(" ", text)
    return text


def get_char_count(node: Tag, separator: str = ",") -> int:
    return len(get_inner_text(node).split(separator)) - 1


def get_link_density(node: Tag, hash_url: Pattern[str] = DEFAULT_PATTERNS.hash_url) -> float:
    """Share of the node's text that sits inside links; in-page links count 0.3."""
    text_length = len(get_inner_text(node))
    if text_length == 0:
        return 0.0
    link_length = 0.0
    for link in node.find_all("a"):
        href = get_attr(link, "href")
        coefficient = 0.3 if href and hash_url.match(href) else 1.0
        link_length += len(get_inner_text(link)) * coefficient
    return link_length / text_length


def get_text_density(node: Tag, tags: Sequence[str]) -> float:
    text_length = len(get_inner_text(node))
    if text_length == 0:
        return 0.0
    children_length = sum(len(get_inner_text(child)) for child in all_tags(node, tags))
    return children_length / text_length


def text_similarity(text_a: str, text_b: str, tokenize: Pattern[str] = DEFAULT_PATTERNS.tokenize) -> float:
    """Share of ``text_b`` (by joined token length) also found in ``text_a``; 0..1."""
    tokens_a = [token for token in tokenize.split(text_a.lower()) if token]
    tokens_b = [token for token in tokenize.split(text_b.lower()) if token]
    if not tokens_a or not tokens_b:
        return 0.0
    unique_b = [token for token in tokens_b if token not in tokens_a]
    distance_b = len(" ".join(unique_b)) / len(" ".join(tokens_b))
    return 1 - distance_b


# --- Structure predicates ---


def is_phrasing_content(node: PageElement) -> bool:
    if is_text(node):
        return True
    if not is_element(node):
        return False
    if node.name in PHRASING_ELEMS:
        return True
    return node.name in ("a", "del", "ins") and all(is_phrasing_content(child) for child in node.contents)


def is_whitespace(node: PageElement) -> bool:
    if is_text(node):
        return not str(node).strip()
    return is_element(node) and node.name == "br"


def is_element_without_content(node: PageElement) -> bool:
    if not is_element(node) or node.get_text().strip():
        return False
    children = element_children(node)
    return not children or len(children) == len(node.find_all("br")) + len(node.find_all("hr"))


def has_single_tag_inside_element(
    node: Tag, tag_name: str, has_content: Pattern[str] = DEFAULT_PATTERNS.has_content
) -> bool:
    """Exactly one element child named ``tag_name`` and no meaningful loose text."""
    children = element_children(node)
    if len(children) != 1 or children[0].name != tag_name:
        return False
    return not any(is_text(child) and has_content.search(str(child)) for child in node.contents)


def has_child_block_element(node: Tag) -> bool:
    return node.find(sorted(DIV_TO_P_ELEMS)) is not None


def is_probably_visible(node: Tag, patterns: PatternCatalog = DEFAULT_PATTERNS) -> bool:
    """Attribute-level visibility: inline display/visibility, `hidden` and `aria-hidden`."""
    style = get_attr(node, "style") or ""
    if patterns.display_none.search(style) or patterns.visibility_hidden.search(style):
        return False
    if node.has_attr("hidden"):
        return False
    if get_attr(node, "aria-hidden") == "true":
        return "fallback-image" in class_name(node)
    return True


def is_single_image(node: Tag) -> bool:
    if node.name == "img":
        return True
    children = element_children(node)
    if len(children) != 1 or node.get_text().strip():
        return False
    return is_single_image(children[0])


# --- Serialization ---


def describe(node: Optional[PageElement]) -> str:
    """Short label of a node for log lines."""
    if not is_element(node):
        return repr(node)
    label = node.name
    if node_id(node):
        label += "#" + node_id(node)
    if class_name(node):
        label += "." + ".".join(class_name(node).split())
    return f"<{label}>"


def serialize(node: Tag, inner: bool = True) -> str:
    if inner:
        return node.decode_contents(formatter=HTML_FORMATTER)
    return node.decode(formatter=HTML_FORMATTER)
