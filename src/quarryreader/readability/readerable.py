"""
Cheap check of whether a document is worth running the full engine on.
"""

from __future__ import annotations

import math
from typing import Callable, List, Optional, Union

from bs4 import BeautifulSoup, Tag

from .dom import HtmlDocument, class_and_id, contains, has_ancestor_tag, is_probably_visible
from .patterns import DEFAULT_PATTERNS, PatternCatalog


def is_probably_readerable(
    document: Union[HtmlDocument, BeautifulSoup],
    min_score: float = 20,
    min_content_length: int = 140,
    visibility_checker: Optional[Callable[[Tag], bool]] = None,
    patterns: PatternCatalog = DEFAULT_PATTERNS,
) -> bool:
    """
    Decides whether the document probably has an article, without modifying it.

    Paragraph-like nodes (``p``, ``pre``, ``article`` and divs holding ``<br>``)
    that are visible, not unlikely candidates and not inside list items each
    contribute ``sqrt(length - min_content_length)`` when their text is long
    enough. The document qualifies once the sum exceeds ``min_score``.
    """
    soup = document.soup if isinstance(document, HtmlDocument) else document
    if visibility_checker is None:

        def visibility_checker(node: Tag) -> bool:
            return is_probably_visible(node, patterns)

    nodes: List[Tag] = list(soup.find_all(["p", "pre", "article"]))
    for br in soup.find_all("br"):
        parent = br.parent
        if parent is not None and parent.name == "div" and not contains(nodes, parent):
            nodes.append(parent)

    score = 0.0
    for node in nodes:
        if not visibility_checker(node):
            continue
        match_string = class_and_id(node)
        if patterns.unlikely_candidates.search(match_string) and not patterns.ok_maybe_its_a_candidate.search(
            match_string
        ):
            continue
        if node.name == "p" and has_ancestor_tag(node, "li", 0):
            continue
        text_length = len(node.get_text().strip())
        if text_length < min_content_length:
            continue
        score += math.sqrt(text_length - min_content_length)
        if score > min_score:
            return True
    return False
