"""
Content scoring for extraction candidates.

Every scorable element with enough text adds a score derived from its
length and comma count to its ancestors, divided by a growing factor per
level. Ancestors touched this way become candidates; their own starting
score comes from the tag weight table and, when the pass weighs classes,
from their class and id.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import structlog
from bs4 import BeautifulSoup, Tag

from quarryreader.config.config import HeuristicsConfig

from .dom import class_name, describe, get_inner_text, get_link_density, get_node_ancestors, is_element, node_id
from .models import PassFlags
from .patterns import DEFAULT_PATTERNS, PatternCatalog

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class ScoredNode:
    """A candidate element and its accumulated content score."""

    node: Tag
    score: float
    order: int = 0


def in_document(node: Tag) -> bool:
    """Whether ``node`` still hangs off a parsed document."""
    top = node
    while top.parent is not None:
        top = top.parent
    return isinstance(top, BeautifulSoup) and top is not node


class NodeScorer:
    """Assigns and ranks content scores for one extraction pass."""

    def __init__(
        self,
        patterns: PatternCatalog = DEFAULT_PATTERNS,
        heuristics: Optional[HeuristicsConfig] = None,
        debug: bool = False,
    ) -> None:
        self.patterns = patterns
        self.heuristics = heuristics or HeuristicsConfig()
        self.debug = debug

    def class_weight(self, node: Tag, flags: PassFlags) -> float:
        """Penalty and bonus from class and id, each applied at most once per node."""
        if not flags & PassFlags.WEIGHT_CLASSES:
            return 0
        values = [value for value in (class_name(node), node_id(node)) if value]
        weight = 0.0
        if any(self.patterns.negative.search(value) for value in values):
            weight -= self.heuristics.class_weight
        if any(self.patterns.positive.search(value) for value in values):
            weight += self.heuristics.class_weight
        return weight

    def initial_score(self, node: Tag, flags: PassFlags) -> float:
        return self.heuristics.tag_weights.get(node.name, 0) + self.class_weight(node, flags)

    def content_score(self, text: str) -> float:
        """Score a scorable element contributes: 1, plus comma segments, plus a capped length bonus."""
        h = self.heuristics
        return 1 + len(self.patterns.commas.split(text)) + min(len(text) // h.chars_per_length_bonus, h.max_length_bonus)

    def score(self, elements: Iterable[Tag], flags: PassFlags) -> Dict[int, ScoredNode]:
        """Propagate content scores from ``elements`` to their ancestors, keyed by ``id(node)``."""
        scores: Dict[int, ScoredNode] = {}

        for element in elements:
            if element.parent is None or not is_element(element.parent) or not in_document(element):
                continue
            inner_text = get_inner_text(element)
            if len(inner_text) < self.heuristics.min_paragraph_length:
                continue
            ancestors = get_node_ancestors(element, self.heuristics.max_propagation_depth)
            if not ancestors:
                continue

            content_score = self.content_score(inner_text)
            for level, ancestor in enumerate(ancestors):
                if not is_element(ancestor) or ancestor.parent is None or not is_element(ancestor.parent):
                    continue
                entry = scores.get(id(ancestor))
                if entry is None:
                    entry = ScoredNode(ancestor, self.initial_score(ancestor, flags))
                    scores[id(ancestor)] = entry
                entry.score += content_score / self.heuristics.score_divider(level)

        self._assign_document_order(scores)
        return scores

    @staticmethod
    def _assign_document_order(scores: Dict[int, ScoredNode]) -> None:
        if not scores:
            return
        root = next(iter(scores.values())).node
        while root.parent is not None:
            root = root.parent
        for position, element in enumerate(root.find_all(True)):
            entry = scores.get(id(element))
            if entry is not None and entry.node is element:
                entry.order = position

    def rank(self, scores: Dict[int, ScoredNode], limit: int) -> List[ScoredNode]:
        """
        Top ``limit`` candidates by link-density adjusted score.

        The adjusted score replaces the raw one for every scored node, so
        later comparisons (alternative ancestors, siblings) all use it.
        """
        for entry in scores.values():
            entry.score *= 1 - get_link_density(entry.node, self.patterns.hash_url)

        ranked = sorted(scores.values(), key=lambda entry: (-entry.score, entry.order))[:limit]
        if self.debug:
            for entry in ranked:
                logger.debug("Candidate", node=describe(entry.node), score=round(entry.score, 3))
        return ranked
