"""
Candidate selection with relaxed retries.

Each pass sweeps a fresh copy of the page, scores it and builds an article
from one ranked candidate plus its qualifying siblings. A pass whose cleaned
article is shorter than ``char_threshold`` is recorded and the next
candidate is tried; once a flag state runs out of candidates, the next
state relaxes one more heuristic. When nothing reaches the threshold the
longest attempt wins.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Dict, List, Optional

import structlog
from bs4 import Tag

from quarryreader.config.config import HeuristicsConfig, ParseOptions
from quarryreader.metadata.metadata_extractor import MetadataResolver

from .cleaner import ContentCleaner
from .dom import (
    HtmlDocument,
    class_name,
    contains,
    describe,
    element_children,
    get_inner_text,
    get_link_density,
    get_node_ancestors,
    next_element_sibling,
    previous_element_sibling,
    set_node_tag,
)
from .models import PassFlags
from .patterns import ALTER_TO_DIV_EXCEPTIONS, DEFAULT_PATTERNS, PAGE_CONTAINER_ID, PatternCatalog
from .preprocessor import Preprocessor
from .scorer import NodeScorer, ScoredNode

logger = structlog.get_logger(__name__)

FLAG_SCHEDULE = (
    PassFlags.STRIP_UNLIKELYS | PassFlags.WEIGHT_CLASSES | PassFlags.CLEAN_CONDITIONALLY,
    PassFlags.WEIGHT_CLASSES | PassFlags.CLEAN_CONDITIONALLY,
    PassFlags.CLEAN_CONDITIONALLY,
    PassFlags.NONE,
)


@dataclass
class ArticleAttempt:
    """One extraction pass: the cleaned article container and how it was built."""

    content: Tag
    text_length: int
    flags: PassFlags
    rank: int
    candidate_count: int = 0
    byline: Optional[str] = None
    dir: Optional[str] = None


class CandidateSelector:
    """Picks the article subtree of a page."""

    def __init__(
        self,
        document: HtmlDocument,
        preprocessor: Preprocessor,
        scorer: NodeScorer,
        cleaner: ContentCleaner,
        resolver: MetadataResolver,
        options: Optional[ParseOptions] = None,
        patterns: PatternCatalog = DEFAULT_PATTERNS,
        heuristics: Optional[HeuristicsConfig] = None,
    ) -> None:
        self.document = document
        self.preprocessor = preprocessor
        self.scorer = scorer
        self.cleaner = cleaner
        self.resolver = resolver
        self.options = options or ParseOptions()
        self.patterns = patterns
        self.heuristics = heuristics or HeuristicsConfig()
        self.attempts: List[ArticleAttempt] = []

    def _debug(self, event: str, **kw) -> None:
        if self.options.debug:
            logger.debug(event, **kw)

    @property
    def passes(self) -> int:
        return len(self.attempts)

    def grab_article(self, page: Tag, title: str = "") -> ArticleAttempt:
        """Run passes until one yields enough text; otherwise return the longest attempt."""
        cache = copy.copy(page)
        self.attempts = []

        for flags in FLAG_SCHEDULE:
            rank = 0
            while True:
                if self.attempts:
                    self._restore_page(page, cache)
                attempt = self.attempt(page, flags, rank, title)
                self.attempts.append(attempt)
                if attempt.text_length >= self.options.char_threshold:
                    return attempt
                self._debug(
                    "Article too short, retrying",
                    flags=int(flags),
                    rank=rank,
                    text_length=attempt.text_length,
                )
                rank += 1
                if rank >= max(attempt.candidate_count, 1):
                    break

        # max() keeps the earliest of equally long attempts
        return max(self.attempts, key=lambda attempt: attempt.text_length)

    @staticmethod
    def _restore_page(page: Tag, cache: Tag) -> None:
        page.clear()
        for child in list(copy.copy(cache).contents):
            page.append(child.extract())

    def _new_container(self) -> Tag:
        container = self.document.new_tag("div")
        container["id"] = PAGE_CONTAINER_ID
        container["class"] = "page"
        return container

    def attempt(self, page: Tag, flags: PassFlags, rank: int, title: str = "") -> ArticleAttempt:
        """Build and clean the article for the candidate at ``rank`` under ``flags``."""
        sweep = self.preprocessor.sweep(page, flags, title)
        scores = self.scorer.score(sweep.elements, flags)
        ranked = self.scorer.rank(scores, self.options.nb_top_candidates)
        entry = ranked[rank] if rank < len(ranked) else None

        article = self.document.new_tag("div")
        container = self._new_container()
        article.append(container)

        whole_page = entry is None or entry.node is page or entry.node.name == "body"
        if whole_page:
            # No usable candidate: the whole page becomes the article
            self._debug("Using the page as the article", rank=rank, candidates=len(ranked))
            text_dir = self.resolver.text_direction([page])
            for child in list(page.contents):
                container.append(child.extract())
        else:
            candidate = self.refine_candidate(entry, ranked[rank + 1 :], scores, page, flags)
            self._debug("Selected candidate", node=describe(candidate), rank=rank)
            text_dir = self.resolver.text_direction([candidate])
            for node in self.collect_siblings(candidate, scores, flags):
                if node.name not in ALTER_TO_DIV_EXCEPTIONS:
                    set_node_tag(node, "div")
                container.append(node.extract())

        self.cleaner.clean(article, flags, whole_page=whole_page)
        return ArticleAttempt(
            content=article,
            text_length=len(get_inner_text(article)),
            flags=flags,
            rank=rank,
            candidate_count=len(ranked),
            byline=sweep.byline,
            dir=text_dir,
        )

    def _score_of(self, node: Tag, scores: Dict[int, ScoredNode], flags: PassFlags) -> float:
        entry = scores.get(id(node))
        if entry is None or entry.node is not node:
            entry = ScoredNode(node, self.scorer.initial_score(node, flags))
            scores[id(node)] = entry
        return entry.score

    @staticmethod
    def _is_top(node: Optional[Tag], page: Tag) -> bool:
        return node is None or node is page or node.name == "body"

    def refine_candidate(
        self,
        entry: ScoredNode,
        lower_ranked: List[ScoredNode],
        scores: Dict[int, ScoredNode],
        page: Tag,
        flags: PassFlags,
    ) -> Tag:
        """Move the candidate up the tree when its ancestors better represent the article."""
        h = self.heuristics
        candidate = entry.node

        # Several near-equal candidates under one ancestor: the ancestor is the article
        alternatives = [
            get_node_ancestors(other.node)
            for other in lower_ranked
            if entry.score > 0 and other.score / entry.score >= h.alternative_candidate_ratio
        ]
        if len(alternatives) >= h.min_alternative_candidates:
            parent = candidate.parent
            while not self._is_top(parent, page):
                lists_containing = sum(1 for ancestors in alternatives if contains(ancestors, parent))
                if lists_containing >= h.min_alternative_candidates:
                    candidate = parent
                    break
                parent = parent.parent

        # A parent scoring higher than the candidate holds more of the article
        last_score = self._score_of(candidate, scores, flags)
        threshold = last_score * h.parent_score_ratio
        parent = candidate.parent
        while not self._is_top(parent, page):
            parent_entry = scores.get(id(parent))
            if parent_entry is None or parent_entry.node is not parent:
                parent = parent.parent
                continue
            if parent_entry.score < threshold:
                break
            if parent_entry.score > last_score:
                candidate = parent
                break
            last_score = parent_entry.score
            parent = parent.parent

        # Only children say nothing their parent would not
        parent = candidate.parent
        while not self._is_top(parent, page) and len(element_children(parent)) == 1:
            candidate = parent
            parent = candidate.parent

        self._score_of(candidate, scores, flags)
        return candidate

    def _accept_sibling(
        self,
        sibling: Tag,
        candidate: Tag,
        candidate_score: float,
        threshold: float,
        scores: Dict[int, ScoredNode],
    ) -> bool:
        h = self.heuristics
        bonus = 0.0
        candidate_class = class_name(candidate)
        if candidate_class and class_name(sibling) == candidate_class:
            bonus = candidate_score * h.sibling_class_bonus_fraction

        entry = scores.get(id(sibling))
        if entry is not None and entry.node is sibling and entry.score + bonus >= threshold:
            return True

        if sibling.name == "p":
            link_density = get_link_density(sibling, self.patterns.hash_url)
            content = get_inner_text(sibling)
            min_length = h.sibling_min_paragraph_length(self.options.char_threshold)
            if len(content) > min_length and link_density < h.sibling_link_density_ceiling:
                return True
            if 0 < len(content) < min_length and link_density == 0 and self.patterns.sentence_end.search(content):
                return True
        return False

    def collect_siblings(self, candidate: Tag, scores: Dict[int, ScoredNode], flags: PassFlags) -> List[Tag]:
        """The candidate and its qualifying siblings, in document order."""
        h = self.heuristics
        candidate_score = self._score_of(candidate, scores, flags)
        threshold = max(h.min_sibling_score_threshold, candidate_score * h.sibling_score_fraction)

        def scan(step) -> List[Tag]:
            accepted: List[Tag] = []
            rejected = 0
            sibling = step(candidate)
            while sibling is not None:
                if self._accept_sibling(sibling, candidate, candidate_score, threshold, scores):
                    self._debug("Appending sibling", node=describe(sibling))
                    accepted.append(sibling)
                    rejected = 0
                else:
                    rejected += 1
                    if h.sibling_lookahead and rejected >= h.sibling_lookahead:
                        break
                sibling = step(sibling)
            return accepted

        before = scan(previous_element_sibling)
        after = scan(next_element_sibling)
        return [*reversed(before), candidate, *after]
