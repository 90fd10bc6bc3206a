"""
Readability-style article extraction.

Usage::

    from quarryreader.readability import load, parse

    article = parse(load(html, url="https://example.com/post"))
    print(article.title, article.length)
"""

from .cleaner import ContentCleaner
from .dom import HtmlDocument, load, serialize
from .engine import Readability, build_options, parse
from .errors import ParseAbortedError
from .models import Article, PassFlags
from .patterns import DEFAULT_PATTERNS, PatternCatalog
from .preprocessor import Preprocessor, SweepResult
from .readerable import is_probably_readerable
from .scorer import NodeScorer, ScoredNode
from .selector import ArticleAttempt, CandidateSelector

__all__ = [
    "Article",
    "ArticleAttempt",
    "CandidateSelector",
    "ContentCleaner",
    "DEFAULT_PATTERNS",
    "HtmlDocument",
    "NodeScorer",
    "ParseAbortedError",
    "PassFlags",
    "PatternCatalog",
    "Preprocessor",
    "Readability",
    "ScoredNode",
    "SweepResult",
    "build_options",
    "is_probably_readerable",
    "load",
    "parse",
    "serialize",
]
