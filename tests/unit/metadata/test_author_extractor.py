"""
Unit tests for byline detection.
"""

import pytest
from bs4 import BeautifulSoup
from quarryreader.metadata.author_extractor import AuthorExtractor, BylineDetector, is_url
from quarryreader.metadata.models import StructuredDataResult
from quarryreader.readability.dom import class_and_id


def _node(markup: str):
    return BeautifulSoup(markup, "lxml").body.contents[0]


class TestBylineDetector:
    @pytest.fixture
    def detector(self):
        return BylineDetector()

    @pytest.mark.parametrize(
        "markup",
        [
            '<a rel="author">Ada Lovelace</a>',
            '<span itemprop="author">Ada Lovelace</span>',
            '<p class="byline">Ada Lovelace</p>',
            '<div id="article-author">Ada Lovelace</div>',
        ],
    )
    def test_recognized(self, detector, markup):
        node = _node(markup)
        assert detector.detect(node, class_and_id(node)) == "Ada Lovelace"

    def test_plain_paragraph_is_not_a_byline(self, detector):
        node = _node('<p class="intro">Ada Lovelace</p>')
        assert detector.detect(node, class_and_id(node)) is None

    def test_empty_or_long_text_rejected(self, detector):
        empty = _node('<p class="byline">  </p>')
        long = _node(f'<p class="byline">{"x" * 100}</p>')
        assert detector.detect(empty, class_and_id(empty)) is None
        assert detector.detect(long, class_and_id(long)) is None

    def test_max_length_configurable(self):
        node = _node('<p class="byline">By Ada Lovelace</p>')
        assert BylineDetector(max_length=10).detect(node, class_and_id(node)) is None

    def test_name_itemprop_preferred(self, detector):
        node = _node('<div class="author">Written by <span itemprop="name"> Ada </span></div>')
        assert detector.detect(node, class_and_id(node)) == "Ada"


class TestAuthorExtractor:
    def _from(self, json_ld=None, meta=None):
        return AuthorExtractor.from_structured(StructuredDataResult(json_ld=json_ld or {}, meta=meta or {}))

    def test_json_ld_first(self):
        assert self._from({"byline": "LD Author"}, {"dc:creator": "DC Author"}) == "LD Author"

    def test_meta_key_order(self):
        meta = {
            "parsely-author": "Parsely",
            "author": "Plain",
            "dcterm:creator": "Dcterm",
            "dc:creator": "DC",
        }
        assert self._from(meta=meta) == "DC"
        del meta["dc:creator"]
        assert self._from(meta=meta) == "Dcterm"
        del meta["dcterm:creator"]
        assert self._from(meta=meta) == "Plain"
        del meta["author"]
        assert self._from(meta=meta) == "Parsely"

    def test_article_author_name(self):
        assert self._from(meta={"article:author": "Ada Lovelace"}) == "Ada Lovelace"

    def test_article_author_url_ignored(self):
        assert self._from(meta={"article:author": "https://facebook.com/ada"}) is None

    def test_nothing_declared(self):
        assert self._from() is None


@pytest.mark.parametrize(
    "value,expected",
    [
        ("https://example.com/ada", True),
        ("mailto:ada@example.com", False),
        ("Ada Lovelace", False),
        ("//example.com/ada", False),
    ],
)
def test_is_url(value, expected):
    assert is_url(value) is expected
