"""
Unit tests for the readerable pre-check.
"""

from quarryreader.readability.dom import load
from quarryreader.readability.readerable import is_probably_readerable

LONG = "x" * 300


def _doc(body: str):
    return load(f"<html><body>{body}</body></html>")


class TestIsProbablyReaderable:
    def test_long_paragraphs_qualify(self):
        assert is_probably_readerable(_doc(f"<p>{LONG}</p><p>{LONG}</p>"))

    def test_single_long_paragraph_is_not_enough(self):
        # sqrt(300 - 140) < 20
        assert not is_probably_readerable(_doc(f"<p>{LONG}</p>"))

    def test_short_paragraphs_do_not_count(self):
        assert not is_probably_readerable(_doc("<p>short</p>" * 50))

    def test_hidden_paragraphs_ignored(self):
        body = f'<p style="display:none">{LONG}</p><p hidden>{LONG}</p>'
        assert not is_probably_readerable(_doc(body))

    def test_unlikely_candidates_ignored(self):
        body = f'<p class="sidebar">{LONG}</p><p class="comment">{LONG}</p>'
        assert not is_probably_readerable(_doc(body))

    def test_rescued_candidates_count(self):
        body = f'<p class="sidebar article">{LONG}</p><p class="comment content">{LONG}</p>'
        assert is_probably_readerable(_doc(body))

    def test_list_item_paragraphs_ignored(self):
        body = f"<ul><li><p>{LONG}</p></li><li><p>{LONG}</p></li></ul>"
        assert not is_probably_readerable(_doc(body))

    def test_divs_with_br_count(self):
        half = "y" * 150
        body = f"<div>{half}<br>{half}</div><div>{half}<br>{half}</div>"
        assert is_probably_readerable(_doc(body))

    def test_thresholds_are_configurable(self):
        document = _doc(f"<p>{'z' * 100}</p>")
        assert not is_probably_readerable(document)
        assert is_probably_readerable(document, min_score=5, min_content_length=50)

    def test_custom_visibility_checker(self):
        document = _doc(f"<p>{LONG}</p><p>{LONG}</p>")
        assert not is_probably_readerable(document, visibility_checker=lambda node: False)

    def test_accepts_soup_and_leaves_it_untouched(self):
        document = _doc(f"<p>{LONG}</p><p>{LONG}</p><script>var x;</script>")
        before = str(document.soup)
        assert is_probably_readerable(document.soup)
        assert str(document.soup) == before
