"""
End-to-end tests: raw HTML in, article out, through the public entry points.
"""

import html as html_lib

import pytest
from bs4 import BeautifulSoup
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from quarryreader import ParseAbortedError, Readability, is_probably_readerable, load, parse
from quarryreader.readability.dom import count_elements

from tests.helpers.documents import ARTICLE_URL, PARAGRAPHS, build_article_html

CONTAINER_OPEN = '<div id="readability-page-1" class="page">'


@pytest.mark.integration
class TestParseEndToEnd:
    def test_custom_video_embed_kept(self, short_html):
        article = parse(load(short_html), {"charThreshold": 20, "allowedVideoRegex": ".*mycustomdomain.com.*"})
        assert article.content == (
            f"{CONTAINER_OPEN}<p>Lorem ipsum dolor sit amet, consectetur adipiscing elit. "
            "Nunc mollis leo lacus, vitae semper nisl ullamcorper ut.</p>"
            '<iframe src="https://mycustomdomain.com/some-embeds"></iframe></div>'
        )

    def test_custom_video_embed_dropped_by_default(self, short_html):
        article = parse(load(short_html), {"charThreshold": 20})
        assert "mycustomdomain" not in article.content

    def test_element_limit_boundary(self, article_html):
        count = count_elements(load(article_html).soup)

        article = parse(load(article_html), maxElemsToParse=count)
        assert article.length > 0

        with pytest.raises(ParseAbortedError) as exc_info:
            parse(load(article_html), maxElemsToParse=count - 1)
        assert str(exc_info.value) == f"Aborting parsing document; {count} elements found"

    def test_article_page(self, article_html):
        result = Readability(load(article_html, url=ARTICLE_URL)).parse().as_dict()

        assert result["title"] == "How Rivers Shape Valleys"
        assert result["byline"] == "By Jane Doe"
        assert result["excerpt"] == "A short tour of fluvial erosion."
        assert result["siteName"] == "Geography Weekly"
        assert result["lang"] == "en"
        assert result["dir"] is None
        assert result["publishedTime"] == "2024-03-01T08:00:00Z"
        assert result["content"].startswith(f"{CONTAINER_OPEN}<div>")
        assert result["length"] == len(result["textContent"])
        for paragraph in PARAGRAPHS:
            assert paragraph in result["textContent"]

    def test_right_to_left_page(self):
        article = parse(load(build_article_html(body_attrs=' dir="rtl"')))
        assert article.dir == "rtl"

    def test_time_element_and_json_ld(self):
        head = (
            '<script type="application/ld+json">'
            '{"@context": "https://schema.org", "@type": "NewsArticle", "headline": "How Rivers Shape Valleys",'
            ' "author": {"@type": "Person", "name": "Structured Author"}}'
            "</script>"
        )
        paragraphs = [*PARAGRAPHS[:3], f'{PARAGRAPHS[3]} <time datetime="2024-04-02">2 April</time>']
        article = parse(load(build_article_html(paragraphs=paragraphs, head_extra=head)))

        # The byline element on the page wins over the declared author
        assert article.byline == "By Jane Doe"
        assert article.published_time == "2024-04-02"

    def test_meta_author_used_without_byline_element(self):
        html = build_article_html(head_extra='<meta name="author" content="Meta Author">').replace(
            '<p class="byline">By Jane Doe</p>', ""
        )
        assert parse(load(html)).byline == "Meta Author"

    def test_readerable_precheck(self, article_html, short_html):
        assert is_probably_readerable(load(article_html))
        assert not is_probably_readerable(load(short_html))

    def test_byte_input(self, article_html):
        article = parse(load(article_html.encode("utf-8")))
        assert article.title == "How Rivers Shape Valleys"

    def test_whitespace_runs_collapsed(self, article_html):
        content = parse(load(article_html, url=ARTICLE_URL)).content
        assert "  " not in content

    def test_fragment_without_body(self):
        soup = BeautifulSoup("".join(f"<p>{paragraph}</p>" for paragraph in PARAGRAPHS), "html.parser")
        article = parse(soup)
        assert article.length > 0
        for paragraph in PARAGRAPHS:
            assert paragraph in article.text_content

    def test_share_widget_removed_from_whole_page(self):
        article = parse(load(f'<p>{PARAGRAPHS[0]}</p><div class="share">Share this</div>'))
        assert PARAGRAPHS[0] in article.text_content
        assert "Share this" not in article.text_content


_WORDS = st.text(alphabet="abcdefghij klmnop,.;é", min_size=0, max_size=120)


@st.composite
def html_documents(draw):
    """Documents built from block and inline elements around random text."""
    templates = [
        "<p>{}</p>",
        "<div>{}</div>",
        "<div><p>{}</p><p>{}</p></div>",
        '<div class="sidebar">{}</div>',
        "<ul><li>{}</li><li>{}</li></ul>",
        '<a href="/link">{}</a>',
        "<h2>{}</h2>",
        "<table><tr><td>{}</td><td>{}</td></tr></table>",
        "<span>{}</span><br><br>{}",
        '<p>{}<img src="/a.jpg"></p>',
        '<div style="display:none">{}</div>',
    ]
    blocks = draw(st.lists(st.sampled_from(templates), min_size=0, max_size=12))
    parts = []
    for template in blocks:
        texts = [html_lib.escape(draw(_WORDS)) for _ in range(template.count("{}"))]
        parts.append(template.format(*texts))
    nested = draw(st.booleans())
    body = "".join(parts)
    if nested:
        body = f'<div id="main"><article>{body}</article></div>'
    return f"<html><head><title>{html_lib.escape(draw(_WORDS))}</title></head><body>{body}</body></html>"


@pytest.mark.integration
class TestParseProperties:
    @given(document=html_documents())
    @settings(max_examples=40, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    def test_parse_is_deterministic_and_well_formed(self, document):
        first = parse(load(document, url=ARTICLE_URL))
        second = parse(load(document, url=ARTICLE_URL))

        assert first.as_dict() == second.as_dict()
        assert first.length == len(first.text_content)
        assert first.content.startswith(CONTAINER_OPEN)
        assert first.title is not None

    @given(document=html_documents(), threshold=st.integers(min_value=0, max_value=1000))
    @settings(max_examples=25, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    def test_any_threshold_returns_an_article(self, document, threshold):
        article = parse(load(document), charThreshold=threshold)
        assert article is not None
        assert article.length == len(article.text_content)
