"""
Unit tests for the pattern catalog.
"""

import dataclasses
import re

import pytest
from quarryreader.readability.patterns import DEFAULT_PATTERNS, PatternCatalog


class TestPatternCatalog:
    """Tests for PatternCatalog."""

    def test_catalog_is_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_PATTERNS.videos = re.compile("x")

    def test_custom_catalog_via_replace(self):
        custom = dataclasses.replace(DEFAULT_PATTERNS, videos=re.compile(r"example\.org"))
        assert custom.videos.search("https://example.org/embed")
        assert DEFAULT_PATTERNS.videos.search("https://example.org/embed") is None
        assert custom.positive is DEFAULT_PATTERNS.positive

    def test_instances_are_independent_values(self):
        assert PatternCatalog().negative.pattern == DEFAULT_PATTERNS.negative.pattern

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/embed/abc",
            "//player.vimeo.com/video/1",
            "https://www.dailymotion.com/embed/video/x",
            "https://player.twitch.tv/?channel=x",
            "https://upload.wikimedia.org/video.webm",
        ],
    )
    def test_known_video_hosts(self, url):
        assert DEFAULT_PATTERNS.videos.search(url)

    def test_unlikely_and_rescue(self):
        assert DEFAULT_PATTERNS.unlikely_candidates.search("sidebar-widget")
        assert DEFAULT_PATTERNS.ok_maybe_its_a_candidate.search("main-column")

    def test_title_separators(self):
        assert DEFAULT_PATTERNS.title_separator.search("Title | Site")
        assert DEFAULT_PATTERNS.title_separator.search("Title » Site")
        assert DEFAULT_PATTERNS.title_separator.search("Hyphenated-title") is None

    @pytest.mark.parametrize("name", ["og:title", "dc.creator", "twitter:description", "parsely-pub-date", "author"])
    def test_meta_names(self, name):
        assert DEFAULT_PATTERNS.meta_name.match(name)

    def test_meta_property(self):
        match = DEFAULT_PATTERNS.meta_property.search("article:published_time")
        assert match and match.group(0) == "article:published_time"

    def test_share_elements(self):
        assert DEFAULT_PATTERNS.share_elements.search("post-share")
        assert DEFAULT_PATTERNS.share_elements.search("social_links")
        assert DEFAULT_PATTERNS.share_elements.search("shareholder") is None

    def test_ad_and_loading_words(self):
        assert DEFAULT_PATTERNS.ad_words.search("Advertisement")
        assert DEFAULT_PATTERNS.loading_words.search("Loading…")
        assert DEFAULT_PATTERNS.ad_words.search("Adverts everywhere") is None
