"""
Pattern catalog for the readability engine.

Every regular expression and static tag table the pipeline consults lives
here. The catalog is an immutable value: build a custom one with
``dataclasses.replace(DEFAULT_PATTERNS, ...)`` and hand it to the engine.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import FrozenSet, Pattern


def _compile(pattern: str, flags: int = 0) -> Pattern[str]:
    return re.compile(pattern, flags)


@dataclass(frozen=True)
class PatternCatalog:
    """Named regular expressions used throughout the engine."""

    unlikely_candidates: Pattern[str] = field(
        default_factory=lambda: _compile(
            r"-ad-|ai2html|banner|breadcrumbs|combx|comment|community|cover-wrap|disqus|extra|footer|gdpr|"
            r"header|legends|menu|related|remark|replies|rss|shoutbox|sidebar|skyscraper|social|sponsor|"
            r"supplemental|ad-break|agegate|pagination|pager|popup|yom-remote",
            re.I,
        )
    )
    ok_maybe_its_a_candidate: Pattern[str] = field(
        default_factory=lambda: _compile(r"and|article|body|column|content|main|mathjax|shadow", re.I)
    )
    positive: Pattern[str] = field(
        default_factory=lambda: _compile(
            r"article|body|content|entry|hentry|h-entry|main|page|pagination|post|text|blog|story", re.I
        )
    )
    negative: Pattern[str] = field(
        default_factory=lambda: _compile(
            r"-ad-|hidden|^hid$| hid$| hid |^hid |banner|combx|comment|com-|contact|footer|gdpr|masthead|"
            r"media|meta|outbrain|promo|related|scroll|share|shoutbox|sidebar|skyscraper|sponsor|shopping|"
            r"tags|widget",
            re.I,
        )
    )
    byline: Pattern[str] = field(default_factory=lambda: _compile(r"byline|author|dateline|writtenby|p-author", re.I))
    normalize: Pattern[str] = field(default_factory=lambda: _compile(r"\s{2,}"))
    videos: Pattern[str] = field(
        default_factory=lambda: _compile(
            r"//(www\.)?((dailymotion|youtube|youtube-nocookie|player\.vimeo|v\.qq)\.com|"
            r"(archive|upload\.wikimedia)\.org|player\.twitch\.tv)",
            re.I,
        )
    )
    share_elements: Pattern[str] = field(
        default_factory=lambda: _compile(
            r"(\b|_)(share|sharedaddy|social|comments?|ads?|advert|advertisement)(\b|_)", re.I
        )
    )
    tokenize: Pattern[str] = field(default_factory=lambda: _compile(r"\W+"))
    whitespace: Pattern[str] = field(default_factory=lambda: _compile(r"^\s*$"))
    has_content: Pattern[str] = field(default_factory=lambda: _compile(r"\S$"))
    hash_url: Pattern[str] = field(default_factory=lambda: _compile(r"^#.+"))
    srcset_url: Pattern[str] = field(default_factory=lambda: _compile(r"(\S+)(\s+[\d.]+[xw])?(\s*(?:,|$))"))
    b64_data_url: Pattern[str] = field(
        default_factory=lambda: _compile(r"^data:\s*([^\s;,]+)\s*;\s*base64\s*,", re.I)
    )
    commas: Pattern[str] = field(
        default_factory=lambda: _compile("[\u002C\u060C\uFE50\uFE10\uFE11\u2E41\u2E34\u2E32\uFF0C]")
    )
    json_ld_article_types: Pattern[str] = field(
        default_factory=lambda: _compile(
            r"^Article|AdvertiserContentArticle|NewsArticle|AnalysisNewsArticle|AskPublicNewsArticle|"
            r"BackgroundNewsArticle|OpinionNewsArticle|ReportageNewsArticle|ReviewNewsArticle|Report|"
            r"SatiricalArticle|ScholarlyArticle|MedicalScholarlyArticle|SocialMediaPosting|BlogPosting|"
            r"LiveBlogPosting|DiscussionForumPosting|TechArticle|APIReference$"
        )
    )
    schema_org_context: Pattern[str] = field(default_factory=lambda: _compile(r"^https?://schema\.org/?$"))
    ad_words: Pattern[str] = field(
        default_factory=lambda: _compile(
            "^(ad(vertising|vertisement)?|pub(licité)?|werb(ung)?|广告|Реклама|Anuncio)$", re.I
        )
    )
    loading_words: Pattern[str] = field(
        default_factory=lambda: _compile("^((loading|正在加载|Загрузка|chargement|cargando)(…|\\.\\.\\.)?)$", re.I)
    )
    image_extension: Pattern[str] = field(default_factory=lambda: _compile(r"\.(jpg|jpeg|png|webp)", re.I))
    lazy_srcset: Pattern[str] = field(default_factory=lambda: _compile(r"\.(jpg|jpeg|png|webp)\s+\d"))
    lazy_src: Pattern[str] = field(default_factory=lambda: _compile(r"^\s*\S+\.(jpg|jpeg|png|webp)\S*\s*$"))
    title_separator: Pattern[str] = field(default_factory=lambda: _compile(r" [\|\-\\/>»] "))
    title_hierarchical_separator: Pattern[str] = field(default_factory=lambda: _compile(r" [\\/>»] "))
    sentence_end: Pattern[str] = field(default_factory=lambda: _compile(r"\.( |$)"))
    tracking_attribute: Pattern[str] = field(
        default_factory=lambda: _compile(r"^(on[a-z]+|ping|data-(track|analytics|ga|gtm)[\w-]*)$", re.I)
    )
    display_none: Pattern[str] = field(default_factory=lambda: _compile(r"(^|;)\s*display\s*:\s*none", re.I))
    visibility_hidden: Pattern[str] = field(
        default_factory=lambda: _compile(r"(^|;)\s*visibility\s*:\s*hidden", re.I)
    )
    meta_property: Pattern[str] = field(
        default_factory=lambda: _compile(
            r"\s*(article|dc|dcterm|og|twitter)\s*:\s*(author|creator|description|published_time|title|site_name)\s*",
            re.I,
        )
    )
    meta_name: Pattern[str] = field(
        default_factory=lambda: _compile(
            r"^\s*(?:(dc|dcterm|og|twitter|parsely|weibo:(article|webpage))\s*[-\.:]\s*)?"
            r"(author|creator|pub-date|description|title|site_name)\s*$",
            re.I,
        )
    )


DEFAULT_PATTERNS = PatternCatalog()

UNLIKELY_ROLES: FrozenSet[str] = frozenset(
    ["menu", "menubar", "complementary", "navigation", "alert", "alertdialog", "dialog"]
)

# Elements that keep a div from being turned into a paragraph.
DIV_TO_P_ELEMS: FrozenSet[str] = frozenset(["blockquote", "dl", "div", "img", "ol", "p", "pre", "table", "ul"])

ALTER_TO_DIV_EXCEPTIONS: FrozenSet[str] = frozenset(["div", "article", "section", "p", "ol", "ul"])

PRESENTATIONAL_ATTRIBUTES = (
    "align",
    "background",
    "bgcolor",
    "border",
    "cellpadding",
    "cellspacing",
    "frame",
    "hspace",
    "rules",
    "style",
    "valign",
    "vspace",
)

DEPRECATED_SIZE_ATTRIBUTE_ELEMS: FrozenSet[str] = frozenset(["table", "th", "td", "hr", "pre"])

PHRASING_ELEMS: FrozenSet[str] = frozenset(
    [
        "abbr", "audio", "b", "bdo", "br", "button", "cite", "code", "data", "datalist", "dfn", "em",
        "embed", "i", "img", "input", "kbd", "label", "mark", "math", "meter", "noscript", "object",
        "output", "progress", "q", "ruby", "samp", "script", "select", "small", "span", "strong", "sub",
        "sup", "textarea", "time", "var", "wbr",
    ]
)

TAGS_TO_SCORE: FrozenSet[str] = frozenset(["section", "h2", "h3", "h4", "h5", "h6", "p", "td", "pre", "blockquote"])

EMBED_TAGS = ("object", "embed", "iframe")

# Elements that count as content even without text.
MEDIA_TAGS: FrozenSet[str] = frozenset(
    ["img", "picture", "video", "audio", "iframe", "embed", "object", "svg", "canvas", "math", "source"]
)

PRUNABLE_TAGS: FrozenSet[str] = frozenset(["p", "div", "section", "span"])

PREFORMATTED_TAGS: FrozenSet[str] = frozenset(["pre", "code", "textarea"])

DEFAULT_CLASSES_TO_PRESERVE: FrozenSet[str] = frozenset(["page"])

PAGE_CONTAINER_ID = "readability-page-1"
