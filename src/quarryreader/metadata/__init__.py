"""
Metadata extraction for extracted articles.

Components:
- StructuredDataParser: JSON-LD article objects and article ``<meta>`` tags
- BylineDetector: byline elements found while sweeping the page
- AuthorExtractor: byline from declared metadata
- MetadataResolver: title, byline, excerpt, site name, direction, language
  and publication time
"""

from .author_extractor import AuthorExtractor, BylineDetector, is_url
from .metadata_extractor import MetadataResolver, truncate_at_word
from .models import Metadata, StructuredDataResult
from .structured_data_parser import MetaTagParser, SchemaOrgParser, StructuredDataParser

__all__ = [
    # Resolution
    "MetadataResolver",
    "Metadata",
    # Structured data parsing
    "StructuredDataParser",
    "StructuredDataResult",
    "SchemaOrgParser",
    "MetaTagParser",
    # Bylines
    "AuthorExtractor",
    "BylineDetector",
    "is_url",
    "truncate_at_word",
]
