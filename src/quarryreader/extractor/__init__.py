"""
Async extraction adapter.

Wraps the synchronous readability engine behind the ``Extractor`` protocol
so event-loop based pipelines can call it without blocking.
"""

from .models import ExtractResult
from .protocols import Extractor, ReadabilityCheck
from .readability_extractor import ReadabilityExtractor

__all__ = [
    "ExtractResult",
    "Extractor",
    "ReadabilityCheck",
    "ReadabilityExtractor",
]
