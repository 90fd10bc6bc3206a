"""
Defines Prometheus metrics for the readability engine.
"""

from __future__ import annotations

from typing import Any, Dict

from prometheus_client import REGISTRY as _PROM_REGISTRY
from prometheus_client import Counter as _OrigCounter
from prometheus_client import Histogram as _OrigHistogram

# ---------------------------------------------------------------------------
# Duplicate-safe Prometheus metric wrappers
# ---------------------------------------------------------------------------
# Importing this module twice (test reloads, multiple entry points) must not
# fail with a duplicate registration error.


def _duplicate_safe_factory(metric_cls):
    """Return a factory that reuses an existing collector if already present."""

    def _factory(name: str, documentation: str, *args, **kwargs):  # type: ignore[override]
        existing = _PROM_REGISTRY._names_to_collectors.get(name)
        if existing is not None:
            return existing  # type: ignore[return-value]

        try:
            return metric_cls(name, documentation, *args, **kwargs)  # type: ignore[call-arg]
        except ValueError:
            # Registration lost the race; fall back to the now-existing collector.
            return _PROM_REGISTRY._names_to_collectors[name]  # type: ignore[return-value]

    return _factory


Counter = _duplicate_safe_factory(_OrigCounter)  # type: ignore[assignment]
Histogram = _duplicate_safe_factory(_OrigHistogram)  # type: ignore[assignment]

PARSE_OUTCOMES = ("ok", "empty", "aborted")


def _create_metrics() -> Dict[str, Any]:
    return {
        "parses_total": Counter(
            "quarryreader_parses_total",
            "Parses by outcome (ok, empty, aborted)",
            ["outcome"],
        ),
        "parse_duration_seconds": Histogram(
            "quarryreader_parse_duration_seconds",
            "Time taken by one parse, preprocessing to serialization",
            buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
        ),
        "retry_passes_total": Counter(
            "quarryreader_retry_passes_total",
            "Extraction passes run after the first one of a parse",
        ),
        "article_length_chars": Histogram(
            "quarryreader_article_length_chars",
            "Text length of extracted articles",
            buckets=[0, 100, 500, 1000, 2500, 5000, 10000, 25000, 50000, 100000],
        ),
    }


METRICS: Dict[str, Any] = _create_metrics()
