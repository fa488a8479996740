"""
Defines and manages Prometheus metrics for the fetch pipeline.
"""

from __future__ import annotations

import time
from typing import Any, Dict

from prometheus_client import REGISTRY as _PROM_REGISTRY
from prometheus_client import Counter as _OrigCounter
from prometheus_client import Histogram as _OrigHistogram

from scrapely.crawler.events import FetchObserver

# ---------------------------------------------------------------------------
# Duplicate-safe Prometheus metric wrappers
# ---------------------------------------------------------------------------
# Re-importing this module (test reloads, multiple clients) must not raise
# duplicate registration errors, so existing collectors are reused.


def _duplicate_safe_factory(metric_cls):
    """Return a factory that reuses an existing collector if already present."""

    def _factory(name: str, documentation: str, *args, **kwargs):  # type: ignore[override]
        existing = _PROM_REGISTRY._names_to_collectors.get(name)
        if existing is not None:
            return existing  # type: ignore[return-value]

        try:
            return metric_cls(name, documentation, *args, **kwargs)  # type: ignore[call-arg]
        except ValueError:
            # Registration lost the race - fall back to the now-existing collector.
            return _PROM_REGISTRY._names_to_collectors[name]  # type: ignore[return-value]

    return _factory


Counter = _duplicate_safe_factory(_OrigCounter)  # type: ignore[assignment]
Histogram = _duplicate_safe_factory(_OrigHistogram)  # type: ignore[assignment]


def _create_metrics() -> Dict[str, Any]:
    return {
        "fetch_requests_total": Counter(
            "scrapely_fetch_requests_total",
            "Total number of HTTP attempts issued",
        ),
        "fetch_responses_total": Counter(
            "scrapely_fetch_responses_total",
            "Total number of HTTP responses by status class",
            ["status_class"],
        ),
        "fetch_retries_total": Counter(
            "scrapely_fetch_retries_total",
            "Total number of failed attempts that triggered a retry decision",
        ),
        "fetch_failures_total": Counter(
            "scrapely_fetch_failures_total",
            "Total number of fetches that exhausted every attempt",
        ),
        "cache_hits_total": Counter(
            "scrapely_cache_hits_total",
            "Total number of fetches served from the response cache",
        ),
        "fetch_latency_seconds": Histogram(
            "scrapely_fetch_latency_seconds",
            "Time from first attempt to response, including retries",
            buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
        ),
    }


METRICS: Dict[str, Any] = _create_metrics()


class MetricsObserver(FetchObserver):
    """Records fetch events as Prometheus metrics."""

    def __init__(self) -> None:
        self._started: Dict[str, float] = {}

    def request(self, url: str) -> None:
        METRICS["fetch_requests_total"].inc()
        self._started.setdefault(url, time.monotonic())

    def response(self, url: str, status: int) -> None:
        METRICS["fetch_responses_total"].labels(status_class=f"{status // 100}xx").inc()
        started = self._started.pop(url, None)
        if started is not None:
            METRICS["fetch_latency_seconds"].observe(time.monotonic() - started)

    def retry(self, url: str, attempt: int, cause: BaseException) -> None:
        METRICS["fetch_retries_total"].inc()

    def error(self, err: BaseException) -> None:
        METRICS["fetch_failures_total"].inc()
        url = getattr(err, "url", None)
        if url is not None:
            self._started.pop(url, None)

    def cache_hit(self, url: str) -> None:
        METRICS["cache_hits_total"].inc()
