"""Prometheus metrics for the search service."""

from prometheus_client import Counter, Histogram

from catalog_search.core.logging import get_logger

logger = get_logger(__name__)


class _NoopMetric:
    """Stand-in returned when a metric name is already registered (module reloads in tests)."""

    def labels(self, *args, **kwargs):
        return self

    def inc(self, *args, **kwargs):
        pass

    def observe(self, *args, **kwargs):
        pass


def _safe_counter(*args, **kwargs):
    try:
        return Counter(*args, **kwargs)
    except ValueError:
        logger.debug("metric_already_registered", metric=args[0] if args else None)
        return _NoopMetric()


def _safe_histogram(*args, **kwargs):
    try:
        return Histogram(*args, **kwargs)
    except ValueError:
        logger.debug("metric_already_registered", metric=args[0] if args else None)
        return _NoopMetric()


# HTTP
http_requests_total = _safe_counter(
    "catalog_search_http_requests_total",
    "HTTP requests",
    ["method", "endpoint", "status_code"],
)
http_request_duration_seconds = _safe_histogram(
    "catalog_search_http_request_duration_seconds", "HTTP duration", ["method", "endpoint"]
)

# Search pipeline
search_requests_total = _safe_counter(
    "catalog_search_requests_total",
    "Search requests by outcome",
    ["outcome"],  # ok, cached, invalid, no_results, failure
)
search_strategy_hits_total = _safe_counter(
    "catalog_search_strategy_hits_total",
    "Retrieval strategy that produced the candidate set",
    ["strategy"],
)
search_pipeline_latency_seconds = _safe_histogram(
    "catalog_search_pipeline_latency_seconds",
    "Latency of an uncached search (retrieve, count, score, shape)",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Response cache
search_cache_hits_total = _safe_counter(
    "catalog_search_cache_hits_total",
    "Response cache hits",
    ["cache_layer"],
)
search_cache_misses_total = _safe_counter(
    "catalog_search_cache_misses_total",
    "Response cache misses",
    ["cache_layer"],
)
search_cache_errors_total = _safe_counter(
    "catalog_search_cache_errors_total",
    "Response cache errors (swallowed)",
    ["cache_layer", "operation"],
)
