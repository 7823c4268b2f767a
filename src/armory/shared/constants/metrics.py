"""Metric names and label schemas."""


class MetricNames:
    """Pre-declared metric names."""

    BNET_REQUESTS = "bnet_requests_total"
    BNET_RETRY = "bnet_retry_total"
    CACHE_HITS = "cache_hits_total"
    CACHE_MISSES = "cache_misses_total"
    CACHE_CLEANUP = "cache_cleanup_total"
    CACHE_ENTRIES = "cache_entries"

    UNKNOWN_LABEL = "unknown"
    STATUS_SUCCESS = "success"
    STATUS_ERROR = "error"
