from prometheus_client import Counter, Histogram

# ---------------------------------------------------------------------------
# Custom Prometheus metrics – exported via the /metrics route exposed by
# prometheus_fastapi_instrumentator in moviedetail.utils.observability.
# ---------------------------------------------------------------------------

GATEWAY_REQUEST_DURATION_SECONDS = Histogram(
    "movie_gateway_request_duration_seconds",
    "Latency of movie backend gateway calls (seconds)",
    ["operation"],
)

GATEWAY_FAILURES_TOTAL = Counter(
    "movie_gateway_failures_total",
    "Gateway calls that failed and were absorbed by the detail controller",
    ["operation"],
)

STALE_RESULTS_DISCARDED_TOTAL = Counter(
    "detail_view_stale_results_discarded_total",
    "Gateway results dropped because their view was closed or replaced",
    ["operation"],
)

CONCURRENT_WRITES_REJECTED_TOTAL = Counter(
    "detail_view_concurrent_writes_rejected_total",
    "Comment/rating submissions rejected while another one was in flight",
    ["operation"],
)
