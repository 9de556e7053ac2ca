from prometheus_client import Counter, Histogram, make_asgi_app

# route label is the route template (e.g. /object/{name}) to keep cardinality low
REQUESTS = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "route", "status"],
)

LATENCY = Histogram(
    "http_request_duration_seconds",
    "Request latency in seconds",
    ["method", "route"],
)

metrics_app = make_asgi_app()
