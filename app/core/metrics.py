"""Application metrics using the Prometheus client library.

All metrics are defined here so there is a single inventory of what the
service measures.  Other modules import specific metrics and
increment/observe them at the point of action.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Onboarding workflow
# ---------------------------------------------------------------------------

APPLICATION_SUBMISSIONS = Counter(
    "org_application_submissions_total",
    "Organization onboarding applications accepted for review",
)

APPLICATION_DECISIONS = Counter(
    "org_application_decisions_total",
    "Organization onboarding applications reviewed, by decision",
    ["decision"],  # "approved" or "rejected"
)

# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

TOKEN_BLACKLIST_CHECKS = Counter(
    "token_blacklist_checks_total",
    "Token blacklist lookups by result",
    ["result"],  # "revoked" or "valid"
)
