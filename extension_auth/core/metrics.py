"""Prometheus metric inventory.

Every metric the service exports is defined here; the modules that own the
behavior import and increment them. Scraped via GET /metrics.
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
# OAuth metrics
# ---------------------------------------------------------------------------

AUTH_CODES_ISSUED = Counter(
    "oauth_authorization_codes_issued_total",
    "Authorization codes issued by /oauth/authorize",
)

CODE_REDEMPTIONS = Counter(
    "oauth_code_redemptions_total",
    "Authorization code redemption attempts by result",
    ["result"],  # "ok", "unknown", "expired"
)

TOKENS_ISSUED = Counter(
    "oauth_tokens_issued_total",
    "Access tokens issued by grant type",
    ["grant_type"],  # "authorization_code" or "client_credentials"
)

TOKEN_VALIDATIONS = Counter(
    "oauth_token_validations_total",
    "Bearer token validations on protected endpoints by result",
    ["result"],  # "valid", "expired", "invalid", "missing"
)

MOBILE_VERIFICATIONS = Counter(
    "mobile_verifications_total",
    "Phone number verification lookups by result",
    ["result"],  # "verified" or "rejected"
)
