"""
Prometheus metrics for bookings, bulk administration and notification delivery.

This module defines all Prometheus metrics used throughout the application.
Metrics are exposed via the /metrics endpoint for scraping by Prometheus.

Example:
    >>> from charity_hub.metrics import shift_signups
    >>> shift_signups.labels(shift_type="flexible", outcome="CAPACITY_FULL").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# =============================================================================
# Shift Metrics
# =============================================================================

shift_signups = Counter(
    "charity_shift_signups_total",
    "Shift signup attempts by shift type and outcome",
    ["shift_type", "outcome"],
)
"""
Counter for shift signup attempts.

Labels:
    shift_type: fixed, flexible or open
    outcome: success, or the rejection code (TOO_LATE, TIME_CONFLICT, CAPACITY_FULL, ...)
"""

shift_cancellations = Counter(
    "charity_shift_cancellations_total",
    "Shift assignments cancelled by volunteers",
    ["shift_type"],
)

# =============================================================================
# Admin Metrics
# =============================================================================

bulk_action_items = Counter(
    "charity_bulk_action_items_total",
    "Items processed by bulk volunteer actions",
    ["action", "result"],
)
"""
Counter for bulk action items.

Labels:
    action: approve, reject, archive or delete
    result: success or failure
"""

# =============================================================================
# Notification Metrics
# =============================================================================

notifications_delivered = Counter(
    "charity_notifications_total",
    "Notification delivery attempts by template and resulting status",
    ["template", "status"],
)

notification_delivery_duration = Histogram(
    "charity_notification_delivery_seconds",
    "Duration of a single notification delivery attempt in seconds",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, float("inf")),
)

# =============================================================================
# HTTP Metrics
# =============================================================================

rate_limited_requests = Counter(
    "charity_rate_limited_requests_total",
    "Requests rejected by the rate limiter",
)
