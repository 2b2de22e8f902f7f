"""Prometheus metrics definitions for the triage engine.

This module provides centralized metric definitions for observability.
Metrics are exported via the /metrics endpoint for Prometheus scraping.
"""

from prometheus_client import Counter, Gauge, Histogram  # type: ignore[import-not-found]

# Request metrics
HTTP_REQUESTS = Counter(
    "triage_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)
HTTP_LATENCY = Histogram(
    "triage_http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint"],
)

# Evaluation metrics
EVALUATIONS = Counter(
    "triage_evaluations_total",
    "Trigger evaluations",
    ["outcome"],
)
EVALUATION_LATENCY = Histogram(
    "triage_evaluation_duration_seconds",
    "Evaluation latency including collaborator reads",
)

# Business metrics
ESCALATIONS = Counter(
    "triage_escalations_total",
    "Escalation cases created",
    ["severity"],
)
ASSIGNMENTS = Counter(
    "triage_assignments_total",
    "Assignment attempts",
    ["result"],
)
REASSIGNMENTS = Counter(
    "triage_reassignments_total",
    "Stale cases taken from their specialist",
    ["result"],
)
AUTO_RESOLUTIONS = Counter(
    "triage_auto_resolutions_total",
    "Automatic resolution attempts",
    ["outcome"],
)
RESOLUTIONS = Counter(
    "triage_resolutions_total",
    "Cases closed by a specialist",
    ["success"],
)
OPEN_CASES = Gauge(
    "triage_cases_open",
    "Escalation cases not yet resolved",
)

# Collaborator health
COLLABORATOR_FAILURES = Counter(
    "triage_collaborator_failures_total",
    "Collaborator calls that failed or timed out",
    ["operation", "kind"],
)
