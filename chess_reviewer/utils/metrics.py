"""
Centralized Prometheus metrics definitions for the Chess Reviewer application.

This module uses the prometheus-client library to define all metrics that will
be exposed by the application for monitoring and alerting. Grouping them here
provides a single, clear overview of the application's instrumentation points.
"""
from prometheus_client import Counter, Histogram

# A common prefix for all application-specific metrics.
PREFIX = "chess_reviewer"

# --- Review Metrics ---

REVIEWS_STARTED_TOTAL = Counter(
    f"{PREFIX}_reviews_started_total",
    "Total number of game review passes started.",
)

REVIEWS_COMPLETED_TOTAL = Counter(
    f"{PREFIX}_reviews_completed_total",
    "Total number of game review passes that published annotations.",
)

REVIEWS_FAILED_TOTAL = Counter(
    f"{PREFIX}_reviews_failed_total",
    "Total number of game review passes aborted by an error.",
    ["error_type"],  # e.g., error_type="EngineAnalysisError"
)

REVIEW_DURATION_SECONDS = Histogram(
    f"{PREFIX}_review_duration_seconds",
    "Histogram of the time taken to fully review a single game.",
    buckets=(1, 5, 10, 30, 60, 120, 300, 600, float("inf"))
)

MOVE_CLASSIFICATIONS = Counter(
    f"{PREFIX}_move_classifications_total",
    "Total number of moves classified, by label.",
    ["classification"],  # e.g., classification="Best", "Blunder"
)

# --- Engine Metrics ---

EVALUATIONS_TOTAL = Counter(
    f"{PREFIX}_evaluations_total",
    "Total number of position evaluations requested.",
    ["source"],  # e.g., source="review", "session"
)

EVALUATIONS_CANCELLED_TOTAL = Counter(
    f"{PREFIX}_evaluations_cancelled_total",
    "Total number of evaluations discarded because a newer request superseded them.",
)

EVALUATION_DURATION_SECONDS = Histogram(
    f"{PREFIX}_evaluation_duration_seconds",
    "Histogram of the time taken for the engine to evaluate a single FEN."
)
