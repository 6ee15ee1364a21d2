"""Prometheus metrics for issuedigger.

Provides metrics instrumentation for:
- HTTP request latency and counts
- Webhook events and their routing outcome
- Queue message processing
- Embedding requests and paragraph fallbacks
- Vector store operations and similarity scores
"""

import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from issuedigger.logging_config import get_logger

logger = get_logger(__name__)

# HTTP Request Metrics
HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status_code"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

HTTP_REQUEST_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

# Webhook Metrics
WEBHOOK_EVENTS_TOTAL = Counter(
    "webhook_events_total",
    "Webhook events received",
    ["event", "outcome"],
)

# Queue Metrics
QUEUE_MESSAGES_SENT = Counter(
    "queue_messages_sent_total",
    "Messages submitted to the work queue",
    ["type", "status"],  # "status" label values: sent, suppressed, failed
)

QUEUE_MESSAGES_PROCESSED = Counter(
    "queue_messages_processed_total",
    "Messages consumed from the work queue",
    ["type", "status"],
)

QUEUE_MESSAGE_DURATION = Histogram(
    "queue_message_duration_seconds",
    "Time spent handling one queue message",
    ["type"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
)

# Embedding Metrics
EMBEDDING_REQUEST_DURATION = Histogram(
    "embedding_request_duration_seconds",
    "Embedding request duration in seconds",
    ["model", "status"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0],
)

EMBEDDING_REQUEST_TOTAL = Counter(
    "embedding_requests_total",
    "Total embedding requests",
    ["model", "status"],
)

PARAGRAPH_OUTCOMES = Counter(
    "embedding_paragraph_outcomes_total",
    "How paragraphs were turned into vectors",
    ["outcome"],  # "outcome" label values: embedded, summarized, dropped
)

# Vector Store Metrics
VECTORSTORE_OPERATION_DURATION = Histogram(
    "vectorstore_operation_duration_seconds",
    "Vector store operation duration",
    ["operation", "status"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0],
)

SIMILARITY_TOP_SCORE = Histogram(
    "similarity_top_score",
    "Best similarity score per posted response",
    buckets=[0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0],
)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to collect HTTP request metrics."""

    def __init__(self, app: ASGIApp) -> None:
        """Initialize the middleware."""
        super().__init__(app)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process request and collect metrics."""
        # Skip metrics endpoint to avoid recursion
        if request.url.path == "/metrics":
            return await call_next(request)

        start_time = time.perf_counter()

        response = await call_next(request)

        duration = time.perf_counter() - start_time
        endpoint = self._normalize_endpoint(request.url.path)

        HTTP_REQUEST_DURATION.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).observe(duration)

        HTTP_REQUEST_TOTAL.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()

        return response

    def _normalize_endpoint(self, path: str) -> str:
        """Normalize endpoint path to reduce cardinality."""
        if path.startswith("/health"):
            return "/health"
        if path in ("/", "/webhook"):
            return path
        return "other"


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get the content type for metrics response."""
    return CONTENT_TYPE_LATEST


def track_webhook_event(event: str, outcome: str) -> None:
    """Track a received webhook event.

    Args:
        event: GitHub event name (header value).
        outcome: Routing outcome, e.g. "processed" or "skipped".
    """
    WEBHOOK_EVENTS_TOTAL.labels(event=event, outcome=outcome).inc()


def track_queue_send(message_type: str, status: str) -> None:
    """Track a queue submission attempt."""
    QUEUE_MESSAGES_SENT.labels(type=message_type, status=status).inc()


def track_queue_message(message_type: str, duration: float, success: bool = True) -> None:
    """Track one handled queue message.

    Args:
        message_type: Discriminant of the message.
        duration: Handling duration in seconds.
        success: Whether the handler completed without raising.
    """
    status = "success" if success else "error"
    QUEUE_MESSAGES_PROCESSED.labels(type=message_type, status=status).inc()
    QUEUE_MESSAGE_DURATION.labels(type=message_type).observe(duration)


def track_embedding_request(
    model: str,
    duration: float,
    success: bool = True,
) -> None:
    """Track embedding request metrics.

    Args:
        model: Embedding model name.
        duration: Request duration in seconds.
        success: Whether the request succeeded.
    """
    status = "success" if success else "error"

    EMBEDDING_REQUEST_DURATION.labels(model=model, status=status).observe(duration)
    EMBEDDING_REQUEST_TOTAL.labels(model=model, status=status).inc()


def track_paragraph_outcome(outcome: str) -> None:
    """Track whether a paragraph was embedded, summarized, or dropped."""
    PARAGRAPH_OUTCOMES.labels(outcome=outcome).inc()


def track_vectorstore_operation(operation: str, duration: float, success: bool = True) -> None:
    """Track a vector store round trip."""
    status = "success" if success else "error"
    VECTORSTORE_OPERATION_DURATION.labels(operation=operation, status=status).observe(duration)


def track_similarity_response(top_score: float | None) -> None:
    """Track the best score of a posted similarity response."""
    if top_score is not None:
        SIMILARITY_TOP_SCORE.observe(top_score)
