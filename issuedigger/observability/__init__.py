"""Observability module for metrics and monitoring."""

from issuedigger.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    track_embedding_request,
    track_paragraph_outcome,
    track_queue_message,
    track_queue_send,
    track_similarity_response,
    track_vectorstore_operation,
    track_webhook_event,
)

__all__ = [
    "MetricsMiddleware",
    "get_metrics",
    "track_embedding_request",
    "track_paragraph_outcome",
    "track_queue_message",
    "track_queue_send",
    "track_similarity_response",
    "track_vectorstore_operation",
    "track_webhook_event",
]
