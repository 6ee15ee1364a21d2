"""Tests for observability module."""

import pytest
from httpx import ASGITransport, AsyncClient

from issuedigger.api.app import app
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


class TestMetricsEndpoint:
    """Tests for /metrics endpoint."""

    @pytest.mark.asyncio
    async def test_metrics_endpoint_returns_prometheus_format(self) -> None:
        """Metrics endpoint returns Prometheus format."""
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        assert b"# HELP" in response.content


class TestMetricsFunctions:
    """Tests for metrics tracking functions."""

    def test_get_metrics_returns_bytes(self) -> None:
        """get_metrics returns bytes."""
        assert isinstance(get_metrics(), bytes)

    def test_track_webhook_event(self) -> None:
        """track_webhook_event counts events by outcome."""
        track_webhook_event("issues", "processed")

        metrics = get_metrics().decode()
        assert 'webhook_events_total{event="issues",outcome="processed"}' in metrics

    def test_track_queue_send(self) -> None:
        """track_queue_send counts submissions by status."""
        track_queue_send("index", "suppressed")

        metrics = get_metrics().decode()
        assert 'queue_messages_sent_total{status="suppressed",type="index"}' in metrics

    def test_track_queue_message_failure(self) -> None:
        """track_queue_message records failed handling."""
        track_queue_message("offboard", 0.5, success=False)

        metrics = get_metrics().decode()
        assert 'queue_messages_processed_total{status="error",type="offboard"}' in metrics
        assert "queue_message_duration_seconds" in metrics

    def test_track_embedding_request(self) -> None:
        """track_embedding_request records request."""
        track_embedding_request(model="bge-large", duration=0.1, success=True)

        metrics = get_metrics().decode()
        assert "embedding_request_duration_seconds" in metrics
        assert "embedding_requests_total" in metrics

    def test_track_paragraph_outcome(self) -> None:
        """track_paragraph_outcome counts fallbacks."""
        track_paragraph_outcome("summarized")

        metrics = get_metrics().decode()
        assert 'embedding_paragraph_outcomes_total{outcome="summarized"}' in metrics

    def test_track_vectorstore_operation(self) -> None:
        """track_vectorstore_operation records latency."""
        track_vectorstore_operation("query", 0.02)

        assert "vectorstore_operation_duration_seconds" in get_metrics().decode()

    def test_track_similarity_response_ignores_empty(self) -> None:
        """A response without matches records no score."""
        before = get_metrics().decode().count("similarity_top_score_count")
        track_similarity_response(None)
        track_similarity_response(0.8)

        metrics = get_metrics().decode()
        assert "similarity_top_score_count" in metrics
        assert metrics.count("similarity_top_score_count") >= before


class TestMetricsMiddleware:
    """Tests for MetricsMiddleware."""

    @pytest.mark.asyncio
    async def test_middleware_records_request_metrics(self) -> None:
        """Middleware records HTTP request metrics."""
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            await client.get("/health")

        metrics = get_metrics().decode()
        assert "http_request_duration_seconds" in metrics
        assert 'endpoint="/health"' in metrics

    def test_normalizes_endpoints(self) -> None:
        """Unknown paths collapse into one label value."""
        middleware = MetricsMiddleware(app)
        assert middleware._normalize_endpoint("/health/ready") == "/health"
        assert middleware._normalize_endpoint("/webhook") == "/webhook"
        assert middleware._normalize_endpoint("/wp-admin") == "other"
