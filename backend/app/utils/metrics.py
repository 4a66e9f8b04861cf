"""Prometheus metrics for document retrieval."""

from prometheus_client import Counter, Histogram

document_retrievals_total = Counter(
    "document_retrievals_total",
    "Total document retrievals",
    ["mode", "artifact", "outcome"],
)

document_fetch_latency_ms = Histogram(
    "document_fetch_latency_ms",
    "Storage backend fetch latency in milliseconds",
    ["backend", "outcome"],
    buckets=[1, 5, 10, 25, 50, 100, 250, 500, 1000, 2500],
)

document_integrity_warnings_total = Counter(
    "document_integrity_warnings_total",
    "Signed documents whose signed artifact could not be served",
    ["reason"],
)


class PrometheusRetrievalMetrics:
    """Prometheus-based retrieval metrics implementation."""

    def inc_retrieval(self, mode: str, artifact: str, outcome: str) -> None:
        """Count one retrieval attempt."""
        document_retrievals_total.labels(mode=mode, artifact=artifact, outcome=outcome).inc()

    def record_fetch_latency(self, backend: str, outcome: str, latency_ms: float) -> None:
        """Record storage backend fetch latency."""
        document_fetch_latency_ms.labels(backend=backend, outcome=outcome).observe(latency_ms)

    def inc_integrity_warning(self, reason: str) -> None:
        """Count a data-integrity warning."""
        document_integrity_warnings_total.labels(reason=reason).inc()
