"""
Prometheus metrics collection for gatehouse.
"""

from typing import Optional
from prometheus_client import CollectorRegistry, Counter, REGISTRY, generate_latest, CONTENT_TYPE_LATEST


class MetricsCollector:
    """Centralized metrics collection for guard outcomes."""

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        self.registry = registry

        self.logins = Counter(
            'gatehouse_login_total',
            'Login attempts by outcome',
            ['guard', 'status'],
            registry=registry
        )

        self.logouts = Counter(
            'gatehouse_logout_total',
            'Logouts',
            ['guard'],
            registry=registry
        )

        # source: memory, session, remember, none
        self.checks = Counter(
            'gatehouse_check_total',
            'Authentication checks by resolution source',
            ['guard', 'source'],
            registry=registry
        )

        self.remember_tokens_issued = Counter(
            'gatehouse_remember_tokens_issued_total',
            'Remember-me tokens minted on login',
            ['guard'],
            registry=registry
        )

    def record_login(self, guard: str, success: bool):
        """Record a login attempt."""
        status = "success" if success else "failure"
        self.logins.labels(guard=guard, status=status).inc()

    def record_logout(self, guard: str):
        """Record a logout."""
        self.logouts.labels(guard=guard).inc()

    def record_check(self, guard: str, source: str):
        """Record how a check() call was resolved."""
        self.checks.labels(guard=guard, source=source).inc()

    def record_remember_token(self, guard: str):
        """Record a remember token being issued."""
        self.remember_tokens_issued.labels(guard=guard).inc()

    def get_metrics(self) -> str:
        """Get metrics in Prometheus format."""
        return generate_latest(self.registry).decode('utf-8')

    @property
    def content_type(self) -> str:
        return CONTENT_TYPE_LATEST


# Global metrics collector instance
_metrics_collector: Optional[MetricsCollector] = None


def get_metrics_collector() -> MetricsCollector:
    """Get the global metrics collector."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector
