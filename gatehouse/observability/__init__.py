"""
Observability features for gatehouse.
"""

from .metrics import MetricsCollector, get_metrics_collector
from .logging import AuditLogger, setup_logging, get_logger

__all__ = [
    "MetricsCollector",
    "get_metrics_collector",
    "AuditLogger",
    "setup_logging",
    "get_logger",
]
