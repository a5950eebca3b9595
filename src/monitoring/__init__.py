# src/monitoring/__init__.py
# Exports monitoring setup helpers

from .metrics_endpoint import setup_metrics_endpoint
from .system_metrics import collect_system_metrics, start_metrics_collector
from .middleware import setup_request_monitoring

__all__ = [
    "setup_metrics_endpoint",
    "collect_system_metrics",
    "start_metrics_collector",
    "setup_request_monitoring",
]
