"""Observability — structured logging, metrics, and event hooks."""

from envtel.observability.hooks import EventHook, HookManager
from envtel.observability.logging import bind_node, configure_logging
from envtel.observability.metrics import AcquisitionMetrics, SourceMetric

__all__ = [
    "configure_logging",
    "bind_node",
    "AcquisitionMetrics",
    "SourceMetric",
    "EventHook",
    "HookManager",
]
