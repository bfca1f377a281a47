"""Monitoring for the routing table."""

from .metrics import RoutingMetricsCollector, RoutingMetrics

__all__ = [
    "RoutingMetricsCollector",
    "RoutingMetrics",
]
