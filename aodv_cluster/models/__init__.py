"""Configuration and record models for AODV-Cluster."""

from .config import ClusterConfig, RoutingTableConfig
from .records import RouteRecord, TableSnapshot

__all__ = [
    "ClusterConfig",
    "RoutingTableConfig",
    "RouteRecord",
    "TableSnapshot",
]
