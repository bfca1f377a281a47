"""Routing table and neighbor selection."""

from .entry import RouteFlag, RoutingEntry
from .table import RoutingTable
from .clustering import NeighborClusterSelector
from .addresses import as_address, as_interface, is_unicast_candidate

__all__ = [
    "RouteFlag",
    "RoutingEntry",
    "RoutingTable",
    "NeighborClusterSelector",
    "as_address",
    "as_interface",
    "is_unicast_candidate",
]
