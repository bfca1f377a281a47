"""Metrics collection for Prometheus."""

import time
from dataclasses import dataclass, field


@dataclass
class RoutingMetrics:
    """Container for routing table metrics."""
    # Table metrics
    total_routes: int = 0
    valid_routes: int = 0
    invalid_routes: int = 0
    searching_routes: int = 0
    unidirectional_links: int = 0
    avg_hops: float = 0.0

    # Purge metrics
    purged_routes: int = 0
    expired_routes: int = 0

    # Selection metrics
    selections: int = 0
    empty_selections: int = 0
    fallback_selections: int = 0
    last_cluster_count: int = 0
    last_selection_size: int = 0

    uptime_seconds: float = 0.0
    last_update: float = field(default_factory=time.time)


class RoutingMetricsCollector:
    """
    Collects routing table metrics and exposes them for Prometheus.
    """

    def __init__(self, node_id: str):
        """
        Initialize metrics collector.

        Args:
            node_id: Local node identifier (usually its address)
        """
        self.node_id = node_id
        self.metrics = RoutingMetrics()
        self.start_time = time.time()

    def update_table_metrics(self, stats: dict):
        """Update table gauges from RoutingTable.get_stats()."""
        by_flag = stats.get("by_flag", {})
        self.metrics.total_routes = stats.get("total_routes", 0)
        self.metrics.valid_routes = by_flag.get("valid", 0)
        self.metrics.invalid_routes = by_flag.get("invalid", 0)
        self.metrics.searching_routes = by_flag.get("in_search", 0)
        self.metrics.unidirectional_links = stats.get("unidirectional", 0)
        self.metrics.avg_hops = stats.get("avg_hops", 0.0)
        self.metrics.purged_routes = stats.get("purged_routes", 0)
        self.metrics.expired_routes = stats.get("expired_routes", 0)
        self.metrics.last_update = time.time()

    def record_selection(self, selected: int, clusters: int, fallback: bool):
        """Record the outcome of a neighbor cluster selection."""
        self.metrics.selections += 1
        if selected == 0:
            self.metrics.empty_selections += 1
        elif fallback:
            self.metrics.fallback_selections += 1
        self.metrics.last_cluster_count = clusters
        self.metrics.last_selection_size = selected

    def get_uptime(self) -> float:
        """Get uptime in seconds."""
        return time.time() - self.start_time

    def to_prometheus(self) -> str:
        """
        Export metrics in Prometheus format.

        Returns:
            Prometheus-formatted metrics string
        """
        lines = []
        labels = f'{{node_id="{self.node_id}"}}'
        m = self.metrics
        m.uptime_seconds = self.get_uptime()

        lines.append("# HELP aodv_routes_total Routes in the routing table")
        lines.append("# TYPE aodv_routes_total gauge")
        lines.append(f"aodv_routes_total{labels} {m.total_routes}")
        lines.append(f"aodv_routes_valid{labels} {m.valid_routes}")
        lines.append(f"aodv_routes_invalid{labels} {m.invalid_routes}")
        lines.append(f"aodv_routes_in_search{labels} {m.searching_routes}")
        lines.append(f"aodv_links_unidirectional{labels} {m.unidirectional_links}")
        lines.append(f"aodv_route_hops_avg{labels} {m.avg_hops:.2f}")

        lines.append("# HELP aodv_routes_purged_total Routes deleted by purge")
        lines.append("# TYPE aodv_routes_purged_total counter")
        lines.append(f"aodv_routes_purged_total{labels} {m.purged_routes}")
        lines.append(f"aodv_routes_expired_total{labels} {m.expired_routes}")

        lines.append("# HELP aodv_selections_total Neighbor cluster selections")
        lines.append("# TYPE aodv_selections_total counter")
        lines.append(f"aodv_selections_total{labels} {m.selections}")
        lines.append(f"aodv_selections_empty_total{labels} {m.empty_selections}")
        lines.append(f"aodv_selections_fallback_total{labels} {m.fallback_selections}")
        lines.append(f"aodv_selection_clusters{labels} {m.last_cluster_count}")
        lines.append(f"aodv_selection_size{labels} {m.last_selection_size}")

        lines.append("# HELP aodv_uptime_seconds Collector uptime in seconds")
        lines.append("# TYPE aodv_uptime_seconds counter")
        lines.append(f"aodv_uptime_seconds{labels} {m.uptime_seconds:.0f}")

        return "\n".join(lines) + "\n"

    def get_summary(self) -> dict:
        """Get human-readable metrics summary."""
        m = self.metrics
        return {
            "uptime": f"{self.get_uptime():.0f}s",
            "routes": {
                "total": m.total_routes,
                "valid": m.valid_routes,
                "invalid": m.invalid_routes,
                "in_search": m.searching_routes,
                "avg_hops": f"{m.avg_hops:.1f}",
            },
            "purge": {
                "deleted": m.purged_routes,
                "invalidated": m.expired_routes,
            },
            "selection": {
                "total": m.selections,
                "empty": m.empty_selections,
                "fallback": m.fallback_selections,
            },
        }
