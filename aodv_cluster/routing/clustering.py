"""Density-based selection of preferred neighbors."""

import logging
import math
from collections import deque
from dataclasses import dataclass, field
from ipaddress import IPv4Address
from typing import Dict, Iterable, List, Optional, Sequence

from ..models.config import ClusterConfig
from .addresses import is_unicast_candidate
from .entry import RouteFlag, RoutingEntry


logger = logging.getLogger(__name__)

UNVISITED = -1
NOISE = -2

DIMENSIONS = 3


@dataclass
class FeaturePoint:
    """A candidate neighbor described by (distance, tx errors, free space)."""
    address: IPv4Address
    features: List[float] = field(default_factory=list)


def extract_candidates(
    entries: Iterable[RoutingEntry],
    target_x: float,
    target_y: float,
    config: ClusterConfig
) -> List[FeaturePoint]:
    """
    Build feature vectors for entries eligible as next-hop candidates.

    Skips non-unicast destinations, INVALID routes and routes longer
    than config.max_hops.
    """
    points = []
    for entry in entries:
        if not is_unicast_candidate(entry.destination, config.subnet_prefix):
            continue
        if entry.flag == RouteFlag.INVALID or entry.hops > config.max_hops:
            continue

        dx = target_x - entry.position_x
        dy = target_y - entry.position_y
        points.append(FeaturePoint(
            address=entry.destination,
            features=[
                math.sqrt(dx * dx + dy * dy),
                float(entry.tx_error_count),
                float(entry.free_space),
            ]
        ))
    return points


def normalize(points: List[FeaturePoint]) -> List[FeaturePoint]:
    """Min-max scale every dimension to [0, 1] in place."""
    if not points:
        return points

    for d in range(DIMENSIONS):
        low = min(p.features[d] for p in points)
        high = max(p.features[d] for p in points)
        span = high - low
        for p in points:
            # A constant dimension carries no information
            p.features[d] = (p.features[d] - low) / span if span != 0 else 0.0
    return points


def feature_distance(a: Sequence[float], b: Sequence[float]) -> float:
    return math.sqrt(sum((x - y) ** 2 for x, y in zip(a, b)))


def region_query(points: List[FeaturePoint], index: int, epsilon: float) -> List[int]:
    """Indexes of all other points within epsilon of points[index]."""
    origin = points[index].features
    return [
        i for i, p in enumerate(points)
        if i != index and feature_distance(origin, p.features) <= epsilon
    ]


def dbscan(
    points: List[FeaturePoint],
    epsilon: float,
    min_pts: int,
    count_self: bool = True
) -> List[int]:
    """
    Label points with cluster ids.

    Args:
        points: Normalized feature points
        epsilon: Neighborhood radius
        min_pts: Minimum density for a core point
        count_self: Whether a point counts toward its own density

    Returns:
        One label per point: a cluster id >= 0, or NOISE
    """
    labels = [UNVISITED] * len(points)
    threshold = min_pts - 1 if count_self else min_pts
    cluster_id = 0

    for i in range(len(points)):
        if labels[i] != UNVISITED:
            continue

        neighbors = region_query(points, i, epsilon)
        if len(neighbors) < threshold:
            labels[i] = NOISE
            continue

        processed = set()
        queue = deque(neighbors)
        queue.append(i)

        while queue:
            p = queue.popleft()
            if p in processed:
                continue
            processed.add(p)

            # Border points keep the first cluster that reached them
            if labels[p] in (UNVISITED, NOISE):
                labels[p] = cluster_id

            reachable = region_query(points, p, epsilon)
            if len(reachable) >= threshold:
                queue.extend(q for q in reachable if q not in processed)

        cluster_id += 1

    return labels


def group_clusters(labels: List[int]) -> Dict[int, List[int]]:
    """Map cluster id -> member indexes, ordered by cluster id."""
    clusters: Dict[int, List[int]] = {}
    for index, label in enumerate(labels):
        if label >= 0:
            clusters.setdefault(label, []).append(index)
    return dict(sorted(clusters.items()))


def centroid(points: List[FeaturePoint], members: List[int]) -> List[float]:
    return [
        sum(points[m].features[d] for m in members) / len(members)
        for d in range(DIMENSIONS)
    ]


def score_cluster(
    center: Sequence[float],
    ideal: Sequence[float],
    weights: Sequence[float]
) -> float:
    """Weighted squared distance from a centroid to the ideal point."""
    return sum(w * (c - t) ** 2 for c, t, w in zip(center, ideal, weights))


def best_cluster(
    points: List[FeaturePoint],
    clusters: Dict[int, List[int]],
    config: ClusterConfig
) -> Optional[int]:
    """Id of the lowest scoring cluster; ties go to the lowest id."""
    best_id = None
    best_score = math.inf

    for cluster_id, members in clusters.items():
        score = score_cluster(
            centroid(points, members),
            config.ideal_vector,
            config.feature_weights
        )
        logger.debug(f"Cluster {cluster_id}: {len(members)} members, score={score:.4f}")
        if score < best_score:
            best_score = score
            best_id = cluster_id

    return best_id


class NeighborClusterSelector:
    """
    Picks the best group of neighbors for reaching a target position.

    Candidates are clustered with DBSCAN in a normalized
    (distance, tx errors, free space) space and the cluster whose centroid
    is closest to the ideal vector wins. When no cluster forms, every
    candidate is returned.
    """

    def __init__(self, config: Optional[ClusterConfig] = None):
        self.config = config or ClusterConfig()

        # Outcome of the last selection, for metrics
        self.last_fallback = False
        self.last_cluster_count = 0

    def select(
        self,
        entries: Iterable[RoutingEntry],
        target_x: float,
        target_y: float,
        epsilon: Optional[float] = None,
        min_pts: Optional[int] = None
    ) -> List[IPv4Address]:
        """
        Select preferred next-hop candidates.

        Args:
            entries: Routing entries to choose from (already purged)
            target_x: Target X position
            target_y: Target Y position
            epsilon: Neighborhood radius (defaults to config)
            min_pts: Core point threshold (defaults to config)

        Returns:
            Destination addresses of the best cluster, all candidates if
            no cluster formed, or an empty list if there are no candidates
        """
        epsilon = self.config.epsilon if epsilon is None else epsilon
        min_pts = self.config.min_pts if min_pts is None else min_pts

        self.last_fallback = False
        self.last_cluster_count = 0

        points = extract_candidates(entries, target_x, target_y, self.config)
        if not points:
            logger.debug("No neighbor candidates for cluster selection")
            return []

        normalize(points)
        clusters = group_clusters(
            dbscan(points, epsilon, min_pts, self.config.count_self)
        )
        self.last_cluster_count = len(clusters)

        chosen = best_cluster(points, clusters, self.config)
        if chosen is None:
            self.last_fallback = True
            logger.info(f"No clusters among {len(points)} candidates, returning all")
            return [p.address for p in points]

        members = clusters[chosen]
        logger.info(
            f"Found {len(clusters)} clusters from {len(points)} candidates, "
            f"best cluster {chosen} has {len(members)} members"
        )
        return [points[m].address for m in members]
