"""Routing table and clustering configuration models."""

from typing import Tuple
from pydantic import BaseModel, Field


class ClusterConfig(BaseModel):
    """Parameters for density-based neighbor selection."""
    epsilon: float = Field(default=0.3, gt=0, description="Neighborhood radius in normalized feature space")
    min_pts: int = Field(default=2, ge=1, description="Minimum neighbors for a core point")
    count_self: bool = Field(
        default=True,
        description="Whether a point counts toward its own neighborhood when compared with min_pts"
    )
    max_hops: int = Field(default=2, ge=0, description="Entries farther than this are not candidates")
    subnet_prefix: int = Field(
        default=24,
        ge=0,
        le=32,
        description="Prefix length used to detect subnet-directed broadcast destinations"
    )
    ideal_vector: Tuple[float, float, float] = Field(
        default=(0.0, 0.0, 1.0),
        description="Ideal normalized (distance, tx errors, free space) point clusters are scored against"
    )
    feature_weights: Tuple[float, float, float] = Field(
        default=(1.0, 1.0, 1.0),
        description="Per-dimension weights applied when scoring cluster centroids"
    )


class RoutingTableConfig(BaseModel):
    """Routing table configuration."""
    bad_link_lifetime: float = Field(
        default=15.0,
        gt=0,
        description="Seconds an invalidated route is kept before deletion"
    )
    purge_interval: float = Field(
        default=1.0,
        gt=0,
        description="Seconds between purges in the maintenance loop"
    )
    cluster: ClusterConfig = Field(
        default_factory=ClusterConfig,
        description="Neighbor selection parameters"
    )
