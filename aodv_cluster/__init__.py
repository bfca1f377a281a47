"""AODV routing table with density-based neighbor selection."""

__version__ = "0.1.0"
