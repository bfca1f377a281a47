"""Shared fixtures for routing table tests."""

import pytest

from aodv_cluster.models import RoutingTableConfig
from aodv_cluster.routing import RoutingEntry, RoutingTable


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def table(clock):
    return RoutingTable(config=RoutingTableConfig(bad_link_lifetime=5.0), clock=clock)


@pytest.fixture
def make_entry(clock):
    """Factory for entries on 10.0.0.1/24 expiring relative to the fake clock."""
    def _make(destination, next_hop=None, lifetime=10.0, **kwargs):
        return RoutingEntry.create(
            destination=destination,
            next_hop=next_hop or destination,
            interface=kwargs.pop("interface", "10.0.0.1/24"),
            lifetime=lifetime,
            now=clock(),
            **kwargs
        )
    return _make
