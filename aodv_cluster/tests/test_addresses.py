"""Tests for address classification."""

from ipaddress import IPv4Address, IPv4Interface

from aodv_cluster.routing.addresses import (
    as_address,
    as_interface,
    is_subnet_directed_broadcast,
    is_unicast_candidate,
)


def test_coercion():
    """Test strings are converted to ipaddress objects."""
    assert as_address("10.0.0.2") == IPv4Address("10.0.0.2")
    assert as_address(IPv4Address("10.0.0.2")) == IPv4Address("10.0.0.2")
    assert as_interface("10.0.0.1/24").ip == IPv4Address("10.0.0.1")


def test_special_destinations_are_not_candidates():
    """Test broadcast, loopback and multicast addresses are excluded."""
    assert not is_unicast_candidate("255.255.255.255")
    assert not is_unicast_candidate("127.0.0.1")
    assert not is_unicast_candidate("224.0.0.251")
    assert not is_unicast_candidate("10.0.0.255")
    assert is_unicast_candidate("10.0.0.7")


def test_subnet_directed_broadcast_prefix():
    """Test the directed broadcast check honours the prefix length."""
    assert is_subnet_directed_broadcast("10.0.1.255", 24)
    assert not is_subnet_directed_broadcast("10.0.1.255", 16)
    assert is_subnet_directed_broadcast("10.0.255.255", 16)
    # /31 and /32 have no broadcast address
    assert not is_subnet_directed_broadcast("10.0.0.1", 32)
