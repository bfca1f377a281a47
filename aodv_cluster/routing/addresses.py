"""Address helpers for routing table keys."""

import ipaddress
from ipaddress import IPv4Address, IPv4Interface
from typing import Union

AddressLike = Union[IPv4Address, str, int]
InterfaceLike = Union[IPv4Interface, str]

LIMITED_BROADCAST = IPv4Address("255.255.255.255")


def as_address(value: AddressLike) -> IPv4Address:
    """Coerce a dotted-quad string (or integer) into an IPv4Address."""
    if isinstance(value, IPv4Address):
        return value
    return IPv4Address(value)


def as_interface(value: InterfaceLike) -> IPv4Interface:
    """Coerce 'a.b.c.d/prefix' into an IPv4Interface."""
    if isinstance(value, IPv4Interface):
        return value
    return IPv4Interface(value)


def is_subnet_directed_broadcast(address: AddressLike, prefix: int = 24) -> bool:
    """
    Check whether the host part of an address is all ones for a prefix.

    Args:
        address: Address to classify
        prefix: Subnet prefix length used for the check

    Returns:
        True if the address is the directed broadcast of its subnet
    """
    address = as_address(address)
    network = ipaddress.ip_network(f"{address}/{prefix}", strict=False)
    if network.num_addresses <= 2:
        return False
    return address == network.broadcast_address


def is_unicast_candidate(address: AddressLike, prefix: int = 24) -> bool:
    """Return False for broadcast, loopback, multicast and directed broadcast."""
    address = as_address(address)
    if address == LIMITED_BROADCAST:
        return False
    if address.is_loopback or address.is_multicast:
        return False
    return not is_subnet_directed_broadcast(address, prefix)
