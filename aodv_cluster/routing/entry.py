"""Routing table entries."""

import copy
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from ipaddress import IPv4Address, IPv4Interface
from typing import List, Optional, Set

from .addresses import AddressLike, InterfaceLike, as_address, as_interface


logger = logging.getLogger(__name__)


class RouteFlag(str, Enum):
    """Route status."""
    VALID = "valid"
    INVALID = "invalid"
    IN_SEARCH = "in_search"

    @property
    def label(self) -> str:
        """Label used in table dumps."""
        return _FLAG_LABELS[self]


_FLAG_LABELS = {
    RouteFlag.VALID: "UP",
    RouteFlag.INVALID: "DOWN",
    RouteFlag.IN_SEARCH: "IN_SEARCH",
}


@dataclass
class RoutingEntry:
    """
    Best known route to one destination.

    The deadline is absolute; use lifetime()/set_lifetime() to work with
    the remaining time relative to a clock reading.
    """
    destination: IPv4Address
    next_hop: IPv4Address
    interface: IPv4Interface
    device: Optional[str] = None
    valid_seq_no: bool = False
    seq_no: int = 0
    hops: int = 0
    expires_at: float = 0.0
    flag: RouteFlag = RouteFlag.VALID
    rreq_count: int = 0
    unidirectional: bool = False
    blacklist_until: float = 0.0
    precursors: Set[IPv4Address] = field(default_factory=set)

    # Link quality telemetry
    tx_error_count: int = 0
    position_x: float = 0.0
    position_y: float = 0.0
    free_space: int = 0

    def __post_init__(self):
        self.destination = as_address(self.destination)
        self.next_hop = as_address(self.next_hop)
        self.interface = as_interface(self.interface)
        self.flag = RouteFlag(self.flag)
        self.precursors = {as_address(p) for p in self.precursors}

        for name in ("seq_no", "hops", "rreq_count", "tx_error_count", "free_space"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")

    @classmethod
    def create(
        cls,
        destination: AddressLike,
        next_hop: AddressLike,
        interface: InterfaceLike,
        lifetime: float,
        hops: int = 1,
        seq_no: int = 0,
        valid_seq_no: bool = False,
        device: Optional[str] = None,
        tx_error_count: int = 0,
        position_x: float = 0.0,
        position_y: float = 0.0,
        free_space: int = 0,
        now: Optional[float] = None
    ) -> "RoutingEntry":
        """
        Build a VALID entry expiring `lifetime` seconds from now.

        Args:
            destination: Destination address
            next_hop: Gateway toward the destination
            interface: Local interface address (address/prefix)
            lifetime: Seconds until the route expires
            hops: Hop count to the destination
            seq_no: Destination sequence number
            valid_seq_no: Whether seq_no is known to be valid
            device: Outgoing device identifier
            tx_error_count: Cumulative transmission errors toward the neighbor
            position_x: Last known X position of the destination
            position_y: Last known Y position of the destination
            free_space: Free buffer capacity reported by the destination
            now: Clock reading (defaults to time.time())

        Returns:
            New RoutingEntry
        """
        now = time.time() if now is None else now
        return cls(
            destination=destination,
            next_hop=next_hop,
            interface=interface,
            device=device,
            valid_seq_no=valid_seq_no,
            seq_no=seq_no,
            hops=hops,
            expires_at=now + lifetime,
            tx_error_count=tx_error_count,
            position_x=position_x,
            position_y=position_y,
            free_space=free_space,
        )

    @property
    def source(self) -> IPv4Address:
        """Local address routes through this entry originate from."""
        return self.interface.ip

    # Precursors

    def insert_precursor(self, address: AddressLike) -> bool:
        """Add a precursor. Returns False if it was already known."""
        address = as_address(address)
        if address in self.precursors:
            logger.debug(f"Precursor {address} already present for {self.destination}")
            return False
        self.precursors.add(address)
        return True

    def lookup_precursor(self, address: AddressLike) -> bool:
        return as_address(address) in self.precursors

    def delete_precursor(self, address: AddressLike) -> bool:
        """Remove a precursor. Returns False if it was not present."""
        address = as_address(address)
        if address not in self.precursors:
            logger.debug(f"Precursor {address} not found for {self.destination}")
            return False
        self.precursors.discard(address)
        return True

    def delete_all_precursors(self):
        self.precursors.clear()

    def is_precursor_list_empty(self) -> bool:
        return not self.precursors

    def get_precursors(self, into: List[IPv4Address]) -> List[IPv4Address]:
        """
        Append precursors not already present in `into`.

        Used to accumulate the precursors of several routes into a single
        error notification list.
        """
        for address in sorted(self.precursors):
            if address not in into:
                into.append(address)
        return into

    # State transitions

    def set_state(self, flag: RouteFlag):
        """Move to `flag` and clear the request counter."""
        self.flag = RouteFlag(flag)
        self.clear_request_count()

    def clear_request_count(self):
        """Clear the request counter regardless of state."""
        self.rreq_count = 0

    def reset_request_count(self):
        """Clear the request counter unless a discovery is in progress."""
        if self.flag != RouteFlag.IN_SEARCH:
            self.rreq_count = 0

    def increment_request_count(self) -> int:
        self.rreq_count += 1
        return self.rreq_count

    def invalidate(self, bad_link_lifetime: float, now: Optional[float] = None):
        """
        Mark the route INVALID and keep it for `bad_link_lifetime` seconds.

        Does nothing if the route is already INVALID.
        """
        if self.flag == RouteFlag.INVALID:
            return
        now = time.time() if now is None else now
        self.flag = RouteFlag.INVALID
        self.rreq_count = 0
        self.expires_at = now + bad_link_lifetime
        logger.debug(f"Invalidated route to {self.destination} for {bad_link_lifetime}s")

    # Timing

    def lifetime(self, now: Optional[float] = None) -> float:
        """Remaining lifetime in seconds (negative once expired)."""
        now = time.time() if now is None else now
        return self.expires_at - now

    def set_lifetime(self, lifetime: float, now: Optional[float] = None):
        now = time.time() if now is None else now
        self.expires_at = now + lifetime

    def is_expired(self, now: Optional[float] = None) -> bool:
        return self.lifetime(now) < 0

    def mark_unidirectional(self, blacklist_until: float):
        """Blacklist the link to this neighbor until an absolute deadline."""
        self.unidirectional = True
        self.blacklist_until = blacklist_until

    def is_blacklisted(self, now: Optional[float] = None) -> bool:
        now = time.time() if now is None else now
        return self.unidirectional and now < self.blacklist_until

    def copy(self) -> "RoutingEntry":
        """Independent copy, safe to hand to callers."""
        return copy.deepcopy(self)

    def format_row(self, now: Optional[float] = None) -> str:
        """Format the entry as one line of the table dump."""
        expire = f"{self.lifetime(now):.2f}s"
        return (
            f"{str(self.destination):<16}"
            f"{str(self.next_hop):<16}"
            f"{str(self.source):<16}"
            f"{self.flag.label:<16}"
            f"{expire:<16}"
            f"{self.hops}"
        )
