"""Serializable route records used to load and export tables."""

import json
from ipaddress import IPv4Address, IPv4Interface
from typing import List, Optional
from pydantic import BaseModel, Field

from ..routing.entry import RouteFlag, RoutingEntry
from .config import RoutingTableConfig


class RouteRecord(BaseModel):
    """One routing entry with a relative lifetime."""
    destination: IPv4Address = Field(..., description="Destination address")
    next_hop: IPv4Address = Field(..., description="Next hop address")
    interface: IPv4Interface = Field(..., description="Local interface address with prefix")
    device: Optional[str] = Field(None, description="Outgoing device identifier")
    lifetime: float = Field(..., description="Seconds until the route expires")
    hops: int = Field(default=1, ge=0, description="Hop count")
    seq_no: int = Field(default=0, ge=0, description="Destination sequence number")
    valid_seq_no: bool = Field(default=False, description="Whether seq_no is valid")
    flag: RouteFlag = Field(default=RouteFlag.VALID, description="Route status")
    precursors: List[IPv4Address] = Field(default_factory=list, description="Precursor addresses")
    tx_error_count: int = Field(default=0, ge=0, description="Cumulative transmission errors")
    position_x: float = Field(default=0.0, description="Destination X position")
    position_y: float = Field(default=0.0, description="Destination Y position")
    free_space: int = Field(default=0, ge=0, description="Free buffer capacity")

    def to_entry(self, now: float) -> RoutingEntry:
        """Build a routing entry whose deadline is `now + lifetime`."""
        entry = RoutingEntry.create(
            destination=self.destination,
            next_hop=self.next_hop,
            interface=self.interface,
            lifetime=self.lifetime,
            hops=self.hops,
            seq_no=self.seq_no,
            valid_seq_no=self.valid_seq_no,
            device=self.device,
            tx_error_count=self.tx_error_count,
            position_x=self.position_x,
            position_y=self.position_y,
            free_space=self.free_space,
            now=now,
        )
        entry.set_state(self.flag)
        for precursor in self.precursors:
            entry.insert_precursor(precursor)
        return entry

    @staticmethod
    def from_entry(entry: RoutingEntry, now: float) -> "RouteRecord":
        """Capture an entry, converting its deadline to a relative lifetime."""
        return RouteRecord(
            destination=entry.destination,
            next_hop=entry.next_hop,
            interface=entry.interface,
            device=entry.device,
            lifetime=entry.lifetime(now),
            hops=entry.hops,
            seq_no=entry.seq_no,
            valid_seq_no=entry.valid_seq_no,
            flag=entry.flag,
            precursors=sorted(entry.precursors),
            tx_error_count=entry.tx_error_count,
            position_x=entry.position_x,
            position_y=entry.position_y,
            free_space=entry.free_space,
        )


class TableSnapshot(BaseModel):
    """
    A routing table as a JSON document.

    Used by the command line tools to load fixture tables.
    """
    config: RoutingTableConfig = Field(
        default_factory=RoutingTableConfig,
        description="Table configuration"
    )
    routes: List[RouteRecord] = Field(default_factory=list, description="Routes")

    def to_json(self) -> str:
        return json.dumps(self.model_dump(mode='json'), indent=2)
