"""Routing table management."""

import asyncio
import logging
import sys
import time
from ipaddress import IPv4Address
from typing import Callable, Dict, List, Mapping, Optional, TextIO

from ..models.config import RoutingTableConfig
from .addresses import AddressLike, InterfaceLike, as_address, as_interface
from .clustering import NeighborClusterSelector
from .entry import RouteFlag, RoutingEntry


logger = logging.getLogger(__name__)


class RoutingTable:
    """
    Per-node AODV routing table.

    Holds one entry per destination. Most operations purge expired
    entries first so callers always see an up-to-date view. Entries
    handed out or taken in are copied; the table never shares its own
    entries with callers.
    """

    def __init__(
        self,
        config: Optional[RoutingTableConfig] = None,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize routing table.

        Args:
            config: Table configuration (defaults if None)
            clock: Returns the current time in seconds
        """
        self.config = config or RoutingTableConfig()
        self.clock = clock
        self.selector = NeighborClusterSelector(self.config.cluster)

        # Routing table: destination -> RoutingEntry
        self._entries: Dict[IPv4Address, RoutingEntry] = {}

        # Purge outcome counters
        self.purged_routes = 0
        self.expired_routes = 0

        # Background maintenance
        self._purge_task: Optional[asyncio.Task] = None
        self._running = False

    @property
    def bad_link_lifetime(self) -> float:
        return self.config.bad_link_lifetime

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, destination) -> bool:
        return as_address(destination) in self._entries

    def destinations(self) -> List[IPv4Address]:
        """Destinations in ascending address order (no purge)."""
        return sorted(self._entries)

    def lookup_route(self, destination: AddressLike) -> Optional[RoutingEntry]:
        """
        Look up the route to a destination.

        Args:
            destination: Destination address

        Returns:
            Copy of the entry, or None if there is no route
        """
        self.purge()
        destination = as_address(destination)
        entry = self._entries.get(destination)
        if entry is None:
            logger.debug(f"Route to {destination} not found")
            return None
        logger.debug(f"Route to {destination} found")
        return entry.copy()

    def lookup_valid_route(self, destination: AddressLike) -> Optional[RoutingEntry]:
        """Like lookup_route, but only returns VALID routes."""
        entry = self.lookup_route(destination)
        if entry is None:
            return None
        if entry.flag != RouteFlag.VALID:
            logger.debug(f"Route to {entry.destination} is not valid ({entry.flag.value})")
            return None
        return entry

    def delete_route(self, destination: AddressLike) -> bool:
        """
        Delete the route to a destination.

        Returns:
            True if a route was removed
        """
        self.purge()
        destination = as_address(destination)
        if self._entries.pop(destination, None) is None:
            logger.debug(f"Route deletion to {destination} failed; not found")
            return False
        logger.debug(f"Route deletion to {destination} successful")
        return True

    def add_route(self, entry: RoutingEntry) -> bool:
        """
        Add a route for a destination not yet in the table.

        The request counter is cleared unless the route is IN_SEARCH.

        Args:
            entry: Route to add (copied into the table)

        Returns:
            True if added, False if the destination already has a route
        """
        self.purge()
        if entry.destination in self._entries:
            logger.debug(f"Route to {entry.destination} already exists")
            return False

        stored = entry.copy()
        stored.reset_request_count()
        self._entries[stored.destination] = stored
        logger.debug(f"Added route to {stored.destination} via {stored.next_hop} (hops={stored.hops})")
        return True

    def update(self, entry: RoutingEntry) -> bool:
        """
        Replace the route for an existing destination.

        The request counter is cleared unless the new route is IN_SEARCH.

        Returns:
            True if updated, False if the destination has no route
        """
        if entry.destination not in self._entries:
            logger.debug(f"Route update to {entry.destination} failed; not found")
            return False

        stored = entry.copy()
        stored.reset_request_count()
        self._entries[stored.destination] = stored
        logger.debug(f"Updated route to {stored.destination} via {stored.next_hop}")
        return True

    def set_entry_state(self, destination: AddressLike, flag: RouteFlag) -> bool:
        """Set the flag of a route and clear its request counter."""
        destination = as_address(destination)
        entry = self._entries.get(destination)
        if entry is None:
            logger.debug(f"Set entry state for {destination} failed; not found")
            return False
        entry.set_state(flag)
        logger.debug(f"Route to {destination} is now {entry.flag.value}")
        return True

    def get_list_of_destination_with_next_hop(
        self,
        next_hop: AddressLike
    ) -> Dict[IPv4Address, int]:
        """
        Find destinations routed through a next hop.

        Args:
            next_hop: Next hop address

        Returns:
            Mapping destination -> sequence number
        """
        self.purge()
        next_hop = as_address(next_hop)
        unreachable = {}
        for destination in sorted(self._entries):
            entry = self._entries[destination]
            if entry.next_hop == next_hop:
                unreachable[destination] = entry.seq_no
        return unreachable

    def invalidate_routes_with_dst(self, unreachable: Mapping[AddressLike, int]):
        """
        Invalidate VALID routes to the given destinations.

        Args:
            unreachable: Mapping destination -> sequence number
        """
        self.purge()
        now = self.clock()
        for destination in {as_address(d) for d in unreachable}:
            entry = self._entries.get(destination)
            if entry is not None and entry.flag == RouteFlag.VALID:
                logger.debug(f"Invalidating route to {destination}")
                entry.invalidate(self.bad_link_lifetime, now)

    def delete_all_routes_from_interface(self, interface: InterfaceLike):
        """Remove every route bound to a local interface."""
        interface = as_interface(interface)
        doomed = [
            destination for destination, entry in self._entries.items()
            if entry.interface == interface
        ]
        for destination in doomed:
            del self._entries[destination]

        if doomed:
            logger.info(f"Removed {len(doomed)} routes from interface {interface}")

    def mark_link_as_unidirectional(
        self,
        neighbor: AddressLike,
        blacklist_until: float
    ) -> bool:
        """
        Blacklist the link to a neighbor.

        Args:
            neighbor: Neighbor address
            blacklist_until: Absolute time the blacklist ends

        Returns:
            True if the neighbor has a route
        """
        neighbor = as_address(neighbor)
        entry = self._entries.get(neighbor)
        if entry is None:
            logger.debug(f"Mark link unidirectional to {neighbor} failed; not found")
            return False
        entry.mark_unidirectional(blacklist_until)
        entry.clear_request_count()
        logger.debug(f"Link to {neighbor} marked unidirectional")
        return True

    def _sweep(self, entries: Dict[IPv4Address, RoutingEntry], now: float):
        """
        Expire entries in `entries`.

        Returns:
            (deleted, invalidated) counts
        """
        deleted = invalidated = 0
        for destination in sorted(entries):
            entry = entries[destination]
            if not entry.is_expired(now):
                continue
            if entry.flag == RouteFlag.INVALID:
                del entries[destination]
                deleted += 1
            elif entry.flag == RouteFlag.VALID:
                logger.debug(f"Invalidating expired route to {destination}")
                entry.invalidate(self.bad_link_lifetime, now)
                invalidated += 1
        return deleted, invalidated

    def purge(self):
        """
        Expire stale routes.

        Expired INVALID routes are deleted, expired VALID routes become
        INVALID for bad_link_lifetime, IN_SEARCH routes are left alone.
        """
        if not self._entries:
            return
        deleted, invalidated = self._sweep(self._entries, self.clock())
        self.purged_routes += deleted
        self.expired_routes += invalidated
        if deleted or invalidated:
            logger.info(f"Purge removed {deleted} routes, invalidated {invalidated}")

    def purge_copy(
        self,
        entries: Dict[IPv4Address, RoutingEntry]
    ) -> Dict[IPv4Address, RoutingEntry]:
        """
        Run the purge sweep over a copy of `entries`.

        Entries are copied before the sweep, so neither the mapping passed
        in nor the live table is modified.

        Returns:
            New mapping destination -> purged entry copy
        """
        purged = {
            destination: entries[destination].copy()
            for destination in sorted(entries)
        }
        if purged:
            self._sweep(purged, self.clock())
        return purged

    def snapshot(self) -> Dict[IPv4Address, RoutingEntry]:
        """Purged copy of the table, without touching the live entries."""
        return self.purge_copy(self._entries)

    def select_neighbor_cluster(
        self,
        target_x: float,
        target_y: float,
        epsilon: Optional[float] = None,
        min_pts: Optional[int] = None
    ) -> List[IPv4Address]:
        """
        Pick the preferred group of neighbors toward a target position.

        Args:
            target_x: Target X position
            target_y: Target Y position
            epsilon: Neighborhood radius in normalized space (config default)
            min_pts: Minimum neighbors for a dense point (config default)

        Returns:
            Destination addresses of the best cluster (see NeighborClusterSelector)
        """
        self.purge()
        entries = [self._entries[d] for d in sorted(self._entries)]
        return self.selector.select(entries, target_x, target_y, epsilon, min_pts)

    def format_table(self) -> str:
        """Human readable dump of a purged snapshot of the table."""
        now = self.clock()
        lines = [
            "",
            "AODV Routing table",
            f"{'Destination':<16}{'Gateway':<16}{'Interface':<16}{'Flag':<16}{'Expire':<16}Hops",
        ]
        for entry in self.snapshot().values():
            lines.append(entry.format_row(now))
        return "\n".join(lines) + "\n"

    def print_table(self, stream: Optional[TextIO] = None):
        stream = stream or sys.stdout
        stream.write(self.format_table() + "\n")

    def get_stats(self) -> dict:
        """Get routing statistics."""
        entries = self.snapshot().values()
        by_flag = {flag.value: 0 for flag in RouteFlag}
        for entry in entries:
            by_flag[entry.flag.value] += 1
        return {
            "total_routes": len(entries),
            "by_flag": by_flag,
            "unidirectional": sum(1 for e in entries if e.unidirectional),
            "avg_hops": sum(e.hops for e in entries) / max(len(entries), 1),
            "purged_routes": self.purged_routes,
            "expired_routes": self.expired_routes,
        }

    async def start(self, purge_interval: Optional[float] = None):
        """
        Start periodic purging on the running event loop.

        Args:
            purge_interval: Seconds between purges (config default)
        """
        if self._running:
            return

        interval = purge_interval or self.config.purge_interval
        self._running = True
        self._purge_task = asyncio.create_task(self._maintenance_loop(interval))
        logger.info("Routing table maintenance started")

    async def stop(self):
        """Stop periodic purging."""
        self._running = False

        if self._purge_task:
            self._purge_task.cancel()
            try:
                await self._purge_task
            except asyncio.CancelledError:
                pass
            self._purge_task = None

        logger.info("Routing table maintenance stopped")

    async def _maintenance_loop(self, interval: float):
        """Periodically purge stale routes."""
        while self._running:
            await asyncio.sleep(interval)
            try:
                self.purge()
            except Exception as e:
                logger.error(f"Error in routing maintenance: {e}")
