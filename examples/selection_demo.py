#!/usr/bin/env python3
"""
Neighbor selection walkthrough.

This script demonstrates:
1. Building a routing table
2. Selecting the preferred neighbor cluster toward a target
3. Route expiry through purge
"""

import logging

from aodv_cluster.routing import RouteFlag, RoutingEntry, RoutingTable


class SteppedClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def main():
    logging.basicConfig(level=logging.INFO, format='%(levelname)s - %(message)s')
    clock = SteppedClock()
    table = RoutingTable(clock=clock)

    print("=== AODV-Cluster Neighbor Selection Demo ===\n")

    # Step 1: Two groups of neighbors
    print("Step 1: Learning routes...")
    neighbors = [
        ("10.0.0.2", 10, 5, 0, 900),
        ("10.0.0.3", 12, 6, 1, 850),
        ("10.0.0.4", 300, 280, 9, 100),
        ("10.0.0.5", 305, 282, 8, 120),
    ]
    for address, x, y, errors, free in neighbors:
        table.add_route(RoutingEntry.create(
            destination=address,
            next_hop=address,
            interface="10.0.0.1/24",
            lifetime=3.0,
            position_x=x,
            position_y=y,
            tx_error_count=errors,
            free_space=free,
            now=clock(),
        ))
        print(f"  ✓ Route to {address}")
    print(table.format_table())

    # Step 2: Selection
    print("Step 2: Selecting neighbors toward (0, 0)...")
    for address in table.select_neighbor_cluster(0, 0, epsilon=0.3, min_pts=2):
        print(f"  ✓ {address}")

    # Step 3: Expiry
    print("\nStep 3: Advancing the clock past the route lifetime...")
    table.set_entry_state("10.0.0.5", RouteFlag.IN_SEARCH)
    clock.now += 5.0
    table.purge()
    print(table.format_table())
    print(f"Selection after expiry: {table.select_neighbor_cluster(0, 0)}")


if __name__ == "__main__":
    main()
