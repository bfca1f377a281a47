"""Command line tools for inspecting routing tables."""

import json
import logging
import time

import click
from pydantic import ValidationError

from ..models import TableSnapshot
from ..monitoring import RoutingMetricsCollector
from ..routing import RoutingTable

logger = logging.getLogger(__name__)


def load_table(path: str) -> RoutingTable:
    """
    Build a routing table from a JSON snapshot file.

    Route lifetimes in the file are relative to the moment of loading.
    """
    try:
        with open(path, 'r') as f:
            snapshot = TableSnapshot.model_validate(json.load(f))
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise click.ClickException(f"Cannot load routing table {path}: {e}")

    table = RoutingTable(config=snapshot.config)
    now = time.time()
    for record in snapshot.routes:
        if not table.add_route(record.to_entry(now)):
            logger.warning(f"Duplicate route to {record.destination} ignored")

    logger.debug(f"Loaded {len(table)} routes from {path}")
    return table


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug logging')
def cli(debug):
    """AODV-Cluster CLI - routing table inspection and neighbor selection."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )


@cli.command()
@click.option('--table', 'table_path', required=True, help='Path to routing table JSON')
def show(table_path):
    """Print the routing table."""
    table = load_table(table_path)
    click.echo(table.format_table())


@cli.command()
@click.option('--table', 'table_path', required=True, help='Path to routing table JSON')
@click.option('--x', 'target_x', type=float, required=True, help='Target X position')
@click.option('--y', 'target_y', type=float, required=True, help='Target Y position')
@click.option('--epsilon', type=float, default=None, help='Neighborhood radius (normalized)')
@click.option('--min-pts', type=int, default=None, help='Minimum neighbors for a dense point')
@click.option('--node-id', default='local', help='Node identifier for metric labels')
@click.option('--prometheus', is_flag=True, help='Also print selection metrics')
def select(table_path, target_x, target_y, epsilon, min_pts, node_id, prometheus):
    """Select the preferred neighbor cluster toward a target position."""
    table = load_table(table_path)
    selected = table.select_neighbor_cluster(target_x, target_y, epsilon, min_pts)

    if not selected:
        click.echo("No eligible neighbors", err=True)
        raise SystemExit(1)

    if table.selector.last_fallback:
        click.echo(f"No cluster formed; all {len(selected)} candidates:")
    else:
        click.echo(f"Best cluster: {len(selected)} members ({table.selector.last_cluster_count} clusters found)")
    for address in selected:
        click.echo(f"  {address}")

    if prometheus:
        collector = RoutingMetricsCollector(node_id)
        collector.update_table_metrics(table.get_stats())
        collector.record_selection(
            len(selected),
            table.selector.last_cluster_count,
            table.selector.last_fallback
        )
        click.echo(collector.to_prometheus(), nl=False)


@cli.command()
@click.option('--table', 'table_path', required=True, help='Path to routing table JSON')
@click.option('--node-id', default='local', help='Node identifier for metric labels')
@click.option('--prometheus', is_flag=True, help='Print Prometheus exposition format')
def stats(table_path, node_id, prometheus):
    """Print routing table statistics."""
    table = load_table(table_path)
    collector = RoutingMetricsCollector(node_id)
    collector.update_table_metrics(table.get_stats())

    if prometheus:
        click.echo(collector.to_prometheus(), nl=False)
    else:
        click.echo(json.dumps(collector.get_summary(), indent=2))


def main():
    """Entry point for CLI."""
    cli()


if __name__ == '__main__':
    main()
