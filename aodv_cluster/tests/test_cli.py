"""Tests for the command line tools."""

import json

import pytest
from click.testing import CliRunner

from aodv_cluster.cli.main import cli


def _route(address, x, errors, free):
    return {
        "destination": address,
        "next_hop": address,
        "interface": "10.0.0.1/24",
        "lifetime": 60.0,
        "hops": 1,
        "position_x": x,
        "position_y": 0,
        "tx_error_count": errors,
        "free_space": free,
    }


@pytest.fixture
def table_file(tmp_path):
    path = tmp_path / "table.json"
    path.write_text(json.dumps({
        "config": {"cluster": {"epsilon": 0.3, "min_pts": 2}},
        "routes": [
            _route("10.0.0.2", 0, 0, 100),
            _route("10.0.0.3", 1, 0, 100),
            _route("10.0.0.4", 100, 10, 10),
            _route("10.0.0.5", 101, 10, 10),
        ],
    }))
    return str(path)


def test_show(table_file):
    """Test the table dump command."""
    result = CliRunner().invoke(cli, ["show", "--table", table_file])

    assert result.exit_code == 0
    assert "AODV Routing table" in result.output
    assert "10.0.0.5" in result.output


def test_select(table_file):
    """Test the selection command prints the winning cluster."""
    result = CliRunner().invoke(cli, ["select", "--table", table_file, "--x", "0", "--y", "0"])

    assert result.exit_code == 0
    assert "Best cluster: 2 members" in result.output
    assert "10.0.0.2" in result.output
    assert "10.0.0.3" in result.output
    assert "10.0.0.4" not in result.output


def test_select_fallback_with_metrics(table_file):
    """Test sparse selections report the fallback and metrics."""
    result = CliRunner().invoke(cli, [
        "select", "--table", table_file, "--x", "0", "--y", "0",
        "--min-pts", "9", "--prometheus",
    ])

    assert result.exit_code == 0
    assert "No cluster formed; all 4 candidates" in result.output
    assert "aodv_selections_fallback_total" in result.output


def test_stats(table_file):
    """Test the statistics command."""
    result = CliRunner().invoke(cli, ["stats", "--table", table_file])

    assert result.exit_code == 0
    assert json.loads(result.output)["routes"]["total"] == 4


def test_invalid_table_file(tmp_path):
    """Test unreadable fixtures produce a clean error."""
    path = tmp_path / "bad.json"
    path.write_text("{not json")

    result = CliRunner().invoke(cli, ["show", "--table", str(path)])

    assert result.exit_code != 0
    assert "Cannot load routing table" in result.output


def test_non_object_table_file(tmp_path):
    """Test a JSON document that is not an object is reported cleanly."""
    path = tmp_path / "list.json"
    path.write_text("[1, 2]")

    result = CliRunner().invoke(cli, ["show", "--table", str(path)])

    assert result.exit_code != 0
    assert not isinstance(result.exception, TypeError)
    assert "Cannot load routing table" in result.output


def test_select_metrics_use_node_id(table_file):
    """Test selection metrics are labelled with the given node id."""
    result = CliRunner().invoke(cli, [
        "select", "--table", table_file, "--x", "0", "--y", "0",
        "--node-id", "10.0.0.1", "--prometheus",
    ])

    assert result.exit_code == 0
    assert 'aodv_selections_total{node_id="10.0.0.1"} 1' in result.output
    assert table_file not in result.output
