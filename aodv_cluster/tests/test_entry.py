"""Tests for routing entries."""

from ipaddress import IPv4Address

import pytest

from aodv_cluster.routing import RouteFlag, RoutingEntry


def test_entry_creation(make_entry, clock):
    """Test a new entry is VALID with an absolute deadline."""
    entry = make_entry("10.0.0.2", next_hop="10.0.0.3", lifetime=4.0, hops=2)

    assert entry.destination == IPv4Address("10.0.0.2")
    assert entry.next_hop == IPv4Address("10.0.0.3")
    assert entry.source == IPv4Address("10.0.0.1")
    assert entry.flag == RouteFlag.VALID
    assert entry.rreq_count == 0
    assert entry.expires_at == clock() + 4.0
    assert entry.lifetime(clock()) == 4.0


def test_negative_hops_rejected():
    """Test invalid field values raise at construction."""
    with pytest.raises(ValueError):
        RoutingEntry.create("10.0.0.2", "10.0.0.2", "10.0.0.1/24", lifetime=1.0, hops=-1, now=0.0)


def test_precursors_have_no_duplicates(make_entry):
    """Test repeated inserts keep a single precursor."""
    entry = make_entry("10.0.0.2")

    assert entry.is_precursor_list_empty()
    assert entry.insert_precursor("10.0.0.9")
    assert not entry.insert_precursor("10.0.0.9")
    assert not entry.insert_precursor(IPv4Address("10.0.0.9"))
    assert len(entry.precursors) == 1
    assert entry.lookup_precursor("10.0.0.9")


def test_delete_precursor(make_entry):
    """Test precursor removal reports missing addresses."""
    entry = make_entry("10.0.0.2")
    entry.insert_precursor("10.0.0.9")
    entry.insert_precursor("10.0.0.8")

    assert entry.delete_precursor("10.0.0.9")
    assert not entry.delete_precursor("10.0.0.9")
    assert not entry.lookup_precursor("10.0.0.9")

    entry.delete_all_precursors()
    assert entry.is_precursor_list_empty()


def test_get_precursors_merges_without_duplicates(make_entry):
    """Test precursors are appended only when not already collected."""
    entry = make_entry("10.0.0.2")
    entry.insert_precursor("10.0.0.8")
    entry.insert_precursor("10.0.0.9")

    collected = [IPv4Address("10.0.0.9"), IPv4Address("10.0.0.50")]
    entry.get_precursors(collected)

    assert collected == [
        IPv4Address("10.0.0.9"),
        IPv4Address("10.0.0.50"),
        IPv4Address("10.0.0.8"),
    ]


def test_invalidate(make_entry, clock):
    """Test invalidation resets the counter and sets the grace deadline."""
    entry = make_entry("10.0.0.2")
    entry.increment_request_count()

    entry.invalidate(3.0, now=clock())

    assert entry.flag == RouteFlag.INVALID
    assert entry.rreq_count == 0
    assert entry.expires_at == clock() + 3.0


def test_invalidate_is_idempotent(make_entry, clock):
    """Test invalidating an INVALID entry changes nothing."""
    entry = make_entry("10.0.0.2")
    entry.invalidate(3.0, now=clock())
    deadline = entry.expires_at

    clock.advance(1.0)
    entry.rreq_count = 2
    entry.invalidate(3.0, now=clock())

    assert entry.expires_at == deadline
    assert entry.rreq_count == 2


def test_request_count_reset_respects_in_search(make_entry):
    """Test the request counter survives while a discovery is running."""
    entry = make_entry("10.0.0.2")
    entry.flag = RouteFlag.IN_SEARCH
    entry.increment_request_count()

    entry.reset_request_count()
    assert entry.rreq_count == 1

    entry.set_state(RouteFlag.VALID)
    assert entry.rreq_count == 0


def test_expiry_and_blacklist(make_entry, clock):
    """Test remaining lifetime and blacklist windows."""
    entry = make_entry("10.0.0.2", lifetime=2.0)

    clock.advance(2.0)
    assert not entry.is_expired(clock())
    clock.advance(0.5)
    assert entry.is_expired(clock())

    entry.set_lifetime(1.0, now=clock())
    assert not entry.is_expired(clock())

    entry.mark_unidirectional(clock() + 5.0)
    assert entry.is_blacklisted(clock())
    clock.advance(6.0)
    assert not entry.is_blacklisted(clock())


def test_copy_is_independent(make_entry):
    """Test copies do not share the precursor set."""
    entry = make_entry("10.0.0.2")
    clone = entry.copy()
    clone.insert_precursor("10.0.0.9")

    assert entry.is_precursor_list_empty()


def test_format_row(make_entry, clock):
    """Test the dump line contains the status label and hop count."""
    entry = make_entry("10.0.0.2", lifetime=7.5, hops=2)
    row = entry.format_row(clock())

    assert row.startswith("10.0.0.2")
    assert "UP" in row
    assert "7.50s" in row
    assert row.endswith("2")

    entry.invalidate(1.0, now=clock())
    assert "DOWN" in entry.format_row(clock())


def test_clear_request_count_ignores_state(make_entry):
    """Test the unconditional counter reset also applies while searching."""
    entry = make_entry("10.0.0.2")
    entry.flag = RouteFlag.IN_SEARCH
    entry.increment_request_count()

    entry.clear_request_count()

    assert entry.rreq_count == 0
    assert entry.flag == RouteFlag.IN_SEARCH
