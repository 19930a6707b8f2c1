"""Tests for inventory snapshots."""

import pytest
from fake_cluster import FakeCluster

from cluster_rotator.exceptions import SnapshotError
from cluster_rotator.inventory import InventorySnapshot


def test_capture_assembles_snapshot(scenario_cluster, executor):
    snapshot = InventorySnapshot(scenario_cluster, executor).capture()

    assert snapshot.master_names == ["A", "B", "C"]
    assert snapshot.leader.name == "B"
    assert snapshot.agent_names == ["a1", "a2", "a3", "a4"]
    assert snapshot.master_count == 3
    assert snapshot.agent_count == 4


def test_capture_issues_three_queries(scenario_cluster, executor):
    InventorySnapshot(scenario_cluster, executor).capture()

    assert scenario_cluster.queries == [
        ("list_masters",),
        ("current_leader",),
        ("list_agents",),
    ]


def test_capture_retries_transient_failures(scenario_cluster, executor):
    scenario_cluster.fail("current_leader", times=2)

    snapshot = InventorySnapshot(scenario_cluster, executor).capture()

    assert snapshot.leader.name == "B"


def test_query_timeout_is_fatal(scenario_cluster, executor):
    scenario_cluster.fail("list_agents")

    with pytest.raises(SnapshotError) as exc_info:
        InventorySnapshot(scenario_cluster, executor).capture()

    assert "list agents" in str(exc_info.value)


def test_leader_outside_masters_is_fatal(executor):
    cluster = FakeCluster(masters=["A", "B"], leader="B")
    # Leader reported by a stale source
    cluster.current_leader = lambda: cluster.masters[0].model_copy(update={"name": "X"})

    with pytest.raises(SnapshotError) as exc_info:
        InventorySnapshot(cluster, executor).capture()

    assert "inconsistent" in exc_info.value.message


def test_snapshot_without_agents(executor):
    cluster = FakeCluster(masters=["A"], leader="A")

    snapshot = InventorySnapshot(cluster, executor).capture()

    assert snapshot.agent_count == 0
    assert snapshot.agents == ()
