"""Tests for the master and agent replacement sequencers."""

import pytest
from fake_cluster import FakeCluster

from cluster_rotator.exceptions import ReplacementError
from cluster_rotator.health import HealthGate
from cluster_rotator.inventory import InventorySnapshot
from cluster_rotator.models.cluster import CONTROL_PLANE_GATE
from cluster_rotator.models.run import ReplacementState
from cluster_rotator.replacement import AgentReplacementSequencer, MasterReplacementSequencer

CONTROL_PLANE_CALLS = [("health", name.value) for name in CONTROL_PLANE_GATE]


def build(cluster, executor, cls):
    events = []
    gate = HealthGate(cluster, executor)
    sequencer = cls(cluster, executor, gate, on_event=events.append)
    snapshot = InventorySnapshot(cluster, executor).capture()
    return sequencer, snapshot, events


def test_master_order_puts_leader_last(scenario_cluster, executor):
    _, snapshot, _ = build(scenario_cluster, executor, MasterReplacementSequencer)

    order = MasterReplacementSequencer.order(snapshot)

    assert [n.name for n in order] == ["A", "C", "B"]


def test_master_replacement_call_order(scenario_cluster, executor):
    sequencer, snapshot, _ = build(scenario_cluster, executor, MasterReplacementSequencer)

    sequencer.run(snapshot)

    expected = []
    for name in ["A", "C", "B"]:
        expected += [("terminate", name), ("wait", "master", 3)] + CONTROL_PLANE_CALLS
    assert scenario_cluster.calls == expected


def test_master_states_are_published_in_order(scenario_cluster, executor):
    sequencer, snapshot, events = build(scenario_cluster, executor, MasterReplacementSequencer)

    sequencer.run(snapshot)

    first_node = [e.state for e in events if e.node is not None and e.node.name == "A"]
    assert first_node == [
        ReplacementState.REPLACING,
        ReplacementState.WAITING_FOR_REJOIN,
        ReplacementState.HEALTH_CHECKING,
        ReplacementState.DONE,
    ]
    assert events[-1].state == ReplacementState.DONE
    assert events[-1].node is None


def test_master_wait_polls_until_rejoin(executor):
    cluster = FakeCluster(masters=["A", "B", "C"], leader="A", rejoin_after=1)
    sequencer, snapshot, _ = build(cluster, executor, MasterReplacementSequencer)

    sequencer.run(snapshot)

    # Each replacement is seen on the second probe
    assert cluster.calls.count(("wait", "master", 3)) == 6


def test_non_leader_failure_aborts_before_leader(scenario_cluster, executor):
    scenario_cluster.fail("terminate_instance", "C")
    sequencer, snapshot, _ = build(scenario_cluster, executor, MasterReplacementSequencer)

    with pytest.raises(ReplacementError) as exc_info:
        sequencer.run(snapshot)

    assert exc_info.value.node == "C"
    assert exc_info.value.step == "terminate C"
    assert ("terminate", "B") not in scenario_cluster.calls


def test_leader_health_failure_is_fatal(scenario_cluster, executor):
    sequencer, snapshot, _ = build(scenario_cluster, executor, MasterReplacementSequencer)
    original_terminate = scenario_cluster.terminate_instance

    def terminate_and_break_leader_election(node):
        original_terminate(node)
        if node.name == "B":
            scenario_cluster.fail("check_health", "leader-election")

    scenario_cluster.terminate_instance = terminate_and_break_leader_election

    with pytest.raises(ReplacementError) as exc_info:
        sequencer.run(snapshot)

    assert exc_info.value.node == "B"
    assert exc_info.value.step == "health check leader-election"


def test_master_count_never_restored_is_fatal(executor):
    cluster = FakeCluster(masters=["A", "B", "C"], leader="B", rejoin_after=10)
    sequencer, snapshot, _ = build(cluster, executor, MasterReplacementSequencer)

    with pytest.raises(ReplacementError) as exc_info:
        sequencer.run(snapshot)

    assert exc_info.value.step == "wait for 3 master nodes"
    assert cluster.destructive_calls() == [("terminate", "A")]


def test_single_master_cluster(executor):
    cluster = FakeCluster(masters=["solo"], leader="solo")
    sequencer, snapshot, _ = build(cluster, executor, MasterReplacementSequencer)

    sequencer.run(snapshot)

    assert cluster.destructive_calls() == [("terminate", "solo")]


def test_agent_zone_call_order(scenario_cluster, executor):
    sequencer, snapshot, _ = build(scenario_cluster, executor, AgentReplacementSequencer)

    sequencer.run(snapshot)

    expected = []
    for hosts in (["a1", "a2"], ["a3", "a4"]):
        for host in hosts:
            expected += [("terminate", host), ("decommission", host)]
        expected += [("wait", "agent", 4), ("health", "agent-snapshot")]
    assert scenario_cluster.calls == expected


def test_agents_requeried_per_zone(scenario_cluster, executor):
    sequencer, snapshot, _ = build(scenario_cluster, executor, AgentReplacementSequencer)
    scenario_cluster.queries.clear()

    sequencer.run(snapshot)

    assert scenario_cluster.queries == [
        ("list_zones",),
        ("list_agents_in_zone", "z1"),
        ("list_agents_in_zone", "z2"),
    ]


def test_zone_membership_taken_at_execution_time(scenario_cluster, executor):
    sequencer, snapshot, _ = build(scenario_cluster, executor, AgentReplacementSequencer)
    # a3 moved into z1 after the snapshot was taken
    scenario_cluster.agents[2] = scenario_cluster.agents[2].model_copy(update={"zone": "z1"})

    sequencer.run(snapshot)

    terminated = [c[1] for c in scenario_cluster.calls if c[0] == "terminate"]
    assert terminated == ["a1", "a2", "a3", "a4"]
    first_wait = scenario_cluster.calls.index(("wait", "agent", 4))
    assert ("terminate", "a3") in scenario_cluster.calls[:first_wait]
    assert ("terminate", "a4") not in scenario_cluster.calls[:first_wait]


def test_agent_failure_stops_later_zones(scenario_cluster, executor):
    scenario_cluster.fail("decommission_agent", "a2")
    sequencer, snapshot, _ = build(scenario_cluster, executor, AgentReplacementSequencer)

    with pytest.raises(ReplacementError) as exc_info:
        sequencer.run(snapshot)

    assert exc_info.value.step == "decommission a2"
    assert ("terminate", "a3") not in scenario_cluster.calls


def test_agent_health_failure_stops_later_zones(scenario_cluster, executor):
    scenario_cluster.fail("check_health", "agent-snapshot")
    sequencer, snapshot, _ = build(scenario_cluster, executor, AgentReplacementSequencer)

    with pytest.raises(ReplacementError) as exc_info:
        sequencer.run(snapshot)

    assert exc_info.value.step == "health check agent-snapshot"
    assert exc_info.value.node is None
    assert [c for c in scenario_cluster.calls if c[0] == "terminate"] == [
        ("terminate", "a1"),
        ("terminate", "a2"),
    ]


def test_empty_zone_still_waits_and_checks(executor):
    cluster = FakeCluster(masters=["A"], leader="A", zones={"z1": [], "z2": ["a1"]})
    sequencer, snapshot, _ = build(cluster, executor, AgentReplacementSequencer)

    sequencer.run(snapshot)

    assert cluster.calls[:2] == [("wait", "agent", 1), ("health", "agent-snapshot")]


def test_zone_listing_timeout_is_fatal(scenario_cluster, executor):
    scenario_cluster.fail("list_zones")
    sequencer, snapshot, _ = build(scenario_cluster, executor, AgentReplacementSequencer)

    with pytest.raises(ReplacementError) as exc_info:
        sequencer.run(snapshot)

    assert exc_info.value.step == "list zones"
    assert scenario_cluster.destructive_calls() == []
