"""Replay counters and their Prometheus export."""

from prometheus_client import REGISTRY

from core import metrics


def _sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_record_outcome_updates_snapshot_and_prometheus():
    metrics.reset()
    before = _sample("replay_outcomes_total", kind="revert_panic")
    metrics.record_outcome("revert_panic", 0.25)
    metrics.record_outcome("success")
    metrics.record_outcome("revert_panic")

    snap = metrics.snapshot()
    assert snap["replays"] == 3
    assert snap["outcomes"] == {"revert_panic": 2, "success": 1}
    assert _sample("replay_outcomes_total", kind="revert_panic") == before + 2


def test_other_counters():
    metrics.reset()
    before = _sample("replay_fork_resets_total")
    metrics.record_preceding_failure()
    metrics.record_fork_reset()
    metrics.record_error()
    snap = metrics.snapshot()
    assert (snap["preceding_failures"], snap["fork_resets"], snap["errors"]) == (1, 1, 1)
    assert _sample("replay_fork_resets_total") == before + 1


def test_snapshot_is_a_copy():
    metrics.reset()
    snap = metrics.snapshot()
    snap["outcomes"]["success"] = 99
    assert metrics.snapshot()["outcomes"] == {}
