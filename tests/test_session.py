"""Batch replays: isolation between items, result rows and network checks."""

import json
from pathlib import Path

import pytest

from core import metrics
from core.logger import register_hook, unregister_hook
from core.replay.errors import ChainIdMismatch
from core.replay.outcomes import PreflightFailure, ReplayReport, Success
from core.replay.session import EXCEPTION_PREFIX, ReplaySession


class DummyOrigin:
    endpoint = "https://origin.example"

    def __init__(self, chain_id=137):
        self.chain_id = chain_id

    def get_chain_id(self):
        return self.chain_id


class DummyBackend:
    def __init__(self, chain_id=137):
        self.chain_id = chain_id

    def get_chain_id(self):
        return self.chain_id


class DummyOrchestrator:
    """Returns canned outcomes; ``boom`` raises an unexpected error."""

    def __init__(self, outcomes, origin=None, backend=None):
        self.outcomes = outcomes
        self.origin = origin or DummyOrigin()
        self.backend = backend or DummyBackend()
        self.seen = []

    def replay(self, tx_hash, ctx=None):
        self.seen.append((tx_hash, ctx))
        outcome = self.outcomes[tx_hash]
        if isinstance(outcome, Exception):
            raise outcome
        return ReplayReport(tx_hash=tx_hash, outcome=outcome)


class ListSink:
    def __init__(self):
        self.rows = []

    def store(self, tx_hash, result):
        self.rows.append((tx_hash, result))


@pytest.fixture(autouse=True)
def _metrics():
    metrics.reset()
    yield
    metrics.reset()


def test_one_failure_does_not_stop_the_batch():
    orch = DummyOrchestrator(
        {
            "0x01": Success(),
            "0x02": RuntimeError("provider exploded"),
            "0x03": PreflightFailure(reason="transaction-not-found"),
        }
    )
    sink = ListSink()
    rows = ReplaySession(orch, sink).run(["0x01", "0x02", "0x03"])

    assert [h for h, _ in rows] == ["0x01", "0x02", "0x03"]
    assert sink.rows == rows
    assert rows[0][1] == Success().describe()
    assert rows[1][1] == EXCEPTION_PREFIX + "provider exploded"
    assert rows[2][1].startswith(EXCEPTION_PREFIX)
    assert metrics.snapshot()["errors"] == 1


def test_unexpected_error_goes_to_error_log(tmp_path):
    orch = DummyOrchestrator({"0x02": ValueError("bad hex")})
    ReplaySession(orch, ListSink()).run(["0x02"])
    entries = [json.loads(l) for l in Path(tmp_path / "logs" / "errors.log").read_text().splitlines()]
    assert any(e["error"] == "bad hex" and e["tx_id"] == "0x02" for e in entries)


def test_items_get_their_own_scope_and_echo():
    orch = DummyOrchestrator({"0x01": Success(), "0x02": Success()})
    ReplaySession(orch, ListSink(), verbose=False).run(["0x01", "0x02"])
    ctxs = [ctx for _, ctx in orch.seen]
    assert [c.scope for c in ctxs] == [("tx1",), ("tx2",)]
    assert not any(c.echo for c in ctxs)


def test_result_lines_are_always_echoed():
    captured = []
    register_hook(captured.append)
    try:
        ReplaySession(DummyOrchestrator({"0x01": Success()}), ListSink()).run(["0x01"])
    finally:
        unregister_hook(captured.append)
    results = [e for e in captured if e["event"] == "replay_result"]
    assert results and results[0]["echo"] is True
    assert results[0]["message"] == Success().describe()
    assert any("Replaying the transaction 1 from 1" in e["message"] for e in captured)


def test_check_networks_uses_expected_chain_id():
    session = ReplaySession(DummyOrchestrator({}), ListSink(), expected_chain_id=137)
    assert session.check_networks() == 137


def test_check_networks_falls_back_to_fork_chain_id():
    orch = DummyOrchestrator({}, origin=DummyOrigin(1), backend=DummyBackend(137))
    with pytest.raises(ChainIdMismatch) as exc:
        ReplaySession(orch, ListSink()).check_networks()
    assert "(1)" in str(exc.value) and "(137)" in str(exc.value)


def test_check_networks_mismatch_is_logged(tmp_path):
    session = ReplaySession(DummyOrchestrator({}), ListSink(), expected_chain_id=1)
    with pytest.raises(ChainIdMismatch):
        session.check_networks()
    err = (tmp_path / "logs" / "errors.log").read_text()
    assert "does not match" in err
