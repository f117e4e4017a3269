"""Prometheus metrics for replay runs.

Module purpose and system role:
    - Count replays by outcome, preceding-transaction failures and fork
      resets, and time each replay.
    - Optionally expose them over HTTP for long batch runs.

Integration points and dependencies:
    - Uses ``prometheus_client``; the orchestrator and session call the
      ``record_*`` helpers.
    - A plain in-process snapshot mirrors the counters for summaries/tests.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, cast

from prometheus_client import Counter, Histogram, start_http_server

_METRICS: Dict[str, Any] = {
    "replays": 0,
    "outcomes": {},
    "preceding_failures": 0,
    "fork_resets": 0,
    "errors": 0,
}
_LOCK = threading.Lock()

PROM_REPLAYS = Counter("replay_outcomes_total", "Replays by outcome kind", ["kind"])
PROM_PRECEDING_FAIL = Counter(
    "replay_preceding_failures_total", "Preceding transactions that failed to replay"
)
PROM_FORK_RESETS = Counter("replay_fork_resets_total", "Fork resets issued to the local node")
PROM_ERRORS = Counter("replay_errors_total", "Replays aborted by an unexpected exception")
PROM_DURATION = Histogram("replay_duration_seconds", "Wall time of a single replay")


# ----------------------------------------------------------------------
# Metric update helpers
# ----------------------------------------------------------------------

def record_outcome(kind: str, duration: float | None = None) -> None:
    with _LOCK:
        _METRICS["replays"] = cast(int, _METRICS["replays"]) + 1
        outcomes = cast(Dict[str, int], _METRICS["outcomes"])
        outcomes[kind] = outcomes.get(kind, 0) + 1
    PROM_REPLAYS.labels(kind=kind).inc()
    if duration is not None:
        PROM_DURATION.observe(duration)


def record_preceding_failure() -> None:
    with _LOCK:
        _METRICS["preceding_failures"] = cast(int, _METRICS["preceding_failures"]) + 1
    PROM_PRECEDING_FAIL.inc()


def record_fork_reset() -> None:
    with _LOCK:
        _METRICS["fork_resets"] = cast(int, _METRICS["fork_resets"]) + 1
    PROM_FORK_RESETS.inc()


def record_error() -> None:
    with _LOCK:
        _METRICS["errors"] = cast(int, _METRICS["errors"]) + 1
    PROM_ERRORS.inc()


def snapshot() -> Dict[str, Any]:
    """Copy of the in-process counters."""
    with _LOCK:
        return {
            **_METRICS,
            "outcomes": dict(cast(Dict[str, int], _METRICS["outcomes"])),
        }


def reset() -> None:
    """Zero the in-process counters (Prometheus counters are monotonic)."""
    with _LOCK:
        _METRICS.update(
            {"replays": 0, "outcomes": {}, "preceding_failures": 0, "fork_resets": 0, "errors": 0}
        )


def start_metrics(port: int = 8000) -> None:
    """Start Prometheus metrics endpoint on ``port``."""
    start_http_server(port)
