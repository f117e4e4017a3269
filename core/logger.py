"""Structured JSON logger for the transaction replayer.

Module purpose and system role:
    - Provide logging with a consistent schema for every replay step.
    - Emits JSON lines that can be tailed, grepped or shipped elsewhere.

Integration points and dependencies:
    - Other modules instantiate ``StructuredLogger`` to record events.
    - Nesting is carried by an explicit ``LogContext`` value instead of a
      shared indentation counter.
    - ``requests`` is used to post high-level alerts to webhooks.

Simulation/test hooks:
    - Hooks allow the CLI console renderer and test suites to observe
      every entry.
"""

from __future__ import annotations

import dataclasses
import json
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Tuple

import requests
from hexbytes import HexBytes


def _error_log_file() -> Path:
    """Return the configured error log file path."""

    return Path(os.getenv("ERROR_LOG_FILE", "logs/errors.log"))


def make_json_safe(obj: Any) -> Any:
    """Convert ``obj`` into something ``json.dumps`` accepts."""

    if isinstance(obj, (bytes, bytearray, HexBytes)):
        return "0x" + bytes(obj).hex()
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return make_json_safe(dataclasses.asdict(obj))
    if isinstance(obj, dict):
        return {str(k): make_json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [make_json_safe(v) for v in obj]
    if isinstance(obj, Path):
        return str(obj)
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)


@dataclass(frozen=True)
class LogContext:
    """Scope of a log entry: which replay it belongs to and how deep."""

    trace_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    scope: Tuple[str, ...] = ()
    echo: bool = True

    @property
    def depth(self) -> int:
        return len(self.scope)

    def child(self, name: str) -> "LogContext":
        """Return a context nested one level below this one."""
        return dataclasses.replace(self, scope=self.scope + (name,))

    def fields(self) -> Dict[str, Any]:
        return {
            "trace_id": self.trace_id,
            "scope": "/".join(self.scope),
            "depth": self.depth,
            "echo": self.echo,
        }


def log_error(
    module: str,
    error: str,
    *,
    tx_id: str = "",
    block: int | str | None = None,
    trace_id: str | None = None,
    **extra: Any,
) -> None:
    """Write structured error entry to ``logs/errors.log``."""

    if trace_id is None:
        trace_id = os.getenv("TRACE_ID", "")
    entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "module": module,
        "error": error,
        "tx_id": tx_id,
        "block": block if block is not None else "",
        "trace_id": trace_id,
        **extra,
    }
    path = _error_log_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a") as fh:
        fh.write(json.dumps(make_json_safe(entry)) + "\n")


_HOOKS: List[Callable[[Dict[str, Any]], None]] = []


def _alert_webhooks() -> List[str]:
    return [w for w in os.getenv("REPLAY_ALERT_WEBHOOK", "").split(",") if w]


def _send_alert(message: str) -> None:
    for url in _alert_webhooks():
        try:  # pragma: no cover - network
            requests.post(url, json={"text": message}, timeout=5)
        except requests.RequestException as exc:
            log_error("logger", f"alert webhook failed: {exc}", event="alert_fail")


def register_hook(func: Callable[[Dict[str, Any]], None]) -> None:
    """Register ``func`` to receive every log entry."""
    _HOOKS.append(func)


def unregister_hook(func: Callable[[Dict[str, Any]], None]) -> None:
    """Remove ``func`` from the hook list if present."""
    if func in _HOOKS:
        _HOOKS.remove(func)


class StructuredLogger:
    """Write structured JSON logs to file and broadcast to hooks."""

    def __init__(self, module: str, log_file: str | None = None) -> None:
        self.module = module
        if log_file is None:
            env_var = f"{module.upper()}_LOG"
            log_file = os.getenv(env_var, f"logs/{module}.json")
        self.path = Path(log_file)

    # ------------------------------------------------------------------
    def log(
        self,
        event: str,
        *,
        ctx: LogContext | None = None,
        message: str = "",
        tx_id: str = "",
        level: str = "low",
        block: int | str | None = None,
        error: str | None = None,
        **extra: Any,
    ) -> None:
        """Append log entry to file and send to hooks."""

        if ctx is None:
            ctx = LogContext(trace_id=os.getenv("TRACE_ID", ""))
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event": event,
            "module": self.module,
            "message": message,
            "tx_id": tx_id,
            "level": level,
            "block": block if block is not None else "",
            "error": error,
        }
        entry.update(ctx.fields())
        entry.update(extra)
        entry = make_json_safe(entry)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a") as fh:
            fh.write(json.dumps(entry) + "\n")
        for hook in list(_HOOKS):
            try:
                hook(entry)
            except Exception as exc:
                # log hook errors but do not interrupt logging
                log_error(
                    self.module,
                    f"hook error: {exc}",
                    event="hook_fail",
                    trace_id=ctx.trace_id,
                )
        if error:
            log_error(
                self.module,
                error,
                event=event,
                tx_id=tx_id,
                block=block,
                trace_id=ctx.trace_id,
                scope=entry["scope"],
            )
        if level == "high":
            _send_alert(f"{self.module}:{event}:{error or message}")
