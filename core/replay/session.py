"""Batch driver: replay a list of transactions one after another."""

from __future__ import annotations

import dataclasses
from typing import Iterable, List, Optional, Protocol, Tuple

from core import metrics
from core.logger import LogContext, StructuredLogger, log_error

from .errors import ChainIdMismatch
from .orchestrator import ReplayOrchestrator

LOG = StructuredLogger("replay_session")

EXCEPTION_PREFIX = "An exception rose before transaction sending: "


class ResultSink(Protocol):
    def store(self, tx_hash: str, result: str) -> None: ...


class ReplaySession:
    """Replay many transactions, isolating failures per item."""

    def __init__(
        self,
        orchestrator: ReplayOrchestrator,
        sink: ResultSink,
        *,
        expected_chain_id: Optional[int] = None,
        verbose: bool = False,
    ) -> None:
        self.orchestrator = orchestrator
        self.sink = sink
        self.expected_chain_id = expected_chain_id
        self.verbose = verbose

    def check_networks(self, ctx: LogContext | None = None) -> int:
        """Verify the origin chain id matches the fork target's."""

        origin = self.orchestrator.origin
        LOG.log(
            "check_rpc",
            ctx=ctx,
            message=f"Checking the original network RPC with URL: {origin.endpoint} ...",
        )
        chain_id = origin.get_chain_id()
        expected = self.expected_chain_id
        if expected is None:
            expected = self.orchestrator.backend.get_chain_id()  # type: ignore[attr-defined]
        if chain_id != expected:
            msg = (
                f"The original network chain ID ({chain_id}) does not match the one of the "
                f"forked network ({expected}). Check the original network RPC URL."
            )
            LOG.log("chain_id_mismatch", ctx=ctx, level="high", error=msg)
            raise ChainIdMismatch(msg)
        LOG.log("check_rpc_done", ctx=ctx, message="The check has been finished successfully. The RPC looks fine.")
        return chain_id

    def replay_one(self, tx_hash: str, ctx: LogContext) -> str:
        try:
            report = self.orchestrator.replay(tx_hash, ctx)
        except Exception as exc:
            metrics.record_error()
            log_error("replay_session", str(exc), tx_id=tx_hash, trace_id=ctx.trace_id, event="replay_exception")
            return EXCEPTION_PREFIX + str(exc)
        return report.outcome.describe()

    def run(self, tx_hashes: Iterable[str], ctx: LogContext | None = None) -> List[Tuple[str, str]]:
        """Replay each hash in order and store one result row per hash."""

        ctx = ctx or LogContext()
        hashes = list(tx_hashes)
        total = len(hashes)
        width = len(str(total))
        rows: List[Tuple[str, str]] = []
        for i, tx_hash in enumerate(hashes, start=1):
            LOG.log(
                "replay_start",
                ctx=ctx,
                tx_id=tx_hash,
                message=f"Replaying the transaction {str(i).rjust(width)} from {total} with hash {tx_hash} ...",
            )
            item_ctx = dataclasses.replace(ctx.child(f"tx{i}"), echo=self.verbose)
            result = self.replay_one(tx_hash, item_ctx)
            LOG.log("replay_result", ctx=ctx.child(f"tx{i}"), tx_id=tx_hash, message=result)
            self.sink.store(tx_hash, result)
            rows.append((tx_hash, result))
        LOG.log("batch_done", ctx=ctx, message="Everything is done! Bye.", total=total)
        return rows
