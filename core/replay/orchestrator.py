"""Replay a historical transaction on a fork of the block before it.

Module purpose and system role:
- Fetch the target transaction and its block from the origin network.
- Fork the local node at ``block - 1`` and mine one empty block.
- Re-send every transaction that preceded the target inside its block, in
  block order, so the target sees the same state it originally did.
- Send the target and classify the revert payload if it fails.

Integration points and dependencies:
- ``OriginReader`` (read-only origin RPC) and ``ExecutionBackend`` (the local
  forked node) are passed in; see ``adapters/``.
- Each stage maps its failure to a named ``PreflightFailure`` reason instead
  of letting exceptions escape.
"""

from __future__ import annotations

import time
from typing import List, Optional, Protocol, Sequence, Tuple

from core import metrics
from core.logger import LogContext, StructuredLogger

from . import codec
from .classifier import classify
from .errors import ExecutionReverted, ForkResetFailure, PreflightError, SerializationMismatch
from .fork import ForkController
from .interfaces import ContractInterface
from .outcomes import (
    PrecedingResult,
    PreflightFailure,
    ReplayOutcome,
    ReplayReport,
    RevertedNoData,
    Success,
)
from .types import BlockRecord, TransactionReceipt, TransactionRecord, to_bytes

LOG = StructuredLogger("replay")


class OriginReader(Protocol):
    endpoint: str

    def get_transaction(self, tx_hash: str) -> Optional[TransactionRecord]: ...

    def get_transaction_receipt(self, tx_hash: str) -> Optional[TransactionReceipt]: ...

    def get_block_with_transactions(self, number: int) -> Optional[BlockRecord]: ...

    def get_chain_id(self) -> int: ...


class ExecutionBackend(Protocol):
    def reset(self, endpoint: str, block_number: int) -> object: ...

    def mine_empty_block(self) -> object: ...

    def send_raw_transaction(self, raw: bytes) -> object: ...


class ReplayOrchestrator:
    """Drive one replay through fetch, fork, preceding, target and decode."""

    def __init__(
        self,
        origin: OriginReader,
        backend: ExecutionBackend,
        interfaces: Sequence[ContractInterface] = (),
        *,
        fork: ForkController | None = None,
    ) -> None:
        self.origin = origin
        self.backend = backend
        self.interfaces = list(interfaces)
        self.fork = fork or ForkController(backend)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------
    def fetch_target(
        self, tx_hash: str, ctx: LogContext
    ) -> Tuple[TransactionRecord, TransactionReceipt, bytes]:
        LOG.log(
            "fetch_target",
            ctx=ctx,
            tx_id=tx_hash,
            message="Getting the transaction response and receipt from the original network ...",
        )
        tx = self.origin.get_transaction(tx_hash)
        receipt = self.origin.get_transaction_receipt(tx_hash)
        if tx is None:
            raise PreflightError("transaction-not-found", tx_hash)
        if tx.block_number is None:
            raise PreflightError("transaction-not-mined", tx_hash)
        if receipt is None:
            raise PreflightError("receipt-not-found", tx_hash)
        if not tx.raw:
            LOG.log(
                "raw_redefined",
                ctx=ctx.child("raw"),
                tx_id=tx_hash,
                message="The transaction does not have the raw data. It has been redefined.",
            )
        try:
            raw = codec.raw_bytes(tx)
        except SerializationMismatch as exc:
            raise PreflightError("serialization-mismatch", str(exc)) from exc
        LOG.log(
            "fetch_target_done",
            ctx=ctx,
            tx_id=tx_hash,
            block=tx.block_number,
            message=(
                "The transaction has been gotten successfully. "
                f"Its block number in the original chain: {tx.block_number}"
            ),
            raw="0x" + raw.hex(),
        )
        return tx, receipt, raw

    def fetch_context(
        self, tx: TransactionRecord, receipt: TransactionReceipt, ctx: LogContext
    ) -> BlockRecord:
        if tx.block_number is None:
            raise PreflightError("transaction-not-mined", tx.hash_hex)
        LOG.log(
            "fetch_block",
            ctx=ctx,
            tx_id=tx.hash_hex,
            block=tx.block_number,
            message="Getting data of the block that contains the transaction ...",
        )
        block = self.origin.get_block_with_transactions(tx.block_number)
        if block is None:
            raise PreflightError("block-not-found", str(tx.block_number))
        index = receipt.transaction_index
        if not 0 <= index < len(block.transactions) or block.transactions[index].hash != tx.hash:
            raise PreflightError("block-index-mismatch")
        LOG.log(
            "fetch_block_done",
            ctx=ctx,
            tx_id=tx.hash_hex,
            block=block.number,
            message=(
                "The block has been gotten successfully. "
                f"The number of transactions prior the target one: {index}"
            ),
        )
        return block

    def establish_fork(self, block_number: int, ctx: LogContext) -> None:
        try:
            self.fork.reset(self.origin.endpoint, block_number - 1, ctx=ctx)
            self.fork.advance_empty_block(ctx=ctx)
        except ForkResetFailure as exc:
            raise PreflightError("fork-reset-failed", str(exc)) from exc

    def replay_preceding(
        self, block: BlockRecord, target: TransactionRecord, ctx: LogContext
    ) -> List[PrecedingResult]:
        """Send every transaction before ``target``; failures do not stop the loop."""

        results: List[PrecedingResult] = []
        for tx in block.transactions:
            if tx.hash == target.hash:
                break
            try:
                self.backend.send_raw_transaction(codec.raw_bytes(tx))
            except Exception as exc:
                # transport errors included; the next transaction is still sent
                results.append(PrecedingResult(tx.hash_hex, ok=False, error=str(exc)))
                metrics.record_preceding_failure()
                LOG.log(
                    "preceding_fail",
                    ctx=ctx,
                    tx_id=tx.hash_hex,
                    block=block.number,
                    message=(
                        f"Sending of transaction with hash {tx.hash_hex} failed! "
                        f"The exception message: {exc}"
                    ),
                )
                continue
            results.append(PrecedingResult(tx.hash_hex, ok=True))
            LOG.log(
                "preceding_sent",
                ctx=ctx,
                tx_id=tx.hash_hex,
                block=block.number,
                message=f"Sending of transaction with hash {tx.hash_hex} succeeded!",
            )
        return results

    def replay_target(self, raw: bytes, tx_hash: str, ctx: LogContext) -> ReplayOutcome:
        LOG.log(
            "send_target",
            ctx=ctx,
            tx_id=tx_hash,
            message="Sending the target transaction to the forked network ...",
        )
        try:
            self.backend.send_raw_transaction(raw)
        except ExecutionReverted as exc:
            return classify(exc.payload, self.interfaces, exc.message)
        except Exception as exc:
            LOG.log("send_target_fail", ctx=ctx, tx_id=tx_hash, error=str(exc))
            return RevertedNoData(message=str(exc))
        return Success()

    # ------------------------------------------------------------------
    def replay(self, tx_hash: str, ctx: LogContext | None = None) -> ReplayReport:
        """Replay ``tx_hash``; preflight problems come back as ``PreflightFailure``."""

        ctx = ctx or LogContext()
        tx_hash = "0x" + to_bytes(tx_hash).hex()
        started = time.monotonic()
        block_number: int | None = None
        preceding: List[PrecedingResult] = []
        try:
            tx, receipt, raw = self.fetch_target(tx_hash, ctx)
            block_number = tx.block_number
            block = self.fetch_context(tx, receipt, ctx)
            self.establish_fork(block.number, ctx)
            if receipt.transaction_index > 0:
                LOG.log(
                    "preceding_start",
                    ctx=ctx,
                    tx_id=tx_hash,
                    message="Sending the transactions prior to the target one in the block to the forked network ...",
                )
                preceding = self.replay_preceding(block, tx, ctx.child("preceding"))
                LOG.log(
                    "preceding_done",
                    ctx=ctx,
                    tx_id=tx_hash,
                    message="All the previous transactions have been sent!",
                    failed=sum(1 for p in preceding if not p.ok),
                )
            outcome = self.replay_target(raw, tx_hash, ctx)
        except PreflightError as exc:
            LOG.log(
                "preflight_fail",
                ctx=ctx,
                tx_id=tx_hash,
                block=block_number,
                error=f"{exc.reason}: {exc.detail}" if exc.detail else exc.reason,
            )
            outcome = PreflightFailure(reason=exc.reason, detail=exc.detail)
        metrics.record_outcome(outcome.kind, time.monotonic() - started)
        LOG.log(
            "outcome",
            ctx=ctx,
            tx_id=tx_hash,
            block=block_number,
            kind=outcome.kind,
            result=outcome.describe(),
        )
        return ReplayReport(
            tx_hash=tx_hash,
            outcome=outcome,
            block_number=block_number,
            preceding=tuple(preceding),
        )
