"""Reset the local node to a fork of the origin chain.

After ``reset(endpoint, n)`` the local node's current block is ``n`` itself,
i.e. the state at the end of block ``n``. ``advance_empty_block`` mines one
block with no transactions so the next submission lands in a fresh block
``n + 1`` that starts from exactly that state.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from core import metrics
from core.logger import LogContext, StructuredLogger

from .errors import ForkResetFailure
from .types import ForkState

LOG = StructuredLogger("fork_controller")


class ForkBackend(Protocol):
    def reset(self, endpoint: str, block_number: int) -> Any: ...

    def mine_empty_block(self) -> Any: ...


class ForkController:
    """Owns the fork lifecycle of a single local node."""

    def __init__(self, backend: ForkBackend) -> None:
        self.backend = backend
        self.state: Optional[ForkState] = None

    def reset(self, endpoint: str, root_block_number: int, ctx: LogContext | None = None) -> ForkState:
        LOG.log(
            "fork_reset",
            ctx=ctx,
            message=f"Resetting the forked network to block {root_block_number} ...",
            block=root_block_number,
        )
        try:
            self.backend.reset(endpoint, root_block_number)
        except Exception as exc:
            self.state = None
            LOG.log("fork_reset_fail", ctx=ctx, block=root_block_number, error=str(exc))
            raise ForkResetFailure(str(exc)) from exc
        metrics.record_fork_reset()
        self.state = ForkState(endpoint=endpoint, root_block_number=root_block_number)
        LOG.log(
            "fork_reset_done",
            ctx=ctx,
            message=f"The resetting has done successfully. The current block: {root_block_number}",
            block=root_block_number,
        )
        return self.state

    def advance_empty_block(self, ctx: LogContext | None = None) -> None:
        block = self.state.root_block_number if self.state else None
        LOG.log("mine", ctx=ctx, message=f"Mining an empty block after {block} ...", block=block)
        try:
            self.backend.mine_empty_block()
        except Exception as exc:
            LOG.log("mine_fail", ctx=ctx, block=block, error=str(exc))
            raise ForkResetFailure(str(exc)) from exc
        LOG.log("mine_done", ctx=ctx, message="The mining has done successfully.", block=block)
