"""Read-only access to the origin network over JSON-RPC.

Module purpose and system role:
    - Fetch the target transaction, its receipt and its block.
    - Unknown transactions/blocks come back as ``None`` instead of raising.

Integration points and dependencies:
    - Uses ``web3`` with an ``HTTPProvider``; POA chains (Polygon, BSC) need
      the extra-data middleware, which is harmless elsewhere.
"""

from __future__ import annotations

from typing import Any, Optional

from web3 import Web3
from web3.exceptions import BlockNotFound, TransactionNotFound
from web3.middleware import ExtraDataToPOAMiddleware

from core.logger import log_error
from core.replay.types import BlockRecord, TransactionReceipt, TransactionRecord


class Web3OriginReader:
    """Origin chain reader backed by a web3 HTTP connection."""

    def __init__(
        self,
        endpoint: str,
        *,
        timeout: float | None = None,
        poa: bool = True,
        web3: Any | None = None,
    ) -> None:
        self.endpoint = endpoint
        if web3 is None:
            request_kwargs = {"timeout": timeout} if timeout else {}
            web3 = Web3(Web3.HTTPProvider(endpoint, request_kwargs=request_kwargs))
            if poa:
                web3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        self.web3 = web3

    def get_transaction(self, tx_hash: str) -> Optional[TransactionRecord]:
        try:
            tx = self.web3.eth.get_transaction(tx_hash)
        except TransactionNotFound:
            return None
        return TransactionRecord.from_rpc(tx) if tx else None

    def get_transaction_receipt(self, tx_hash: str) -> Optional[TransactionReceipt]:
        try:
            receipt = self.web3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None
        return TransactionReceipt.from_rpc(receipt) if receipt else None

    def get_block_with_transactions(self, number: int) -> Optional[BlockRecord]:
        try:
            block = self.web3.eth.get_block(number, full_transactions=True)
        except BlockNotFound:
            return None
        return BlockRecord.from_rpc(block) if block else None

    def get_chain_id(self) -> int:
        try:
            return int(self.web3.eth.chain_id)
        except Exception as exc:
            log_error("origin_reader", f"chain id lookup failed: {exc}", endpoint=self.endpoint)
            raise
