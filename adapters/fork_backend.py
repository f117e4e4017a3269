"""Local forking node (Hardhat or Anvil) used as the replay environment.

Module purpose and system role:
    - Reset the node to a fork of the origin chain, mine empty blocks and
      submit raw signed transactions.
    - Translate JSON-RPC errors into ``ExecutionReverted`` carrying the revert
      payload so the classifier can decode it.

Integration points and dependencies:
    - Talks to the node through ``web3``'s provider ``make_request`` so the
      non-standard methods (``hardhat_reset``, ``evm_mine``) go over the same
      connection as ``eth_sendRawTransaction``.
    - Hardhat automine rejects reverting transactions with an RPC error;
      Anvil mines them with status 0. Both end up as ``ExecutionReverted``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from web3 import Web3

from core.replay.errors import ExecutionReverted, ReplayError
from core.replay.types import to_bytes, to_int

DEFAULT_RESET_METHOD = "hardhat_reset"


class RPCError(ReplayError):
    """JSON-RPC error response from the local node."""

    def __init__(self, method: str, error: Mapping[str, Any]) -> None:
        self.method = method
        self.code = error.get("code")
        self.message = str(error.get("message", ""))
        self.data = error.get("data")
        super().__init__(f"{method}: {self.message}" if self.message else method)


def revert_data(data: Any) -> bytes:
    """Dig the revert payload out of an RPC error ``data`` field."""

    if isinstance(data, str):
        try:
            return to_bytes(data) if data.startswith("0x") else b""
        except ValueError:
            return b""
    if isinstance(data, Mapping):
        for key in ("data", "originalError", "result"):
            if key in data:
                found = revert_data(data[key])
                if found:
                    return found
    return b""


class LocalForkBackend:
    """JSON-RPC client for the forked execution node."""

    def __init__(
        self,
        url: str = "http://127.0.0.1:8545",
        *,
        reset_method: str = DEFAULT_RESET_METHOD,
        timeout: float | None = None,
        web3: Any | None = None,
    ) -> None:
        self.url = url
        self.reset_method = reset_method
        if web3 is None:
            request_kwargs = {"timeout": timeout} if timeout else {}
            # reset and evm_mine change node state and must reach it at most once
            provider = Web3.HTTPProvider(
                url, request_kwargs=request_kwargs, exception_retry_configuration=None
            )
            web3 = Web3(provider)
        self.web3 = web3

    def _request(self, method: str, params: List[Any]) -> Any:
        response: Dict[str, Any] = self.web3.provider.make_request(method, params)
        error = response.get("error")
        if error:
            if not isinstance(error, Mapping):
                error = {"message": str(error)}
            raise RPCError(method, error)
        return response.get("result")

    # ------------------------------------------------------------------
    def reset(self, endpoint: str, block_number: int) -> None:
        params = [{"forking": {"jsonRpcUrl": endpoint, "blockNumber": int(block_number)}}]
        result = self._request(self.reset_method, params)
        if result is False:
            raise RPCError(self.reset_method, {"message": "reset returned false"})

    def mine_empty_block(self) -> None:
        self._request("evm_mine", [])

    def get_chain_id(self) -> int:
        return to_int(self._request("eth_chainId", []))

    def send_raw_transaction(self, raw: bytes) -> Optional[Mapping[str, Any]]:
        """Submit ``raw``; return the receipt or raise ``ExecutionReverted``."""

        try:
            tx_hash = self._request("eth_sendRawTransaction", ["0x" + bytes(raw).hex()])
        except RPCError as exc:
            raise ExecutionReverted(revert_data(exc.data), exc.message) from exc
        receipt = self._request("eth_getTransactionReceipt", [tx_hash])
        if receipt and receipt.get("status") is not None and to_int(receipt["status"]) == 0:
            raise ExecutionReverted(b"", "transaction was mined with a failed status")
        return receipt
