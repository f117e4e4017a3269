"""Typed records for transactions, receipts and blocks fetched over JSON-RPC.

Web3 returns transactions as loosely typed ``AttributeDict`` objects whose
field set depends on the envelope type. ``TransactionRecord.from_rpc`` turns
them into an explicit tagged union so every later stage knows exactly which
fields a transaction carries:

* ``LegacyFields`` - type 0, a single ``gas_price`` and an EIP-155 ``v``.
* ``AccessListFields`` - type 1 (EIP-2930), legacy pricing plus access list.
* ``FeeMarketFields`` - type 2 (EIP-1559), priority/max fee and no gas price.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

from hexbytes import HexBytes

from .errors import UnsupportedTransactionType

AccessList = Tuple[Tuple[bytes, Tuple[bytes, ...]], ...]

LEGACY_TYPE = 0
ACCESS_LIST_TYPE = 1
FEE_MARKET_TYPE = 2


def to_int(value: Any) -> int:
    """Coerce an RPC quantity (int, hex string or bytes) to ``int``."""
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value, 16) if value.lower().startswith("0x") else int(value)
    return int.from_bytes(bytes(value), "big")


def to_bytes(value: Any) -> bytes:
    """Coerce an RPC data field (hex string or bytes) to ``bytes``."""
    if value is None:
        return b""
    return bytes(HexBytes(value))


def _access_list(entries: Optional[Sequence[Mapping[str, Any]]]) -> AccessList:
    items = []
    for entry in entries or ():
        keys = tuple(to_bytes(k) for k in entry.get("storageKeys", ()))
        items.append((to_bytes(entry["address"]), keys))
    return tuple(items)


@dataclass(frozen=True)
class LegacyFields:
    nonce: int
    gas_price: int
    gas: int
    to: bytes
    value: int
    data: bytes
    v: int
    r: int
    s: int
    type_id = LEGACY_TYPE

    @property
    def chain_id(self) -> Optional[int]:
        """Chain id encoded in ``v`` by EIP-155, if any."""
        if self.v >= 35:
            return (self.v - 35) // 2
        return None


@dataclass(frozen=True)
class AccessListFields:
    chain_id: int
    nonce: int
    gas_price: int
    gas: int
    to: bytes
    value: int
    data: bytes
    access_list: AccessList
    y_parity: int
    r: int
    s: int
    type_id = ACCESS_LIST_TYPE


@dataclass(frozen=True)
class FeeMarketFields:
    chain_id: int
    nonce: int
    max_priority_fee_per_gas: int
    max_fee_per_gas: int
    gas: int
    to: bytes
    value: int
    data: bytes
    access_list: AccessList
    y_parity: int
    r: int
    s: int
    type_id = FEE_MARKET_TYPE


SignedFields = Union[LegacyFields, AccessListFields, FeeMarketFields]


def _y_parity(tx: Mapping[str, Any]) -> int:
    if tx.get("yParity") is not None:
        return to_int(tx["yParity"])
    return to_int(tx.get("v"))


def signed_fields_from_rpc(tx: Mapping[str, Any]) -> SignedFields:
    """Pick the fields that belong to ``tx``'s envelope type."""

    tx_type = to_int(tx.get("type"))
    data = to_bytes(tx.get("input", tx.get("data")))
    common = dict(
        nonce=to_int(tx.get("nonce")),
        gas=to_int(tx.get("gas")),
        to=to_bytes(tx.get("to")),
        value=to_int(tx.get("value")),
        data=data,
        r=to_int(tx.get("r")),
        s=to_int(tx.get("s")),
    )
    if tx_type == LEGACY_TYPE:
        return LegacyFields(
            gas_price=to_int(tx.get("gasPrice")), v=to_int(tx.get("v")), **common
        )
    if tx_type == ACCESS_LIST_TYPE:
        return AccessListFields(
            chain_id=to_int(tx.get("chainId")),
            gas_price=to_int(tx.get("gasPrice")),
            access_list=_access_list(tx.get("accessList")),
            y_parity=_y_parity(tx),
            **common,
        )
    if tx_type == FEE_MARKET_TYPE:
        # providers echo an effective gasPrice for type 2; it is not signed
        return FeeMarketFields(
            chain_id=to_int(tx.get("chainId")),
            max_priority_fee_per_gas=to_int(tx.get("maxPriorityFeePerGas")),
            max_fee_per_gas=to_int(tx.get("maxFeePerGas")),
            access_list=_access_list(tx.get("accessList")),
            y_parity=_y_parity(tx),
            **common,
        )
    raise UnsupportedTransactionType(f"transaction type {tx_type} is not supported")


@dataclass(frozen=True)
class TransactionRecord:
    """A mined (or pending) transaction as seen by the origin network."""

    hash: bytes
    tx_type: int
    fields: Optional[SignedFields]
    raw: Optional[bytes] = None
    block_number: Optional[int] = None
    transaction_index: Optional[int] = None

    @property
    def hash_hex(self) -> str:
        return "0x" + self.hash.hex()

    @classmethod
    def from_rpc(cls, tx: Mapping[str, Any]) -> "TransactionRecord":
        raw = tx.get("raw")
        block_number = tx.get("blockNumber")
        index = tx.get("transactionIndex")
        tx_type = to_int(tx.get("type"))
        # unknown envelopes are only a problem if their bytes must be rebuilt
        fields: Optional[SignedFields] = None
        if tx_type in (LEGACY_TYPE, ACCESS_LIST_TYPE, FEE_MARKET_TYPE):
            fields = signed_fields_from_rpc(tx)
        return cls(
            hash=to_bytes(tx["hash"]),
            tx_type=tx_type,
            fields=fields,
            raw=to_bytes(raw) if raw else None,
            block_number=to_int(block_number) if block_number is not None else None,
            transaction_index=to_int(index) if index is not None else None,
        )


@dataclass(frozen=True)
class TransactionReceipt:
    hash: bytes
    transaction_index: int
    block_number: Optional[int] = None
    status: Optional[int] = None

    @classmethod
    def from_rpc(cls, receipt: Mapping[str, Any]) -> "TransactionReceipt":
        status = receipt.get("status")
        block_number = receipt.get("blockNumber")
        return cls(
            hash=to_bytes(receipt["transactionHash"]),
            transaction_index=to_int(receipt["transactionIndex"]),
            block_number=to_int(block_number) if block_number is not None else None,
            status=to_int(status) if status is not None else None,
        )


@dataclass(frozen=True)
class BlockRecord:
    number: int
    transactions: Tuple[TransactionRecord, ...]

    @classmethod
    def from_rpc(cls, block: Mapping[str, Any]) -> "BlockRecord":
        return cls(
            number=to_int(block["number"]),
            transactions=tuple(
                TransactionRecord.from_rpc(tx) for tx in block.get("transactions", ())
            ),
        )


@dataclass(frozen=True)
class ForkState:
    """Endpoint and root block of the fork currently live on the local node."""

    endpoint: str
    root_block_number: int
