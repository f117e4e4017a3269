"""Rebuild the exact signed bytes of a transaction from its RPC fields.

Module purpose and system role:
- Most providers do not return the raw signed payload of a transaction, but
  the fork needs exactly those bytes to replay it.
- Serializes each envelope type with its own field list and verifies the
  result by re-hashing it against the known transaction hash.

Integration points and dependencies:
- ``rlp`` for the canonical encoding, ``eth_utils.keccak`` for the hash check.
"""

from __future__ import annotations

from typing import List

import rlp
from eth_utils import keccak

from .errors import SerializationMismatch, UnsupportedTransactionType
from .types import (
    AccessList,
    AccessListFields,
    FeeMarketFields,
    LegacyFields,
    SignedFields,
    TransactionRecord,
)


def _access_list_payload(access_list: AccessList) -> List[list]:
    return [[address, list(keys)] for address, keys in access_list]


def encode_fields(fields: SignedFields) -> bytes:
    """Serialize ``fields`` using the canonical encoding of its type."""

    if isinstance(fields, LegacyFields):
        return rlp.encode(
            [
                fields.nonce,
                fields.gas_price,
                fields.gas,
                fields.to,
                fields.value,
                fields.data,
                fields.v,
                fields.r,
                fields.s,
            ]
        )
    if isinstance(fields, AccessListFields):
        body = [
            fields.chain_id,
            fields.nonce,
            fields.gas_price,
            fields.gas,
            fields.to,
            fields.value,
            fields.data,
            _access_list_payload(fields.access_list),
            fields.y_parity,
            fields.r,
            fields.s,
        ]
        return bytes([fields.type_id]) + rlp.encode(body)
    if isinstance(fields, FeeMarketFields):
        body = [
            fields.chain_id,
            fields.nonce,
            fields.max_priority_fee_per_gas,
            fields.max_fee_per_gas,
            fields.gas,
            fields.to,
            fields.value,
            fields.data,
            _access_list_payload(fields.access_list),
            fields.y_parity,
            fields.r,
            fields.s,
        ]
        return bytes([fields.type_id]) + rlp.encode(body)
    raise UnsupportedTransactionType(f"cannot encode {type(fields).__name__}")


def reconstruct(tx: TransactionRecord) -> bytes:
    """Return the signed bytes of ``tx``, verified against ``tx.hash``."""

    if tx.fields is None:
        raise UnsupportedTransactionType(
            f"transaction {tx.hash_hex} has type {tx.tx_type} and no raw data"
        )
    raw = encode_fields(tx.fields)
    digest = keccak(raw)
    if digest != tx.hash:
        raise SerializationMismatch(
            f"serializing failed for {tx.hash_hex}: rebuilt bytes hash to 0x{digest.hex()}"
        )
    return raw


def raw_bytes(tx: TransactionRecord) -> bytes:
    """Raw bytes attached by the provider, or reconstructed when missing."""

    if tx.raw:
        if keccak(tx.raw) != tx.hash:
            raise SerializationMismatch(f"attached raw data of {tx.hash_hex} does not match its hash")
        return tx.raw
    return reconstruct(tx)
