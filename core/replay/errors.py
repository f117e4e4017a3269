"""Exception hierarchy for transaction replays."""

from __future__ import annotations


class ReplayError(Exception):
    """Base class for all replay errors."""


class PreflightError(ReplayError):
    """Target transaction, receipt or block is missing or inconsistent."""

    def __init__(self, reason: str, detail: str = "") -> None:
        super().__init__(detail or reason)
        self.reason = reason
        self.detail = detail


class ForkResetFailure(ReplayError):
    """The local node refused to reset its fork or mine a block."""


class SerializationMismatch(ReplayError):
    """Reconstructed raw bytes do not hash to the transaction hash."""


class UnsupportedTransactionType(SerializationMismatch):
    """The transaction envelope type cannot be serialized."""


class ExecutionReverted(ReplayError):
    """A raw transaction submission failed on the local node."""

    def __init__(self, payload: bytes, message: str) -> None:
        super().__init__(message)
        self.payload = bytes(payload)
        self.message = message


class ChainIdMismatch(ReplayError):
    """Origin network and fork target disagree about the chain id."""


class ConfigError(ReplayError):
    """Invalid or incomplete replay configuration."""
