"""Terminal outcomes of a replay and their one-line textual form."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Tuple, Union

PREFLIGHT_REASONS: Dict[str, str] = {
    "transaction-not-found": "The transaction with the provided hash does not exist",
    "transaction-not-mined": "The transaction with the provided hash has not been minted yet",
    "receipt-not-found": "The transaction's receipt has not been found",
    "block-not-found": "The block containing the transaction has not been found",
    "block-index-mismatch": (
        "The position of the target transaction doesn't match its index "
        "in the block transaction array"
    ),
    "serialization-mismatch": "The raw data of the transaction cannot be redefined",
    "fork-reset-failed": "The forked network cannot be reset to the previous block",
}


def _also(alternatives: Tuple[str, ...]) -> str:
    if not alternatives:
        return ""
    return " Also it can be the following custom error(s): " + "; ".join(alternatives)


@dataclass(frozen=True)
class Success:
    kind: ClassVar[str] = "success"

    def describe(self) -> str:
        return "The transaction has been sent and minted successfully!"


@dataclass(frozen=True)
class RevertedWithMessage:
    message: str
    alternatives: Tuple[str, ...] = ()
    kind: ClassVar[str] = "revert_message"

    def describe(self) -> str:
        text = f"The transaction reverted with string message: '{self.message}'."
        return text + _also(self.alternatives)


@dataclass(frozen=True)
class RevertedWithPanic:
    code: int
    reason: str
    alternatives: Tuple[str, ...] = ()
    kind: ClassVar[str] = "revert_panic"

    def describe(self) -> str:
        text = (
            f"The transaction reverted due to panic with code: {hex(self.code)} "
            f"('{self.reason}')."
        )
        return text + _also(self.alternatives)


@dataclass(frozen=True)
class RevertedWithCustomError:
    candidates: Tuple[str, ...]
    kind: ClassVar[str] = "revert_custom_error"

    def describe(self) -> str:
        return (
            "The transaction reverted with custom error (or several suitable ones): "
            + "; ".join(self.candidates)
        )


@dataclass(frozen=True)
class RevertedUndecodable:
    payload: bytes
    kind: ClassVar[str] = "revert_undecodable"

    def describe(self) -> str:
        return (
            f"The transaction reverted with a custom error (data: 0x{self.payload.hex()}) "
            "that cannot be decoded using the provided contracts. "
            "Try to add more contract(s) to the artifacts directory to get decoded error."
        )


@dataclass(frozen=True)
class RevertedNoData:
    message: str = ""
    kind: ClassVar[str] = "revert_no_data"

    def describe(self) -> str:
        if not self.message or "reverted without a reason" in self.message:
            return (
                "The transaction reverted without error data. "
                "Perhaps the transaction tries to call a nonexistent contract function or "
                "contains wrong data that cannot be used to call a particular contract function."
            )
        return f"The transaction sending or minting has been failed with the exception: {self.message}"


@dataclass(frozen=True)
class PreflightFailure:
    reason: str
    detail: str = ""
    kind: ClassVar[str] = "preflight_failure"

    def describe(self) -> str:
        text = PREFLIGHT_REASONS.get(self.reason, self.reason)
        if self.detail and self.detail != self.reason:
            text = f"{text}: {self.detail}"
        return f"An exception rose before transaction sending: {text}"


ReplayOutcome = Union[
    Success,
    RevertedWithMessage,
    RevertedWithPanic,
    RevertedWithCustomError,
    RevertedUndecodable,
    RevertedNoData,
    PreflightFailure,
]


@dataclass(frozen=True)
class PrecedingResult:
    """Submission result of one transaction that preceded the target."""

    tx_hash: str
    ok: bool
    error: str = ""


@dataclass(frozen=True)
class ReplayReport:
    tx_hash: str
    outcome: ReplayOutcome
    block_number: int | None = None
    preceding: Tuple[PrecedingResult, ...] = field(default_factory=tuple)

    @property
    def preceding_failures(self) -> List[PrecedingResult]:
        return [p for p in self.preceding if not p.ok]
