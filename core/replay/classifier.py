"""Turn revert payloads into human-readable failure reasons.

Decision order, first match wins:

1. no selector (two bytes or less) -> ``RevertedNoData``
2. ``Error(string)`` -> ``RevertedWithMessage``
3. ``Panic(uint256)`` -> ``RevertedWithPanic``
4. custom errors of the known contracts -> ``RevertedWithCustomError``,
   or ``RevertedUndecodable`` when nothing matches.

Selectors are only four bytes, so a custom error may match errors declared
by several unrelated contracts. All matches are reported as candidates.
"""

from __future__ import annotations

from typing import Any, List, Sequence, Tuple

from eth_abi import decode
from eth_abi.exceptions import DecodingError

from .interfaces import ContractInterface, DecodedError
from .outcomes import (
    ReplayOutcome,
    RevertedNoData,
    RevertedUndecodable,
    RevertedWithCustomError,
    RevertedWithMessage,
    RevertedWithPanic,
)

ERROR_STRING_SELECTOR = bytes.fromhex("08c379a0")
PANIC_SELECTOR = bytes.fromhex("4e487b71")

PANIC_REASONS = {
    0x01: "Assertion error",
    0x11: "Arithmetic operation underflowed or overflowed outside of an unchecked block",
    0x12: "Division or modulo division by zero",
    0x21: "Tried to convert a value into an enum, but the value was too big or negative",
    0x22: "Incorrectly encoded storage byte array",
    0x31: ".pop() was called on an empty array",
    0x32: "Array accessed at an out-of-bounds or negative index",
    0x41: "Too much memory was allocated, or an array was created that is too large",
    0x51: "Called a zero-initialized variable of internal function type",
}
UNKNOWN_PANIC = "Unknown panic"


def panic_reason(code: int) -> str:
    return PANIC_REASONS.get(code, UNKNOWN_PANIC)


def _format_arg(arg: Any) -> str:
    if isinstance(arg, (bytes, bytearray)):
        return f'"0x{bytes(arg).hex()}"'
    if isinstance(arg, bool):
        return "true" if arg else "false"
    if isinstance(arg, str) and arg.startswith("0x"):
        return f'"{arg}"'
    if isinstance(arg, (list, tuple)):
        return "[" + ", ".join(_format_arg(a) for a in arg) + "]"
    return str(arg)


def format_decoded_error(decoded: DecodedError) -> str:
    """``Name(arg, "0x..") -- from contract "C"``"""
    args = ", ".join(_format_arg(a) for a in decoded.args)
    return f'{decoded.fragment.name}({args}) -- from contract "{decoded.contract_name}"'


def decode_custom_error(payload: bytes, interfaces: Sequence[ContractInterface]) -> Tuple[str, ...]:
    """Every interface that decodes ``payload`` contributes one candidate."""

    candidates: List[str] = []
    for iface in interfaces:
        decoded = iface.parse_error(payload)
        if decoded is not None:
            candidates.append(format_decoded_error(decoded))
    return tuple(candidates)


def classify(
    payload: bytes,
    interfaces: Sequence[ContractInterface] = (),
    message: str = "",
) -> ReplayOutcome:
    """Classify revert ``payload``; never raises for malformed input."""

    payload = bytes(payload or b"")
    if len(payload) <= 2:
        return RevertedNoData(message=message)

    selector = payload[:4]
    body = payload[4:]
    candidates = decode_custom_error(payload, interfaces)

    if selector == ERROR_STRING_SELECTOR:
        try:
            (reason,) = decode(["string"], body)
        except (DecodingError, ValueError):
            return RevertedUndecodable(payload=payload)
        return RevertedWithMessage(message=reason, alternatives=candidates)

    if selector == PANIC_SELECTOR:
        try:
            (code,) = decode(["uint256"], body)
        except (DecodingError, ValueError):
            return RevertedUndecodable(payload=payload)
        return RevertedWithPanic(code=code, reason=panic_reason(code), alternatives=candidates)

    if candidates:
        return RevertedWithCustomError(candidates=candidates)
    return RevertedUndecodable(payload=payload)
