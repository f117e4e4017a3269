"""Custom-error lookup tables built from contract ABIs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from eth_abi import decode
from eth_abi.exceptions import ABITypeError, DecodingError, ParseError
from eth_utils import keccak


def _canonical_type(param: Mapping[str, Any]) -> str:
    """ABI type string for ``param``, expanding tuples into ``(a,b)``."""

    typ = str(param["type"])
    if typ.startswith("tuple"):
        inner = ",".join(_canonical_type(c) for c in param.get("components", ()))
        return f"({inner}){typ[len('tuple'):]}"
    return typ


@dataclass(frozen=True)
class ErrorFragment:
    name: str
    types: Tuple[str, ...]

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.types)})"

    @property
    def selector(self) -> bytes:
        return keccak(text=self.signature)[:4]

    @classmethod
    def from_abi(cls, item: Mapping[str, Any]) -> "ErrorFragment":
        return cls(
            name=str(item["name"]),
            types=tuple(_canonical_type(p) for p in item.get("inputs", ())),
        )


@dataclass(frozen=True)
class DecodedError:
    fragment: ErrorFragment
    args: Tuple[Any, ...]
    contract_name: str


@dataclass(frozen=True)
class ContractInterface:
    """Selector to error-shape map of one deployable contract."""

    contract_name: str
    errors: Dict[bytes, ErrorFragment] = field(default_factory=dict)

    @classmethod
    def from_abi(cls, contract_name: str, abi: Sequence[Mapping[str, Any]]) -> "ContractInterface":
        errors: Dict[bytes, ErrorFragment] = {}
        for item in abi:
            if not isinstance(item, Mapping) or item.get("type") != "error" or not item.get("name"):
                continue
            try:
                fragment = ErrorFragment.from_abi(item)
            except (KeyError, TypeError):
                # an input without a type cannot be hashed into a selector
                continue
            errors[fragment.selector] = fragment
        return cls(contract_name=contract_name, errors=errors)

    def parse_error(self, payload: bytes) -> Optional[DecodedError]:
        """Decode ``payload`` against this contract's errors, or None."""

        fragment = self.errors.get(bytes(payload[:4]))
        if fragment is None:
            return None
        try:
            args = decode(list(fragment.types), bytes(payload[4:]))
        except (DecodingError, ABITypeError, ParseError, ValueError):
            # the selector collided with an error of a different shape
            return None
        return DecodedError(fragment=fragment, args=tuple(args), contract_name=self.contract_name)
