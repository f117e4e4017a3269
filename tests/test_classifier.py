"""Revert payload classification."""

import pytest
from eth_abi import encode

from core.replay.classifier import (
    ERROR_STRING_SELECTOR,
    PANIC_SELECTOR,
    UNKNOWN_PANIC,
    classify,
    decode_custom_error,
)
from core.replay.interfaces import ContractInterface, ErrorFragment
from core.replay.outcomes import (
    RevertedNoData,
    RevertedUndecodable,
    RevertedWithCustomError,
    RevertedWithMessage,
    RevertedWithPanic,
)

VAULT_ABI = [
    {
        "type": "error",
        "name": "InsufficientBalance",
        "inputs": [{"name": "available", "type": "uint256"}, {"name": "required", "type": "uint256"}],
    },
    {"type": "error", "name": "Paused", "inputs": []},
    {"type": "function", "name": "withdraw", "inputs": [], "outputs": []},
]
# same signature declared by an unrelated contract
ROUTER_ABI = [
    {
        "type": "error",
        "name": "InsufficientBalance",
        "inputs": [{"name": "a", "type": "uint256"}, {"name": "b", "type": "uint256"}],
    },
    {"type": "error", "name": "BadRoot", "inputs": [{"name": "root", "type": "bytes32"}]},
]


@pytest.fixture
def interfaces():
    return [
        ContractInterface.from_abi("Vault", VAULT_ABI),
        ContractInterface.from_abi("Router", ROUTER_ABI),
    ]


def _custom(name, types, args):
    return ErrorFragment(name, tuple(types)).selector + encode(list(types), list(args))


def test_error_string():
    payload = ERROR_STRING_SELECTOR + encode(["string"], ["ERC20: insufficient allowance"])
    outcome = classify(payload)
    assert isinstance(outcome, RevertedWithMessage)
    assert outcome.message == "ERC20: insufficient allowance"
    assert "'ERC20: insufficient allowance'" in outcome.describe()


def test_panic_overflow():
    outcome = classify(PANIC_SELECTOR + encode(["uint256"], [0x11]))
    assert isinstance(outcome, RevertedWithPanic)
    assert outcome.code == 0x11
    assert "overflow" in outcome.reason
    assert "0x11" in outcome.describe()


def test_unknown_panic_code():
    outcome = classify(PANIC_SELECTOR + encode(["uint256"], [0x99]))
    assert isinstance(outcome, RevertedWithPanic)
    assert outcome.reason == UNKNOWN_PANIC


def test_custom_error_reports_every_candidate_in_order(interfaces):
    payload = _custom("InsufficientBalance", ["uint256", "uint256"], [5, 10])
    outcome = classify(payload, interfaces)
    assert isinstance(outcome, RevertedWithCustomError)
    assert outcome.candidates == (
        'InsufficientBalance(5, 10) -- from contract "Vault"',
        'InsufficientBalance(5, 10) -- from contract "Router"',
    )


def test_custom_error_bytes_argument_is_quoted(interfaces):
    root = b"\xab" * 32
    outcome = classify(_custom("BadRoot", ["bytes32"], [root]), interfaces)
    assert outcome.candidates == ('BadRoot("0x' + "ab" * 32 + '") -- from contract "Router"',)


def test_unknown_selector_is_undecodable(interfaces):
    payload = bytes.fromhex("deadbeef") + encode(["uint256"], [1])
    outcome = classify(payload, interfaces)
    assert isinstance(outcome, RevertedUndecodable)
    assert outcome.payload == payload
    assert "0xdeadbeef" in outcome.describe()


def test_known_selector_with_malformed_body(interfaces):
    payload = ErrorFragment("InsufficientBalance", ("uint256", "uint256")).selector + b"\x01"
    assert isinstance(classify(payload, interfaces), RevertedUndecodable)


def test_error_string_with_truncated_body():
    assert isinstance(classify(ERROR_STRING_SELECTOR + b"\x00" * 5), RevertedUndecodable)


def test_no_data():
    outcome = classify(b"")
    assert isinstance(outcome, RevertedNoData)
    assert "without error data" in outcome.describe()


def test_no_data_keeps_node_message():
    outcome = classify(b"", message="sender doesn't have enough funds")
    assert isinstance(outcome, RevertedNoData)
    assert outcome.describe().endswith("sender doesn't have enough funds")


def test_short_payload_counts_as_no_data():
    assert isinstance(classify(b"\x08\xc3"), RevertedNoData)


def test_three_byte_payload_is_undecodable():
    assert isinstance(classify(b"\x08\xc3\x79"), RevertedUndecodable)


def test_message_alternatives_from_colliding_custom_error():
    shadow = [{"type": "error", "name": "Error", "inputs": [{"name": "m", "type": "string"}]}]
    iface = ContractInterface.from_abi("Shadow", shadow)
    assert ErrorFragment("Error", ("string",)).selector == ERROR_STRING_SELECTOR

    outcome = classify(ERROR_STRING_SELECTOR + encode(["string"], ["no"]), [iface])
    assert isinstance(outcome, RevertedWithMessage)
    assert outcome.alternatives == ('Error(no) -- from contract "Shadow"',)
    assert "Also it can be the following custom error(s)" in outcome.describe()


@pytest.mark.parametrize(
    "payload",
    [b"\x00", b"\xff" * 4, b"\xff" * 37, PANIC_SELECTOR, PANIC_SELECTOR + b"\xff" * 7, bytes(range(200))],
)
def test_classify_never_raises(payload, interfaces):
    assert classify(payload, interfaces).describe()


def test_decode_custom_error_without_interfaces():
    assert decode_custom_error(_custom("Paused", [], []), []) == ()
