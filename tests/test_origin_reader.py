"""Origin reader maps web3 lookups into replay records."""

import pytest
from web3.exceptions import BlockNotFound, TransactionNotFound

from adapters.origin_reader import Web3OriginReader

TX_HASH = "0x" + "aa" * 32


class DummyEth:
    def __init__(self, tx=None, receipt=None, block=None, chain_id=137):
        self.tx = tx
        self.receipt = receipt
        self.block = block
        self._chain_id = chain_id
        self.block_calls = []

    def get_transaction(self, tx_hash):
        if self.tx is None:
            raise TransactionNotFound(f"Transaction with hash: {tx_hash!r} not found.")
        return self.tx

    def get_transaction_receipt(self, tx_hash):
        if self.receipt is None:
            raise TransactionNotFound(f"Transaction with hash: {tx_hash!r} not found.")
        return self.receipt

    def get_block(self, number, full_transactions=False):
        self.block_calls.append((number, full_transactions))
        if self.block is None:
            raise BlockNotFound(f"Block with id: {number!r} not found.")
        return self.block

    @property
    def chain_id(self):
        if isinstance(self._chain_id, Exception):
            raise self._chain_id
        return self._chain_id


class DummyWeb3:
    def __init__(self, eth):
        self.eth = eth


def _legacy_view(**extra):
    view = {
        "hash": TX_HASH,
        "type": 0,
        "nonce": 1,
        "gasPrice": 10,
        "gas": 21000,
        "to": "0x" + "11" * 20,
        "value": 0,
        "input": "0x",
        "v": 37,
        "r": 1,
        "s": 2,
        "blockNumber": 50,
        "transactionIndex": 3,
    }
    view.update(extra)
    return view


def test_not_found_maps_to_none():
    reader = Web3OriginReader("https://rpc", web3=DummyWeb3(DummyEth()))
    assert reader.get_transaction(TX_HASH) is None
    assert reader.get_transaction_receipt(TX_HASH) is None
    assert reader.get_block_with_transactions(1) is None


def test_transaction_and_receipt():
    eth = DummyEth(
        tx=_legacy_view(),
        receipt={"transactionHash": TX_HASH, "transactionIndex": 3, "blockNumber": 50, "status": 1},
    )
    reader = Web3OriginReader("https://rpc", web3=DummyWeb3(eth))
    tx = reader.get_transaction(TX_HASH)
    receipt = reader.get_transaction_receipt(TX_HASH)
    assert tx.block_number == 50 and tx.transaction_index == 3
    assert tx.fields.chain_id == 1
    assert receipt.transaction_index == 3 and receipt.status == 1


def test_block_requests_full_transactions():
    block = {"number": 50, "transactions": [_legacy_view(), _legacy_view(hash="0x" + "bb" * 32, type="0x7e")]}
    eth = DummyEth(block=block)
    reader = Web3OriginReader("https://rpc", web3=DummyWeb3(eth))
    record = reader.get_block_with_transactions(50)
    assert eth.block_calls == [(50, True)]
    assert record.number == 50
    assert [t.tx_type for t in record.transactions] == [0, 0x7E]
    assert record.transactions[1].fields is None


def test_chain_id_failure_is_logged_and_raised(tmp_path):
    eth = DummyEth(chain_id=ConnectionError("unreachable"))
    reader = Web3OriginReader("https://rpc", web3=DummyWeb3(eth))
    with pytest.raises(ConnectionError):
        reader.get_chain_id()
    assert "unreachable" in (tmp_path / "logs" / "errors.log").read_text()


def test_default_connection_uses_poa_middleware():
    reader = Web3OriginReader("http://127.0.0.1:1", timeout=3)
    assert reader.web3.provider.endpoint_uri == "http://127.0.0.1:1"
    assert reader.endpoint == "http://127.0.0.1:1"
