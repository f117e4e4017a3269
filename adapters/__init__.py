"""Adapters for the origin network, the local fork node and batch files."""

from .artifacts import load_contract_interfaces
from .batch_io import NullResultSink, TsvResultSink, parse_hash_list, read_hashes_file
from .fork_backend import LocalForkBackend
from .origin_reader import Web3OriginReader

__all__ = [
    "load_contract_interfaces",
    "NullResultSink",
    "TsvResultSink",
    "parse_hash_list",
    "read_hashes_file",
    "LocalForkBackend",
    "Web3OriginReader",
]
