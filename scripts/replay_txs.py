#!/usr/bin/env python
"""Replay historical transactions on a local fork and report why they failed.

The local node (Hardhat or Anvil) must be running and its chain id must match
the origin network, e.g. ``npx hardhat node`` with ``chainId`` set in
``hardhat.config``. Results are printed and optionally appended to a TSV file.
"""

from __future__ import annotations

import argparse
import os
import sys
from datetime import datetime
from typing import Any, Dict, List

from adapters.artifacts import load_contract_interfaces
from adapters.batch_io import NullResultSink, TsvResultSink, parse_hash_list, read_hashes_file
from adapters.fork_backend import LocalForkBackend
from adapters.origin_reader import Web3OriginReader
from core import metrics
from core.config import ReplayConfig, load_config
from core.logger import LogContext, StructuredLogger, register_hook
from core.replay.errors import ChainIdMismatch, ConfigError
from core.replay.orchestrator import ReplayOrchestrator
from core.replay.session import ReplaySession

LOGGER = StructuredLogger("replay_cli")
INDENT = "  "


def console_hook(entry: Dict[str, Any]) -> None:
    """Print echoed entries, indented by their depth."""

    if not entry.get("echo", True):
        return
    text = entry.get("message") or ""
    if not text and entry.get("error"):
        text = f"error: {entry['error']}"
    if not text:
        return
    stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
    print(f"{stamp} {INDENT * int(entry.get('depth', 0))}{text}", flush=True)


def collect_hashes(config: ReplayConfig) -> List[str]:
    if config.tx_hashes_file:
        return read_hashes_file(config.tx_hashes_file, config.tx_hashes_column, config.column_delimiter)
    return parse_hash_list(config.tx_hashes)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Replay transactions on a local fork and decode reverts")
    p.add_argument("--config", help="YAML config file")
    p.add_argument("hashes", nargs="*", help="Transaction hashes (overrides SP_TX_HASHES)")
    p.add_argument("--rpc-url", dest="rpc_url", help="Origin network RPC URL")
    p.add_argument("--fork-rpc-url", dest="fork_rpc_url", help="Local forking node RPC URL")
    p.add_argument("--chain-id", dest="chain_id", help="Expected chain id of the forked node")
    p.add_argument("--hashes-file", dest="tx_hashes_file", help="Delimited file with hashes")
    p.add_argument("--hashes-column", dest="tx_hashes_column", help="Column holding the hashes")
    p.add_argument("--delimiter", dest="column_delimiter", help="Column delimiter of the hashes file")
    p.add_argument("--output", dest="output_file", help="TSV file to append results to")
    p.add_argument("--artifacts", dest="artifacts_dir", help="Compiled contract artifacts directory")
    p.add_argument("--reset-method", dest="reset_method", help="Fork reset RPC method")
    p.add_argument("--verbose", action="store_const", const=True, default=None)
    p.add_argument("--metrics-port", type=int, default=None, help="Expose Prometheus metrics")
    return p


def main(argv: List[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    overrides = {
        k: v
        for k, v in vars(args).items()
        if k not in {"config", "hashes", "metrics_port"} and v is not None
    }
    if args.hashes:
        overrides["tx_hashes"] = " ".join(args.hashes)
    register_hook(console_hook)
    ctx = LogContext()

    try:
        config = load_config(args.config, overrides=overrides)
        hashes = collect_hashes(config)
    except ConfigError as exc:
        LOGGER.log("config_error", ctx=ctx, level="high", error=str(exc))
        return 2

    metrics_port = args.metrics_port or int(os.getenv("METRICS_PORT", "0") or 0)
    if metrics_port:
        metrics.start_metrics(metrics_port)

    LOGGER.log("ready", ctx=ctx, message="Transaction replayer is ready.")
    source = f"the file {config.tx_hashes_file}" if config.tx_hashes_file else "the provided list"
    details = ctx.child("params")
    LOGGER.log("params", ctx=details, message=f"The transactions are taken from {source}.")
    LOGGER.log("params", ctx=details, message=f"The total number of transactions to replay: {len(hashes)}")
    if config.output_file:
        LOGGER.log("params", ctx=details, message=f"The results will be stored to file: {config.output_file}")
    else:
        LOGGER.log("params", ctx=details, message="The results will not be stored to a file.")

    interfaces = load_contract_interfaces(config.artifacts_dir)
    origin = Web3OriginReader(config.rpc_url, timeout=config.request_timeout)
    backend = LocalForkBackend(
        config.fork_rpc_url, reset_method=config.reset_method, timeout=config.request_timeout
    )
    sink = TsvResultSink(config.output_file) if config.output_file else NullResultSink()
    session = ReplaySession(
        ReplayOrchestrator(origin, backend, interfaces),
        sink,
        expected_chain_id=config.chain_id,
        verbose=config.verbose,
    )
    try:
        session.check_networks(ctx)
    except ChainIdMismatch:
        return 1

    session.run(hashes, ctx)
    summary = metrics.snapshot()
    LOGGER.log("summary", ctx=ctx, outcomes=summary["outcomes"], errors=summary["errors"])
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    sys.exit(main())
