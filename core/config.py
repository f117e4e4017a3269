"""Replay configuration: YAML file, then environment, then CLI flags."""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, cast

import yaml

from core.replay.errors import ConfigError

DEFAULT_TX_HASHES = """
0xca284df3888756806e406c50b6e1f9d45c1997c44972704b06f8162de450211f
0xd556849b8a916d7dff644eb97288ffa1f26e810805cb98ebcbff3f95c8957abe
"""

# env var -> config field
ENV_VARS = {
    "SP_RPC_URL": "rpc_url",
    "SP_FORK_RPC_URL": "fork_rpc_url",
    "SP_CHAIN_ID": "chain_id",
    "SP_TX_HASHES": "tx_hashes",
    "SP_TX_HASHES_FILE": "tx_hashes_file",
    "SP_TX_HASHES_COLUMN": "tx_hashes_column",
    "SP_COLUMN_DELIMITER": "column_delimiter",
    "SP_OUTPUT_FILE": "output_file",
    "SP_VERBOSE_LOGGING": "verbose",
    "SP_ARTIFACTS_DIR": "artifacts_dir",
    "SP_RESET_METHOD": "reset_method",
    "SP_REQUEST_TIMEOUT": "request_timeout",
}


@dataclass
class ReplayConfig:
    rpc_url: str = "https://polygon-rpc.com"
    fork_rpc_url: str = "http://127.0.0.1:8545"
    chain_id: Optional[int] = None
    tx_hashes: str = DEFAULT_TX_HASHES
    tx_hashes_file: str = ""
    tx_hashes_column: str = "tx_hash"
    column_delimiter: str = "\t"
    output_file: str = ""
    verbose: bool = False
    artifacts_dir: str = "artifacts"
    reset_method: str = "hardhat_reset"
    request_timeout: Optional[float] = None

    def merged(self, overrides: Mapping[str, Any]) -> "ReplayConfig":
        """Copy with every non-None value of ``overrides`` applied."""
        fields = {f.name: f for f in dataclasses.fields(self)}
        changes: Dict[str, Any] = {}
        for key, value in overrides.items():
            if value is None:
                continue
            if key not in fields:
                raise ConfigError(f"unknown config key: {key}")
            changes[key] = _coerce(key, value)
        return dataclasses.replace(self, **changes)


def _coerce(key: str, value: Any) -> Any:
    try:
        if key == "chain_id":
            return int(value, 0) if isinstance(value, str) else int(value)
        if key == "request_timeout":
            return float(value)
        if key == "verbose":
            if isinstance(value, str):
                return value.strip().lower() in {"1", "true", "yes", "on"}
            return bool(value)
    except ValueError as exc:
        raise ConfigError(f"invalid value for {key}: {value!r}") from exc
    if key == "column_delimiter" and value == "\\t":
        return "\t"
    return str(value)


def load_yaml(path: str | Path) -> Dict[str, Any]:
    file = Path(path)
    if not file.exists():
        raise ConfigError(f"config file not found: {file}")
    data = yaml.safe_load(file.read_text()) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"config file must contain a mapping: {file}")
    return cast(Dict[str, Any], data)


def env_overrides(environ: Mapping[str, str] | None = None) -> Dict[str, Any]:
    environ = os.environ if environ is None else environ
    return {field: environ[var] for var, field in ENV_VARS.items() if environ.get(var)}


def load_config(
    path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ReplayConfig:
    """Defaults, then YAML at ``path``, then ``SP_*`` env vars, then ``overrides``."""

    config = ReplayConfig()
    if path:
        config = config.merged(load_yaml(path))
    config = config.merged(env_overrides(environ))
    if overrides:
        config = config.merged(overrides)
    return config
