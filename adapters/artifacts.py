"""Load contract interfaces from compiled Hardhat or Foundry artifacts."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Mapping

from core.logger import StructuredLogger, log_error
from core.replay.interfaces import ContractInterface

LOG = StructuredLogger("artifacts")


def _bytecode(data: Mapping[str, Any]) -> str:
    code = data.get("bytecode", "")
    if isinstance(code, Mapping):  # foundry: {"object": "0x..."}
        code = code.get("object", "")
    return str(code or "")


def is_deployable(data: Mapping[str, Any]) -> bool:
    """Interfaces and abstract contracts compile to empty bytecode."""
    return _bytecode(data) not in ("", "0x")


def load_contract_interfaces(artifacts_dir: str | Path) -> List[ContractInterface]:
    """Interfaces of every deployable contract under ``artifacts_dir``."""

    root = Path(artifacts_dir)
    if not root.exists():
        LOG.log("artifacts_missing", message=f"No artifacts directory at {root}", path=str(root))
        return []
    interfaces: List[ContractInterface] = []
    for path in sorted(root.rglob("*.json")):
        if path.name.endswith(".dbg.json") or "build-info" in path.parts:
            continue
        try:
            data = json.loads(path.read_text())
        except (OSError, ValueError) as exc:
            log_error("artifacts", f"unreadable artifact {path}: {exc}", event="artifact_skip")
            continue
        if not isinstance(data, dict) or not isinstance(data.get("abi"), list):
            continue
        if not is_deployable(data):
            continue
        name = str(data.get("contractName") or path.stem)
        interfaces.append(ContractInterface.from_abi(name, data["abi"]))
    LOG.log(
        "artifacts_loaded",
        message=f"Loaded {len(interfaces)} deployable contract interface(s) from {root}",
        count=len(interfaces),
    )
    return interfaces
