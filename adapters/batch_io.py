"""Batch input enumeration and result persistence."""

from __future__ import annotations

import csv
import re
from pathlib import Path
from typing import List

from core.replay.errors import ConfigError

_SEPARATORS = re.compile(r"[^0-9a-z]+", re.IGNORECASE)
RESULT_HEADER = "tx_hash\tresult"


def parse_hash_list(text: str) -> List[str]:
    """Split ``text`` on anything that is not a hex-ish character."""
    return [part for part in _SEPARATORS.split(text or "") if part]


def read_hashes_file(path: str | Path, column: str = "tx_hash", delimiter: str = "\t") -> List[str]:
    """Read transaction hashes from ``column`` of a delimited file."""

    file = Path(path)
    if not file.exists():
        raise ConfigError(f"The provided file with tx hashes does not exist: {file}")
    hashes: List[str] = []
    with file.open(newline="") as fh:
        reader = csv.DictReader(fh, delimiter=delimiter)
        for row in reader:
            value = row.get(column)
            if not value:
                raise ConfigError(f"There is no column '{column}' in the file with tx hashes: {file}")
            parts = parse_hash_list(value)
            if parts:
                hashes.append(parts[0])
    return hashes


class TsvResultSink:
    """Append ``tx_hash<TAB>result`` rows to a file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists() or self.path.stat().st_size == 0:
            with self.path.open("a") as fh:
                fh.write(RESULT_HEADER + "\n")

    def store(self, tx_hash: str, result: str) -> None:
        row = f"{tx_hash}\t{' '.join(result.split())}"
        with self.path.open("a") as fh:
            fh.write(row + "\n")


class NullResultSink:
    """Sink used when no output file is configured."""

    def store(self, tx_hash: str, result: str) -> None:
        return None
