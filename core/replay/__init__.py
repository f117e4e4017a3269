"""Replay historical transactions on a local fork and decode their failures."""

from .classifier import classify
from .codec import raw_bytes, reconstruct
from .fork import ForkController
from .interfaces import ContractInterface
from .orchestrator import ReplayOrchestrator
from .outcomes import ReplayReport
from .session import ReplaySession

__all__ = [
    "classify",
    "raw_bytes",
    "reconstruct",
    "ForkController",
    "ContractInterface",
    "ReplayOrchestrator",
    "ReplayReport",
    "ReplaySession",
]
