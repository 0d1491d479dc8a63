"""Ledger access and operation sequencing."""

from .backend import BagsOperationBackend, OperationBackend, PreparedOperation
from .client import LedgerClient, LedgerContext, SignatureStatus, SolanaLedger
from .sequencer import Sequencer

__all__ = [
    "BagsOperationBackend",
    "LedgerClient",
    "LedgerContext",
    "OperationBackend",
    "PreparedOperation",
    "Sequencer",
    "SignatureStatus",
    "SolanaLedger",
]
