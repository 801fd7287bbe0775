"""
Ownership Indexer.

Derives per-wallet token ownership from Transfer events, persisting a
resumable checkpoint so each refresh scans only new blocks.
"""

from .checkpoint_store import CheckpointStore
from .core import OwnershipIndexer
from .reducer import apply_transfers
from .types import WalletCheckpoint

__all__ = [
    "CheckpointStore",
    "OwnershipIndexer",
    "WalletCheckpoint",
    "apply_transfers",
]
