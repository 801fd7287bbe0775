"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from app.models.base import Base
from app.models.token_progress import TokenProgress
from app.models.wallet_scan_state import WalletScanState


__all__ = [
    "Base",
    "TokenProgress",
    "WalletScanState",
]
