"""
Wallet Scan State model.

Durable checkpoint of a wallet's ownership scan.
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class WalletScanState(Base):
    """
    Per-wallet ownership checkpoint.

    Used to:
    - Resume scanning after the last confirmed block
    - Serve owned token ids without touching the chain

    token_ids holds a JSON array of decimal strings; token ids are
    uint256 and do not fit any SQL integer type.
    """

    __tablename__ = "wallet_scan_state"

    # Lowercased 0x address
    wallet: Mapped[str] = mapped_column(String(42), primary_key=True)

    # None until the first successful scan
    last_scanned_block: Mapped[int | None] = mapped_column(
        BigInteger, nullable=True
    )

    token_ids: Mapped[str] = mapped_column(
        Text, nullable=False, default="[]"
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )
