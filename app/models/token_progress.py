"""
Token Progress model.

Experience and level of a single token.
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class TokenProgress(Base):
    """Leveling state of one token, keyed by decimal token id."""

    __tablename__ = "token_progress"

    token_id: Mapped[str] = mapped_column(String(78), primary_key=True)

    rarity: Mapped[str] = mapped_column(String(20), nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    exp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Milliseconds since epoch, 0 = never fed
    last_feed_at: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0
    )

    wallet_address: Mapped[str | None] = mapped_column(
        String(42), nullable=True, index=True
    )
    fid: Mapped[str | None] = mapped_column(String(64), nullable=True)

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
