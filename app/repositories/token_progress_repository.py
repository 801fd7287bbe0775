"""
TokenProgress repository.

Data access layer for token leveling state.
"""

from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.token_progress import TokenProgress
from app.repositories.base import BaseRepository


class TokenProgressRepository(BaseRepository[TokenProgress]):
    """Repository for TokenProgress model."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(TokenProgress, session)

    async def get_many(self, token_ids: list[str]) -> dict[str, TokenProgress]:
        """
        Get progress rows for several tokens.

        Args:
            token_ids: Decimal token id strings

        Returns:
            Mapping token_id -> row, missing tokens omitted
        """
        if not token_ids:
            return {}
        stmt = select(TokenProgress).where(TokenProgress.token_id.in_(token_ids))
        result = await self.session.execute(stmt)
        return {row.token_id: row for row in result.scalars().all()}

    async def get_last_feed_at(self, token_id: str) -> int | None:
        """Stored last feed time of a token, None if it has no row."""
        stmt = select(TokenProgress.last_feed_at).where(
            TokenProgress.token_id == token_id
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def save(
        self,
        token_id: str,
        rarity: str,
        level: int,
        exp: int,
        last_feed_at: int,
        wallet_address: str | None,
        fid: str | None,
        expected_last_feed_at: int = 0,
    ) -> bool:
        """
        Replace the progress row for a token.

        The write only lands if the stored last_feed_at still equals
        expected_last_feed_at (a missing row always lands).

        Returns:
            False if another feed changed the row first
        """
        return await self.upsert_where(
            TokenProgress.last_feed_at == expected_last_feed_at,
            token_id=token_id,
            rarity=rarity,
            level=level,
            exp=exp,
            last_feed_at=last_feed_at,
            wallet_address=wallet_address,
            fid=fid,
            updated_at=datetime.now(UTC),
        )
