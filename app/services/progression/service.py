"""
Progression service.

Feed action and progress queries over persisted token progress. Feeds
carrying a wallet address are authorized against indexed ownership.
"""

import time
from collections.abc import Callable
from typing import Any

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.constants import FEED_COOLDOWN_MS, FEED_EXP_GAIN
from app.repositories.token_progress_repository import TokenProgressRepository
from app.services.ownership_service import OwnershipService
from app.utils.exceptions import (
    FeedOnCooldown,
    InvalidInput,
    NotTokenOwner,
    StorageError,
)
from app.utils.security import mask_address
from app.utils.validation import normalize_wallet_address, parse_token_id

from .rules import apply_feed, build_progress_payload, normalize_rarity


def _now_ms() -> int:
    return int(time.time() * 1000)


class ProgressionService:
    """Token leveling: progress lookup and cooldown-gated feeding."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        ownership: OwnershipService | None = None,
        exp_per_feed: int = FEED_EXP_GAIN,
        cooldown_ms: int = FEED_COOLDOWN_MS,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        """
        Initialize progression service.

        Args:
            session_maker: Async session factory
            ownership: Ownership lookup used to authorize wallet feeds
            exp_per_feed: Exp granted per feed
            cooldown_ms: Minimum delay between feeds of one token
            clock: Current time in ms (injectable for tests)
        """
        self.session_maker = session_maker
        self.ownership = ownership
        self.exp_per_feed = exp_per_feed
        self.cooldown_ms = cooldown_ms
        self._clock = clock

    async def get_progress(self, fishes: list[Any]) -> dict[str, dict[str, Any]]:
        """
        Progress of several tokens.

        Args:
            fishes: Items shaped {"tokenId": ..., "rarity": ...};
                items without a valid token id are skipped

        Returns:
            Mapping decimal token id -> progress payload
        """
        requested: dict[str, str | None] = {}
        for fish in fishes:
            if not isinstance(fish, dict):
                continue
            raw_token_id = fish.get("tokenId")
            if raw_token_id is None or raw_token_id == "":
                continue
            try:
                token_id = str(parse_token_id(raw_token_id))
            except InvalidInput:
                logger.debug(f"[Progression] Skipping invalid tokenId {raw_token_id!r}")
                continue
            requested[token_id] = fish.get("rarity")

        try:
            async with self.session_maker() as session:
                rows = await TokenProgressRepository(session).get_many(list(requested))
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to load progress: {e}") from e

        progress = {}
        for token_id, rarity_fallback in requested.items():
            row = rows.get(token_id)
            if row is None:
                progress[token_id] = build_progress_payload(None, None, rarity_fallback)
            else:
                progress[token_id] = build_progress_payload(
                    row.level, row.exp, row.rarity or rarity_fallback
                )
        return progress

    async def feed(
        self,
        token_id: Any,
        rarity: str,
        wallet_address: str | None = None,
        fid: Any = None,
    ) -> dict[str, Any]:
        """
        Feed a token: gate on cooldown, grant exp, level up.

        Args:
            token_id: Token id (int or decimal string)
            rarity: Token rarity
            wallet_address: Acting wallet; when set it must own the token
            fid: Optional client identifier stored with the token

        Returns:
            Feed result payload

        Raises:
            InvalidInput: If token id or wallet is malformed
            NotTokenOwner: If wallet_address does not hold the token
            FeedOnCooldown: If the token was fed within the cooldown
            StorageError: If progress could not be loaded or saved
        """
        parsed_token_id = parse_token_id(token_id)
        key = str(parsed_token_id)
        rarity = normalize_rarity(rarity)

        wallet = None
        if wallet_address:
            wallet = normalize_wallet_address(wallet_address)
            if self.ownership is not None:
                if not await self.ownership.owns_token(wallet, parsed_token_id):
                    logger.warning(
                        f"[Progression] {mask_address(wallet)} tried to feed "
                        f"token {key} it does not own"
                    )
                    raise NotTokenOwner(wallet, parsed_token_id)

        now = self._clock()

        try:
            async with self.session_maker() as session:
                async with session.begin():
                    repo = TokenProgressRepository(session)
                    existing = await repo.get_by_id(key)

                    level = existing.level if existing else 1
                    exp = existing.exp if existing else 0
                    last_feed_at = existing.last_feed_at if existing else 0

                    if last_feed_at and now - last_feed_at < self.cooldown_ms:
                        raise FeedOnCooldown(last_feed_at, self.cooldown_ms, now)

                    level, exp = apply_feed(level, exp, rarity, self.exp_per_feed)

                    saved = await repo.save(
                        token_id=key,
                        rarity=rarity,
                        level=level,
                        exp=exp,
                        last_feed_at=now,
                        wallet_address=wallet or (existing.wallet_address if existing else None),
                        fid=str(fid) if fid else (existing.fid if existing else None),
                        expected_last_feed_at=last_feed_at,
                    )
                    if not saved:
                        # A concurrent feed of this token committed first
                        current = await repo.get_last_feed_at(key)
                        logger.info(f"[Progression] Token {key} fed concurrently, rejecting")
                        raise FeedOnCooldown(current or now, self.cooldown_ms, now)
        except SQLAlchemyError as e:
            logger.error(f"[Progression] Feed failed for token {key}: {e}")
            raise StorageError(f"Failed to save progress: {e}") from e

        logger.info(f"[Progression] Token {key} fed: level={level}, exp={exp}")

        progress = build_progress_payload(level, exp, rarity)
        return {
            "tokenId": key,
            "rarity": rarity,
            **progress,
            "cooldownMs": self.cooldown_ms,
            "lastFeedAt": now,
        }
