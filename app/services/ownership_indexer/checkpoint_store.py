"""
Checkpoint store.

Durable wallet -> {last_scanned_block, token_ids} mapping backed by the
wallet_scan_state table. Each put replaces the whole row in a single
transaction.
"""

import json

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.repositories.wallet_scan_state_repository import WalletScanStateRepository
from app.utils.exceptions import StorageError
from app.utils.security import mask_address

from .types import WalletCheckpoint


def _encode_token_ids(token_ids: tuple[int, ...]) -> str:
    return json.dumps([str(token_id) for token_id in token_ids])


def _decode_token_ids(raw: str, wallet: str) -> list[int]:
    try:
        return [int(token_id) for token_id in json.loads(raw or "[]")]
    except (TypeError, ValueError) as e:
        raise StorageError(
            f"Corrupted token_ids for {mask_address(wallet)}: {e}"
        ) from e


class CheckpointStore:
    """Persistence of WalletCheckpoint values."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        """
        Initialize checkpoint store.

        Args:
            session_maker: Async session factory
        """
        self.session_maker = session_maker

    async def get(self, wallet: str) -> WalletCheckpoint:
        """
        Load the checkpoint of a wallet.

        Args:
            wallet: Lowercased wallet address

        Returns:
            Stored checkpoint, or a fresh never-scanned one if absent

        Raises:
            StorageError: If the backing store cannot be read
        """
        wallet = wallet.lower()
        try:
            async with self.session_maker() as session:
                row = await WalletScanStateRepository(session).get_by_wallet(wallet)
                if row is None:
                    return WalletCheckpoint.empty(wallet)
                last_scanned_block = row.last_scanned_block
                raw_token_ids = row.token_ids
        except SQLAlchemyError as e:
            logger.error(f"[Checkpoint] Load failed for {mask_address(wallet)}: {e}")
            raise StorageError(f"Failed to load checkpoint: {e}") from e

        return WalletCheckpoint.build(
            wallet,
            last_scanned_block,
            _decode_token_ids(raw_token_ids, wallet),
        )

    async def put(self, checkpoint: WalletCheckpoint) -> None:
        """
        Replace the stored checkpoint of a wallet atomically.

        Args:
            checkpoint: New checkpoint (whole record)

        Raises:
            StorageError: If the write could not be committed
        """
        wallet = checkpoint.wallet.lower()
        try:
            async with self.session_maker() as session:
                async with session.begin():
                    await WalletScanStateRepository(session).save(
                        wallet=wallet,
                        last_scanned_block=checkpoint.last_scanned_block,
                        token_ids_json=_encode_token_ids(checkpoint.token_ids),
                    )
        except SQLAlchemyError as e:
            logger.error(f"[Checkpoint] Save failed for {mask_address(wallet)}: {e}")
            raise StorageError(f"Failed to save checkpoint: {e}") from e

        logger.debug(
            f"[Checkpoint] Saved {mask_address(wallet)}: "
            f"block={checkpoint.last_scanned_block}, tokens={len(checkpoint.token_ids)}"
        )
