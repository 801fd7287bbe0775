"""
WalletScanState repository.

Data access layer for wallet ownership checkpoints.
"""

from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.wallet_scan_state import WalletScanState
from app.repositories.base import BaseRepository


class WalletScanStateRepository(BaseRepository[WalletScanState]):
    """Repository for WalletScanState model."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(WalletScanState, session)

    async def get_by_wallet(self, wallet: str) -> WalletScanState | None:
        """
        Get checkpoint row for a wallet.

        Args:
            wallet: Lowercased wallet address

        Returns:
            Row or None if the wallet was never scanned
        """
        return await self.get_by_id(wallet)

    async def save(
        self,
        wallet: str,
        last_scanned_block: int | None,
        token_ids_json: str,
    ) -> None:
        """
        Replace the checkpoint row for a wallet.

        Args:
            wallet: Lowercased wallet address
            last_scanned_block: Last block covered by the scan
            token_ids_json: JSON array of decimal token id strings
        """
        await self.upsert(
            wallet=wallet,
            last_scanned_block=last_scanned_block,
            token_ids=token_ids_json,
            updated_at=datetime.now(UTC),
        )
