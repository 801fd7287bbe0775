"""
Ownership query service.

Consumer-facing owned-token lookup on top of the ownership indexer.
"""

from app.services.ownership_indexer import (
    CheckpointStore,
    OwnershipIndexer,
    WalletCheckpoint,
)
from app.utils.validation import normalize_wallet_address


class OwnershipService:
    """Owned token lookup with an optional cached fast path."""

    def __init__(self, indexer: OwnershipIndexer, store: CheckpointStore) -> None:
        self.indexer = indexer
        self.store = store

    async def get_owned_tokens(
        self, wallet: str, cached: bool = False
    ) -> WalletCheckpoint:
        """
        Get token ids owned by a wallet.

        Args:
            wallet: Wallet address
            cached: Return the last persisted checkpoint without scanning

        Returns:
            Checkpoint with sorted token ids and last scanned block
        """
        if cached:
            return await self.store.get(normalize_wallet_address(wallet))
        return await self.indexer.refresh(wallet)

    async def owns_token(self, wallet: str, token_id: int) -> bool:
        """
        Check ownership, refreshing only when the cached state says no.

        Args:
            wallet: Wallet address
            token_id: Token id

        Returns:
            True if the wallet holds the token
        """
        checkpoint = await self.get_owned_tokens(wallet, cached=True)
        if checkpoint.owns(token_id):
            return True
        checkpoint = await self.get_owned_tokens(wallet)
        return checkpoint.owns(token_id)
