"""Ownership checkpoint value type."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class WalletCheckpoint:
    """
    Last-known-good ownership state of a wallet.

    token_ids equals every token transferred into the wallet minus every
    token transferred out, folded in block order from the genesis block
    through last_scanned_block. last_scanned_block is None until the
    first successful scan.
    """

    wallet: str
    last_scanned_block: int | None = None
    token_ids: tuple[int, ...] = field(default=())

    @classmethod
    def empty(cls, wallet: str) -> "WalletCheckpoint":
        """Fresh checkpoint of a never-scanned wallet."""
        return cls(wallet=wallet)

    @classmethod
    def build(
        cls,
        wallet: str,
        last_scanned_block: int | None,
        token_ids: Iterable[int],
    ) -> "WalletCheckpoint":
        """Checkpoint with token ids deduplicated and sorted."""
        return cls(
            wallet=wallet,
            last_scanned_block=last_scanned_block,
            token_ids=tuple(sorted(set(token_ids))),
        )

    @property
    def is_scanned(self) -> bool:
        return self.last_scanned_block is not None

    def owns(self, token_id: int) -> bool:
        return token_id in self.token_ids

    def to_dict(self) -> dict[str, Any]:
        """
        JSON-safe representation.

        Token ids are decimal strings: JSON numbers lose precision
        above 2**53 in most consumers.
        """
        return {
            "wallet": self.wallet,
            "tokenIds": [str(token_id) for token_id in self.token_ids],
            "lastScannedBlock": self.last_scanned_block,
        }
