#!/usr/bin/env python3
"""
Refresh Wallet Script.

Brings one wallet's ownership checkpoint up to the chain head and
prints the result as JSON.

Usage:
    python scripts/refresh_wallet.py 0xWALLET
    python scripts/refresh_wallet.py 0xWALLET --cached
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger  # noqa: E402

from app.config.settings import settings  # noqa: E402
from app.utils.exceptions import BettaError  # noqa: E402
from api.initialization.services import initialize_all_services  # noqa: E402


async def refresh(wallet: str, cached: bool) -> int:
    """Refresh wallet and print checkpoint; returns exit code."""
    services = await initialize_all_services(settings)
    try:
        checkpoint = await services.ownership.get_owned_tokens(wallet, cached=cached)
    except BettaError as e:
        logger.error(f"Refresh failed ({e.code}): {e}")
        return 1
    finally:
        await services.close()

    print(json.dumps(checkpoint.to_dict(), indent=2))
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Refresh a wallet's owned tokens")
    parser.add_argument("wallet", help="Wallet address (0x...)")
    parser.add_argument(
        "--cached",
        action="store_true",
        help="Print the stored checkpoint without scanning",
    )
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    logger.remove()
    logger.add(sys.stderr, level=args.log_level.upper())

    sys.exit(asyncio.run(refresh(args.wallet, args.cached)))


if __name__ == "__main__":
    main()
