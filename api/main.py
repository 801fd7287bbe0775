"""
API main entry point.

Initializes services and serves the HTTP API until SIGINT/SIGTERM.
"""

import asyncio
import signal

from aiohttp import web
from loguru import logger

from app.config.settings import settings
from api.app import create_app
from api.initialization.logging import setup_logging
from api.initialization.services import initialize_all_services


async def main() -> None:
    """Initialize and run the API server."""
    setup_logging(settings.log_level, settings.log_file)

    services = await initialize_all_services(settings)
    runner = web.AppRunner(create_app(services))
    await runner.setup()

    # Graceful shutdown event
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    try:
        site = web.TCPSite(runner, settings.host, settings.port)
        await site.start()
        logger.info(f"Betta backend listening on {settings.host}:{settings.port}")
        await stop_event.wait()
    finally:
        logger.info("Shutting down...")
        await runner.cleanup()
        await services.close()


if __name__ == "__main__":
    asyncio.run(main())
