"""
Health check endpoints.
"""

from aiohttp import web

from .common import get_services


async def index_handler(request: web.Request) -> web.Response:
    """Root liveness endpoint."""
    return web.json_response({"ok": True, "message": "Betta backend running"})


async def health_handler(request: web.Request) -> web.Response:
    """
    Health check endpoint.

    Returns:
        JSON response with RPC failover statistics
    """
    services = get_services(request)
    return web.json_response(
        {
            "ok": True,
            "status": "healthy",
            "rpc": services.executor.get_stats(),
        }
    )
