"""
Owned token endpoints.
"""

from aiohttp import web

from .common import get_services

_TRUTHY = ("1", "true", "yes")


async def owned_tokens_handler(request: web.Request) -> web.Response:
    """
    GET /owned/{wallet}

    Refreshes the wallet's ownership index and returns its token ids.
    With ?cached=1 the last persisted checkpoint is returned as is.
    """
    wallet = request.match_info["wallet"]
    cached = request.query.get("cached", "").lower() in _TRUTHY

    checkpoint = await get_services(request).ownership.get_owned_tokens(
        wallet, cached=cached
    )
    return web.json_response({"ok": True, **checkpoint.to_dict()})
