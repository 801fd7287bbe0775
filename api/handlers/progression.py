"""
Progression endpoints: progress lookup and feeding.
"""

from aiohttp import web

from app.utils.exceptions import FeedOnCooldown

from ..middlewares import error_response
from .common import InvalidJsonBody, get_services, read_json_body


async def progress_handler(request: web.Request) -> web.Response:
    """
    POST /progress

    Body: {"fishes": [{"tokenId": "1", "rarity": "COMMON"}, ...]}
    """
    try:
        body = await read_json_body(request)
    except InvalidJsonBody:
        return error_response("INVALID_JSON", 400)

    fishes = body.get("fishes")
    if not isinstance(fishes, list):
        return error_response("INVALID_FISHES", 400)

    progress = await get_services(request).progression.get_progress(fishes)
    return web.json_response({"ok": True, "progressByToken": progress})


async def feed_handler(request: web.Request) -> web.Response:
    """
    POST /feed

    Body: {"tokenId": "1", "rarity": "COMMON", "walletAddress"?, "fid"?}
    """
    try:
        body = await read_json_body(request)
    except InvalidJsonBody:
        return error_response("INVALID_JSON", 400)

    token_id = body.get("tokenId")
    rarity = body.get("rarity")
    if token_id is None or token_id == "" or not rarity:
        return error_response("MISSING_PARAMS", 400)

    try:
        result = await get_services(request).progression.feed(
            token_id=token_id,
            rarity=rarity,
            wallet_address=body.get("walletAddress"),
            fid=body.get("fid"),
        )
    except FeedOnCooldown as e:
        return error_response(
            e.code,
            429,
            remainingMs=e.remaining_ms,
            retryAt=e.retry_at,
            cooldownMs=e.cooldown_ms,
            lastFeedAt=e.last_feed_at,
        )

    return web.json_response({"ok": True, **result})
