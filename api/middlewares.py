"""
API middlewares.

- CORS: any origin (the game client is served from third-party hosts)
- Errors: service exceptions -> {"ok": false, "error": CODE}
"""

from aiohttp import web
from loguru import logger

from app.utils.exceptions import (
    BettaError,
    ConfigurationError,
    ContractNotConfigured,
    FeedOnCooldown,
    InvalidInput,
    NotTokenOwner,
    ProviderError,
    StorageError,
)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,HEAD,PUT,PATCH,POST,DELETE",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

# First match wins, so subclasses come before their bases
STATUS_BY_ERROR: tuple[tuple[type[BettaError], int], ...] = (
    (InvalidInput, 400),
    (NotTokenOwner, 403),
    (FeedOnCooldown, 429),
    (ContractNotConfigured, 503),
    (ConfigurationError, 500),
    (ProviderError, 502),
    (StorageError, 500),
)


def status_for(error: BettaError) -> int:
    """HTTP status for a service error."""
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 500


def error_response(code: str, status: int, **extra) -> web.Response:
    """JSON error body in the API's {ok, error} shape."""
    return web.json_response({"ok": False, "error": code, **extra}, status=status)


@web.middleware
async def cors_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Answer preflight requests and add CORS headers to every response."""
    if request.method == "OPTIONS":
        return web.Response(status=204, headers=CORS_HEADERS)

    try:
        response = await handler(request)
    except web.HTTPException as exc:
        exc.headers.update(CORS_HEADERS)
        raise

    response.headers.update(CORS_HEADERS)
    return response


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Map service errors to JSON responses; log unexpected ones."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except BettaError as e:
        status = status_for(e)
        if status >= 500:
            logger.error(f"{request.method} {request.path} failed: {e}")
        else:
            logger.info(f"{request.method} {request.path} rejected: {e.code}")
        return error_response(e.code, status)
    except Exception as e:
        logger.exception(f"{request.method} {request.path} error: {e}")
        return error_response("INTERNAL_ERROR", 500)
