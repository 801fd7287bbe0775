"""
API application factory.
"""

from aiohttp import web

from api.handlers.common import SERVICES_KEY
from api.handlers.health import health_handler, index_handler
from api.handlers.ownership import owned_tokens_handler
from api.handlers.progression import feed_handler, progress_handler
from api.initialization.services import ServiceContainer
from api.middlewares import cors_middleware, error_middleware


def create_app(services: ServiceContainer) -> web.Application:
    """
    Build the aiohttp application.

    Args:
        services: Wired services

    Returns:
        Application with all routes registered
    """
    app = web.Application(middlewares=[cors_middleware, error_middleware])
    app[SERVICES_KEY] = services

    app.router.add_get("/", index_handler)
    app.router.add_get("/health", health_handler)
    app.router.add_get("/owned/{wallet}", owned_tokens_handler)
    app.router.add_post("/progress", progress_handler)
    app.router.add_post("/feed", feed_handler)

    return app
