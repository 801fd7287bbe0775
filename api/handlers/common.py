"""Shared handler helpers."""

import json
from typing import Any

from aiohttp import web

from api.initialization.services import ServiceContainer

SERVICES_KEY = web.AppKey("services", ServiceContainer)


class InvalidJsonBody(Exception):
    """Request body is not valid JSON."""


def get_services(request: web.Request) -> ServiceContainer:
    return request.app[SERVICES_KEY]


async def read_json_body(request: web.Request) -> dict[str, Any]:
    """
    Parse JSON object body; an empty body reads as {}.

    Raises:
        InvalidJsonBody: If the body is not a JSON object
    """
    raw = await request.text()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except ValueError as e:
        raise InvalidJsonBody(str(e)) from e
    if not isinstance(body, dict):
        raise InvalidJsonBody("Body must be a JSON object")
    return body
