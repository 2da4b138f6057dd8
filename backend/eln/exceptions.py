"""Domain errors raised by the notebook model layer.

Routes let these propagate; ``register_exception_handlers`` turns them into
JSON responses so the model layer never has to know about HTTP.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ElnError(Exception):
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ImproperActionError(ElnError):
    """The request asked for an action that makes no sense for the target."""

    status_code = 400


class IllegalActionError(ElnError):
    """The acting user may not perform this action on this entity."""

    status_code = 403


class PermissionDeniedError(IllegalActionError):
    """Write access to the entity is required."""


class ResourceNotFoundError(ElnError):
    status_code = 404


async def _handle_eln_error(request: Request, exc: ElnError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Unhandled notebook error on %s: %s", request.url.path, exc.message)
    else:
        logger.info("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ElnError, _handle_eln_error)
