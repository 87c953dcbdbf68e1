import logging

from fastapi import HTTPException

from sitemapper.exceptions import (
    CollectionNotFoundError,
    InvalidInputError,
    ProjectNotFoundError,
    RunAlreadyActiveError,
)

logger = logging.getLogger(__name__)


def to_http_exception(e: Exception) -> HTTPException:
    """Map engine errors to HTTP errors without leaking internal details."""
    if isinstance(e, ProjectNotFoundError):
        return HTTPException(status_code=404, detail="project not found")
    if isinstance(e, CollectionNotFoundError):
        return HTTPException(status_code=404, detail="validation not found")
    if isinstance(e, InvalidInputError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, RunAlreadyActiveError):
        return HTTPException(status_code=409, detail="run already active")
    logger.exception("Unhandled engine error")
    return HTTPException(status_code=500, detail="internal error")
