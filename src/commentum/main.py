# src/commentum/main.py
"""Main entry point for the Commentum application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from commentum import __version__
from commentum.api.v1 import (
    auth_router,
    comments_router,
    media_router,
    moderation_router,
    reports_router,
    users_router,
    votes_router,
)
from commentum.core.settings import settings
from commentum.services.votes import VoteConflictError

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

_ACTION_TAG_ERRORS = {"union_tag_invalid", "union_tag_not_found"}

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Comment and moderation API for media tracking clients",
    version=__version__,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(comments_router, prefix="/api/v1")
app.include_router(media_router, prefix="/api/v1")
app.include_router(votes_router, prefix="/api/v1")
app.include_router(reports_router, prefix="/api/v1")
app.include_router(moderation_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")


def _is_action_error(error: dict) -> bool:
    if error.get("type") in _ACTION_TAG_ERRORS:
        return True
    location = error.get("loc", ())
    return bool(location) and location[-1] == "action"


def _validation_message(exc: RequestValidationError) -> str:
    """Render the first validation error as ``field: message``.

    A missing or unknown ``action`` is reported as such, whichever union member
    pydantic happened to try first.
    """
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    if any(_is_action_error(error) for error in errors):
        return "Invalid action"
    first = errors[0]
    # Only the field name; the rest of the location names internal models.
    fields = [part for part in first.get("loc", ()) if isinstance(part, str) and part != "body"]
    message = first.get("msg", "Invalid value")
    return f"{fields[-1]}: {message}" if fields else message


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": _validation_message(exc)},
    )


@app.exception_handler(VoteConflictError)
async def vote_conflict_handler(request: Request, exc: VoteConflictError) -> JSONResponse:
    logger.warning("%s", exc)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"error": "Vote could not be applied due to concurrent updates; please retry"},
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error while handling %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": __version__,
        "description": "Comment and moderation API for media tracking clients",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("commentum.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
