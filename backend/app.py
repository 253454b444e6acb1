"""FastAPI application factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.v1 import auth, comments, posts
from core import TokenConfigurationError, configure_logging, settings
from db.session import async_engine
from services.errors import ApiError

logger = logging.getLogger(__name__)

API_PREFIX = "/api"
MISSING_FIELDS_MESSAGE = "Missing required fields"
INTERNAL_ERROR_MESSAGE = "Internal server error"


def _message_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def _describe_validation_errors(errors: list[dict[str, Any]]) -> str:
    if any(error.get("type") == "missing" for error in errors):
        return MISSING_FIELDS_MESSAGE
    if not errors:
        return "Invalid request"

    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    detail = str(first.get("msg", "Invalid value"))
    if location:
        return f"Invalid {'.'.join(location)}: {detail}"
    return detail


async def _handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    return _message_response(exc.status_code, exc.message)


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _message_response(
        status.HTTP_400_BAD_REQUEST,
        _describe_validation_errors(list(exc.errors())),
    )


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _message_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    if not settings.jwt_secret:
        logger.warning("JWT_SECRET is not set; sign-in and authenticated routes will fail")
    if not settings.google_client_id or not settings.google_client_secret:
        logger.info("Google sign-in is disabled (client credentials not configured)")
    logger.info("Starting feed API (env=%s)", settings.app_env)
    yield
    await async_engine.dispose()


def create_app() -> FastAPI:
    configure_logging(settings.log_level)

    application = FastAPI(title="Feed API", lifespan=lifespan)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.exception_handler(ApiError)(_handle_api_error)
    application.exception_handler(RequestValidationError)(_handle_validation_error)
    application.add_exception_handler(TokenConfigurationError, _handle_unexpected_error)
    application.add_exception_handler(Exception, _handle_unexpected_error)

    application.include_router(auth.router, prefix=API_PREFIX)
    application.include_router(posts.router, prefix=API_PREFIX)
    application.include_router(comments.router, prefix=API_PREFIX)

    @application.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return application
