"""
Practice Board - Error taxonomy and HTTP mapping.

Every failure the API can report is one of the exceptions below.
``register_exception_handlers`` turns them into ``{"error": ...}`` JSON
responses with a fixed status code so route handlers can simply raise.
"""

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from loguru import logger


class PracticeBoardError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class ConfigurationError(PracticeBoardError):
    """Admin credentials or the signing secret are missing."""


class AuthenticationFailure(PracticeBoardError):
    """Bad credentials, or an invalid / expired / malformed session token."""


class ValidationError(PracticeBoardError):
    """A mutation request is missing a required field."""


class NotFound(PracticeBoardError):
    """No record exists with the requested id."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(f"{entity_type} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class StoreError(PracticeBoardError):
    """The backing database failed."""


def register_exception_handlers(app: FastAPI, expose_details: bool = False) -> None:
    """Install JSON handlers for the error taxonomy.

    When *expose_details* is set (non-production), store failures also carry
    the underlying database message in a ``details`` field.
    """

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        logger.error("❌ Configuration error at {}: {}", request.url.path, exc.message)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": exc.message},
        )

    @app.exception_handler(AuthenticationFailure)
    async def authentication_failure_handler(
        request: Request, exc: AuthenticationFailure
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"error": exc.message},
        )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        logger.warning("⚠️ Validation error at {}: {}", request.url.path, exc.message)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": exc.message},
        )

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
        logger.info(
            "🔍 {} {} not found at {}", exc.entity_type, exc.entity_id, request.url.path
        )
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": exc.message},
        )

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        cause = exc.__cause__ or exc
        logger.error(
            "❌ {} {} — store failure: {}", request.method, request.url.path, cause
        )
        content = {"error": exc.message}
        if expose_details:
            content["details"] = str(cause)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=content,
        )
