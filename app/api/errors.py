"""Domain exception → HTTP response mapping.

Every error body carries an `error` message. Provider and unexpected
failures add a `detail` field outside production only.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.domain.exceptions import (
    ConfigurationError,
    DomainValidationError,
    EntityNotFoundError,
    ExhaustedRetriesError,
    ProviderError,
    RateLimitedError,
    TerminalError,
)

logger = logging.getLogger(__name__)


def _provider_body(message: str, exc: ProviderError) -> dict:
    body = {"error": message}
    if not settings.is_production:
        body["detail"] = str(exc)
    return body


async def entity_not_found_handler(request: Request, exc: EntityNotFoundError):
    return JSONResponse(status_code=404, content={"error": str(exc)})


async def domain_validation_handler(request: Request, exc: DomainValidationError):
    return JSONResponse(status_code=400, content={"error": exc.detail})


async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error(f"Configuration error on {request.url.path}: {exc.detail}")
    return JSONResponse(status_code=500, content={"error": exc.detail})


async def terminal_error_handler(request: Request, exc: TerminalError):
    return JSONResponse(status_code=502, content=_provider_body("Generation provider rejected the request", exc))


async def exhausted_retries_handler(request: Request, exc: ExhaustedRetriesError):
    return JSONResponse(status_code=503, content=_provider_body("Generation provider unavailable, please try again later", exc))


async def rate_limited_handler(request: Request, exc: RateLimitedError):
    return JSONResponse(
        status_code=429,
        content={"error": exc.message, "retryAfter": exc.retry_after},
        headers={"Retry-After": str(exc.retry_after)},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = "Endpoint not found"
    else:
        message = exc.detail
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": message},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    body = {"error": "Internal server error"}
    if not settings.is_production:
        body["detail"] = str(exc)
    return JSONResponse(status_code=500, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(EntityNotFoundError, entity_not_found_handler)
    app.add_exception_handler(DomainValidationError, domain_validation_handler)
    app.add_exception_handler(ConfigurationError, configuration_error_handler)
    app.add_exception_handler(TerminalError, terminal_error_handler)
    app.add_exception_handler(ExhaustedRetriesError, exhausted_retries_handler)
    app.add_exception_handler(RateLimitedError, rate_limited_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
