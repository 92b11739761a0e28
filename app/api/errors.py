from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.errors import (
    ConfigurationError,
    MarketResearchError,
    NotFoundError,
    PaymentRequiredError,
    RateLimitError,
)
from app.services import logger as log_service


def _payload(error: str, diagnostics: dict[str, Any] | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"error": error}
    if diagnostics:
        body["diagnostics"] = diagnostics
    return body


def configuration_error_handler(request: Request, exc: ConfigurationError):
    return JSONResponse(
        _payload(str(exc), {**exc.details, "errorCode": exc.error_code}),
        status_code=400,
    )


def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(_payload(str(exc)), status_code=404)


def rate_limit_handler(request: Request, exc: RateLimitError):
    return JSONResponse(_payload(str(exc)), status_code=429)


def payment_required_handler(request: Request, exc: PaymentRequiredError):
    return JSONResponse(_payload(str(exc)), status_code=402)


def pipeline_error_handler(request: Request, exc: MarketResearchError):
    log_service.logger.error(f"{request.url.path} failed: {exc}")
    return JSONResponse(_payload(str(exc) or "Unknown error occurred"), status_code=500)


def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        _payload("Invalid request body", {"errors": jsonable_encoder(exc.errors())}),
        status_code=400,
    )


def generic_exception_handler(request: Request, exc: Exception):
    log_service.logger.exception(f"Unhandled error in {request.url.path}: {exc}")
    return JSONResponse(_payload(str(exc) or "Unknown error occurred"), status_code=500)


async def catch_unhandled_errors(request: Request, call_next):
    """Turn unexpected errors into JSON 500s inside the CORS middleware."""
    try:
        return await call_next(request)
    except Exception as exc:
        return generic_exception_handler(request, exc)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ConfigurationError, configuration_error_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(RateLimitError, rate_limit_handler)
    app.add_exception_handler(PaymentRequiredError, payment_required_handler)
    app.add_exception_handler(MarketResearchError, pipeline_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
