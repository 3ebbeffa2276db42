"""
Application error taxonomy and the handlers that turn it into JSON.

Services raise these exceptions; nothing below the router layer builds
HTTP responses.  Every error body carries ``message`` and
``success: false`` so clients can treat all failures uniformly.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def payload(self) -> dict:
        return {"message": self.message, "success": False}


class MissingFieldsError(AppError):
    """One or more mandatory fields were absent from the request."""

    status_code = 422

    def __init__(self, errors: dict[str, str]):
        super().__init__("validation failed: " + ", ".join(errors))
        self.errors = errors

    def payload(self) -> dict:
        return {**super().payload(), "errors": self.errors}


class NotFoundError(AppError):
    status_code = 404


class TagReferenceError(AppError):
    """A submitted tag does not exist."""

    status_code = 404

    def __init__(self, missing: list[str]):
        super().__init__("the tag does not exist: " + ", ".join(missing))
        self.missing = missing


class ConflictError(AppError):
    status_code = 409


class AuthenticationError(AppError):
    status_code = 401


class InvalidCredentialsError(AppError):
    status_code = 400


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.payload())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = {}
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"] if part != "body")
        errors[field or "body"] = err["msg"]
    return JSONResponse(
        status_code=422,
        content={"message": "validation failed", "success": False, "errors": errors},
    )


async def persistence_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    # Forward the driver's message, never the traceback.
    message = str(getattr(exc, "orig", None) or exc)
    logger.error("Persistence failure on %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=500, content={"message": message, "success": False})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, persistence_error_handler)
