"""
Domain exceptions and their JSON rendering.

Services raise these; the handlers registered by `register_exception_handlers`
turn them into `{"error": <code>, "message": <text>, ...}` bodies.
"""
import logging
import traceback
from decimal import Decimal
from typing import Any, Iterable, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from stockroom.core.config import get_settings

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base class for errors that map onto an HTTP response."""
    status_code = status.HTTP_400_BAD_REQUEST
    code = "error"

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[dict] = None):
        self.message = message
        if code:
            self.code = code
        self.details = details or {}
        super().__init__(message)


class ValidationError(ServiceError):
    code = "validation_error"

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message, details={"errors": errors} if errors else None)
        self.errors = errors or []


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"

    def __init__(self, resource: str, identifier: Any, message: Optional[str] = None):
        super().__init__(
            message or f"{resource} not found: {identifier}",
            details={"resource": resource, "identifier": str(identifier)},
        )
        self.resource = resource
        self.identifier = identifier


class MissingRecipesError(NotFoundError):
    """A batch referenced recipes that do not exist; the whole batch is invalid."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, recipe_ids: Iterable[Any]):
        ids = [str(recipe_id) for recipe_id in recipe_ids]
        super().__init__("Recipe", ", ".join(ids))
        self.details = {"resource": "Recipe", "missing_ids": ids}
        self.recipe_ids = ids


class InsufficientStockError(ServiceError):
    code = "insufficient_stock"

    def __init__(self, product_name: str, department_name: str, available: Decimal, requested: Decimal):
        super().__init__(
            f"Not enough stock of {product_name} in {department_name}: "
            f"available {available}, requested {requested}",
            details={
                "product": product_name,
                "department": department_name,
                "available": available,
                "requested": requested,
            },
        )
        self.available = available
        self.requested = requested


class AuthError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "not_authorized"


class PermissionDeniedError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


def _error_body(code: str, message: str, details: Optional[dict] = None) -> dict:
    body = {"error": code, "message": message}
    if details:
        body.update(details)
    return jsonable_encoder(body)


async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.code, exc.message, exc.details),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(
            "validation_error",
            "Invalid request data",
            {"details": exc.errors()},
        ),
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    """Handle unexpected server errors with structured response."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    content = {
        "error": "internal_server_error",
        "message": "An unexpected error occurred. Please try again later.",
        "request_id": request.headers.get("X-Request-ID"),
    }
    if get_settings().DEBUG:
        content["message"] = str(exc)
        content["traceback"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
