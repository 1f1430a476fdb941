"""
Error taxonomy shared by all apps.

Services raise these exceptions; the API layer never builds error responses
by hand. register_exception_handlers() wires them into a NinjaAPI so every
failure is rendered as {"error": "<message>"} with the matching status code.

Usage:
    from apps.core.errors import NotFoundError

    if not todo:
        raise NotFoundError("Todo not found")
"""
import logging
from typing import Optional

from django.http import Http404, HttpRequest
from ninja import NinjaAPI
from ninja.errors import HttpError
from ninja.errors import ValidationError as SchemaValidationError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


class ServiceError(Exception):
    """Base class for expected, client-facing failures."""
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None, extra: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra or {}

    def to_body(self) -> dict:
        return {"error": self.message, **self.extra}


class ValidationError(ServiceError):
    """Malformed or missing input. Raised before anything touches the store."""
    status_code = 400


class AuthError(ServiceError):
    """Bad credentials (401) or an unusable token (403)."""
    status_code = 401


class ConflictError(ServiceError):
    status_code = 409


class NotFoundError(ServiceError):
    """Missing, or owned by someone else. The two are never distinguished."""
    status_code = 404


def _describe_schema_error(exc: SchemaValidationError) -> str:
    errors = exc.errors or []
    if not errors:
        return "Invalid request"

    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "payload", "query", "path")]
    msg = first.get("msg", "Invalid value")
    if loc:
        return f"{'.'.join(loc)}: {msg}"
    return msg


def register_exception_handlers(api: NinjaAPI) -> None:
    """Install the JSON error renderers on a NinjaAPI instance."""

    @api.exception_handler(ServiceError)
    def service_error(request: HttpRequest, exc: ServiceError):
        return api.create_response(request, exc.to_body(), status=exc.status_code)

    @api.exception_handler(SchemaValidationError)
    def schema_error(request: HttpRequest, exc: SchemaValidationError):
        return api.create_response(request, {"error": _describe_schema_error(exc)}, status=400)

    @api.exception_handler(HttpError)
    def http_error(request: HttpRequest, exc: HttpError):
        return api.create_response(request, {"error": str(exc)}, status=exc.status_code)

    @api.exception_handler(Http404)
    def not_found(request: HttpRequest, exc: Http404):
        return api.create_response(request, {"error": "Not found"}, status=404)

    @api.exception_handler(Exception)
    def unexpected_error(request: HttpRequest, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.path}: {exc}")
        return api.create_response(request, {"error": INTERNAL_ERROR_MESSAGE}, status=500)
