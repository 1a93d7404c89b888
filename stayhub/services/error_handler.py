"""
Error response formatting for the StayHub Listing API.
Every failure leaves the API as {"error": {"code", "message", "timestamp", "request_id", "details"?}}.
"""

from typing import Dict, Any, Optional, List
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from stayhub.config import settings
from stayhub.utils.exceptions import APIException, ValidationError, UpstreamError
from datetime import datetime, timezone
import logging
import uuid

logger = logging.getLogger(__name__)

# Substrings of driver messages mapped to client-safe constraint descriptions
CONSTRAINT_MESSAGES = (
    ("unique", "Duplicate value for unique field"),
    ("foreign key", "Referenced record does not exist"),
    ("not null", "Required field cannot be empty"),
    ("check constraint", "Value does not meet validation requirements"),
)

# Request locations FastAPI prefixes onto field paths
_LOCATION_PREFIXES = {"body", "query", "path", "form"}


class ErrorHandlerService:
    """Builds the error envelope and logs each failure with a short request id."""

    @staticmethod
    def format_error_response(
        error_code: str,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
        request_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Build the error envelope.

        Args:
            error_code: Machine-readable code, e.g. "LOCATION_NOT_RESOLVED"
            message: Human-readable message
            details: Field-level problems, omitted when empty
            request_id: Short id echoed in the logs
        """
        error: Dict[str, Any] = {
            "code": error_code,
            "message": message,
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
        }
        if details:
            error["details"] = details
        if request_id:
            error["request_id"] = request_id
        return {"error": error}

    @classmethod
    def _respond(
        cls,
        status_code: int,
        error_code: str,
        message: str,
        request_id: str,
        details: Optional[List[Dict[str, Any]]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content=cls.format_error_response(error_code, message, details, request_id),
            headers=headers
        )

    @staticmethod
    def _context(request: Optional[Request], request_id: str, **extra) -> Dict[str, Any]:
        return {"request_id": request_id, "path": request.url.path if request else None, **extra}

    @classmethod
    def handle_api_exception(cls, exception: APIException, request: Optional[Request] = None) -> JSONResponse:
        """
        Render an APIException.
        Upstream failures keep the collaborator's message out of the response unless debug is on.
        """
        request_id = _new_request_id()
        message = exception.detail

        if isinstance(exception, UpstreamError):
            logger.error(
                f"[{request_id}] {exception.service} failure: {exception.upstream_detail}",
                extra=cls._context(request, request_id, service=exception.service)
            )
            if not settings.debug:
                message = f"{exception.service} service is unavailable. Please try again later."
        else:
            logger.warning(
                f"[{request_id}] {exception.status_code} {exception.error_code}: {exception.detail}",
                extra=cls._context(request, request_id, error_code=exception.error_code)
            )

        return cls._respond(
            exception.status_code,
            exception.error_code or "API_ERROR",
            message,
            request_id,
            details=exception.field_errors if isinstance(exception, ValidationError) else None,
            headers=exception.headers
        )

    @classmethod
    def handle_validation_error(cls, exception: Exception, request: Optional[Request] = None) -> JSONResponse:
        """
        Render FastAPI request validation errors and pydantic errors raised while building schemas.
        Both become 400 VALIDATION_ERROR; a single problem is named in the message.
        """
        request_id = _new_request_id()

        details = []
        for error in exception.errors():
            field = " -> ".join(str(part) for part in error["loc"] if part not in _LOCATION_PREFIXES)
            details.append({"field": field or "request", "message": error["msg"], "type": error["type"]})

        logger.warning(
            f"[{request_id}] request rejected with {len(details)} field errors",
            extra=cls._context(request, request_id)
        )

        if len(details) == 1:
            message = f"{details[0]['field']}: {details[0]['message']}"
        else:
            message = "Request validation failed"

        return cls._respond(400, "VALIDATION_ERROR", message, request_id, details=jsonable_encoder(details))

    @classmethod
    def handle_database_error(cls, exception: SQLAlchemyError, request: Optional[Request] = None) -> JSONResponse:
        """Integrity violations become 409; anything else from the database is a 500."""
        request_id = _new_request_id()

        if isinstance(exception, IntegrityError):
            status_code, error_code = 409, "INTEGRITY_ERROR"
            constraint = cls._extract_constraint_info(exception)
            message = f"Constraint violation: {constraint}" if constraint else "Data integrity constraint violation"
        else:
            status_code, error_code = 500, "DATABASE_ERROR"
            message = "Database operation failed"

        logger.error(
            f"[{request_id}] {error_code} ({type(exception).__name__}): {exception}",
            extra=cls._context(request, request_id),
            exc_info=True
        )
        return cls._respond(status_code, error_code, message, request_id)

    @classmethod
    def handle_http_exception(
        cls,
        exception: StarletteHTTPException,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """Unknown routes, wrong methods and other framework-raised HTTP errors."""
        request_id = _new_request_id()
        logger.warning(
            f"[{request_id}] HTTP {exception.status_code}: {exception.detail}",
            extra=cls._context(request, request_id)
        )
        return cls._respond(
            exception.status_code,
            f"HTTP_{exception.status_code}",
            str(exception.detail),
            request_id,
            headers=getattr(exception, "headers", None)
        )

    @classmethod
    def handle_unexpected_error(cls, exception: Exception, request: Optional[Request] = None) -> JSONResponse:
        """Anything uncaught; the client only sees a generic message."""
        request_id = _new_request_id()
        logger.error(
            f"[{request_id}] unhandled {type(exception).__name__}: {exception}",
            extra=cls._context(request, request_id),
            exc_info=exception
        )
        return cls._respond(
            500,
            "INTERNAL_SERVER_ERROR",
            "An unexpected error occurred. Please try again later.",
            request_id
        )

    @staticmethod
    def _extract_constraint_info(exception: IntegrityError) -> Optional[str]:
        """Describe the violated constraint without leaking the driver message."""
        driver_message = str(exception.orig).lower()
        for needle, description in CONSTRAINT_MESSAGES:
            if needle in driver_message:
                return description
        return None


def _new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def _error_example(code: str, message: str) -> Dict[str, Any]:
    return {
        "application/json": {
            "example": {
                "error": {
                    "code": code,
                    "message": message,
                    "timestamp": "2024-01-01T00:00:00.000000Z",
                    "request_id": "abc12345"
                }
            }
        }
    }


# Documented error responses, shared by the routers' OpenAPI metadata
ERROR_RESPONSES: Dict[int, Dict[str, Any]] = {
    400: {"description": "Bad Request", "content": _error_example("VALIDATION_ERROR", "name: Field required")},
    401: {"description": "Unauthorized", "content": _error_example("UNAUTHORIZED", "Authentication token required")},
    403: {"description": "Forbidden", "content": _error_example("LANDLORD_NOT_APPROVED", "Your landlord account is awaiting admin approval")},
    404: {"description": "Not Found", "content": _error_example("NOT_FOUND", "Hotel not found")},
    409: {"description": "Conflict", "content": _error_example("CONFLICT", "Account already exists")},
    500: {"description": "Internal Server Error", "content": _error_example("UPSTREAM_ERROR", "Geocoding service is unavailable. Please try again later.")},
}


def get_error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """Pick documented error responses for a route."""
    return {code: ERROR_RESPONSES[code] for code in status_codes if code in ERROR_RESPONSES}
