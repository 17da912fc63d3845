"""
DRF exception handler translating errors into a consistent JSON shape.

Every error response produced by the API has the form:

    {"error": "<human readable message>", "error_code": "...", "details": {...}}

Status mapping:
    ValidationError       -> 400
    NotFoundError         -> 404
    ConflictError         -> 409
    ExternalServiceError  -> 500 (upstream body attached in details)
    ConfigurationError    -> 500
    DRF APIException      -> exception's own status, detail under "details"

Configured via REST_FRAMEWORK["EXCEPTION_HANDLER"] in settings.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: list[tuple[type[BaseApplicationError], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ExternalServiceError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_for_error(exc: BaseApplicationError) -> int:
    """Return the HTTP status for an application error."""
    for error_class, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_class):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _first_message(detail: Any) -> str:
    """Pull the first human readable message out of a DRF error detail."""
    if isinstance(detail, dict):
        for value in detail.values():
            return _first_message(value)
    if isinstance(detail, list) and detail:
        return _first_message(detail[0])
    return str(detail)


def api_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """
    Convert application and DRF exceptions into JSON error responses.

    Returns None for anything else so Django's 500 handling applies.
    """
    view = context.get("view")
    view_name = view.__class__.__name__ if view is not None else "unknown"

    if isinstance(exc, BaseApplicationError):
        status_code = status_for_error(exc)
        log_level = logging.ERROR if status_code >= 500 else logging.INFO
        logger.log(
            log_level,
            f"{exc.__class__.__name__} in {view_name}: {exc.message}",
            extra={
                "error_code": exc.error_code,
                "status_code": status_code,
            },
        )
        return Response(exc.to_dict(), status=status_code)

    if isinstance(exc, DRFValidationError):
        return Response(
            {
                "error": _first_message(exc.detail),
                "error_code": "VALIDATION_ERROR",
                "details": exc.detail,
            },
            status=status.HTTP_400_BAD_REQUEST,
        )

    response = exception_handler(exc, context)
    if response is not None and isinstance(exc, APIException):
        response.data = {
            "error": _first_message(exc.detail),
            "error_code": exc.default_code.upper(),
        }
    return response
