"""DRF exception handler producing a uniform error body.

Every error leaves the API as::

    {"code": "...", "message": "...", "timestamp": "...", "errors": [...]}

Domain errors map to a status code through their ``category``.  DRF and
Pydantic validation errors become ``VALIDATION_ERROR`` with one entry per
offending field.  Anything unrecognised is a 500.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.http import Http404
from django.utils import timezone
from pydantic import ValidationError as PydanticValidationError
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.settings import api_settings

from shared.domain.exceptions import DomainError, ErrorCategory

logger = structlog.get_logger(__name__)

CATEGORY_STATUS: Dict[str, int] = {
    ErrorCategory.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCategory.BUSINESS_RULE: status.HTTP_400_BAD_REQUEST,
    ErrorCategory.PAYMENT: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCategory.UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}

VALIDATION_ERROR = "VALIDATION_ERROR"
INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


def error_body(
    code: str, message: str, errors: Optional[List[Dict[str, Any]]] = None
) -> Dict[str, Any]:
    return {
        "code": code,
        "message": message,
        "timestamp": timezone.now().isoformat(),
        "errors": errors or [],
    }


def _flatten_drf_errors(detail: Any, prefix: str = "") -> List[Dict[str, Any]]:
    """Turn DRF's nested ``detail`` into ``[{field, message}]`` entries."""
    if isinstance(detail, dict):
        flattened: List[Dict[str, Any]] = []
        for key, value in detail.items():
            if isinstance(key, int):
                field = f"{prefix}[{key}]"
            elif key == api_settings.NON_FIELD_ERRORS_KEY and prefix:
                field = prefix
            else:
                field = f"{prefix}.{key}" if prefix else str(key)
            flattened.extend(_flatten_drf_errors(value, field))
        return flattened
    if isinstance(detail, list):
        if all(not isinstance(entry, (dict, list)) for entry in detail):
            field = prefix or "non_field_errors"
            return [{"field": field, "message": str(entry)} for entry in detail]
        flattened = []
        for index, entry in enumerate(detail):
            if entry:
                flattened.extend(_flatten_drf_errors(entry, f"{prefix}[{index}]"))
        return flattened
    return [{"field": prefix or "non_field_errors", "message": str(detail)}]


def _pydantic_errors(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    return [
        {
            "field": ".".join(str(part) for part in error["loc"]) or "non_field_errors",
            "message": error["msg"],
        }
        for error in exc.errors()
    ]


def api_exception_handler(exc: Exception, context: Dict[str, Any]) -> Response:
    view = context.get("view")
    log = logger.bind(
        view=view.__class__.__name__ if view is not None else None,
        exception=exc.__class__.__name__,
    )

    if isinstance(exc, DomainError):
        status_code = CATEGORY_STATUS.get(exc.category, status.HTTP_400_BAD_REQUEST)
        if status_code >= 500:
            log.error("api.domain_error", code=exc.code, error=exc.message)
        else:
            log.warning("api.domain_error", code=exc.code, error=exc.message)
        return Response(error_body(exc.code, exc.message), status=status_code)

    if isinstance(exc, PydanticValidationError):
        log.warning("api.validation_error")
        return Response(
            error_body(VALIDATION_ERROR, "Invalid request.", _pydantic_errors(exc)),
            status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, exceptions.ValidationError):
        log.warning("api.validation_error")
        return Response(
            error_body(
                VALIDATION_ERROR, "Invalid request.", _flatten_drf_errors(exc.detail)
            ),
            status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, Http404):
        exc = exceptions.NotFound()

    if isinstance(exc, exceptions.APIException):
        log.warning("api.error", status_code=exc.status_code)
        code = exc.get_codes()
        code = code.upper() if isinstance(code, str) else "ERROR"
        response = Response(error_body(code, str(exc.detail)), status=exc.status_code)
        wait = getattr(exc, "wait", None)
        if wait:
            response["Retry-After"] = str(int(wait))
        return response

    log.exception("api.unhandled_error")
    return Response(
        error_body(INTERNAL_SERVER_ERROR, "An unexpected error occurred."),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
