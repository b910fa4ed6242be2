"""Domain error taxonomy and the API error renderer.

Service code raises subclasses of ``DomainError``; each subclass fixes the
error ``kind`` and the HTTP status it maps to.  ``exception_handler`` is
wired as DRF's ``EXCEPTION_HANDLER`` and renders every error, domain or
framework, with the same shape::

    {"type": "<kind>", "errors": [{"code": ..., "detail": ..., "attr": ...}]}
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from pydantic import ValidationError as PydanticValidationError
from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import set_rollback

logger = structlog.get_logger(__name__)


class DomainError(Exception):
    """Base class for business-rule violations raised by the service layer."""

    kind = "client_error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request could not be processed."

    def __init__(
        self,
        detail: Optional[str] = None,
        *,
        code: Optional[str] = None,
        attr: Optional[str] = None,
    ) -> None:
        self.detail = detail or self.default_detail
        self.code = code or self.kind
        self.attr = attr
        super().__init__(self.detail)


class ValidationFailed(DomainError):
    kind = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input."


class AuthenticationError(DomainError):
    kind = "authentication_error"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Invalid credentials."


class AccessDenied(DomainError):
    kind = "access_denied"
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Access denied."


class NotFound(DomainError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."


class ConflictingState(DomainError):
    kind = "conflicting_state"
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource is not in a state that allows this operation."


class InvalidAmount(DomainError):
    kind = "invalid_amount"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid amount."


class AlreadyExists(DomainError):
    kind = "already_exists"
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource already exists."


# ---------------------------------------------------------------------------
# DRF integration
# ---------------------------------------------------------------------------

_DRF_KINDS = (
    (drf_exceptions.ValidationError, "validation_error"),
    (drf_exceptions.ParseError, "validation_error"),
    (drf_exceptions.NotAuthenticated, "authentication_error"),
    (drf_exceptions.AuthenticationFailed, "authentication_error"),
    (drf_exceptions.PermissionDenied, "access_denied"),
    (drf_exceptions.NotFound, "not_found"),
    (drf_exceptions.MethodNotAllowed, "method_not_allowed"),
    (drf_exceptions.Throttled, "throttled"),
)


def _flatten(detail: Any, attr: Optional[str] = None) -> list[dict[str, Any]]:
    """Flatten DRF's nested ``detail`` into a list of ``{code, detail, attr}``."""
    if isinstance(detail, dict):
        errors = []
        for key, value in detail.items():
            child = key if attr is None else f"{attr}.{key}"
            if key == "non_field_errors":
                child = attr
            errors.extend(_flatten(value, child))
        return errors
    if isinstance(detail, list):
        errors = []
        for index, value in enumerate(detail):
            child = attr
            if isinstance(value, (dict, list)) and attr is not None:
                child = f"{attr}.{index}"
            errors.extend(_flatten(value, child))
        return errors
    return [
        {
            "code": getattr(detail, "code", "error"),
            "detail": str(detail),
            "attr": attr,
        }
    ]


def _kind_for(exc: drf_exceptions.APIException) -> str:
    for exc_class, kind in _DRF_KINDS:
        if isinstance(exc, exc_class):
            return kind
    return "client_error" if exc.status_code < 500 else "server_error"


def exception_handler(exc: Exception, context: dict) -> Optional[Response]:
    """Render domain and framework errors in the standard error format."""
    view = context.get("view")
    view_name = view.__class__.__name__ if view is not None else None

    if isinstance(exc, DomainError):
        set_rollback()
        logger.info(
            "api.domain_error",
            kind=exc.kind,
            detail=exc.detail,
            view=view_name,
        )
        return Response(
            {
                "type": exc.kind,
                "errors": [{"code": exc.code, "detail": exc.detail, "attr": exc.attr}],
            },
            status=exc.status_code,
        )

    if isinstance(exc, PydanticValidationError):
        set_rollback()
        errors = [
            {
                "code": error["type"],
                "detail": error["msg"],
                "attr": ".".join(str(part) for part in error["loc"]) or None,
            }
            for error in exc.errors()
        ]
        return Response(
            {"type": "validation_error", "errors": errors},
            status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, Http404):
        exc = drf_exceptions.NotFound()
    elif isinstance(exc, DjangoPermissionDenied):
        exc = drf_exceptions.PermissionDenied()

    if isinstance(exc, drf_exceptions.APIException):
        set_rollback()
        headers = {}
        auth_header = getattr(exc, "auth_header", None)
        if auth_header:
            headers["WWW-Authenticate"] = auth_header
        wait = getattr(exc, "wait", None)
        if wait:
            headers["Retry-After"] = "%d" % wait
        return Response(
            {"type": _kind_for(exc), "errors": _flatten(exc.detail)},
            status=exc.status_code,
            headers=headers,
        )

    logger.exception("api.unhandled_error", view=view_name)
    set_rollback()
    return Response(
        {
            "type": "server_error",
            "errors": [
                {"code": "error", "detail": "Internal server error.", "attr": None}
            ],
        },
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
