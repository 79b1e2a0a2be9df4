"""
Domain exceptions for the point-of-sale core and the DRF handler that renders
them as ``{"code", "detail", "correlation_id"}`` responses.
"""

import logging
from functools import wraps

from django.core.exceptions import ObjectDoesNotExist
from django.db import DatabaseError
from django.http import Http404
from rest_framework import status
from rest_framework import exceptions as drf_exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core_backend.middleware import get_correlation_id

logger = logging.getLogger(__name__)


class POSError(Exception):
    """Base exception for point-of-sale errors."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "POS_ERROR"

    def __init__(self, message=None, **details):
        self.message = message or self.default_message()
        self.details = details
        super().__init__(self.message)

    def default_message(self):
        return "Point-of-sale error"


class ValidationError(POSError):
    """Raised when input is malformed before any state is touched."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"

    def default_message(self):
        return "Invalid input"


class BusinessRuleViolation(POSError):
    """Raised when a well-formed request breaks a business rule."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "BUSINESS_RULE_VIOLATION"


class InsufficientStock(BusinessRuleViolation):
    """Raised when a product cannot cover the requested quantity."""

    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_name, available, requested=None, message=None):
        self.product_name = product_name
        self.available = available
        self.requested = requested
        if message is None:
            message = f"Insufficient stock for {product_name}. Available: {available}"
        super().__init__(
            message,
            product=product_name,
            available=available,
            requested=requested,
        )


class InvalidStatusTransition(BusinessRuleViolation):
    """Raised when an order is moved along an edge the lifecycle forbids."""

    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current_status, new_status, message=None):
        self.current_status = current_status
        self.new_status = new_status
        if message is None:
            message = f"Cannot transition order from {current_status} to {new_status}"
        super().__init__(message, current=current_status, requested=new_status)


class NotFound(POSError):
    """Raised when a referenced order or product does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"

    def default_message(self):
        return "Not found"


class Conflict(POSError):
    """Raised when a uniqueness guarantee could not be satisfied."""

    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"

    def default_message(self):
        return "Conflicting update"


class InternalError(POSError):
    """Raised when storage fails. The original error is logged, never returned."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL_ERROR"

    def __init__(self, message=None, correlation_id=None, **details):
        self.correlation_id = correlation_id or get_correlation_id()
        super().__init__(message, **details)

    def default_message(self):
        return "Internal error"


DRF_ERROR_CODES = {
    status.HTTP_400_BAD_REQUEST: ValidationError.code,
    status.HTTP_401_UNAUTHORIZED: "NOT_AUTHENTICATED",
    status.HTTP_403_FORBIDDEN: "PERMISSION_DENIED",
    status.HTTP_404_NOT_FOUND: NotFound.code,
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


def pos_exception_handler(exc, context):
    """
    DRF exception handler that renders POSError subclasses, DRF's own errors
    and anything unexpected with one envelope. Unexpected errors are logged
    with their traceback and answered with a generic InternalError body.
    """
    correlation_id = get_correlation_id()

    if isinstance(exc, POSError):
        data = {
            "code": exc.code,
            "detail": exc.message,
            "correlation_id": correlation_id,
        }
        extra = {k: v for k, v in exc.details.items() if v is not None}
        if extra:
            data["meta"] = extra

        if isinstance(exc, InternalError):
            logger.error(f"Internal error [{correlation_id}]: {exc.message}")
        else:
            logger.warning(f"{exc.code}: {exc.message}")
        return Response(data, status=exc.status_code)

    if isinstance(exc, ObjectDoesNotExist):
        exc = Http404(str(exc))

    response = exception_handler(exc, context)
    if response is None:
        logger.error(
            f"Unhandled error [{correlation_id}]: {exc.__class__.__name__}: {exc}",
            exc_info=(type(exc), exc, exc.__traceback__),
        )
        return Response(
            {
                "code": InternalError.code,
                "detail": InternalError().message,
                "correlation_id": correlation_id,
            },
            status=InternalError.status_code,
        )

    if isinstance(exc, drf_exceptions.ValidationError):
        detail = "Invalid input"
        response.data = {
            "code": ValidationError.code,
            "detail": detail,
            "errors": response.data,
            "correlation_id": correlation_id,
        }
        return response

    detail = response.data.get("detail", "") if isinstance(response.data, dict) else ""
    response.data = {
        "code": DRF_ERROR_CODES.get(response.status_code, "ERROR"),
        "detail": str(detail),
        "correlation_id": correlation_id,
    }
    return response


def wrap_storage_errors(func):
    """
    Convert ``DatabaseError`` raised by a service call into ``InternalError``.
    Apply outside ``transaction.atomic`` so the rollback has already happened.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DatabaseError as e:
            correlation_id = get_correlation_id()
            logger.error(
                f"Storage failure in {func.__qualname__} [{correlation_id}]: {e}",
                exc_info=True,
            )
            raise InternalError(correlation_id=correlation_id) from e

    return wrapper
