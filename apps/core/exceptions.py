"""
Error taxonomy shared by every workflow service.

Services raise these directly; they are DRF APIExceptions so views don't
need try/except blocks, and the handler below renders them as
{"error": <kind>, "detail": <message>}.
"""

import functools
import logging

from django.db import OperationalError
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

logger = logging.getLogger("freightlink.errors")


class FreightError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "error"
    default_detail = "Request could not be processed."

    def __init__(self, detail=None):
        super().__init__(detail or self.default_detail)

    @property
    def message(self) -> str:
        return str(self.detail)


class ValidationError(FreightError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "validation_error"
    default_detail = "Invalid input."


class AuthorizationError(FreightError):
    status_code = status.HTTP_403_FORBIDDEN
    kind = "authorization_error"
    default_detail = "You may not act on this resource."


class NotFoundError(FreightError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"
    default_detail = "Resource not found."


class ConflictError(FreightError):
    status_code = status.HTTP_409_CONFLICT
    kind = "conflict"
    default_detail = "Conflicting state."


class StateError(FreightError):
    """Operation not valid for the entity's current status."""
    status_code = status.HTTP_409_CONFLICT
    kind = "state_error"

    def __init__(self, current, attempted, entity="order", message=None):
        self.current   = str(current)
        self.attempted = str(attempted)
        super().__init__(message or f"Cannot move {entity} from {self.current} to {self.attempted}")


def freight_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is not None and isinstance(exc, FreightError):
        body = {"error": exc.kind, "detail": exc.message}
        if isinstance(exc, StateError):
            body["current"]   = exc.current
            body["attempted"] = exc.attempted
        response.data = body
        logger.info("%s: %s", exc.kind, exc.message)
    return response


# PostgreSQL serialization failure and deadlock: the other transaction won.
LOCK_FAILURE_SQLSTATES = {"40001", "40P01"}


def is_lock_failure(exc: OperationalError) -> bool:
    cause = exc.__cause__
    code = getattr(cause, "sqlstate", None) or getattr(cause, "pgcode", None)
    return code in LOCK_FAILURE_SQLSTATES


def conflict_on_lock_failure(func):
    """
    Report a transaction the database aborted in favour of a concurrent one
    as ConflictError. Goes outside @transaction.atomic so the rollback has
    already happened when the error is translated.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except OperationalError as exc:
            if not is_lock_failure(exc):
                raise
            logger.warning("%s lost a concurrent update: %s", func.__qualname__, exc)
            raise ConflictError("The resource was modified concurrently; retry the request.") from exc
    return wrapper
