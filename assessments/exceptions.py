"""
Errors raised by the attempt engine.

The engine itself is transport-agnostic; `attempt_exception_handler` maps
these errors onto DRF responses for the API layer.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class AttemptError(Exception):
    """Base class for every error surfaced by the attempt engine."""

    code = "attempt_error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "The attempt could not be processed."

    def __init__(self, message=None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class NotFound(AttemptError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found."


class InvalidState(AttemptError):
    code = "invalid_state"
    status_code = status.HTTP_409_CONFLICT
    default_message = "This operation is not allowed in the attempt's current state."


class Expired(InvalidState):
    """The attempt ran out of time; it has been submitted automatically."""

    code = "expired"
    status_code = status.HTTP_410_GONE
    default_message = "The time limit has expired. The attempt was submitted automatically."


class Forbidden(AttemptError):
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "A new attempt cannot be started for this exam."


class OutOfRange(AttemptError):
    code = "out_of_range"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Points must be between zero and the question's maximum."


def attempt_exception_handler(exc, context):
    if isinstance(exc, AttemptError):
        logger.info("Attempt error %s: %s", exc.code, exc.message)
        body = {"error": exc.message, "code": exc.code}
        body.update(exc.details)
        return Response(body, status=exc.status_code)
    return exception_handler(exc, context)
