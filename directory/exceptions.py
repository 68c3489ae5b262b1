"""DRF exception handler rendering workflow and collaborator failures."""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.exceptions import Throttled, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .services.errors import CollaboratorError, ErrorKind, http_status, user_message
from .workflows.exceptions import ApplicationInvalid, RegistrationFailed, WorkflowError

logger = logging.getLogger(__name__)

# Kinds whose detail may carry backend internals; clients only see the stock text.
OPAQUE_KINDS = frozenset({
    ErrorKind.DELIVERY_FAILED,
    ErrorKind.STORAGE_FAILED,
    ErrorKind.UNKNOWN,
})


def _collaborator_payload(exc: CollaboratorError) -> dict:
    detail = user_message(exc.kind) if exc.kind in OPAQUE_KINDS else exc.message
    return {"detail": detail, "code": exc.kind.value}


def api_exception_handler(exc, context):
    if isinstance(exc, ApplicationInvalid):
        exc = ValidationError(exc.errors)
    elif isinstance(exc, RegistrationFailed):
        payload = {"detail": exc.message, "code": exc.kind.value, "step": exc.step}
        return Response(payload, status=http_status(exc.kind))
    elif isinstance(exc, CollaboratorError):
        if exc.kind == ErrorKind.UNKNOWN:
            logger.exception("Unclassified collaborator failure")
        return Response(_collaborator_payload(exc), status=http_status(exc.kind))
    elif isinstance(exc, WorkflowError):
        return Response({"detail": exc.message, "code": exc.code}, status=exc.status_code)

    response = exception_handler(exc, context)
    if response is not None and isinstance(exc, Throttled):
        response.data = {
            "detail": user_message(ErrorKind.RATE_LIMITED),
            "code": ErrorKind.RATE_LIMITED.value,
            "wait": exc.wait,
        }
        response.status_code = status.HTTP_429_TOO_MANY_REQUESTS
    return response
