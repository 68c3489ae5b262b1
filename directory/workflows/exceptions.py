"""Failures raised by the account lifecycle workflows."""

from __future__ import annotations

from typing import Mapping, Sequence

from ..services.errors import ErrorKind, user_message


class WorkflowError(Exception):
    status_code = 400
    code = "workflow_error"
    default_message = "The request could not be completed."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ApplicationInvalid(WorkflowError):
    """Input failed validation before any collaborator was called."""

    code = "invalid"
    default_message = "The submitted data is invalid."

    def __init__(self, errors: Mapping[str, Sequence[str]]):
        super().__init__(self.default_message)
        self.errors = {field: list(messages) for field, messages in errors.items()}


class NotAuthorized(WorkflowError):
    status_code = 403
    code = "permission_denied"
    default_message = "You don't have permission to access this page."


class AccountNotFound(WorkflowError):
    status_code = 404
    code = "not_found"
    default_message = "Account not found."


class InvalidTransition(WorkflowError):
    status_code = 409
    code = "invalid_transition"
    default_message = "The account is not in a state that allows this action."


class RegistrationFailed(WorkflowError):
    """A registration step failed after earlier steps had already run."""

    code = "registration_failed"

    def __init__(self, step: str, kind: ErrorKind, message: str | None = None):
        super().__init__(message or user_message(kind))
        self.step = step
        self.kind = kind
