"""Structured failures raised by the identity and document collaborators."""

from __future__ import annotations

import enum


class ErrorKind(str, enum.Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    ACCOUNT_DEACTIVATED = "account_deactivated"
    RATE_LIMITED = "rate_limited"
    DUPLICATE_EMAIL = "duplicate_email"
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    SESSION_REQUIRED = "session_required"
    RECOVERY_LINK_INVALID = "recovery_link_invalid"
    RECOVERY_LINK_EXPIRED = "recovery_link_expired"
    WEAK_PASSWORD = "weak_password"
    PASSWORD_REUSED = "password_reused"
    DELIVERY_FAILED = "delivery_failed"
    STORAGE_FAILED = "storage_failed"
    UNKNOWN = "unknown"


USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.INVALID_CREDENTIALS: "Invalid email or password. Please try again.",
    ErrorKind.ACCOUNT_DEACTIVATED: "Your account has been deactivated. Please contact support.",
    ErrorKind.RATE_LIMITED: "Too many login attempts. Please try again in a few minutes.",
    ErrorKind.DUPLICATE_EMAIL: (
        "This email is already registered. Please use a different email or try logging in."
    ),
    ErrorKind.NOT_FOUND: "The requested account could not be found.",
    ErrorKind.PERMISSION_DENIED: "You don't have permission to perform this action.",
    ErrorKind.SESSION_REQUIRED: "Invalid session. Please use the link from your email.",
    ErrorKind.RECOVERY_LINK_INVALID: (
        "Invalid or expired activation link. Please request a new one."
    ),
    ErrorKind.RECOVERY_LINK_EXPIRED: (
        "Your activation link has expired. Please request a new one."
    ),
    ErrorKind.WEAK_PASSWORD: "Password does not meet the security requirements.",
    ErrorKind.PASSWORD_REUSED: (
        "New password should be different from the old password."
    ),
    ErrorKind.DELIVERY_FAILED: "We could not send the email. Please try again later.",
    ErrorKind.STORAGE_FAILED: "Failed to upload CV. Please try again.",
    ErrorKind.UNKNOWN: "An unexpected error occurred. Please try again.",
}

HTTP_STATUS: dict[ErrorKind, int] = {
    ErrorKind.INVALID_CREDENTIALS: 401,
    ErrorKind.ACCOUNT_DEACTIVATED: 403,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.DUPLICATE_EMAIL: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.PERMISSION_DENIED: 403,
    ErrorKind.SESSION_REQUIRED: 401,
    ErrorKind.RECOVERY_LINK_INVALID: 400,
    ErrorKind.RECOVERY_LINK_EXPIRED: 400,
    ErrorKind.WEAK_PASSWORD: 400,
    ErrorKind.PASSWORD_REUSED: 400,
    ErrorKind.DELIVERY_FAILED: 502,
    ErrorKind.STORAGE_FAILED: 502,
    ErrorKind.UNKNOWN: 400,
}


def user_message(kind: ErrorKind) -> str:
    return USER_MESSAGES.get(kind, USER_MESSAGES[ErrorKind.UNKNOWN])


def http_status(kind: ErrorKind) -> int:
    return HTTP_STATUS.get(kind, HTTP_STATUS[ErrorKind.UNKNOWN])


class CollaboratorError(Exception):
    """Base class for failures reported by an external collaborator."""

    def __init__(self, kind: ErrorKind, detail: str | None = None):
        super().__init__(detail or user_message(kind))
        self.kind = kind
        self.detail = detail or user_message(kind)

    @property
    def message(self) -> str:
        return self.detail


class IdentityError(CollaboratorError):
    """Raised when the identity store refuses an operation."""


class DocumentStoreError(CollaboratorError):
    """Raised when a document cannot be stored or located."""
