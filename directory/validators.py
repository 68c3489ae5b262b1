"""Field rules shared by the workflows, serializers and password validation."""

from __future__ import annotations

import re
from typing import Any

from django.core.exceptions import ValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
ORCID_REGEX = re.compile(r"^\d{4}-\d{4}-\d{4}-\d{3}[0-9X]$", re.IGNORECASE)
ISSN_REGEX = re.compile(r"^\d{4}-\d{3}[0-9X]$", re.IGNORECASE)

CV_MAX_BYTES = 5 * 1024 * 1024
CV_CONTENT_TYPES = frozenset({
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
})

PASSWORD_MIN_LENGTH = 8


def validate_email_shape(value: str | None) -> str:
    normalized = (value or "").strip().lower()
    if not normalized:
        raise ValidationError("Email address is required", code="required")
    if not EMAIL_PATTERN.match(normalized):
        raise ValidationError(
            "Please enter a valid email address", code="invalid")
    return normalized


def validate_required_text(value: str | None, label: str) -> str:
    normalized = (value or "").strip()
    if not normalized:
        raise ValidationError(f"{label} is required", code="required")
    return normalized


def validate_cv_upload(upload: Any) -> None:
    """Check presence, MIME type and size of an uploaded CV."""
    if upload is None:
        raise ValidationError(
            "Please upload your CV/Resume (PDF or Word document)", code="required")
    content_type = (getattr(upload, "content_type", "") or "").lower()
    if content_type not in CV_CONTENT_TYPES:
        raise ValidationError(
            "Please upload a valid CV file (PDF or Word document)", code="invalid_type")
    size = getattr(upload, "size", None)
    if size is None or size > CV_MAX_BYTES:
        raise ValidationError(
            "CV file size must be less than 5MB", code="too_large")


def validate_orcid(value: str | None) -> str:
    normalized = (value or "").strip()
    if not normalized:
        return ""
    if not ORCID_REGEX.match(normalized):
        raise ValidationError(
            "ORCID must be in format: XXXX-XXXX-XXXX-XXXX", code="invalid")
    return normalized.upper()


def validate_issn(value: str | None) -> str:
    normalized = (value or "").strip()
    if not normalized:
        return ""
    if not ISSN_REGEX.match(normalized):
        raise ValidationError(
            "ISSN must be in format: XXXX-XXXX (e.g., 1234-567X)", code="invalid")
    return normalized.upper()


def password_complexity_error(password: str) -> str | None:
    if len(password) < PASSWORD_MIN_LENGTH:
        return f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"
    has_upper = any(char.isupper() for char in password)
    has_lower = any(char.islower() for char in password)
    has_digit = any(char.isdigit() for char in password)
    if not (has_upper and has_lower and has_digit):
        return "Password must contain uppercase, lowercase, and numbers"
    return None


def check_password_policy(password: str | None, confirm_password: str | None) -> None:
    """Raise on the first policy violation, in the order users fix them."""
    if not password:
        raise ValidationError("Password is required", code="required")
    message = password_complexity_error(password)
    if message:
        raise ValidationError(message, code="weak")
    if password != confirm_password:
        raise ValidationError("Passwords do not match", code="mismatch")


class PasswordComplexityValidator:
    """AUTH_PASSWORD_VALIDATORS entry enforcing the mixed-case-and-digit rule."""

    def validate(self, password, user=None):
        message = password_complexity_error(password or "")
        if message:
            raise ValidationError(message, code="password_too_simple")

    def get_help_text(self):
        return (
            "Your password must be at least 8 characters and contain "
            "uppercase, lowercase, and numbers."
        )
