from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string

if TYPE_CHECKING:
    from .models import User

EmailTemplate = Literal["activation", "reset", "rejection", "registration_received"]


def build_frontend_url(path: str) -> str:
    base_url = settings.FRONTEND_BASE_URL
    if path.startswith("/"):
        path = path[1:]
    return f"{base_url.rstrip('/')}/{path}"


def send_user_email(
    template: EmailTemplate,
    user: "User",
    action_path: str | None = None,
    **extra_context: Any,
) -> None:
    subject_map = {
        "activation": "Your PAMJE registration has been approved",
        "reset": "Reset your PAMJE password",
        "rejection": "Your PAMJE registration",
        "registration_received": "We received your PAMJE registration",
    }
    context = {
        "user": user,
        "action_url": build_frontend_url(action_path) if action_path else None,
        "review_days": settings.REGISTRATION_REVIEW_DAYS,
        **extra_context,
    }
    message = render_to_string(f"emails/{template}.txt", context)
    html_message = render_to_string(f"emails/{template}.html", context)
    send_mail(subject_map[template], message, settings.DEFAULT_FROM_EMAIL,
              [user.email], html_message=html_message)
