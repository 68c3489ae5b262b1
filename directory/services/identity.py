"""
Identity store: credentials, sessions and recovery emails.

The workflows only see the :class:`IdentityStore` interface. The default
implementation keeps credentials on the ``User`` model and delivers
recovery links through Django's mail framework.
"""

from __future__ import annotations

import abc
import logging
import uuid
from smtplib import SMTPException
from typing import Any, Mapping

from django.conf import settings
from django.contrib.auth import authenticate as django_authenticate
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.utils.module_loading import import_string

from ..models import ApprovalStatus, UserToken
from ..utils import send_user_email
from .errors import ErrorKind, IdentityError
from .sessions import IdentitySession, SessionKind

logger = logging.getLogger(__name__)

User = get_user_model()

RECOVERY_TEMPLATES = {
    UserToken.ACTIVATION: "activation",
    UserToken.RESET: "reset",
}


class IdentityStore(abc.ABC):
    @abc.abstractmethod
    def create_account(self, email: str, password: str, metadata: Mapping[str, Any]) -> uuid.UUID:
        """Create a login identity and return its id."""

    @abc.abstractmethod
    def reissue_credentials(self, account_id: uuid.UUID, password: str) -> None:
        """Replace the credential of an identity that has never been activated."""

    @abc.abstractmethod
    def authenticate(self, email: str, password: str) -> IdentitySession:
        """Check credentials and open a password session."""

    @abc.abstractmethod
    def send_recovery_email(self, email: str, redirect_path: str, *,
                            token_type: str = UserToken.ACTIVATION) -> None:
        """Email a single-use link that opens a recovery session."""

    @abc.abstractmethod
    def open_recovery_session(self, token: str, *,
                              token_type: str = UserToken.ACTIVATION) -> IdentitySession:
        """Exchange an emailed token for a recovery session."""

    @abc.abstractmethod
    def update_credentials(self, session: IdentitySession, new_password: str) -> None:
        """Set a new password for the session's identity."""

    @abc.abstractmethod
    def sign_out(self, session: IdentitySession) -> None:
        """Close a session."""


class DjangoIdentityStore(IdentityStore):
    def create_account(self, email, password, metadata):
        normalized = (email or "").strip().lower()
        if User.objects.filter(email__iexact=normalized).exists():
            raise IdentityError(ErrorKind.DUPLICATE_EMAIL)
        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    email=normalized,
                    password=password,
                    first_name=metadata.get("first_name", ""),
                    last_name=metadata.get("last_name", ""),
                    identity_metadata=dict(metadata),
                    is_active=False,
                    approval_status=ApprovalStatus.PENDING,
                )
        except IntegrityError as exc:
            raise IdentityError(ErrorKind.DUPLICATE_EMAIL) from exc
        logger.info("Created identity %s", user.pk)
        return user.pk

    def reissue_credentials(self, account_id, password):
        user = self._get_user(account_id)
        if user.is_active:
            raise IdentityError(
                ErrorKind.PERMISSION_DENIED,
                "Credentials of an active account cannot be reissued.",
            )
        user.set_password(password)
        user.save(update_fields=["password", "updated_at"])

    def authenticate(self, email, password):
        normalized = (email or "").strip().lower()
        user = django_authenticate(email=normalized, password=password)
        if user is None:
            raise IdentityError(ErrorKind.INVALID_CREDENTIALS)
        return IdentitySession(account_id=user.pk, email=user.email)

    def send_recovery_email(self, email, redirect_path, *, token_type=UserToken.ACTIVATION):
        normalized = (email or "").strip().lower()
        try:
            user = User.objects.get(email__iexact=normalized)
        except User.DoesNotExist as exc:
            raise IdentityError(ErrorKind.NOT_FOUND) from exc
        ttl_hours = (
            settings.ACTIVATION_TOKEN_TTL_HOURS
            if token_type == UserToken.ACTIVATION
            else settings.RESET_TOKEN_TTL_HOURS
        )
        token = UserToken.issue(user, token_type, ttl_hours=ttl_hours)
        try:
            send_user_email(
                RECOVERY_TEMPLATES[token_type],
                user,
                action_path=f"{redirect_path.lstrip('/')}?token={token.token}",
            )
        except (SMTPException, OSError) as exc:
            logger.warning(
                "Could not deliver %s email to account %s: %s", token_type, user.pk, exc)
            raise IdentityError(ErrorKind.DELIVERY_FAILED, str(exc)) from exc
        logger.info("Sent %s email to account %s", token_type, user.pk)

    def open_recovery_session(self, token, *, token_type=UserToken.ACTIVATION):
        try:
            token_obj = UserToken.objects.select_related("user").get(
                token=token, token_type=token_type)
        except UserToken.DoesNotExist as exc:
            raise IdentityError(ErrorKind.RECOVERY_LINK_INVALID) from exc
        if token_obj.is_used:
            raise IdentityError(ErrorKind.RECOVERY_LINK_INVALID)
        if token_obj.is_expired():
            raise IdentityError(ErrorKind.RECOVERY_LINK_EXPIRED)
        return IdentitySession(
            account_id=token_obj.user.pk,
            email=token_obj.user.email,
            kind=SessionKind.RECOVERY,
            token=token_obj.token,
        )

    def update_credentials(self, session, new_password):
        if session is None:
            raise IdentityError(ErrorKind.SESSION_REQUIRED)
        user = self._get_user(session.account_id)
        token_obj = None
        if session.is_recovery:
            token_obj = UserToken.objects.filter(
                token=session.token, user=user, is_used=False).first()
            if token_obj is None:
                raise IdentityError(ErrorKind.RECOVERY_LINK_INVALID)
        if user.has_usable_password() and user.check_password(new_password):
            raise IdentityError(ErrorKind.PASSWORD_REUSED)
        try:
            validate_password(new_password, user)
        except DjangoValidationError as exc:
            raise IdentityError(ErrorKind.WEAK_PASSWORD,
                                " ".join(exc.messages)) from exc
        user.set_password(new_password)
        user.save(update_fields=["password", "updated_at"])
        if token_obj is not None:
            token_obj.mark_used()
        logger.info("Updated credentials for account %s", user.pk)

    def sign_out(self, session):
        """Workflow sessions live only in memory; API tokens are revoked by the blacklist."""
        logger.debug("Signed out account %s", session.account_id)

    def _get_user(self, account_id):
        try:
            return User.objects.get(pk=account_id)
        except User.DoesNotExist as exc:
            raise IdentityError(ErrorKind.NOT_FOUND) from exc


def get_identity_store() -> IdentityStore:
    backend = getattr(settings, "PAMJE_IDENTITY_STORE",
                      "directory.services.identity.DjangoIdentityStore")
    return import_string(backend)()
