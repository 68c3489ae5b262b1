"""
Password setting for approved applicants and password recovery for members.

Both paths start from an emailed single-use link. The link opens a recovery
session held in a :class:`SessionContext`; the new password is checked
locally before the identity store is contacted at all.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from ..models import ApprovalStatus, Person, UserToken
from ..services.errors import ErrorKind, IdentityError
from ..services.identity import IdentityStore, get_identity_store
from ..services.sessions import SessionContext
from ..validators import check_password_policy, validate_email_shape
from .exceptions import ApplicationInvalid, InvalidTransition

logger = logging.getLogger(__name__)

User = get_user_model()

RESET_REDIRECT = "/reset-password"

ACTIVATED_MESSAGE = "Password set successfully! You can now log in with your new password."
RESET_MESSAGE = "Password has been reset. You can now log in with your new password."
RESET_REQUESTED_MESSAGE = (
    "If an account exists for that email, a password reset link has been sent."
)


@dataclass
class ActivationResult:
    account: "User"
    message: str


def _check_password(password: str | None, confirm_password: str | None) -> None:
    try:
        check_password_policy(password, confirm_password)
    except DjangoValidationError as exc:
        field = "confirm_password" if exc.code == "mismatch" else "password"
        raise ApplicationInvalid({field: list(exc.messages)}) from exc


class ActivationWorkflow:
    def __init__(self, identity_store: Optional[IdentityStore] = None):
        self.identity_store = identity_store or get_identity_store()

    def set_password(self, token: str, new_password: str | None,
                     confirm_password: str | None) -> ActivationResult:
        _check_password(new_password, confirm_password)
        with SessionContext(self.identity_store) as sessions:
            session = sessions.init(self.identity_store.open_recovery_session(
                token, token_type=UserToken.ACTIVATION))
            account = self._get_account(session.account_id)
            if (account.approval_status != ApprovalStatus.APPROVED
                    or account.is_unfinished_registration):
                logger.warning(
                    "Refused activation of account %s in state %s",
                    account.pk, account.approval_status,
                )
                raise InvalidTransition(
                    "Only approved registrations can be activated.")
            self.identity_store.update_credentials(session, new_password)
            self._activate(account)
        return ActivationResult(account=account, message=ACTIVATED_MESSAGE)

    def request_password_reset(self, email: str | None) -> str:
        try:
            normalized = validate_email_shape(email)
        except DjangoValidationError as exc:
            raise ApplicationInvalid({"email": list(exc.messages)}) from exc
        if not User.objects.filter(email__iexact=normalized, is_active=True).exists():
            logger.info("Password reset requested for an unknown or inactive email")
            return RESET_REQUESTED_MESSAGE
        try:
            self.identity_store.send_recovery_email(
                normalized, RESET_REDIRECT, token_type=UserToken.RESET)
        except IdentityError as exc:
            if exc.kind != ErrorKind.NOT_FOUND:
                raise
        return RESET_REQUESTED_MESSAGE

    def reset_password(self, token: str, new_password: str | None,
                       confirm_password: str | None) -> ActivationResult:
        _check_password(new_password, confirm_password)
        with SessionContext(self.identity_store) as sessions:
            session = sessions.init(self.identity_store.open_recovery_session(
                token, token_type=UserToken.RESET))
            self.identity_store.update_credentials(session, new_password)
            account = self._get_account(session.account_id)
        logger.info("Password reset for account %s", account.pk)
        return ActivationResult(account=account, message=RESET_MESSAGE)

    def _get_account(self, account_id):
        try:
            return User.objects.get(pk=account_id)
        except User.DoesNotExist as exc:
            raise IdentityError(ErrorKind.NOT_FOUND) from exc

    def _activate(self, account) -> None:
        with transaction.atomic():
            account.is_active = True
            account.approval_status = ApprovalStatus.APPROVED
            account.save(update_fields=["is_active", "approval_status", "updated_at"])
            people = Person.objects.filter(Q(user=account) | Q(pk=account.person_id))
            people.update(is_active=True, is_verified=True, updated_at=timezone.now())
        logger.info("Account %s activated", account.pk)


def set_password(token: str, new_password: str | None,
                 confirm_password: str | None) -> ActivationResult:
    return ActivationWorkflow().set_password(token, new_password, confirm_password)
