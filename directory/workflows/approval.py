"""Operator review of pending registrations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from smtplib import SMTPException
from typing import Optional

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from ..models import ApprovalStatus, Person, Role, UserToken
from ..permissions import authorize, role_of
from ..services.errors import IdentityError
from ..services.identity import IdentityStore, get_identity_store
from ..utils import send_user_email
from .exceptions import AccountNotFound, ApplicationInvalid, InvalidTransition, NotAuthorized

logger = logging.getLogger(__name__)

User = get_user_model()

ACTIVATION_REDIRECT = "/set-password"

APPROVED_MESSAGE = (
    "Registration approved successfully! The user has been sent an email "
    "with instructions to set their password."
)
APPROVED_WITHOUT_EMAIL_MESSAGE = (
    "Registration approved successfully, but failed to send email. "
    "Please manually send the user their activation link."
)
REJECTED_MESSAGE = "Registration rejected. The user has been notified with the reason provided."
REJECTED_WITHOUT_EMAIL_MESSAGE = (
    "Registration rejected, but the notification email could not be sent."
)


@dataclass
class ApprovalResult:
    account: "User"
    email_sent: bool
    message: str


class ApprovalWorkflow:
    required_role = Role.SUPER_ADMIN

    def __init__(self, identity_store: Optional[IdentityStore] = None):
        self.identity_store = identity_store or get_identity_store()

    def list_pending(self, actor):
        self._require_reviewer(actor)
        return (
            User.objects.filter(approval_status=ApprovalStatus.PENDING)
            .select_related("person")
            .order_by("-date_joined")
        )

    def approve(self, actor, account_id) -> ApprovalResult:
        self._require_reviewer(actor)
        with transaction.atomic():
            account = self._lock_pending(account_id, require_linked=True)
            account.approval_status = ApprovalStatus.APPROVED
            account.approval_date = timezone.now()
            account.approved_by = actor
            account.save(update_fields=[
                "approval_status",
                "approval_date",
                "approved_by",
                "updated_at",
            ])
        logger.info("Account %s approved by %s", account.pk, actor.pk)

        email_sent = self._send_activation(account)
        return ApprovalResult(
            account=account,
            email_sent=email_sent,
            message=APPROVED_MESSAGE if email_sent else APPROVED_WITHOUT_EMAIL_MESSAGE,
        )

    def reject(self, actor, account_id, reason: str | None) -> ApprovalResult:
        self._require_reviewer(actor)
        reason = (reason or "").strip()
        if not reason:
            raise ApplicationInvalid(
                {"reason": ["Rejection reason is required."]})
        with transaction.atomic():
            account = self._lock_pending(account_id)
            account.approval_status = ApprovalStatus.REJECTED
            account.approval_date = timezone.now()
            account.approved_by = actor
            account.registration_notes = reason
            account.save(update_fields=[
                "approval_status",
                "approval_date",
                "approved_by",
                "registration_notes",
                "updated_at",
            ])
        logger.info("Account %s rejected by %s", account.pk, actor.pk)

        try:
            send_user_email("rejection", account, reason=reason)
        except (SMTPException, OSError) as exc:
            logger.warning(
                "Could not send rejection notice to account %s: %s", account.pk, exc)
            return ApprovalResult(account, False, REJECTED_WITHOUT_EMAIL_MESSAGE)
        return ApprovalResult(account, True, REJECTED_MESSAGE)

    def resend_activation(self, actor, account_id) -> ApprovalResult:
        self._require_reviewer(actor)
        account = self._get_account(account_id)
        if account.approval_status != ApprovalStatus.APPROVED or account.is_active:
            raise InvalidTransition(
                "Activation emails can only be sent to approved accounts that are not yet active.")
        self.identity_store.send_recovery_email(
            account.email, ACTIVATION_REDIRECT, token_type=UserToken.ACTIVATION)
        return ApprovalResult(account, True, "Activation email sent.")

    def invite(self, actor, email: str, role: str = Role.USER, **person_fields) -> ApprovalResult:
        """
        Create an approved but inactive account with its person profile.

        The invitee receives the same activation email an approved applicant
        gets and becomes active only through the set-password step.
        """
        if not authorize(Role.ADMIN, role_of(actor)) or not authorize(role, role_of(actor)):
            raise NotAuthorized()
        with transaction.atomic():
            account = User.objects.create_user(
                email=email,
                first_name=person_fields.get("first_name", ""),
                last_name=person_fields.get("last_name", ""),
                phone=person_fields.get("phone", ""),
                role=role,
                approval_status=ApprovalStatus.APPROVED,
                approval_date=timezone.now(),
                approved_by=actor,
                is_active=False,
            )
            person = Person.objects.create(
                user=account,
                email=account.email,
                is_active=False,
                is_verified=False,
                **person_fields,
            )
            account.person = person
            account.save(update_fields=["person", "updated_at"])
        logger.info("Account %s invited by %s", account.pk, actor.pk)

        email_sent = self._send_activation(account)
        message = (
            "Invitation sent." if email_sent
            else "Account created, but failed to send email. "
                 "Please manually send the user their activation link."
        )
        return ApprovalResult(account=account, email_sent=email_sent, message=message)

    def _send_activation(self, account) -> bool:
        try:
            self.identity_store.send_recovery_email(
                account.email, ACTIVATION_REDIRECT, token_type=UserToken.ACTIVATION)
        except IdentityError as exc:
            logger.warning(
                "Account %s approved but activation email failed: %s (%s)",
                account.pk, exc.detail, exc.kind.value,
            )
            return False
        return True

    def _require_reviewer(self, actor) -> None:
        if not authorize(self.required_role, role_of(actor)):
            raise NotAuthorized()

    def _get_account(self, account_id):
        try:
            return User.objects.get(pk=account_id)
        except (User.DoesNotExist, ValueError, DjangoValidationError) as exc:
            raise AccountNotFound() from exc

    def _lock_pending(self, account_id, require_linked: bool = False):
        try:
            account = User.objects.select_for_update().get(pk=account_id)
        except (User.DoesNotExist, ValueError, DjangoValidationError) as exc:
            raise AccountNotFound() from exc
        if account.approval_status != ApprovalStatus.PENDING:
            raise InvalidTransition(
                f"This registration has already been {account.approval_status}.")
        if require_linked and account.is_unfinished_registration:
            raise InvalidTransition(
                "This registration is incomplete and cannot be approved until the "
                "applicant finishes submitting it.")
        return account
