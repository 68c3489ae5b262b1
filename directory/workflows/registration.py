"""
Self-registration of applicants.

An application produces a pending account and an unverified person profile,
never an active login. Each step is a separate collaborator call and the
account's ``workflow_state`` records how far the procedure got, so a repeated
submission for the same email finishes the missing steps instead of leaving
an orphaned identity behind.
"""

from __future__ import annotations

import logging
import secrets
import uuid
from dataclasses import dataclass, field, replace
from smtplib import SMTPException
from typing import Any, Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError

from ..models import ApprovalStatus, Person, RegistrationState, compose_full_name
from ..services.documents import CV_BUCKET, DocumentStore, get_document_store
from ..services.errors import CollaboratorError, ErrorKind
from ..services.identity import IdentityStore, get_identity_store
from ..services.sessions import IdentitySession, SessionContext
from ..utils import send_user_email
from ..validators import validate_cv_upload, validate_email_shape, validate_required_text
from .exceptions import ApplicationInvalid, RegistrationFailed

logger = logging.getLogger(__name__)

User = get_user_model()


def generate_placeholder_password() -> str:
    return secrets.token_urlsafe(32) + "Aa1!"


@dataclass
class RegistrationApplication:
    first_name: str
    last_name: str
    email: str
    cv: Any = None
    accepted_terms: bool = False
    middle_name: str = ""
    phone: str = ""
    title: str = ""
    affiliation: str = ""
    position: str = ""

    @property
    def full_name(self) -> str:
        return compose_full_name(self.first_name, self.middle_name, self.last_name)

    def cleaned(self) -> "RegistrationApplication":
        """Return a normalized copy, or raise with every field error at once."""
        errors: dict[str, list[str]] = {}
        values: dict[str, Any] = {}
        checks = (
            ("first_name", lambda: validate_required_text(
                self.first_name, "First name")),
            ("last_name", lambda: validate_required_text(
                self.last_name, "Last name")),
            ("email", lambda: validate_email_shape(self.email)),
        )
        for name, check in checks:
            try:
                values[name] = check()
            except DjangoValidationError as exc:
                errors[name] = list(exc.messages)
        try:
            validate_cv_upload(self.cv)
        except DjangoValidationError as exc:
            errors["cv"] = list(exc.messages)
        if self.accepted_terms is not True:
            errors["accepted_terms"] = [
                "You must agree to the terms and conditions"]
        if errors:
            raise ApplicationInvalid(errors)
        return replace(
            self,
            middle_name=(self.middle_name or "").strip(),
            phone=(self.phone or "").strip(),
            title=(self.title or "").strip(),
            affiliation=(self.affiliation or "").strip(),
            position=(self.position or "").strip(),
            **values,
        )


@dataclass
class RegistrationOutcome:
    account_id: uuid.UUID
    person_id: uuid.UUID
    resumed: bool = False
    message: str = field(default="")


def _identity_metadata(application: RegistrationApplication) -> dict[str, Any]:
    return {
        "first_name": application.first_name,
        "last_name": application.last_name,
        "full_name": application.full_name,
        "pending_approval": True,
    }


class RegistrationWorkflow:
    def __init__(self, identity_store: Optional[IdentityStore] = None,
                 document_store: Optional[DocumentStore] = None):
        self.identity_store = identity_store or get_identity_store()
        self.document_store = document_store or get_document_store()

    def submit(self, application: RegistrationApplication) -> RegistrationOutcome:
        application = application.cleaned()
        password = generate_placeholder_password()

        account = self._find_resumable(application.email)
        resumed = account is not None
        if account is None:
            account = self._create_identity(application, password)
        else:
            logger.info("Resuming registration for account %s at %s",
                        account.pk, account.workflow_state)
            self._call("reissue_credentials", self.identity_store.reissue_credentials,
                       account.pk, password)
            self._refresh_account(account, application)

        with SessionContext(self.identity_store) as sessions:
            session = sessions.init(self._call(
                "authenticate", self.identity_store.authenticate,
                application.email, password))
            if not RegistrationState.reached(account.workflow_state, RegistrationState.UPLOADED_CV):
                self._upload_cv(account, session, application)
            if not RegistrationState.reached(account.workflow_state, RegistrationState.PROFILE_WRITTEN):
                self._write_account_profile(account, application)
            if not RegistrationState.reached(account.workflow_state, RegistrationState.PERSON_WRITTEN):
                self._write_person(account, application)
            if not RegistrationState.reached(account.workflow_state, RegistrationState.LINKED):
                self._link_person(account)

        self._notify_received(account)
        return RegistrationOutcome(
            account_id=account.pk,
            person_id=account.person_id,
            resumed=resumed,
            message=(
                "Registration submitted. An administrator will review your "
                f"application within {settings.REGISTRATION_REVIEW_DAYS} business days."
            ),
        )

    def _find_resumable(self, email: str):
        account = User.objects.filter(email__iexact=email).first()
        if account is None:
            return None
        resumable = (
            account.identity_metadata.get("pending_approval") is True
            and account.approval_status == ApprovalStatus.PENDING
            and not account.is_active
            and account.workflow_state != RegistrationState.LINKED
        )
        return account if resumable else None

    def _create_identity(self, application: RegistrationApplication, password: str):
        account_id = self._call("create_identity", self.identity_store.create_account,
                                application.email, password, _identity_metadata(application))
        account = User.objects.get(pk=account_id)
        account.advance_workflow(RegistrationState.CREATED_IDENTITY)
        return account

    def _refresh_account(self, account, application: RegistrationApplication) -> None:
        account.first_name = application.first_name
        account.last_name = application.last_name
        account.phone = application.phone
        account.identity_metadata = {
            **account.identity_metadata, **_identity_metadata(application)}
        account.save(update_fields=[
            "first_name",
            "last_name",
            "phone",
            "identity_metadata",
            "updated_at",
        ])

    def _upload_cv(self, account, session: IdentitySession,
                   application: RegistrationApplication) -> None:
        stored = self._call("upload_cv", self.document_store.upload,
                            session, CV_BUCKET, account.pk, application.cv, prefix="cv")
        account.cv_url = stored.url
        account.workflow_state = RegistrationState.UPLOADED_CV
        account.save(update_fields=["cv_url", "workflow_state", "updated_at"])
        logger.debug("Stored CV for account %s", account.pk)

    def _write_account_profile(self, account, application: RegistrationApplication) -> None:
        account.phone = application.phone
        account.approval_status = ApprovalStatus.PENDING
        account.is_active = False
        account.workflow_state = RegistrationState.PROFILE_WRITTEN
        account.save(update_fields=[
            "phone",
            "approval_status",
            "is_active",
            "workflow_state",
            "updated_at",
        ])

    def _write_person(self, account, application: RegistrationApplication) -> None:
        person = Person.objects.filter(user=account).first()
        if person is None:
            person = Person(user=account)
        person.first_name = application.first_name
        person.last_name = application.last_name
        person.middle_name = application.middle_name
        person.title = application.title
        person.email = account.email
        person.phone = application.phone
        person.affiliation = application.affiliation
        person.position = application.position
        person.cv_url = account.cv_url
        person.is_verified = False
        person.is_active = False
        person.save()
        account.advance_workflow(RegistrationState.PERSON_WRITTEN)
        logger.debug("Wrote person %s for account %s", person.pk, account.pk)

    def _link_person(self, account) -> None:
        person_id = Person.objects.filter(
            user=account).values_list("id", flat=True).first()
        if person_id is None:
            raise RegistrationFailed(
                "link_person",
                ErrorKind.NOT_FOUND,
                "Your profile could not be saved. Please submit the form again.",
            )
        account.person_id = person_id
        account.workflow_state = RegistrationState.LINKED
        account.save(update_fields=["person", "workflow_state", "updated_at"])
        logger.info("Registration for account %s is complete", account.pk)

    def _notify_received(self, account) -> None:
        try:
            send_user_email("registration_received", account)
        except (SMTPException, OSError) as exc:
            logger.warning(
                "Could not send registration receipt to account %s: %s", account.pk, exc)

    def _call(self, step: str, operation, *args, **kwargs):
        try:
            return operation(*args, **kwargs)
        except CollaboratorError as exc:
            logger.warning("Registration step %s failed: %s (%s)",
                           step, exc.detail, exc.kind.value)
            raise RegistrationFailed(step, exc.kind) from exc


def submit_registration(application: RegistrationApplication) -> RegistrationOutcome:
    return RegistrationWorkflow().submit(application)
