"""Login gate enforcing that only active accounts receive tokens."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from django.contrib.auth import get_user_model
from django.contrib.auth.models import update_last_login
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from ..models import Role
from ..permissions import authorize
from ..services.errors import ErrorKind, IdentityError
from ..services.identity import IdentityStore, get_identity_store

logger = logging.getLogger(__name__)

User = get_user_model()

OPERATOR_HOME = "/adm/dashboard"
PUBLIC_HOME = "/"


def destination_for(role: str | None) -> str:
    return OPERATOR_HOME if authorize(Role.ADMIN, role) else PUBLIC_HOME


@dataclass
class LoginResult:
    account: "User"
    role: str
    destination: str
    refresh: str
    access: str


class AuthenticationGate:
    def __init__(self, identity_store: Optional[IdentityStore] = None):
        self.identity_store = identity_store or get_identity_store()

    def login(self, email: str | None, password: str | None) -> LoginResult:
        normalized = (email or "").strip().lower()
        account = User.objects.filter(email__iexact=normalized).first()
        # Checked before the password so the answer never depends on it.
        if account is not None and not account.is_active:
            logger.info("Refused login for inactive account %s", account.pk)
            raise IdentityError(ErrorKind.ACCOUNT_DEACTIVATED)

        session = self.identity_store.authenticate(normalized, password or "")
        account = User.objects.get(pk=session.account_id)
        update_last_login(None, account)
        refresh = RefreshToken.for_user(account)
        logger.info("Account %s logged in as %s", account.pk, account.role)
        return LoginResult(
            account=account,
            role=account.role,
            destination=destination_for(account.role),
            refresh=str(refresh),
            access=str(refresh.access_token),
        )

    def logout(self, refresh_token: str | None) -> None:
        if not refresh_token:
            raise IdentityError(ErrorKind.SESSION_REQUIRED,
                                "A refresh token is required to log out.")
        try:
            RefreshToken(refresh_token).blacklist()
        except TokenError as exc:
            raise IdentityError(ErrorKind.SESSION_REQUIRED,
                                "Token is invalid or expired.") from exc
