"""
Holder for the identity session a workflow acts under.

Workflows never ask the identity store "who am I" on their own; they open
a :class:`SessionContext`, ``init`` it with the session returned by the
store, and ``teardown`` when done. Interested parties subscribe with
``on_change`` and are told every time the session is set or cleared.
"""

from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Optional

from django.utils import timezone

from .errors import ErrorKind, IdentityError

if TYPE_CHECKING:
    from .identity import IdentityStore

logger = logging.getLogger(__name__)


class SessionKind(str, enum.Enum):
    PASSWORD = "password"
    RECOVERY = "recovery"


@dataclass(frozen=True)
class IdentitySession:
    account_id: uuid.UUID
    email: str
    kind: SessionKind = SessionKind.PASSWORD
    token: Optional[str] = None
    opened_at: datetime = field(default_factory=timezone.now)

    @property
    def is_recovery(self) -> bool:
        return self.kind == SessionKind.RECOVERY


Subscriber = Callable[[Optional[IdentitySession]], None]


class SessionContext:
    def __init__(self, identity_store: "IdentityStore"):
        self._identity_store = identity_store
        self._session: Optional[IdentitySession] = None
        self._subscribers: list[Subscriber] = []

    def __enter__(self) -> "SessionContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.teardown()

    @property
    def current(self) -> Optional[IdentitySession]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def init(self, session: IdentitySession) -> IdentitySession:
        self._session = session
        logger.debug("Session opened for account %s (%s)",
                     session.account_id, session.kind.value)
        self._notify()
        return session

    def require(self) -> IdentitySession:
        if self._session is None:
            raise IdentityError(ErrorKind.SESSION_REQUIRED)
        return self._session

    def on_change(self, subscriber: Subscriber) -> Callable[[], None]:
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def teardown(self) -> None:
        session = self._session
        if session is None:
            return
        try:
            self._identity_store.sign_out(session)
        finally:
            self._session = None
            logger.debug("Session closed for account %s", session.account_id)
            self._notify()

    def _notify(self) -> None:
        for subscriber in list(self._subscribers):
            subscriber(self._session)
