# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Single entry point for the rest of the app.

Pages only talk to SessionFacade; storage details stay behind it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from tia.auth.authenticator import AuthResult, AuthSuccess, Authenticator
from tia.auth.bootstrap import ensure_default_account
from tia.auth.passwords import CredentialHasher
from tia.auth.session import REMEMBER_KEY, SessionRecord, SessionStore
from tia.auth.users import DEFAULT_ROLE, UserDirectory, UserRecord
from tia.config import Settings
from tia.infra.storage import KeyValueStore

logger = logging.getLogger(__name__)


class SessionFacade:
    def __init__(
        self,
        directory: UserDirectory,
        sessions: SessionStore,
        authenticator: Optional[Authenticator] = None,
        *,
        default_username: Optional[str] = None,
        default_password: Optional[str] = None,
    ) -> None:
        self.directory = directory
        self.sessions = sessions
        self.authenticator = authenticator or Authenticator(directory)
        self._default_username = default_username
        self._default_password = default_password

    async def login(self, username: str, password: str, remember: bool = False) -> AuthResult:
        result = await self.authenticator.authenticate(username, password)
        if isinstance(result, AuthSuccess):
            # set_session may rewrite the durable store file.
            await asyncio.to_thread(self.sessions.set_session, result.user, remember)
            logger.info("Login ok for '%s' (remember=%s)", result.user.username, remember)
        else:
            logger.info("Login failed for '%s': %s", (username or "").strip(), result.reason.value)
        return result

    def logout(self, forget: bool = False) -> None:
        self.sessions.clear_session()
        if forget:
            self.sessions.forget()

    def is_authenticated(self) -> bool:
        return self.sessions.is_authenticated()

    def get_session(self) -> Optional[SessionRecord]:
        return self.sessions.get_session()

    async def create_user(self, username: str, password: str, role: str = DEFAULT_ROLE) -> UserRecord:
        return await self.directory.create(username, password, role)

    async def ensure_default_account(self) -> None:
        kwargs = {}
        if self._default_username:
            kwargs["username"] = self._default_username
        if self._default_password:
            kwargs["password"] = self._default_password
        await ensure_default_account(self.directory, **kwargs)

    def find_user_by_username(self, username: str) -> Optional[UserRecord]:
        return self.directory.find_by_username(username)


def build_facade(
    durable: KeyValueStore,
    volatile: KeyValueStore,
    settings: Optional[Settings] = None,
    *,
    directory: Optional[UserDirectory] = None,
    hasher: Optional[CredentialHasher] = None,
    remember_key: str = REMEMBER_KEY,
) -> SessionFacade:
    """Wire a facade for one browsing context.

    Pass `directory` to share one users cache between several contexts, and
    `remember_key` to keep the remember pointer private to one browser when
    several browsers share the durable store.
    """
    if directory is None:
        if hasher is None:
            hasher = CredentialHasher(settings.hash_salt) if settings else CredentialHasher()
        directory = UserDirectory(durable, hasher)
    sessions = SessionStore(volatile, durable, directory, remember_key=remember_key)
    return SessionFacade(
        directory,
        sessions,
        default_username=settings.default_username if settings else None,
        default_password=settings.default_password if settings else None,
    )
