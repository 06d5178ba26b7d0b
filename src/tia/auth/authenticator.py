# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from tia.auth.errors import FailureReason
from tia.auth.passwords import digests_match
from tia.auth.users import UserDirectory, UserRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthSuccess:
    user: UserRecord

    @property
    def success(self) -> bool:
        return True


@dataclass(frozen=True)
class AuthFailure:
    reason: FailureReason

    @property
    def success(self) -> bool:
        return False


AuthResult = Union[AuthSuccess, AuthFailure]


class Authenticator:
    def __init__(self, directory: UserDirectory) -> None:
        self.directory = directory

    async def authenticate(self, username: str, plain: str) -> AuthResult:
        """Check a username/password pair against the directory.

        Failures are returned, not raised, so callers can render the reason.
        """
        user = self.directory.find_by_username(username)
        if user is None:
            return AuthFailure(FailureReason.USER_NOT_FOUND)
        if not plain:
            return AuthFailure(FailureReason.INVALID_CREDENTIALS)

        supplied = await self.directory.hasher.hash(plain)
        if not digests_match(user.password_hash, supplied):
            return AuthFailure(FailureReason.INVALID_CREDENTIALS)
        return AuthSuccess(user)
