# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Authentication and session handling.

This package provides:
- Deterministic credential digests (argon2id, fixed application salt)
- User directory persisted as JSON in the durable store
- Default account bootstrap
- Session store with an opt-in "remember me" pointer
- SessionFacade, the API the rest of the app talks to
"""

from tia.auth.authenticator import AuthFailure, AuthResult, AuthSuccess, Authenticator
from tia.auth.errors import DuplicateUser, FailureReason, InvalidInput, TiaAuthError
from tia.auth.facade import SessionFacade, build_facade
from tia.auth.session import SessionRecord, SessionStore
from tia.auth.users import UserDirectory, UserRecord

__all__ = [
    "AuthFailure",
    "AuthResult",
    "AuthSuccess",
    "Authenticator",
    "DuplicateUser",
    "FailureReason",
    "InvalidInput",
    "SessionFacade",
    "SessionRecord",
    "SessionStore",
    "TiaAuthError",
    "UserDirectory",
    "UserRecord",
    "build_facade",
]
