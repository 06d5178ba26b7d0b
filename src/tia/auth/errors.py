# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from enum import Enum


class TiaAuthError(Exception):
    """Base class for auth errors."""


class InvalidInput(TiaAuthError):
    """Missing or unusable username, password or role."""


class DuplicateUser(TiaAuthError):
    """A user with the same (case-insensitive) username already exists."""

    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(f"Username '{username}' already exists")


class StorageCorrupt(TiaAuthError):
    """Persisted data could not be decoded. Always recovered locally."""


class FailureReason(str, Enum):
    USER_NOT_FOUND = "UserNotFound"
    INVALID_CREDENTIALS = "InvalidCredentials"
