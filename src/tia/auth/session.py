# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Per-context session record plus the durable "remember me" pointer."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from tia.auth.users import UserDirectory, UserRecord
from tia.infra.storage import KeyValueStore

logger = logging.getLogger(__name__)

SESSION_KEY = "tia_session"
REMEMBER_KEY = "tia_remember"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SessionRecord:
    id: str
    username: str
    role: str
    created_at: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["SessionRecord"]:
        username = str(data.get("username") or "").strip()
        if not username:
            return None
        return cls(
            id=str(data.get("id") or ""),
            username=username,
            role=str(data.get("role") or "viewer"),
            created_at=str(data.get("createdAt") or ""),
        )


class SessionStore:
    def __init__(
        self,
        volatile: KeyValueStore,
        durable: KeyValueStore,
        directory: UserDirectory,
        *,
        clock: Callable[[], datetime] = _utcnow,
        remember_key: str = REMEMBER_KEY,
    ) -> None:
        self.volatile = volatile
        self.durable = durable
        self.directory = directory
        self.remember_key = remember_key
        self._clock = clock

    def _write_session(self, user: UserRecord) -> SessionRecord:
        record = SessionRecord(
            id=user.id,
            username=user.username,
            role=user.role,
            created_at=self._clock().isoformat(),
        )
        self.volatile.set_item(SESSION_KEY, json.dumps(record.to_dict()))
        return record

    def _read_session(self) -> Optional[SessionRecord]:
        raw = self.volatile.get_item(SESSION_KEY)
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Discarding malformed session record")
            return None
        if not isinstance(data, dict):
            return None
        return SessionRecord.from_dict(data)

    def set_session(self, user: UserRecord, remember: bool = False) -> SessionRecord:
        record = self._write_session(user)
        if remember:
            self.durable.set_item(self.remember_key, user.username)
        else:
            self.forget()
        return record

    def clear_session(self) -> None:
        # The remember pointer survives a plain logout.
        self.volatile.remove_item(SESSION_KEY)

    def forget(self) -> None:
        self.durable.remove_item(self.remember_key)

    def remembered_username(self) -> Optional[str]:
        value = (self.durable.get_item(self.remember_key) or "").strip()
        return value or None

    def get_session(self) -> Optional[SessionRecord]:
        current = self._read_session()
        if current is not None:
            return current

        remembered = self.remembered_username()
        if remembered is None:
            return None
        # The pointer is only a hint; it must still resolve to a real user.
        user = self.directory.find_by_username(remembered)
        if user is None:
            logger.info("Remembered user '%s' no longer exists", remembered)
            return None
        logger.info("Rehydrated session for '%s'", user.username)
        return self._write_session(user)

    def is_authenticated(self) -> bool:
        return self.get_session() is not None


def remember_key_for(scope: str) -> str:
    """Remember-pointer key private to one browser sharing a durable store."""
    return f"{REMEMBER_KEY}:{scope}"
