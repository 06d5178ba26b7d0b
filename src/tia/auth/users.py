# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from tia.auth.errors import DuplicateUser, InvalidInput, StorageCorrupt
from tia.auth.passwords import DEFAULT_HASHER, CredentialHasher
from tia.infra.storage import KeyValueStore

logger = logging.getLogger(__name__)

USERS_KEY = "tia_users"

ROLE_ORDER = {"viewer": 0, "editor": 1, "admin": 2}
DEFAULT_ROLE = "admin"


def canon_username(username: str) -> str:
    """Comparison key for usernames (case-insensitive, trimmed)."""
    return (username or "").strip().casefold()


def role_rank(role: str) -> int:
    return ROLE_ORDER.get((role or "viewer").strip().lower(), 0)


@dataclass(frozen=True)
class UserRecord:
    id: str
    username: str
    password_hash: str
    role: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "username": self.username,
            "passwordHash": self.password_hash,
            "role": self.role,
        }

    def public_dict(self) -> Dict[str, str]:
        return {"id": self.id, "username": self.username, "role": self.role}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserRecord":
        username = str(data.get("username") or "").strip()
        password_hash = str(data.get("passwordHash") or "").strip()
        if not username or not password_hash:
            raise StorageCorrupt("User record without username or passwordHash")
        return cls(
            id=str(data.get("id") or uuid.uuid4().hex),
            username=username,
            password_hash=password_hash,
            role=str(data.get("role") or "viewer").strip().lower(),
        )


def decode_users(raw: Optional[str]) -> List[UserRecord]:
    """Decode the persisted users collection.

    Raises StorageCorrupt when the payload is not a JSON array. Individual
    entries that are not usable records are dropped.
    """
    if raw is None:
        return []
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise StorageCorrupt(f"Users collection is not valid JSON: {exc}") from exc
    if not isinstance(payload, list):
        raise StorageCorrupt("Users collection is not a JSON array")

    out: List[UserRecord] = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        try:
            out.append(UserRecord.from_dict(item))
        except StorageCorrupt:
            continue
    return out


class UserDirectory:
    """Users collection kept under one key of the durable store.

    Decoded lazily and cached against the raw stored value; the cache is
    dropped as soon as another writer changes that value. Every insertion
    rewrites the whole collection.
    """

    def __init__(self, storage: KeyValueStore, hasher: CredentialHasher = DEFAULT_HASHER) -> None:
        self.storage = storage
        self.hasher = hasher
        self._cache: Optional[Tuple[Optional[str], List[UserRecord]]] = None

    def refresh(self) -> None:
        self._cache = None

    def load_all(self) -> List[UserRecord]:
        raw = self.storage.get_item(USERS_KEY)
        if self._cache is not None and self._cache[0] == raw:
            return list(self._cache[1])
        try:
            users = decode_users(raw)
        except StorageCorrupt as exc:
            logger.warning("Ignoring corrupt users collection: %s", exc)
            users = []
        self._cache = (raw, users)
        return list(users)

    def save_all(self, records: List[UserRecord]) -> None:
        payload = json.dumps([r.to_dict() for r in records], ensure_ascii=False)
        self.storage.set_item(USERS_KEY, payload)
        self._cache = (payload, list(records))

    def find_by_username(self, username: str) -> Optional[UserRecord]:
        key = canon_username(username)
        if not key:
            return None
        for record in self.load_all():
            if canon_username(record.username) == key:
                return record
        return None

    async def create(self, username: str, plain: str, role: str = DEFAULT_ROLE) -> UserRecord:
        uname = (username or "").strip()
        if not uname:
            raise InvalidInput("Username is required")
        if not plain:
            raise InvalidInput("Password is required")
        role_norm = (role or DEFAULT_ROLE).strip().lower()
        if role_norm not in ROLE_ORDER:
            raise InvalidInput(f"Unknown role '{role}'")
        if self.find_by_username(uname) is not None:
            raise DuplicateUser(uname)

        password_hash = await self.hasher.hash(plain)

        # Re-read storage after the await: another writer may have added the name.
        records = self.load_all()
        if any(canon_username(r.username) == canon_username(uname) for r in records):
            raise DuplicateUser(uname)

        record = UserRecord(
            id=uuid.uuid4().hex,
            username=uname,
            password_hash=password_hash,
            role=role_norm,
        )
        records.append(record)
        self.save_all(records)
        logger.info("Created user %s (role=%s)", record.username, record.role)
        return record
