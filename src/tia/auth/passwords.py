# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Credential digests.

Digests are argon2id raw output over a fixed application salt, hex encoded.
No per-call salt: the same plaintext always yields the same digest, in this
process and in any other using the same salt and cost parameters.
"""

from __future__ import annotations

import asyncio
import hmac

from argon2.low_level import Type, hash_secret_raw

from tia.config import DEFAULT_HASH_SALT

# argon2 refuses salts shorter than 8 bytes
MIN_SALT_BYTES = 8


class CredentialHasher:
    def __init__(
        self,
        salt: str = DEFAULT_HASH_SALT,
        *,
        time_cost: int = 2,
        memory_cost: int = 19456,
        parallelism: int = 1,
        hash_len: int = 32,
    ) -> None:
        salt_bytes = salt.encode("utf-8")
        if len(salt_bytes) < MIN_SALT_BYTES:
            raise ValueError(f"Hash salt must be at least {MIN_SALT_BYTES} bytes")
        self._salt = salt_bytes
        self.time_cost = time_cost
        self.memory_cost = memory_cost
        self.parallelism = parallelism
        self.hash_len = hash_len

    @property
    def digest_length(self) -> int:
        """Length of the hex digest."""
        return self.hash_len * 2

    def hash_blocking(self, plain: str) -> str:
        raw = hash_secret_raw(
            secret=(plain or "").encode("utf-8"),
            salt=self._salt,
            time_cost=self.time_cost,
            memory_cost=self.memory_cost,
            parallelism=self.parallelism,
            hash_len=self.hash_len,
            type=Type.ID,
        )
        return raw.hex()

    async def hash(self, plain: str) -> str:
        return await asyncio.to_thread(self.hash_blocking, plain)


DEFAULT_HASHER = CredentialHasher()


async def hash_password(plain: str) -> str:
    return await DEFAULT_HASHER.hash(plain)


def digests_match(expected: str, supplied: str) -> bool:
    if not expected or not supplied:
        return False
    return hmac.compare_digest(expected.lower().encode("utf-8"), supplied.lower().encode("utf-8"))
