#!/usr/bin/env python3
# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later
from __future__ import annotations

import asyncio
from getpass import getpass

from tia.auth.errors import TiaAuthError
from tia.auth.passwords import CredentialHasher
from tia.auth.users import ROLE_ORDER, UserDirectory
from tia.config import load_settings
from tia.infra.storage import FileStore


def main() -> None:
    settings = load_settings()
    directory = UserDirectory(FileStore(settings.storage_path), CredentialHasher(settings.hash_salt))

    username = input("Username: ").strip()
    roles = "/".join(ROLE_ORDER)
    role = (input(f"Role [{roles}]: ").strip().lower() or "viewer")

    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")

    try:
        user = asyncio.run(directory.create(username, pw1, role))
    except TiaAuthError as exc:
        raise SystemExit(str(exc))
    print(f"OK {user.username} ({user.role}) -> {settings.storage_path}")


if __name__ == "__main__":
    main()
