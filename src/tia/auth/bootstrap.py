# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Seed a default admin account on first run."""

from __future__ import annotations

import logging
from typing import Optional

from tia.auth.errors import TiaAuthError
from tia.auth.users import UserDirectory, UserRecord
from tia.config import DEFAULT_PASSWORD, DEFAULT_USERNAME

logger = logging.getLogger(__name__)


async def ensure_default_account(
    directory: UserDirectory,
    *,
    username: str = DEFAULT_USERNAME,
    password: str = DEFAULT_PASSWORD,
) -> Optional[UserRecord]:
    """Create the demo admin when the directory is empty.

    No-op once any account exists. Failures are logged and swallowed so the
    app stays usable without a default account.
    """
    if directory.load_all():
        return None
    try:
        user = await directory.create(username, password, role="admin")
    except (TiaAuthError, OSError):
        logger.exception("Could not create default account '%s'", username)
        return None
    logger.warning(
        "Created default account '%s' with demo credentials; change them before real use",
        user.username,
    )
    return user
