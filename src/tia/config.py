# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Runtime settings, read from TIA_* environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# Demo credentials for the bootstrap account. Replace before any real deployment.
DEFAULT_USERNAME = "admin"
DEFAULT_PASSWORD = "admin123"

DEFAULT_HASH_SALT = "tia.credentials.v1"


def _env_bool(key: str, default: str = "false") -> bool:
    return os.getenv(key, default).strip().lower() in {"1", "true", "yes", "y"}


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    storage_path: Path
    secret_key: Optional[str]
    cookie_name: str
    browser_cookie_name: str
    cookie_secure: bool
    hash_salt: str
    default_username: str
    default_password: str
    log_level: str
    host: str
    port: int
    reload: bool


def load_settings() -> Settings:
    data_dir = Path(os.getenv("TIA_DATA_DIR", "data")).resolve()
    storage_path = Path(os.getenv("TIA_STORAGE_PATH", str(data_dir / "storage.yml"))).resolve()
    return Settings(
        data_dir=data_dir,
        storage_path=storage_path,
        secret_key=os.getenv("TIA_SECRET_KEY") or os.getenv("SECRET_KEY"),
        cookie_name=os.getenv("TIA_COOKIE_NAME", "tia_context"),
        browser_cookie_name=os.getenv("TIA_BROWSER_COOKIE_NAME", "tia_browser"),
        cookie_secure=_env_bool("TIA_COOKIE_SECURE"),
        hash_salt=os.getenv("TIA_HASH_SALT", DEFAULT_HASH_SALT),
        default_username=os.getenv("TIA_DEFAULT_USERNAME", DEFAULT_USERNAME),
        default_password=os.getenv("TIA_DEFAULT_PASSWORD", DEFAULT_PASSWORD),
        log_level=os.getenv("TIA_LOG_LEVEL", "INFO").upper(),
        host=os.getenv("TIA_HOST", "127.0.0.1"),
        port=int(os.getenv("TIA_PORT", "8000")),
        reload=_env_bool("TIA_RELOAD"),
    )
