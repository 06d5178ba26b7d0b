# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Key/value stores backing the auth services.

Two flavours, mirroring what a browser gives a page:
- MemoryStore: volatile, private to one browsing context.
- FileStore: durable, shared by every context of the app (one YAML file).

Values are always strings; callers encode structured data (JSON) themselves.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol

import yaml

logger = logging.getLogger(__name__)


class StorageWriteError(OSError):
    """The durable store could not be rewritten."""


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def clear(self) -> None: ...


class MemoryStore:
    """In-process store; lives as long as the object."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = str(value)

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()


class FileStore:
    """Durable store persisted as a flat YAML mapping (key -> string).

    The file is re-read on every access and rewritten wholesale on every
    change; there is no locking, so the last writer wins.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Unreadable storage file %s: %s", self.path, exc)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Storage file %s is not a mapping; ignoring it", self.path)
            return {}
        return {str(k): str(v) for k, v in raw.items() if v is not None}

    def _write(self, data: Dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tf = tempfile.NamedTemporaryFile(
                mode="w", dir=self.path.parent, delete=False, encoding="utf-8", suffix=".tmp"
            )
        except OSError as exc:
            raise StorageWriteError(f"Failed to write storage {self.path}: {exc}") from exc

        tmp_path = Path(tf.name)
        try:
            with tf:
                yaml.safe_dump(data, tf, sort_keys=True, allow_unicode=True)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            if tmp_path.exists():
                tmp_path.unlink()
            raise StorageWriteError(f"Failed to write storage {self.path}: {exc}") from exc

    def get_item(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = str(value)
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def clear(self) -> None:
        self._write({})
