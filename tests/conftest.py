import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

from pathlib import Path

import pytest

from tia.auth.passwords import CredentialHasher
from tia.auth.session import SessionStore
from tia.auth.users import UserDirectory
from tia.infra.storage import FileStore, MemoryStore


@pytest.fixture()
def hasher() -> CredentialHasher:
    # Minimum argon2 cost; tests only care about determinism.
    return CredentialHasher("tia.tests.salt", time_cost=1, memory_cost=8, parallelism=1)


@pytest.fixture()
def durable(tmp_path: Path) -> FileStore:
    return FileStore(tmp_path / "data" / "storage.yml")


@pytest.fixture()
def volatile() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def directory(durable, hasher) -> UserDirectory:
    return UserDirectory(durable, hasher)


@pytest.fixture()
def sessions(volatile, durable, directory) -> SessionStore:
    return SessionStore(volatile, durable, directory)
