import asyncio
import threading

import pytest

from tia.auth.authenticator import AuthSuccess
from tia.auth.errors import DuplicateUser, FailureReason, InvalidInput
from tia.auth.facade import SessionFacade, build_facade
from tia.auth.session import SessionStore
from tia.config import load_settings
from tia.infra.storage import MemoryStore


@pytest.fixture()
def facade(directory, sessions) -> SessionFacade:
    return SessionFacade(directory, sessions)


def test_login_success_creates_session(facade):
    asyncio.run(facade.create_user("alice", "pw", "viewer"))
    result = asyncio.run(facade.login("alice", "pw"))
    assert isinstance(result, AuthSuccess)
    assert facade.is_authenticated() is True
    assert facade.get_session().username == "alice"


def test_login_failure_leaves_no_session(facade):
    asyncio.run(facade.create_user("alice", "pw", "viewer"))
    result = asyncio.run(facade.login("alice", "wrong"))
    assert result.success is False
    assert result.reason is FailureReason.INVALID_CREDENTIALS
    assert facade.is_authenticated() is False

    result = asyncio.run(facade.login("nobody", "pw"))
    assert result.reason is FailureReason.USER_NOT_FOUND


def test_logout_keeps_remembered_identity(facade):
    asyncio.run(facade.create_user("alice", "pw", "viewer"))
    asyncio.run(facade.login("alice", "pw", remember=True))
    facade.logout()
    # Rehydrates from the remember pointer.
    assert facade.get_session().username == "alice"


def test_logout_forget_ends_everything(facade):
    asyncio.run(facade.create_user("alice", "pw", "viewer"))
    asyncio.run(facade.login("alice", "pw", remember=True))
    facade.logout(forget=True)
    assert facade.get_session() is None
    assert facade.is_authenticated() is False


def test_create_user_errors(facade):
    asyncio.run(facade.create_user("alice", "pw"))
    with pytest.raises(DuplicateUser):
        asyncio.run(facade.create_user("Alice", "pw"))
    with pytest.raises(InvalidInput):
        asyncio.run(facade.create_user("", "pw"))


def test_find_user_by_username(facade):
    created = asyncio.run(facade.create_user("alice", "pw"))
    assert facade.find_user_by_username("ALICE") == created
    assert facade.find_user_by_username("bob") is None


def test_ensure_default_account_twice(facade, directory):
    asyncio.run(facade.ensure_default_account())
    asyncio.run(facade.ensure_default_account())
    assert len(directory.load_all()) == 1


def test_build_facade_uses_settings(durable, monkeypatch):
    monkeypatch.setenv("TIA_DEFAULT_USERNAME", "owner")
    monkeypatch.setenv("TIA_DEFAULT_PASSWORD", "owner-pw")
    monkeypatch.setenv("TIA_HASH_SALT", "settings-salt")
    facade = build_facade(durable, MemoryStore(), load_settings())
    asyncio.run(facade.ensure_default_account())
    result = asyncio.run(facade.login("owner", "owner-pw"))
    assert result.success is True


def test_contexts_share_directory_not_sessions(durable, directory):
    first = build_facade(durable, MemoryStore(), directory=directory)
    second = build_facade(durable, MemoryStore(), directory=directory)
    asyncio.run(first.create_user("alice", "pw"))
    asyncio.run(first.login("alice", "pw"))
    assert first.is_authenticated() is True
    assert second.is_authenticated() is False
    assert second.find_user_by_username("alice") is not None


def test_custom_session_store_is_used(directory, durable):
    volatile = MemoryStore()
    facade = SessionFacade(directory, SessionStore(volatile, durable, directory))
    asyncio.run(facade.create_user("alice", "pw"))
    asyncio.run(facade.login("alice", "pw"))
    assert volatile.get_item("tia_session") is not None


def test_login_writes_session_off_the_calling_thread(directory, durable):
    class _RecordingStore(MemoryStore):
        def __init__(self):
            super().__init__()
            self.writer_threads = set()

        def set_item(self, key, value):
            self.writer_threads.add(threading.get_ident())
            super().set_item(key, value)

    volatile = _RecordingStore()
    facade = SessionFacade(directory, SessionStore(volatile, durable, directory))
    asyncio.run(facade.create_user("alice", "pw"))
    asyncio.run(facade.login("alice", "pw"))
    assert volatile.writer_threads
    assert threading.get_ident() not in volatile.writer_threads
    assert facade.get_session().username == "alice"


def test_build_facade_scopes_remember_pointer(durable, directory):
    mine = build_facade(durable, MemoryStore(), directory=directory, remember_key="tia_remember:mine")
    theirs = build_facade(durable, MemoryStore(), directory=directory, remember_key="tia_remember:theirs")
    asyncio.run(mine.create_user("alice", "pw"))
    asyncio.run(mine.login("alice", "pw", remember=True))
    assert theirs.get_session() is None
    assert build_facade(durable, MemoryStore(), directory=directory, remember_key="tia_remember:mine").get_session() is not None
