import asyncio
import json
from datetime import datetime, timezone

from tia.auth.session import REMEMBER_KEY, SESSION_KEY, SessionRecord, SessionStore, remember_key_for
from tia.infra.storage import MemoryStore


def _user(directory, name="alice", role="editor"):
    return asyncio.run(directory.create(name, "pw", role))


def test_no_session_by_default(sessions):
    assert sessions.get_session() is None
    assert sessions.is_authenticated() is False


def test_set_session_writes_volatile_record(sessions, volatile, durable, directory):
    user = _user(directory)
    record = sessions.set_session(user)
    stored = json.loads(volatile.get_item(SESSION_KEY))
    assert stored == {
        "id": user.id,
        "username": "alice",
        "role": "editor",
        "createdAt": record.created_at,
    }
    assert durable.get_item(REMEMBER_KEY) is None
    assert sessions.get_session() == record


def test_created_at_uses_clock(volatile, durable, directory):
    fixed = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    store = SessionStore(volatile, durable, directory, clock=lambda: fixed)
    record = store.set_session(_user(directory))
    assert record.created_at == fixed.isoformat()


def test_remember_writes_username_only(sessions, durable, directory):
    user = _user(directory)
    sessions.set_session(user, remember=True)
    assert durable.get_item(REMEMBER_KEY) == "alice"


def test_login_without_remember_clears_pointer(sessions, durable, directory):
    user = _user(directory)
    sessions.set_session(user, remember=True)
    sessions.set_session(user, remember=False)
    assert durable.get_item(REMEMBER_KEY) is None


def test_clear_session_keeps_pointer(sessions, volatile, durable, directory):
    user = _user(directory)
    sessions.set_session(user, remember=True)
    sessions.clear_session()
    assert volatile.get_item(SESSION_KEY) is None
    assert durable.get_item(REMEMBER_KEY) == "alice"


def test_rehydrates_from_pointer(sessions, volatile, directory):
    user = _user(directory)
    sessions.set_session(user, remember=True)
    volatile.clear()

    record = sessions.get_session()
    assert record is not None
    assert (record.username, record.role) == (user.username, user.role)
    # Persisted again in the volatile store.
    assert json.loads(volatile.get_item(SESSION_KEY))["username"] == "alice"
    assert sessions.get_session() == record


def test_rehydration_in_a_new_context(sessions, durable, directory):
    sessions.set_session(_user(directory), remember=True)
    other = SessionStore(MemoryStore(), durable, directory)
    assert other.is_authenticated() is True
    assert other.get_session().username == "alice"


def test_without_pointer_clear_means_logged_out(sessions, volatile, directory):
    sessions.set_session(_user(directory), remember=False)
    volatile.clear()
    assert sessions.get_session() is None


def test_stale_pointer_gives_no_session_and_is_kept(sessions, durable):
    durable.set_item(REMEMBER_KEY, "ghost")
    assert sessions.get_session() is None
    assert durable.get_item(REMEMBER_KEY) == "ghost"


def test_pointer_matches_case_insensitively(sessions, durable, directory):
    _user(directory, name="Alice")
    durable.set_item(REMEMBER_KEY, "ALICE")
    assert sessions.get_session().username == "Alice"


def test_malformed_volatile_record_falls_back_to_pointer(sessions, volatile, durable, directory):
    _user(directory)
    volatile.set_item(SESSION_KEY, "{broken")
    assert sessions.get_session() is None
    durable.set_item(REMEMBER_KEY, "alice")
    assert sessions.get_session().username == "alice"


def test_forget_removes_pointer(sessions, durable, directory):
    sessions.set_session(_user(directory), remember=True)
    sessions.forget()
    assert sessions.remembered_username() is None


def test_session_record_from_dict_requires_username():
    assert SessionRecord.from_dict({"id": "1", "role": "admin"}) is None


def test_remember_pointer_scoped_by_key(volatile, durable, directory):
    user = _user(directory)
    mine = SessionStore(volatile, durable, directory, remember_key=remember_key_for("browser-a"))
    mine.set_session(user, remember=True)
    assert durable.get_item(REMEMBER_KEY) is None
    assert durable.get_item(remember_key_for("browser-a")) == "alice"

    other = SessionStore(MemoryStore(), durable, directory, remember_key=remember_key_for("browser-b"))
    assert other.get_session() is None
    same = SessionStore(MemoryStore(), durable, directory, remember_key=remember_key_for("browser-a"))
    assert same.get_session().username == "alice"
