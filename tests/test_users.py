"""Tests for template and lockout stores."""
import json
import threading

import pytest

from lockout import LockoutState
from users import IdentityLocks, JsonFileStore, MemoryStore


@pytest.fixture(params=["memory", "json"])
def any_store(request, tmp_path):
    if request.param == "memory":
        return MemoryStore()
    return JsonFileStore(str(tmp_path / "data" / "users.json"))


def test_unknown_identity(any_store):
    assert any_store.load_template("nobody") is None
    assert any_store.load_lockout("nobody") == LockoutState()


def test_template_round_trip(any_store, make_template, human_sample):
    template = make_template(human_sample)
    any_store.save_template("alice", template)
    assert any_store.load_template("alice") == template


def test_loaded_template_is_a_copy(any_store, make_template, human_sample):
    any_store.save_template("alice", make_template(human_sample))
    loaded = any_store.load_template("alice")
    loaded.usage_stats.total_attempts = 99
    assert any_store.load_template("alice").usage_stats.total_attempts == 0


def test_soft_deleted_templates_are_kept(any_store, make_template, human_sample, wrong_sample):
    first = make_template(human_sample)
    any_store.save_template("alice", first)
    first.is_active = False
    any_store.save_template("alice", first)

    second = make_template(wrong_sample)
    any_store.save_template("alice", second)

    history = any_store.template_history("alice")
    assert [t.is_active for t in history] == [False, True]
    assert any_store.load_template("alice").template_id == second.template_id


def test_lockout_round_trip(any_store, make_template, human_sample):
    any_store.save_template("alice", make_template(human_sample))
    state = LockoutState(login_attempts=3, lock_until=None, last_login=42)
    any_store.save_lockout("alice", state)
    assert any_store.load_lockout("alice") == state
    assert any_store.load_template("alice") is not None


def test_json_store_writes_file(tmp_path, make_template, human_sample):
    path = tmp_path / "users.json"
    store = JsonFileStore(str(path))
    store.save_template("alice", make_template(human_sample))

    users = json.loads(path.read_text())
    assert list(users) == ["alice"]
    assert users["alice"]["templates"][0]["isActive"] is True
    # Only ciphertext reaches disk
    assert "positions" not in path.read_text()
    assert list(tmp_path.iterdir()) == [path]


def test_identity_locks_are_per_identity():
    locks = IdentityLocks()
    acquired = threading.Event()

    def hold(identity):
        with locks.hold(identity):
            acquired.set()

    with locks.hold("alice"):
        thread = threading.Thread(target=hold, args=("bob",))
        thread.start()
        thread.join(timeout=1)
        assert acquired.is_set()

        acquired.clear()
        thread = threading.Thread(target=hold, args=("alice",))
        thread.start()
        thread.join(timeout=0.2)
        # Blocked behind the outer hold
        assert not acquired.is_set()
    thread.join(timeout=1)
    assert acquired.is_set()


def test_identity_locks_are_reentrant_and_released():
    locks = IdentityLocks()
    with locks.hold("alice"):
        with locks.hold("alice"):
            assert len(locks) == 1
    assert len(locks) == 0

    for i in range(100):
        with locks.hold(f"user-{i}"):
            pass
    assert len(locks) == 0
