"""
Identity records: gesture templates and lockout state.

Each identity is one JSON document:

    {"templates": [<template>, ...], "lockout": {...}}

Templates are never removed. A soft-deleted template stays in the list
with isActive=false and a re-registration appends a new one; the last
entry is the current template.
"""

import copy
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager

from gestures import GestureTemplate
from lockout import LockoutState

logger = logging.getLogger(__name__)


def _put_template(record, template):
    templates = record.setdefault("templates", [])
    data = template.to_dict()
    if templates and templates[-1].get("id") == template.template_id:
        templates[-1] = data
    else:
        templates.append(data)


def _current_template(record):
    templates = (record or {}).get("templates") or []
    if not templates:
        return None
    return GestureTemplate.from_dict(templates[-1])


class MemoryStore:
    """In-process store. Documents are deep-copied in and out."""

    def __init__(self):
        self._users = {}
        self._lock = threading.Lock()

    def _read(self, identity):
        with self._lock:
            return copy.deepcopy(self._users.get(identity))

    def _write(self, identity, update):
        with self._lock:
            record = self._users.setdefault(identity, {})
            update(record)

    def load_template(self, identity):
        return _current_template(self._read(identity))

    def save_template(self, identity, template):
        self._write(identity, lambda record: _put_template(record, template))

    def load_lockout(self, identity):
        record = self._read(identity) or {}
        return LockoutState.from_dict(record.get("lockout"))

    def save_lockout(self, identity, state):
        def update(record):
            record["lockout"] = state.to_dict()

        self._write(identity, update)

    def template_history(self, identity):
        record = self._read(identity) or {}
        return [GestureTemplate.from_dict(t) for t in record.get("templates", [])]


class JsonFileStore(MemoryStore):
    """Single JSON file of identity documents.

    Every write replaces the whole file through a temp file and
    os.replace, so a crash never leaves a half-written document.
    """

    def __init__(self, path):
        super().__init__()
        self.path = path

    def load_users(self):
        """Load all identity documents from the JSON file"""
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r") as f:
            return json.load(f)

    def save_users(self, users):
        """Atomically save all identity documents"""
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(users, f, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise

    def _read(self, identity):
        with self._lock:
            return self.load_users().get(identity)

    def _write(self, identity, update):
        with self._lock:
            users = self.load_users()
            update(users.setdefault(identity, {}))
            self.save_users(users)
        logger.debug("Saved record for %s to %s", identity, self.path)


class IdentityLocks:
    """One lock per identity for read-modify-write of its record.

    An entry only exists while some thread holds or waits on it, so the
    map stays as small as the number of identities in flight.
    """

    def __init__(self):
        # identity -> [RLock, number of holders and waiters]
        self._locks = {}
        self._guard = threading.Lock()

    def __len__(self):
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, identity):
        with self._guard:
            entry = self._locks.get(identity)
            if entry is None:
                entry = self._locks[identity] = [threading.RLock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[identity]
