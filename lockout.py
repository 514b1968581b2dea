"""
Per-identity lockout after repeated failed gesture logins.

States: UNLOCKED, LOCKED (lock_until in the future).

    UNLOCKED --failure reaching max_attempts--> LOCKED (lock_until = now + duration)
    LOCKED   --attempt before lock_until-->      rejected, no state change
    LOCKED   --failure after lock_until-->       UNLOCKED with login_attempts = 1
    any      --success-->                        UNLOCKED, counters cleared

The policy only computes transitions. Callers load and persist the
LockoutState under the identity's lock.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

from config import LockoutConfig
from errors import AccountLockedError

logger = logging.getLogger(__name__)

UNLOCKED = "unlocked"
LOCKED = "locked"


@dataclass
class LockoutState:
    login_attempts: int = 0
    lock_until: Optional[int] = None  # epoch ms
    last_login: Optional[int] = None  # epoch ms

    def to_dict(self):
        return {
            "loginAttempts": self.login_attempts,
            "lockUntil": self.lock_until,
            "lastLogin": self.last_login,
        }

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        return cls(
            login_attempts=int(data.get("loginAttempts", 0)),
            lock_until=data.get("lockUntil"),
            last_login=data.get("lastLogin"),
        )


class LockoutPolicy:
    def __init__(self, config=None, clock=None):
        self.config = config or LockoutConfig()
        self._clock = clock or (lambda: int(time.time() * 1000))

    def now(self):
        return self._clock()

    def status(self, state):
        if state.lock_until is not None and state.lock_until > self.now():
            return LOCKED
        return UNLOCKED

    def is_locked(self, state):
        return self.status(state) == LOCKED

    def ensure_unlocked(self, identity, state):
        """Raise AccountLockedError while the lock window is open."""
        if self.is_locked(state):
            raise AccountLockedError(identity, state.lock_until)

    def register_failure(self, identity, state):
        """
        Count one failed validation.

        Returns:
            True if this failure locked the account.
        """
        now = self.now()

        if state.lock_until is not None and state.lock_until <= now:
            # A lock that already expired starts a fresh count
            state.login_attempts = 1
            state.lock_until = None
            return False

        state.login_attempts += 1
        if state.login_attempts >= self.config.max_attempts and state.lock_until is None:
            state.lock_until = now + self.config.lock_duration_ms
            logger.warning(
                "Locking %s after %d failed attempts (until %d)",
                identity,
                state.login_attempts,
                state.lock_until,
            )
            return True
        return False

    def register_success(self, state):
        state.login_attempts = 0
        state.lock_until = None
        state.last_login = self.now()

    def attempts_remaining(self, state):
        return max(0, self.config.max_attempts - state.login_attempts)
