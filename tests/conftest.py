"""Shared pytest fixtures."""
import copy

import numpy as np
import pytest

from antispoof import AntiSpoofingAnalyzer
from auth import Authenticator
from cipher import TemplateCipher
from complexity import score_sample
from config import LockoutConfig, Tolerance
from gestures import GestureSample, GestureTemplate
from lockout import LockoutPolicy
from security_events import SecurityEventLog
from users import MemoryStore

HUMAN_GESTURE = {
    "positions": [
        {"x": 0.1, "y": 0.2, "z": 0.3},
        {"x": 0.2, "y": 0.35, "z": 0.3},
        {"x": 0.35, "y": 0.4, "z": 0.32},
        {"x": 0.5, "y": 0.38, "z": 0.35},
        {"x": 0.6, "y": 0.3, "z": 0.33},
    ],
    "timing": [0, 410, 830, 1290, 1700],
}


class FakeClock:
    def __init__(self, now=1_700_000_000_000):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cipher():
    # Low iteration count keeps key derivation fast in tests
    return TemplateCipher("test-secret", iterations=1000)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def human_sample():
    return GestureSample.from_dict(HUMAN_GESTURE)


@pytest.fixture
def wrong_sample():
    shifted = {
        "positions": [
            {"x": p["x"] + 0.3, "y": p["y"], "z": p["z"]} for p in HUMAN_GESTURE["positions"]
        ],
        "timing": list(HUMAN_GESTURE["timing"]),
    }
    return GestureSample.from_dict(shifted)


@pytest.fixture
def rng():
    return np.random.default_rng(1337)


@pytest.fixture
def make_template(cipher):
    def _make(sample, identity="alice", tolerance=None):
        salt = cipher.new_salt()
        complexity, profile = score_sample(sample)
        return GestureTemplate(
            identity=identity,
            encrypted_sample=cipher.encrypt(sample, salt),
            salt=salt,
            complexity=complexity,
            biometric_profile=profile,
            sequence_length=len(sample),
            average_duration=sample.duration,
            tolerance=tolerance or Tolerance(),
        )

    return _make


@pytest.fixture
def authenticator(store, cipher, clock):
    return Authenticator(
        store,
        cipher=cipher,
        analyzer=AntiSpoofingAnalyzer(),
        lockout_policy=LockoutPolicy(LockoutConfig(), clock=clock),
        events=SecurityEventLog(clock=clock),
        clock=clock,
    )


@pytest.fixture
def human_gesture():
    return copy.deepcopy(HUMAN_GESTURE)
