"""
Global configuration for the gesture authentication core.
All tunable parameters are centralized here for easy adjustment.
"""

import os
from dataclasses import dataclass

from errors import ConfigError

# ============================================================================
# GESTURE CAPTURE PARAMETERS (Registration & Login Validation)
# ============================================================================

# Number of timed 3-D positions in a sample
MIN_POSITIONS = 3
MAX_POSITIONS = 10

# Admissible gesture duration (milliseconds, last timestamp minus first)
MIN_DURATION_MS = 1000
MAX_DURATION_MS = 10000

# ============================================================================
# MATCHING PARAMETERS
# ============================================================================

DEFAULT_POSITION_TOLERANCE = 0.15  # Max 3-D distance per position
DEFAULT_TIMING_TOLERANCE = 0.2  # Max relative timestamp difference

POSITION_TOLERANCE_RANGE = (0.05, 0.5)
TIMING_TOLERANCE_RANGE = (0.1, 0.5)

# Below this a validation is flagged as a low-confidence security event
LOW_CONFIDENCE_THRESHOLD = 0.7

# ============================================================================
# LOCKOUT PARAMETERS
# ============================================================================

MAX_LOGIN_ATTEMPTS = 5
LOCK_DURATION_MS = 2 * 60 * 60 * 1000  # 2 hours

# ============================================================================
# ANTI-SPOOFING PARAMETERS
# ============================================================================

MIN_DEPTH_VARIATION = 0.1  # Average frame-to-frame depth delta
MAX_ACCELERATION = 100.0  # Max |delta velocity| between frames (units/s)
MIN_TIMING_VARIANCE = 0.01  # Variance of inter-frame intervals (ms^2)

# ============================================================================
# ENCRYPTION PARAMETERS
# ============================================================================

TEMPLATE_SECRET = os.environ.get("GESTURE_TEMPLATE_SECRET", "default-secret")
KDF_ITERATIONS = 100_000
SALT_BYTES = 32

# ============================================================================
# STORAGE & LOGGING
# ============================================================================

DATA_FILE = os.environ.get("GESTURE_DATA_FILE", "data/users.json")
LOG_LEVEL = os.environ.get("GESTURE_LOG_LEVEL", "INFO")
LOG_FILE = os.environ.get("GESTURE_LOG_FILE")

# Security event ring buffer size
MAX_SECURITY_EVENTS = 1000


# ============================================================================
# TYPED CONFIGURATION
# ============================================================================


def _check_range(name, value, low, high):
    if not low <= value <= high:
        raise ConfigError(f"{name} must be within [{low}, {high}] (got {value})")


@dataclass(frozen=True)
class Tolerance:
    """Per-template allowed deviation for position and timing matching."""

    position: float = DEFAULT_POSITION_TOLERANCE
    timing: float = DEFAULT_TIMING_TOLERANCE

    def __post_init__(self):
        _check_range("tolerance.position", self.position, *POSITION_TOLERANCE_RANGE)
        _check_range("tolerance.timing", self.timing, *TIMING_TOLERANCE_RANGE)

    def to_dict(self):
        return {"position": self.position, "timing": self.timing}

    @classmethod
    def from_dict(cls, data):
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(f"tolerance must be an object (got {data!r})")
        try:
            position = float(data.get("position", DEFAULT_POSITION_TOLERANCE))
            timing = float(data.get("timing", DEFAULT_TIMING_TOLERANCE))
        except (TypeError, ValueError):
            raise ConfigError(f"tolerance values must be numbers: {data!r}") from None
        return cls(position=position, timing=timing)


@dataclass(frozen=True)
class LockoutConfig:
    max_attempts: int = MAX_LOGIN_ATTEMPTS
    lock_duration_ms: int = LOCK_DURATION_MS

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ConfigError(f"max_attempts must be >= 1 (got {self.max_attempts})")
        if self.lock_duration_ms <= 0:
            raise ConfigError(
                f"lock_duration_ms must be positive (got {self.lock_duration_ms})"
            )


@dataclass(frozen=True)
class AntiSpoofingConfig:
    enabled: bool = True
    min_depth_variation: float = MIN_DEPTH_VARIATION
    max_acceleration: float = MAX_ACCELERATION
    min_timing_variance: float = MIN_TIMING_VARIANCE
    # Screen registration/update captures as well as logins
    screen_enrollment: bool = False

    def __post_init__(self):
        for name in ("min_depth_variation", "max_acceleration", "min_timing_variance"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must be non-negative")


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================


def get_public_config():
    """Returns capture limits for clients building a gesture sample."""
    return {
        "MIN_POSITIONS": MIN_POSITIONS,
        "MAX_POSITIONS": MAX_POSITIONS,
        "MIN_DURATION_MS": MIN_DURATION_MS,
        "MAX_DURATION_MS": MAX_DURATION_MS,
        "DEFAULT_TOLERANCE": Tolerance().to_dict(),
    }
