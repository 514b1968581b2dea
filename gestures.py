"""
Data model for gesture samples and stored templates.
"""

import math
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

from config import (
    MAX_DURATION_MS,
    MAX_POSITIONS,
    MIN_DURATION_MS,
    MIN_POSITIONS,
    Tolerance,
)
from errors import InputShapeError


def _parse_position(raw):
    if isinstance(raw, dict):
        try:
            values = (raw["x"], raw["y"], raw["z"])
        except KeyError as e:
            raise InputShapeError(f"Position is missing coordinate {e}") from None
    elif isinstance(raw, (list, tuple)):
        values = tuple(raw)
        if len(values) != 3:
            raise InputShapeError(f"Position must have 3 coordinates (got {len(values)})")
    else:
        raise InputShapeError(f"Position must be an object or a 3-item array: {raw!r}")

    try:
        return tuple(float(v) for v in values)
    except (TypeError, ValueError):
        raise InputShapeError(f"Position coordinates must be numbers: {raw!r}") from None


@dataclass(frozen=True)
class GestureSample:
    """A timed 3-D hand-motion sequence.

    positions[i] was captured at timing[i] milliseconds after the sample
    started. depth is an optional per-frame depth reading from the capture
    device, used only by the anti-spoofing depth check.
    """

    positions: tuple
    timing: tuple
    depth: Optional[tuple] = None

    @classmethod
    def from_dict(cls, data):
        """
        Build a sample from its JSON form.

        Accepts {"positions": [{"x", "y", "z"} | [x, y, z], ...],
        "timing": [ms, ...], "depthData": [float, ...] (optional)}.
        """
        if not isinstance(data, dict):
            raise InputShapeError("Gesture data must be an object")

        raw_positions = data.get("positions")
        raw_timing = data.get("timing")
        if not isinstance(raw_positions, (list, tuple)) or not isinstance(
            raw_timing, (list, tuple)
        ):
            raise InputShapeError("Gesture data needs 'positions' and 'timing' arrays")

        positions = tuple(_parse_position(p) for p in raw_positions)
        try:
            timing = tuple(float(t) for t in raw_timing)
            raw_depth = data.get("depthData", data.get("depth"))
            depth = tuple(float(d) for d in raw_depth) if raw_depth else None
        except (TypeError, ValueError):
            raise InputShapeError("Timing and depth values must be numbers") from None

        return cls(positions=positions, timing=timing, depth=depth)

    def to_dict(self):
        data = {
            "positions": [{"x": x, "y": y, "z": z} for x, y, z in self.positions],
            "timing": list(self.timing),
        }
        if self.depth is not None:
            data["depthData"] = list(self.depth)
        return data

    def __len__(self):
        return len(self.positions)

    @property
    def duration(self):
        if not self.timing:
            return 0.0
        return self.timing[-1] - self.timing[0]

    @property
    def normalized_timing(self):
        """Timestamps rebased so the first frame is at 0 ms."""
        if not self.timing:
            return ()
        start = self.timing[0]
        return tuple(t - start for t in self.timing)


def validate_sample(sample, require_duration=True):
    """
    Enforce the shape invariants of a gesture sample.

    Args:
        sample: GestureSample to check
        require_duration: Also require the duration to be admissible for
            registration or login.

    Raises:
        InputShapeError: On the first violated invariant.
    """
    n = len(sample.positions)
    if n != len(sample.timing):
        raise InputShapeError(
            f"positions and timing must have the same length "
            f"({n} != {len(sample.timing)})"
        )
    if not MIN_POSITIONS <= n <= MAX_POSITIONS:
        raise InputShapeError(
            f"Gesture must have {MIN_POSITIONS}-{MAX_POSITIONS} positions (got {n})"
        )
    if sample.depth is not None and len(sample.depth) != n:
        raise InputShapeError(f"depth data must have {n} values (got {len(sample.depth)})")

    for point in sample.positions:
        if len(point) != 3 or not all(math.isfinite(c) for c in point):
            raise InputShapeError(f"Invalid position {point!r}")

    if not all(math.isfinite(t) for t in sample.timing):
        raise InputShapeError("Timing values must be finite")
    for prev, curr in zip(sample.timing, sample.timing[1:]):
        if curr < prev:
            raise InputShapeError("Timing must be non-decreasing")

    if require_duration and not MIN_DURATION_MS <= sample.duration <= MAX_DURATION_MS:
        raise InputShapeError(
            f"Gesture duration must be {MIN_DURATION_MS}-{MAX_DURATION_MS} ms "
            f"(got {sample.duration:.0f})"
        )
    return sample


# Placeholder measurements; no hand-geometry model exists yet
PLACEHOLDER_HAND_SIZE = {"width": 1.0, "height": 1.0}
PLACEHOLDER_FINGER_LENGTHS = {
    "thumb": 1.0,
    "index": 1.0,
    "middle": 1.0,
    "ring": 1.0,
    "pinky": 1.0,
}


@dataclass
class BiometricProfile:
    gesture_speed: float
    fluidity_score: float
    hand_size: dict = field(default_factory=lambda: dict(PLACEHOLDER_HAND_SIZE))
    finger_lengths: dict = field(
        default_factory=lambda: dict(PLACEHOLDER_FINGER_LENGTHS)
    )

    def to_dict(self):
        return {
            "handSize": dict(self.hand_size),
            "fingerLengths": dict(self.finger_lengths),
            "gestureSpeed": self.gesture_speed,
            "fluidityScore": self.fluidity_score,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            gesture_speed=float(data.get("gestureSpeed", 0.0)),
            fluidity_score=float(data.get("fluidityScore", 0.0)),
            hand_size=dict(data.get("handSize") or PLACEHOLDER_HAND_SIZE),
            finger_lengths=dict(data.get("fingerLengths") or PLACEHOLDER_FINGER_LENGTHS),
        )


@dataclass
class UsageStats:
    total_attempts: int = 0
    successful_attempts: int = 0
    failed_attempts: int = 0
    average_confidence: float = 0.0
    last_used: Optional[int] = None

    def record(self, success, confidence, now):
        """Account for one validation attempt."""
        self.total_attempts += 1
        if success:
            self.successful_attempts += 1
        else:
            self.failed_attempts += 1
        # Running mean over all attempts
        self.average_confidence += (confidence - self.average_confidence) / self.total_attempts
        self.last_used = now

    def to_dict(self):
        return {
            "totalAttempts": self.total_attempts,
            "successfulAttempts": self.successful_attempts,
            "failedAttempts": self.failed_attempts,
            "averageConfidence": self.average_confidence,
            "lastUsed": self.last_used,
        }

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        return cls(
            total_attempts=int(data.get("totalAttempts", 0)),
            successful_attempts=int(data.get("successfulAttempts", 0)),
            failed_attempts=int(data.get("failedAttempts", 0)),
            average_confidence=float(data.get("averageConfidence", 0.0)),
            last_used=data.get("lastUsed"),
        )


@dataclass
class GestureTemplate:
    """The stored reference gesture for one identity.

    The sample itself only exists encrypted (encrypted_sample + salt);
    use a TemplateCipher to get it back.
    """

    identity: str
    encrypted_sample: str
    salt: str
    complexity: int
    biometric_profile: BiometricProfile
    sequence_length: int
    average_duration: float
    tolerance: Tolerance = field(default_factory=Tolerance)
    usage_stats: UsageStats = field(default_factory=UsageStats)
    name: str = "My Gesture"
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    is_active: bool = True
    template_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def summary(self):
        return TemplateSummary(
            identity=self.identity,
            name=self.name,
            complexity=self.complexity,
            sequence_length=self.sequence_length,
            average_duration=self.average_duration,
            tolerance=self.tolerance,
            usage_stats=UsageStats(**vars(self.usage_stats)),
        )

    def to_dict(self):
        return {
            "id": self.template_id,
            "identity": self.identity,
            "gestureData": self.encrypted_sample,
            "salt": self.salt,
            "complexity": self.complexity,
            "biometricData": self.biometric_profile.to_dict(),
            "sequenceLength": self.sequence_length,
            "averageDuration": self.average_duration,
            "tolerance": self.tolerance.to_dict(),
            "usageStats": self.usage_stats.to_dict(),
            "name": self.name,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "isActive": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        return cls(
            identity=data["identity"],
            encrypted_sample=data["gestureData"],
            salt=data["salt"],
            complexity=int(data["complexity"]),
            biometric_profile=BiometricProfile.from_dict(data.get("biometricData", {})),
            sequence_length=int(data["sequenceLength"]),
            average_duration=float(data.get("averageDuration", 0.0)),
            tolerance=Tolerance.from_dict(data.get("tolerance")),
            usage_stats=UsageStats.from_dict(data.get("usageStats")),
            name=data.get("name", "My Gesture"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            is_active=bool(data.get("isActive", True)),
            template_id=data.get("id") or uuid.uuid4().hex,
        )


@dataclass
class TemplateSummary:
    identity: str
    name: str
    complexity: int
    sequence_length: int
    average_duration: float
    tolerance: Tolerance
    usage_stats: UsageStats

    def to_dict(self):
        return {
            "identity": self.identity,
            "name": self.name,
            "complexity": self.complexity,
            "sequenceLength": self.sequence_length,
            "averageDuration": self.average_duration,
            "tolerance": self.tolerance.to_dict(),
            "usageStats": self.usage_stats.to_dict(),
        }
