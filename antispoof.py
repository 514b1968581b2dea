"""
Heuristic liveness checks for gesture samples.

Three independent checks look for signatures of replayed or scripted
input: a flat depth profile, physically implausible acceleration, and
inter-frame timing that is too regular for a human hand. Any suspicious
result rejects the attempt. A check that blows up internally is treated
as suspicious too, so an analyzer bug can never let an attempt through.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from config import AntiSpoofingConfig
from geometry import velocities

logger = logging.getLogger(__name__)

SEVERITY_LOW = "low"
SEVERITY_MEDIUM = "medium"
SEVERITY_HIGH = "high"


@dataclass(frozen=True)
class SpoofCheck:
    name: str
    suspicious: bool
    severity: Optional[str] = None
    reason: Optional[str] = None
    value: Optional[float] = None

    def to_dict(self):
        return {
            "check": self.name,
            "suspicious": self.suspicious,
            "severity": self.severity,
            "reason": self.reason,
            "value": self.value,
        }


@dataclass(frozen=True)
class SpoofingReport:
    checks: list = field(default_factory=list)

    @property
    def passed(self):
        return not any(check.suspicious for check in self.checks)

    @property
    def findings(self):
        return [check for check in self.checks if check.suspicious]


def _clean(name, value=None):
    return SpoofCheck(name=name, suspicious=False, value=value)


def check_depth_consistency(depth, min_variation):
    """Near-constant depth across frames suggests a flat photo or screen replay."""
    deltas = np.abs(np.diff(np.asarray(depth, dtype=float)))
    avg_variation = float(deltas.mean()) if len(deltas) else 0.0
    if avg_variation > min_variation:
        return _clean("depth", avg_variation)
    return SpoofCheck(
        name="depth",
        suspicious=True,
        severity=SEVERITY_HIGH,
        reason="depth_inconsistency",
        value=avg_variation,
    )


def check_motion_pattern(positions, timing, max_acceleration):
    """Flag frame-to-frame speed changes no hand could produce."""
    speeds = velocities(positions, timing, per_seconds=True)
    if not np.all(np.isfinite(speeds)):
        # Movement with no elapsed time
        return SpoofCheck(
            name="motion",
            suspicious=True,
            severity=SEVERITY_MEDIUM,
            reason="unnatural_acceleration",
            value=float("inf"),
        )

    accelerations = np.abs(np.diff(speeds))
    peak = float(accelerations.max()) if len(accelerations) else 0.0
    if peak > max_acceleration:
        return SpoofCheck(
            name="motion",
            suspicious=True,
            severity=SEVERITY_MEDIUM,
            reason="unnatural_acceleration",
            value=peak,
        )
    return _clean("motion", peak)


def check_timing_pattern(timing, min_variance):
    """Perfectly even frame intervals point at automation rather than a person."""
    intervals = np.diff(np.asarray(timing, dtype=float))
    variance = float(np.var(intervals)) if len(intervals) else 0.0
    if variance < min_variance:
        return SpoofCheck(
            name="timing",
            suspicious=True,
            severity=SEVERITY_HIGH,
            reason="too_perfect_timing",
            value=variance,
        )
    return _clean("timing", variance)


class AntiSpoofingAnalyzer:
    def __init__(self, config=None):
        self.config = config or AntiSpoofingConfig()

    def _run(self, name, check, *args):
        try:
            return check(*args)
        except Exception:
            logger.exception("Anti-spoofing %s check failed, rejecting sample", name)
            return SpoofCheck(
                name=name,
                suspicious=True,
                severity=SEVERITY_HIGH,
                reason="analysis_error",
            )

    def analyze(self, sample):
        """
        Run every check against a live sample.

        Args:
            sample: Shape-validated GestureSample

        Returns:
            SpoofingReport; report.passed is False if any check is suspicious.
        """
        if not self.config.enabled:
            return SpoofingReport()

        checks = []
        if sample.depth:
            checks.append(
                self._run(
                    "depth",
                    check_depth_consistency,
                    sample.depth,
                    self.config.min_depth_variation,
                )
            )
        checks.append(
            self._run(
                "motion",
                check_motion_pattern,
                sample.positions,
                sample.timing,
                self.config.max_acceleration,
            )
        )
        checks.append(
            self._run(
                "timing",
                check_timing_pattern,
                sample.timing,
                self.config.min_timing_variance,
            )
        )

        report = SpoofingReport(checks=checks)
        for finding in report.findings:
            logger.debug("Anti-spoofing finding: %s (%s)", finding.reason, finding.severity)
        return report
