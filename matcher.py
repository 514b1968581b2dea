"""
Compares a live gesture against a stored template.

The boolean verdict and the confidence score are computed independently:
success is a strict per-index tolerance gate, while confidence is a soft
score kept for UX and analytics. A high confidence never turns a failed
gate into a success.
"""

import logging
import time
from dataclasses import dataclass

from geometry import distance3d

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchResult:
    success: bool
    confidence: float
    position_match: bool
    timing_match: bool

    def to_dict(self):
        return {"success": self.success, "confidence": self.confidence}


def relative_timing_diff(stored_t, live_t):
    """|stored - live| / stored, with 0/0 treated as no difference."""
    if stored_t == 0:
        return 0.0 if live_t == 0 else float("inf")
    return abs(stored_t - live_t) / stored_t


def compare_positions(stored, live, tolerance):
    """False as soon as any overlapping index is further than tolerance."""
    for stored_pos, live_pos in zip(stored, live):
        if distance3d(stored_pos, live_pos) > tolerance:
            return False
    return True


def compare_timing(stored, live, tolerance):
    """False as soon as any overlapping index differs by more than tolerance."""
    for stored_t, live_t in zip(stored, live):
        if relative_timing_diff(stored_t, live_t) > tolerance:
            return False
    return True


def _soft_score(deviation, tolerance):
    # 1 at zero deviation, 0.5 at the tolerance, 0 at twice the tolerance
    return max(0.0, 1.0 - deviation / (2.0 * tolerance))


def position_confidence(stored, live, tolerance):
    scores = [
        _soft_score(distance3d(s, p), tolerance) for s, p in zip(stored, live)
    ]
    return sum(scores) / len(scores) if scores else 0.0


def timing_confidence(stored, live, tolerance):
    scores = [
        _soft_score(relative_timing_diff(s, t), tolerance) for s, t in zip(stored, live)
    ]
    return sum(scores) / len(scores) if scores else 0.0


def calculate_confidence(stored_sample, live_sample, tolerance):
    stored_timing = stored_sample.normalized_timing
    live_timing = live_sample.normalized_timing

    confidence = (
        position_confidence(stored_sample.positions, live_sample.positions, tolerance.position)
        + timing_confidence(stored_timing, live_timing, tolerance.timing)
    ) / 2
    return max(0.0, min(1.0, confidence))


class GestureMatcher:
    """Validates live samples and keeps template usage stats current."""

    def __init__(self, cipher, clock=None):
        self._cipher = cipher
        self._clock = clock or (lambda: int(time.time() * 1000))

    def score(self, stored_sample, live_sample, tolerance):
        """Pure scoring pass; touches no state."""
        position_match = compare_positions(
            stored_sample.positions, live_sample.positions, tolerance.position
        )
        timing_match = compare_timing(
            stored_sample.normalized_timing, live_sample.normalized_timing, tolerance.timing
        )
        return MatchResult(
            success=position_match and timing_match,
            confidence=calculate_confidence(stored_sample, live_sample, tolerance),
            position_match=position_match,
            timing_match=timing_match,
        )

    def validate(self, template, live_sample):
        """
        Validate a live sample against a template.

        Usage stats on the template are updated exactly once per call,
        whatever the outcome. The caller is responsible for persisting
        the template afterwards.

        Args:
            template: Active GestureTemplate
            live_sample: Shape-validated GestureSample

        Returns:
            MatchResult

        Raises:
            TemplateCorruptError: If the stored sample cannot be recovered.
                Stats are left untouched in that case.
        """
        stored_sample = self._cipher.decrypt(template.encrypted_sample, template.salt)
        result = self.score(stored_sample, live_sample, template.tolerance)

        template.usage_stats.record(result.success, result.confidence, self._clock())

        logger.debug(
            "Match for %s: position=%s timing=%s confidence=%.3f",
            template.identity,
            result.position_match,
            result.timing_match,
            result.confidence,
        )
        return result
