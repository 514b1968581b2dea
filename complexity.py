"""
Complexity rating and biometric descriptors for a gesture sample.

Everything here is a pure function of the sample; nothing is stored.
"""

import logging
import math

import numpy as np

from errors import DegenerateVectorError
from geometry import angle_degrees, segment_lengths
from gestures import BiometricProfile

logger = logging.getLogger(__name__)

MIN_COMPLEXITY = 1
MAX_COMPLEXITY = 10

# Turns sharper than this (angle between successive segments) cost fluidity
FLUIDITY_ANGLE_LIMIT = 90.0
FLUIDITY_PENALTY = 0.1

LOW_COMPLEXITY_ADVICE = 5
LOW_FLUIDITY_ADVICE = 0.7


def score_complexity(sample):
    """
    Rate how hard a gesture is to reproduce, from 1 to 10.

    complexity = 1 + 0.5 * N + 0.1 * path length + 0.01 * Var(timing),
    rounded and clamped.
    """
    n = len(sample.positions)
    path_length = float(segment_lengths(sample.positions).sum())
    time_variance = float(np.var(np.asarray(sample.timing, dtype=float)))

    complexity = 1 + 0.5 * n + 0.1 * path_length + 0.01 * time_variance
    # Halves round up
    return int(min(MAX_COMPLEXITY, max(MIN_COMPLEXITY, math.floor(complexity + 0.5))))


def gesture_speed(sample):
    """Mean segment speed in position units per millisecond.

    Segments whose two timestamps are equal count as speed 0.
    """
    lengths = segment_lengths(sample.positions)
    if len(lengths) == 0:
        return 0.0

    intervals = np.diff(np.asarray(sample.timing, dtype=float))
    speeds = np.zeros_like(lengths)
    moving = intervals > 0
    speeds[moving] = lengths[moving] / intervals[moving]
    if not moving.all():
        logger.debug("Zero time step in %d segment(s), speed counted as 0", (~moving).sum())
    return float(speeds.mean())


def fluidity_score(sample):
    """
    Smoothness heuristic in [0, 1].

    Starts at 1.0 and loses 0.1 for each triple of consecutive positions
    whose turn angle is below 90 degrees. Triples with a zero-length
    segment are skipped.
    """
    fluidity = 1.0
    positions = sample.positions
    for i in range(2, len(positions)):
        try:
            angle = angle_degrees(positions[i - 2], positions[i - 1], positions[i])
        except DegenerateVectorError:
            continue
        if angle < FLUIDITY_ANGLE_LIMIT:
            fluidity -= FLUIDITY_PENALTY
    return max(0.0, min(1.0, fluidity))


def analyze_biometrics(sample):
    return BiometricProfile(
        gesture_speed=gesture_speed(sample),
        fluidity_score=fluidity_score(sample),
    )


def score_sample(sample):
    """
    Derive everything a template stores about a registration sample.

    Args:
        sample: A shape-validated GestureSample

    Returns:
        Tuple of (complexity, BiometricProfile)
    """
    return score_complexity(sample), analyze_biometrics(sample)


def generate_recommendations(complexity, profile):
    recommendations = []
    if complexity < LOW_COMPLEXITY_ADVICE:
        recommendations.append("Consider adding more positions to increase security")
    if profile.fluidity_score < LOW_FLUIDITY_ADVICE:
        recommendations.append("Practice your gesture to make it more fluid")
    if not recommendations:
        recommendations.append("Your gesture is well-balanced for security and usability")
    return recommendations


def analyze_for_insights(sample):
    """
    Security insights for a candidate gesture, without storing anything.

    Returns:
        dict with complexity, securityScore (0-100), biometricData and
        recommendations
    """
    complexity, profile = score_sample(sample)
    return {
        "complexity": complexity,
        "securityScore": min(100, complexity * 10),
        "biometricData": profile.to_dict(),
        "recommendations": generate_recommendations(complexity, profile),
    }
