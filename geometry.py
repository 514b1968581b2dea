"""
Vector math over 3-D gesture positions.

Positions are anything numpy can turn into a length-3 float vector
(tuples, lists, arrays).
"""

import math

import numpy as np

from errors import DegenerateVectorError


def as_vector(point):
    return np.asarray(point, dtype=float).reshape(3)


def distance3d(a, b):
    """Euclidean distance between two 3-D points."""
    return float(np.linalg.norm(as_vector(a) - as_vector(b)))


def angle_degrees(p1, p2, p3):
    """
    Turn angle at p2 between the vectors p1->p2 and p2->p3.

    Args:
        p1, p2, p3: Consecutive 3-D positions.

    Returns:
        Angle in degrees within [0, 180]. 0 means the motion continues
        straight on, 180 means it reverses.

    Raises:
        DegenerateVectorError: If either vector has zero magnitude.
    """
    v1 = as_vector(p2) - as_vector(p1)
    v2 = as_vector(p3) - as_vector(p2)

    mag1 = np.linalg.norm(v1)
    mag2 = np.linalg.norm(v2)
    if mag1 == 0 or mag2 == 0:
        raise DegenerateVectorError("Cannot compute angle for a zero-length vector")

    # Rounding can push the cosine just outside acos' domain
    cosine = float(np.clip(np.dot(v1, v2) / (mag1 * mag2), -1.0, 1.0))
    return math.degrees(math.acos(cosine))


def segment_lengths(positions):
    """Distances between consecutive positions (length N-1)."""
    points = np.asarray(positions, dtype=float)
    if len(points) < 2:
        return np.zeros(0)
    return np.linalg.norm(np.diff(points, axis=0), axis=1)


def velocities(positions, timing, per_seconds=False):
    """
    Per-segment speed between consecutive positions.

    Args:
        positions: Sequence of 3-D points.
        timing: Matching timestamps in milliseconds.
        per_seconds: Report units per second instead of units per ms.

    Returns:
        numpy array of length N-1. A segment with zero elapsed time has
        speed 0 when nothing moved and inf when it did.
    """
    lengths = segment_lengths(positions)
    intervals = np.diff(np.asarray(timing, dtype=float))
    if per_seconds:
        intervals = intervals / 1000.0

    speeds = np.zeros_like(lengths)
    moving = intervals > 0
    speeds[moving] = lengths[moving] / intervals[moving]
    speeds[~moving & (lengths > 0)] = math.inf
    return speeds
