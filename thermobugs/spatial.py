"""
Spatial utility functions for the ground plane.

Helper functions for planar (XZ) vector math, easing curves and heading
control. All vectors are float64 numpy arrays of length 2 (x, z) unless
noted otherwise.
"""

import math
import numpy as np
from typing import Tuple

from .constants import DISTANCE_EPSILON, STILL_SPEED


def distance_xz(ax: float, az: float, bx: float, bz: float) -> float:
    """Euclidean distance between two ground-plane points."""
    return math.hypot(bx - ax, bz - az)


def normalize(vec: np.ndarray) -> Tuple[np.ndarray, float]:
    """
    Normalize vector to unit length.

    Args:
        vec: Vector to normalize

    Returns:
        Tuple of (normalized vector, original length). A zero vector is
        returned unchanged with length 0.0.
    """
    length = float(np.sqrt(np.dot(vec, vec)))
    if length < 1e-9:
        return np.zeros_like(vec, dtype=np.float64), 0.0
    return vec / length, length


def clamp_length(vec: np.ndarray, max_length: float) -> np.ndarray:
    """
    Clamp vector magnitude to max_length.

    Args:
        vec: Vector to clamp
        max_length: Maximum allowed magnitude

    Returns:
        Vector with clamped magnitude (same direction)
    """
    length_sq = float(np.dot(vec, vec))
    if length_sq > max_length * max_length:
        return vec * (max_length / math.sqrt(length_sq))
    return vec


def clamp(value: float, lo: float, hi: float) -> float:
    return lo if value < lo else hi if value > hi else value


def smoothstep(x: float, edge0: float, edge1: float) -> float:
    """
    Hermite smoothstep of x between edge0 and edge1.

    Edges may be given in descending order, in which case the curve falls
    from 1 to 0 as x grows (used for inner/outer falloffs).
    """
    if edge0 == edge1:
        return 0.0 if x < edge0 else 1.0
    t = clamp((x - edge0) / (edge1 - edge0), 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


def rotate_y(vec: np.ndarray, angle: float) -> np.ndarray:
    """
    Rotate a ground-plane vector (x, z) about the +Y axis.

    Matches a right-handed Y-up frame: x' = x cos + z sin, z' = -x sin + z cos.
    """
    c = math.cos(angle)
    s = math.sin(angle)
    return np.array([vec[0] * c + vec[1] * s, -vec[0] * s + vec[1] * c], dtype=np.float64)


def angle_diff(a: float, b: float) -> float:
    """Signed shortest angle from a to b, in (-pi, pi]."""
    d = b - a
    return math.atan2(math.sin(d), math.cos(d))


def yaw_towards(current_yaw: float, vx: float, vz: float, dt: float, turn_rate: float) -> float:
    """
    Critically-damped turn of current_yaw toward the heading of (vx, vz).

    Heading convention: yaw 0 faces +Z, atan2(vx, vz). When the velocity is
    near zero the last heading is kept.
    """
    if math.hypot(vx, vz) < STILL_SPEED:
        return current_yaw
    target = math.atan2(vx, vz)
    rate = 1.0 - math.exp(-turn_rate * dt)
    return current_yaw + angle_diff(current_yaw, target) * rate


def safe_distance(d: float) -> float:
    """Floor a distance before it is used as a divisor."""
    return max(DISTANCE_EPSILON, d)
