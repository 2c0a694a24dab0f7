"""
Geometry helper utilities for agent pose.

This module provides small, focused functions with no simulation
state. All helpers operate on float64 numpy arrays (3-vectors, Y up) and
return new arrays.
"""
from __future__ import annotations

import math
from typing import Tuple

import numpy as np

WORLD_UP = np.array([0.0, 1.0, 0.0], dtype=np.float64)


def blend_up(normal: np.ndarray, alignment: float) -> np.ndarray:
    """
    Blend world-up toward a ground normal and renormalize.

    alignment 0 keeps world-up, 1 uses the ground normal as-is.
    """
    normal = np.asarray(normal, dtype=np.float64)
    up = WORLD_UP + (normal - WORLD_UP) * alignment
    length = float(np.linalg.norm(up))
    if length < 1e-9:
        return WORLD_UP.copy()
    return up / length


def heading_vector(yaw: float) -> np.ndarray:
    """Unit forward vector for a yaw angle (yaw 0 faces +Z)."""
    return np.array([math.sin(yaw), 0.0, math.cos(yaw)], dtype=np.float64)


def look_rotation(forward: np.ndarray, up: np.ndarray) -> np.ndarray:
    """
    Rotation matrix whose local +Z points along forward with local +Y near up.

    Columns are the local X, Y, Z axes in world space. A forward vector
    parallel to up is nudged so the basis stays well defined.

    Returns:
        (3, 3) orthonormal rotation matrix
    """
    z = np.asarray(forward, dtype=np.float64).copy()
    up = np.asarray(up, dtype=np.float64)

    if float(np.dot(z, z)) < 1e-18:
        z = np.array([0.0, 0.0, 1.0])
    z = z / np.linalg.norm(z)

    x = np.cross(up, z)
    if float(np.dot(x, x)) < 1e-18:
        if abs(up[2]) == 1.0:
            z[0] += 1e-4
        else:
            z[2] += 1e-4
        z = z / np.linalg.norm(z)
        x = np.cross(up, z)

    x = x / np.linalg.norm(x)
    y = np.cross(z, x)
    return np.column_stack((x, y, z))


def quaternion_from_matrix(m: np.ndarray) -> Tuple[float, float, float, float]:
    """
    Convert a pure rotation matrix to a unit quaternion (x, y, z, w).

    Branches on the largest diagonal term for numerical stability.
    """
    m11, m12, m13 = m[0]
    m21, m22, m23 = m[1]
    m31, m32, m33 = m[2]
    trace = m11 + m22 + m33

    if trace > 0.0:
        s = 0.5 / math.sqrt(trace + 1.0)
        w = 0.25 / s
        x = (m32 - m23) * s
        y = (m13 - m31) * s
        z = (m21 - m12) * s
    elif m11 > m22 and m11 > m33:
        s = 2.0 * math.sqrt(1.0 + m11 - m22 - m33)
        w = (m32 - m23) / s
        x = 0.25 * s
        y = (m12 + m21) / s
        z = (m13 + m31) / s
    elif m22 > m33:
        s = 2.0 * math.sqrt(1.0 + m22 - m11 - m33)
        w = (m13 - m31) / s
        x = (m12 + m21) / s
        y = 0.25 * s
        z = (m23 + m32) / s
    else:
        s = 2.0 * math.sqrt(1.0 + m33 - m11 - m22)
        w = (m21 - m12) / s
        x = (m13 + m31) / s
        y = (m23 + m32) / s
        z = 0.25 * s

    return float(x), float(y), float(z), float(w)


def orientation_for(yaw: float, ground_normal: np.ndarray, alignment: float) -> Tuple[float, float, float, float]:
    """
    Orientation quaternion facing the yaw heading on a sloped ground.

    Args:
        yaw: Heading angle (0 = +Z)
        ground_normal: Unit terrain normal under the agent
        alignment: How far "up" leans toward the normal (0..1)
    """
    up = blend_up(ground_normal, alignment)
    return quaternion_from_matrix(look_rotation(heading_vector(yaw), up))
