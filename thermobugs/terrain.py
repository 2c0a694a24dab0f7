"""
Terrain contract and ground-conforming pose.

The terrain mesh lives outside the simulation. It is consumed only
through a sampler: any callable height_at(x, z) -> GroundHit. Without
one, FlatTerrain (y = 0, normal +Y) stands in.
"""

import math
import numpy as np
from typing import Callable, Optional, Tuple

from .agent import Agent
from .data_types import GroundHit
from .geometry import orientation_for
from .spatial import clamp, yaw_towards
from .constants import (
    FOOT_OFFSET,
    MAX_HOVER,
    SLOPE_ALIGN,
    SLOPE_LIFT,
    YAW_TURN_RATE,
    HOP_AMPLITUDE,
    HOP_FREQ_BASE,
    HOP_FREQ_FAR_BOOST,
    HOP_SHOWOFF_BOOST,
)

TerrainSampler = Callable[[float, float], GroundHit]


class FlatTerrain:
    """Infinite ground plane at a fixed height"""

    def __init__(self, height: float = 0.0):
        self.height = float(height)

    def __call__(self, x: float, z: float) -> GroundHit:
        return GroundHit(point=(float(x), self.height, float(z)), normal=(0.0, 1.0, 0.0))


def as_sampler(terrain) -> Optional[TerrainSampler]:
    """
    Accept either a plain callable or an object with a height_at() method.

    Returns:
        Callable sampler, or None when terrain is None
    """
    if terrain is None:
        return None
    if hasattr(terrain, 'height_at'):
        return terrain.height_at
    if callable(terrain):
        return terrain
    raise TypeError(f"terrain must be callable or provide height_at(x, z): {terrain!r}")


def hop_height(phase: float, show_off: float) -> float:
    """
    Parabolic hop offset for an oscillator phase.

    s sweeps 0..1 with the sine; 4 s (1 - s) is a parabola that touches
    the ground at both ends.
    """
    s = 0.5 + 0.5 * math.sin(phase)
    return 4.0 * s * (1.0 - s) * HOP_AMPLITUDE * (1.0 + HOP_SHOWOFF_BOOST * show_off)


def advance_hop(phase: float, far_boost: float, dt: float) -> float:
    freq = HOP_FREQ_BASE + HOP_FREQ_FAR_BOOST * far_boost
    return (phase + freq * dt * 2.0 * math.pi) % (2.0 * math.pi)


def conform_to_ground(agent: Agent, hit: GroundHit) -> Tuple[float, np.ndarray]:
    """
    Keep the simulated height glued to the terrain.

    A non-finite height, or one that drifted more than MAX_HOVER away from
    the ground, is snapped back to the foot offset.

    Returns:
        (base render height, unit ground normal)
    """
    ground_y = float(hit.point[1])
    normal = np.asarray(hit.normal, dtype=np.float64)
    n_len = float(np.linalg.norm(normal))
    if not math.isfinite(n_len) or n_len < 1e-9:
        normal = np.array([0.0, 1.0, 0.0])
    else:
        normal = normal / n_len

    y = float(agent.position[1])
    if not math.isfinite(y) or abs(y - ground_y) > MAX_HOVER:
        agent.position[1] = ground_y + FOOT_OFFSET

    slope_lift = (1.0 - clamp(float(normal[1]), 0.0, 1.0)) * SLOPE_LIFT
    return ground_y + FOOT_OFFSET + slope_lift, normal


def update_pose(agent: Agent, sampler: TerrainSampler, far_boost: float, dt: float) -> float:
    """
    Ground, turn and hop one agent after its position was integrated.

    Writes agent.yaw, agent.hop_phase, agent.orientation and
    agent.render_position. The simulated height agent.position[1] is only
    touched by the ground snap; the rendered body sits on the terrain
    (base + hop - sink) wherever the simulated height is.

    Returns:
        Base render height (without the hop), used for trail points
    """
    base_y, normal = conform_to_ground(agent, sampler(agent.x, agent.z))

    agent.yaw = yaw_towards(agent.yaw, agent.velocity[0], agent.velocity[1], dt, YAW_TURN_RATE)
    agent.orientation = orientation_for(agent.yaw, normal, SLOPE_ALIGN)

    agent.hop_phase = advance_hop(agent.hop_phase, far_boost, dt)
    y_hop = hop_height(agent.hop_phase, agent.show_off)
    agent.render_position = (agent.x, base_y + y_hop - agent.sink_offset, agent.z)
    return base_y
