"""
Force composition and kinematic integration for one agent.

All functions are pure: they read a tick-start snapshot (positions,
velocities, field sample) and return 2D (x, z) vectors. The simulation
owns the order in which they are combined:

    flock + field seek/repel + panic + nutrients + wander + trail follow
    -> fallback bias if the sum is nearly zero
    -> integrate()
"""

import math
import numpy as np
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from .data_types import FieldSample, FlockConfig
from .spatial import clamp, clamp_length, normalize, safe_distance, smoothstep
from .constants import (
    FAR_ACCEL_INNER,
    FAR_ACCEL_OUTER,
    FAR_PULL_BASE,
    FAR_PULL_BOOST,
    OVERHEAT_PULSE,
    OVERHEAT_TEMP,
    PANIC_RADIUS_MUL,
    PANIC_PUSH,
    NUTRIENT_INNER_R,
    NUTRIENT_OUTER_R,
    NUTRIENT_WEIGHT,
    WANDER_AMPLITUDE,
    WANDER_RATE,
    WANDER_FREQ_X,
    WANDER_FREQ_Z,
    FALLBACK_THRESHOLD,
    FALLBACK_GAIN,
    SPEED_FACTOR_MIN,
    SPEED_FACTOR_MAX,
)


@dataclass
class FlockTerms:
    """Neighbor-rule vectors (zero when there are no neighbors)"""
    alignment: np.ndarray
    cohesion: np.ndarray
    separation: np.ndarray
    neighbor_count: int = 0


@dataclass
class SeekTerms:
    """Heat-seeking result plus the distance values the pose/hop step reuses"""
    steer: np.ndarray
    far_boost: float
    dist_sun: float


# ============================================================================
# Neighbor Rules
# ============================================================================

def flock_terms(
    row: int,
    positions: np.ndarray,
    velocities: np.ndarray,
    neighbor_rows: Iterable[int],
    config: FlockConfig
) -> FlockTerms:
    """
    Alignment, cohesion and separation for one slot.

    Args:
        row: Slot being steered
        positions: (N, 2) snapshot [x, z]
        velocities: (N, 2) snapshot [vx, vz]
        neighbor_rows: Slots within the neighbor radius (self and DEAD excluded)
        config: Flock parameters (separation radius)

    Returns:
        FlockTerms; alignment is the mean neighbor velocity, cohesion the
        mean neighbor position minus self, separation the sum of unit
        vectors away from every neighbor inside the separation radius
    """
    me = positions[row]
    align = np.zeros(2, dtype=np.float64)
    center = np.zeros(2, dtype=np.float64)
    separation = np.zeros(2, dtype=np.float64)
    sep_r2 = config.separation_radius * config.separation_radius

    count = 0
    for j in neighbor_rows:
        offset = positions[j] - me
        d2 = float(offset[0] * offset[0] + offset[1] * offset[1])
        align += velocities[j]
        center += positions[j]
        count += 1
        if d2 < sep_r2:
            separation -= offset / safe_distance(math.sqrt(d2))

    if count == 0:
        zero = np.zeros(2, dtype=np.float64)
        return FlockTerms(alignment=zero, cohesion=zero.copy(), separation=separation)

    return FlockTerms(
        alignment=align / count,
        cohesion=center / count - me,
        separation=separation,
        neighbor_count=count,
    )


# ============================================================================
# Field Forces
# ============================================================================

def seek_force(
    x: float,
    z: float,
    sample: FieldSample,
    sun_x: float,
    sun_z: float,
    heat_pulse: float,
    config: FlockConfig
) -> SeekTerms:
    """
    Direct bearing-to-sun force plus gradient pull boosted with distance.

    While the sun is pulsing hot and the local sun density is past the
    overheat threshold the gradient term flips sign, so agents crowding
    the sun back off.
    """
    dxs = sun_x - x
    dzs = sun_z - z
    dist_sun = math.hypot(dxs, dzs)
    far_boost = smoothstep(dist_sun, FAR_ACCEL_INNER, FAR_ACCEL_OUTER)

    grad_sun = np.array([sample.grad_sun_x, sample.grad_sun_z], dtype=np.float64)
    pull = config.sun_pull * (FAR_PULL_BASE + FAR_PULL_BOOST * far_boost)
    bearing = np.array([dxs, dzs], dtype=np.float64) / (dist_sun if dist_sun > 0.0 else 1.0)

    steer = grad_sun * pull + bearing * config.seek_gain
    if heat_pulse > OVERHEAT_PULSE and sample.rho_sun > OVERHEAT_TEMP:
        steer = steer - grad_sun * config.repel_gain

    return SeekTerms(steer=steer, far_boost=far_boost, dist_sun=dist_sun)


def panic_force(x: float, z: float, sun_x: float, sun_z: float, visual_radius: float) -> np.ndarray:
    """Radial push away from the sun for agents inside the (scaled) heat ring"""
    dx = x - sun_x
    dz = z - sun_z
    d = math.hypot(dx, dz)
    if d >= visual_radius * PANIC_RADIUS_MUL:
        return np.zeros(2, dtype=np.float64)
    d = safe_distance(d)
    return np.array([dx / d, dz / d], dtype=np.float64) * PANIC_PUSH


def nutrient_force(x: float, z: float, points: Sequence[Tuple[float, float, float]]) -> np.ndarray:
    """
    Normalized pull toward nutrient points.

    Each point inside the outer radius contributes its unit direction,
    weighted 1 inside the inner radius and easing to 0 at the outer one.
    Points sitting on top of the agent are ignored.
    """
    total = np.zeros(2, dtype=np.float64)
    outer2 = NUTRIENT_OUTER_R * NUTRIENT_OUTER_R
    for px, _, pz in points:
        dx = px - x
        dz = pz - z
        d2 = dx * dx + dz * dz
        if d2 <= 1e-6 or d2 > outer2:
            continue
        d = math.sqrt(d2)
        w = smoothstep(d, NUTRIENT_OUTER_R, NUTRIENT_INNER_R)
        total += np.array([dx / d, dz / d]) * w

    unit, length = normalize(total)
    if length < 1e-6:
        return np.zeros(2, dtype=np.float64)
    return unit


def wander_force(phase: float) -> np.ndarray:
    return WANDER_AMPLITUDE * np.array(
        [math.sin(phase * WANDER_FREQ_X), math.cos(phase * WANDER_FREQ_Z)], dtype=np.float64
    )


def advance_wander(phase: float, dt: float) -> float:
    return phase + dt * WANDER_RATE


def fallback_bias(accel: np.ndarray, x: float, z: float, sun_x: float, sun_z: float) -> np.ndarray:
    """Weak pull toward the sun, added only when the other forces cancel out"""
    if float(np.hypot(accel[0], accel[1])) >= FALLBACK_THRESHOLD:
        return accel
    to_sun, _ = normalize(np.array([sun_x - x, sun_z - z], dtype=np.float64))
    return accel + to_sun * FALLBACK_GAIN


def compose(
    flock: FlockTerms,
    seek: SeekTerms,
    config: FlockConfig,
    panic: Optional[np.ndarray] = None,
    nutrients: Optional[np.ndarray] = None,
    wander: Optional[np.ndarray] = None,
    trail: Optional[np.ndarray] = None
) -> np.ndarray:
    """Weighted sum of every steering term (before the fallback bias)"""
    accel = (
        flock.alignment * config.alignment_weight
        + flock.cohesion * config.cohesion_weight
        + flock.separation * config.separation_weight
        + seek.steer
    )
    if panic is not None:
        accel = accel + panic
    if nutrients is not None:
        accel = accel + nutrients * NUTRIENT_WEIGHT
    if wander is not None:
        accel = accel + wander
    if trail is not None:
        accel = accel + trail
    return accel


# ============================================================================
# Integration
# ============================================================================

def integrate(
    velocity: np.ndarray,
    accel: np.ndarray,
    dt: float,
    speed_factor: float,
    config: FlockConfig
) -> np.ndarray:
    """
    Clamped, damped Euler velocity update.

    Returns:
        New (2,) velocity; steering is clamped to steer_max * sf and the
        result to max_speed * sf, with sf the clamped genome speed factor
    """
    sf = clamp(speed_factor, SPEED_FACTOR_MIN, SPEED_FACTOR_MAX)
    accel = clamp_length(np.asarray(accel, dtype=np.float64), config.steer_max * sf)
    v = (np.asarray(velocity, dtype=np.float64) + accel * dt) * math.exp(-config.damping * dt)
    return clamp_length(v, config.max_speed * sf)
