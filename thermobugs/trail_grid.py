"""
Pheromone trail grid.

Square region of side 2R centered on the origin, split into N x N cells.
Agents deposit into the nearest cell while moving and sense three points
ahead of themselves (slime-mold chemotaxis). Values are never negative:
deposits are clamped at zero and decay is multiplicative.
"""

import numpy as np
from typing import Optional, Tuple

from .data_types import TrailConfig
from .constants import TRAIL_ACTIVATION, TRAIL_MAX_VIS_VALUE
from .spatial import normalize, rotate_y


class TrailGrid:
    """
    Fixed-resolution scalar field over [-R, R] x [-R, R].

    Storage is a (N, N) float64 array indexed [iz, ix].
    """

    def __init__(self, config: Optional[TrailConfig] = None):
        self.config = config or TrailConfig()
        self.radius = float(self.config.bound_radius)
        self.size = int(self.config.grid_size)
        self.cell_size = (2.0 * self.radius) / self.size
        self.values = np.zeros((self.size, self.size), dtype=np.float64)

    def cell_of(self, x: float, z: float) -> Tuple[int, int]:
        """
        Nearest cell (ix, iz) for a world point.

        Points outside the region clamp to the border cells.
        """
        span = 2.0 * self.radius
        u = min(max((x + self.radius) / span, 0.0), 0.999)
        v = min(max((z + self.radius) / span, 0.0), 0.999)
        return int(u * self.size), int(v * self.size)

    def deposit(self, x: float, z: float, amount: Optional[float] = None):
        """Add to the nearest cell (negative amounts cannot push it below zero)"""
        if amount is None:
            amount = self.config.deposit_amount
        ix, iz = self.cell_of(x, z)
        self.values[iz, ix] = max(0.0, self.values[iz, ix] + amount)

    def sample(self, x: float, z: float) -> float:
        """Nearest-cell read, no interpolation"""
        ix, iz = self.cell_of(x, z)
        return float(self.values[iz, ix])

    def strength_at(self, x: float, z: float) -> float:
        """Cell value normalized to [0, 1] against the visual saturation value"""
        t = self.sample(x, z) / TRAIL_MAX_VIS_VALUE
        return min(max(t, 0.0), 1.0)

    def decay(self, dt: Optional[float] = None):
        """
        Multiplicative decay of every cell.

        Fixed factor per call unless the grid is configured frame
        independent, in which case the factor is decay^(dt / target_dt).
        """
        factor = self.config.decay_rate
        if self.config.frame_independent and dt is not None:
            factor = factor ** (dt / self.config.target_dt)
        self.values *= factor

    def clear(self):
        self.values.fill(0.0)

    def follow_force(self, x: float, z: float, vx: float, vz: float) -> np.ndarray:
        """
        Three-ray chemotaxis steering.

        Samples forward, forward rotated +angle and forward rotated -angle
        at the sensor distance and steers toward the strongest reading,
        scaled by the reading. Nothing happens below the activation
        threshold or when the agent is not moving.

        Returns:
            (2,) force vector (x, z)
        """
        heading, speed = normalize(np.array([vx, vz], dtype=np.float64))
        if speed < 1e-3:
            return np.zeros(2, dtype=np.float64)

        angle = self.config.sensor_angle
        reach = self.config.sensor_distance
        directions = (heading, rotate_y(heading, angle), rotate_y(heading, -angle))

        best_dir = directions[0]
        best_val = self.sample(x + best_dir[0] * reach, z + best_dir[1] * reach)
        for direction in directions[1:]:
            value = self.sample(x + direction[0] * reach, z + direction[1] * reach)
            if value > best_val:
                best_val = value
                best_dir = direction

        if best_val <= TRAIL_ACTIVATION:
            return np.zeros(2, dtype=np.float64)
        return best_dir * (self.config.follow_weight * best_val)

    def to_texture(self) -> np.ndarray:
        """8-bit luminance image of the grid (for the renderer)"""
        t = np.clip(self.values / TRAIL_MAX_VIS_VALUE, 0.0, 1.0)
        return np.floor(t * 255.0).astype(np.uint8)
