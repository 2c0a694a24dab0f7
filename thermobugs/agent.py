"""
Agent runtime representation.

One agent occupies exactly one population slot. Genome replacement
re-targets the same slot: position, velocity and pose carry over, only
the phenotype scalars and life state change.
"""

import numpy as np
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, Optional, Tuple

from .genome import Genome, body_color, trail_color
from .constants import TRAIL_MAX_POINTS


class LifeState(str, Enum):
    """Animated existence status, driven by GA selection events"""
    ALIVE = "alive"
    DYING = "dying"
    DEAD = "dead"
    NEWBORN = "newborn"


DEFAULT_TRAIL_COLOR = (1.0, 0.7, 0.2)


@dataclass
class Agent:
    """
    Runtime boid in the simulation.

    Attributes:
        index: Population slot this agent occupies
        position: [x, y, z] world position (y is the simulated height, kept
            within MAX_HOVER of the ground; render_position carries the pose)
        velocity: [vx, vz] ground-plane velocity
        yaw: Heading angle (0 faces +Z)
        hop_phase: Hop oscillator phase (radians)
        wander_phase: Decorrelated wander clock
        genome: Current genome (None until one is applied)
        speed_factor: Genome speed multiplier
        show_off: Genome display trait
        base_scale: Genome body scale
        state: Life-cycle state
        death_t / newborn_t: Seconds spent in DYING / NEWBORN
        life_scale / life_visibility: [0, 1] multipliers for rendering
        sink_offset: How far a DYING agent has sunk below the ground line
        trail_points: Bounded history of recent render positions
    """
    index: int
    position: np.ndarray
    velocity: np.ndarray
    yaw: float = 0.0
    hop_phase: float = 0.0
    wander_phase: float = 0.0
    genome: Optional[Genome] = None
    speed_factor: float = 1.0
    show_off: float = 0.5
    base_scale: float = 1.0
    body_color: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    trail_color: Tuple[float, float, float] = DEFAULT_TRAIL_COLOR
    state: LifeState = LifeState.ALIVE
    death_t: float = 0.0
    newborn_t: float = 0.0
    life_scale: float = 1.0
    life_visibility: float = 1.0
    sink_offset: float = 0.0
    max_trail_points: int = TRAIL_MAX_POINTS
    trail_points: Deque[Tuple[float, float, float]] = field(default=None)

    # Per-tick render outputs (written by the simulation, read by the render sink)
    render_position: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    orientation: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0)
    render_scale: float = 1.0
    glow: float = 0.0
    trail_opacity: float = 0.0

    def __post_init__(self):
        """Ensure position/velocity are float64 arrays, seed trail history"""
        self.position = np.array(self.position, dtype=np.float64)
        self.velocity = np.array(self.velocity, dtype=np.float64)
        if self.trail_points is None:
            self.trail_points = deque(maxlen=self.max_trail_points)
            self.trail_points.append(self.position_tuple())
        self.render_position = self.position_tuple()

    @property
    def x(self) -> float:
        return float(self.position[0])

    @property
    def z(self) -> float:
        return float(self.position[2])

    @property
    def speed(self) -> float:
        return float(np.hypot(self.velocity[0], self.velocity[1]))

    @property
    def is_dead(self) -> bool:
        return self.state is LifeState.DEAD

    def position_tuple(self) -> Tuple[float, float, float]:
        return float(self.position[0]), float(self.position[1]), float(self.position[2])

    def apply_genome(self, genome: Genome):
        """Adopt a genome and refresh every derived phenotype scalar"""
        self.genome = genome
        self.speed_factor = genome.base_speed
        self.show_off = genome.show_off
        self.base_scale = genome.body_scale
        self.body_color = body_color(genome)
        self.trail_color = trail_color(genome)

    def restart_trail(self):
        """Drop trail history and restart it at the current position"""
        self.trail_points.clear()
        self.trail_points.append(self.position_tuple())

    def push_trail_point(self, point: Tuple[float, float, float]):
        self.trail_points.append(point)

    def to_dict(self) -> dict:
        """
        Serialize agent state to a JSON-compatible dict.

        Returns:
            Dict with kinematic, genetic and life-cycle fields
        """
        return {
            'index': self.index,
            'position': self.position.tolist(),
            'velocity': self.velocity.tolist(),
            'yaw': self.yaw,
            'genome': self.genome.to_dict() if self.genome is not None else None,
            'state': self.state.value,
            'life_scale': self.life_scale,
            'life_visibility': self.life_visibility,
            'glow': self.glow,
            'trail_length': len(self.trail_points),
        }
