"""
Agent spawning.

Places one agent per population slot inside a disc around the origin,
rejecting candidates that would start inside another agent's separation
distance (Poisson-disc style). Placement is deterministic for a given
generator.
"""

import math
import numpy as np
from typing import List, Optional, Sequence, Tuple

from .agent import Agent
from .genome import Genome
from .rng import random_point_in_disc
from .constants import (
    SPAWN_RADIUS_MAX,
    SPAWN_TRIES,
    INITIAL_VELOCITY_SPREAD,
    WANDER_PHASE_SPAN,
    FOOT_OFFSET,
)


def spawn_radius_for(terrain_size: float, override: Optional[float] = None) -> float:
    """Spawn disc radius: explicit override, else a quarter of the terrain capped at 16"""
    if override is not None:
        return float(override)
    return min(SPAWN_RADIUS_MAX, 0.25 * float(terrain_size))


def place_points(
    rng: np.random.Generator,
    count: int,
    radius: float,
    min_spacing: float,
    tries: int = SPAWN_TRIES
) -> List[Tuple[float, float]]:
    """
    Rejection-sample count points in a disc with a minimum pairwise spacing.

    Each point gets up to `tries` candidates; if none is far enough from
    the points already placed, the last candidate is used anyway so the
    population always reaches `count`.
    """
    points: List[Tuple[float, float]] = []
    min_d2 = min_spacing * min_spacing
    for _ in range(count):
        candidate = random_point_in_disc(rng, radius)
        for _ in range(max(1, tries)):
            if all((candidate[0] - px) ** 2 + (candidate[1] - pz) ** 2 >= min_d2 for px, pz in points):
                break
            candidate = random_point_in_disc(rng, radius)
        points.append(candidate)
    return points


def spawn_agents(
    genomes: Sequence[Genome],
    rng: np.random.Generator,
    radius: float,
    min_spacing: float,
    max_trail_points: int,
    wander_rng: Optional[np.random.Generator] = None
) -> List[Agent]:
    """
    Build one agent per genome, slot i carrying genomes[i].

    Args:
        genomes: Initial population (sets the agent count)
        rng: Spawning stream
        radius: Spawn disc radius
        min_spacing: Minimum distance between spawn points (2 x separation radius)
        max_trail_points: Trail history capacity
        wander_rng: Stream for wander phases (defaults to rng)

    Returns:
        List of ALIVE agents
    """
    points = place_points(rng, len(genomes), radius, min_spacing)
    half = 0.5 * INITIAL_VELOCITY_SPREAD
    wander_rng = rng if wander_rng is None else wander_rng

    agents = []
    for i, (genome, (x, z)) in enumerate(zip(genomes, points)):
        agent = Agent(
            index=i,
            position=[x, FOOT_OFFSET, z],
            velocity=[rng.uniform(-half, half), rng.uniform(-half, half)],
            yaw=float(rng.uniform(0.0, 2.0 * math.pi)),
            hop_phase=float(rng.uniform(0.0, 2.0 * math.pi)),
            wander_phase=float(wander_rng.uniform(0.0, WANDER_PHASE_SPAN)),
            max_trail_points=max_trail_points,
        )
        agent.apply_genome(genome)
        agents.append(agent)
    return agents
