"""
Deterministic RNG utilities for the ThermoBugs simulation.

Uses SHA256 hashing to derive stable seeds from hierarchical components
(scene_seed, stream_name, slot_index). All randomness uses
numpy.random.Generator(PCG64) so a seeded run replays exactly.
"""

import hashlib
import numpy as np
from typing import Any, Tuple


def make_seed(*components: Any) -> int:
    """
    Generate deterministic 64-bit seed from hierarchical components.

    Args:
        *components: Seed components (scene_seed, stream name, index, etc.)

    Returns:
        64-bit integer seed for numpy RNG

    Example:
        genetics_seed = make_seed(scene_seed, "genetics")
    """
    hash_input = ":".join(str(c) for c in components)
    hash_bytes = hashlib.sha256(hash_input.encode('utf-8')).digest()
    return int.from_bytes(hash_bytes[:8], byteorder='big')


def make_rng(*components: Any) -> np.random.Generator:
    """Build a PCG64 generator from hierarchical seed components."""
    return np.random.Generator(np.random.PCG64(make_seed(*components)))


def random_point_in_disc(rng: np.random.Generator, radius: float) -> Tuple[float, float]:
    """
    Uniform point inside a disc centered on the origin.

    Uses the sqrt-radius trick so density is uniform over area.

    Returns:
        (x, z) tuple
    """
    angle = rng.uniform(0.0, 2.0 * np.pi)
    r = np.sqrt(rng.uniform(0.0, 1.0)) * radius
    return float(np.cos(angle) * r), float(np.sin(angle) * r)
