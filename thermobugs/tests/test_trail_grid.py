"""
Trail grid: nearest-cell storage, non-negative values, decay and
three-ray chemotaxis sensing.
"""

import math
import sys
import numpy as np
import pytest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from thermobugs.data_types import TrailConfig
from thermobugs.trail_grid import TrailGrid


def test_cell_mapping_and_border_clamp():
    grid = TrailGrid()
    assert grid.cell_size == pytest.approx(200.0 / 128)
    assert grid.cell_of(0.0, 0.0) == (64, 64)
    assert grid.cell_of(-1000.0, 1000.0) == (0, 127)
    assert grid.cell_of(100.0, -100.0) == (127, 0)


def test_deposit_never_goes_negative():
    grid = TrailGrid()
    grid.deposit(1.0, 1.0, 0.5)
    grid.deposit(1.0, 1.0, -2.0)
    assert grid.sample(1.0, 1.0) == 0.0
    assert (grid.values >= 0.0).all()


def test_steady_state_matches_geometric_sum():
    """Deposit A then decay D every tick: value_N = A*D*(1 - D^N)/(1 - D)"""
    A, D = 3.0, 0.96
    grid = TrailGrid(TrailConfig(deposit_amount=A, decay_rate=D))

    for n in range(1, 201):
        grid.deposit(0.0, 0.0)
        grid.decay()
        if n in (1, 10, 50, 200):
            expected = A * D * (1.0 - D ** n) / (1.0 - D)
            assert grid.sample(0.0, 0.0) == pytest.approx(expected, rel=1e-12)

    for _ in range(2000):
        grid.deposit(0.0, 0.0)
        grid.decay()
    assert grid.sample(0.0, 0.0) == pytest.approx(A * D / (1.0 - D), rel=1e-9)

    print(f"[OK] Trail steady state {grid.sample(0.0, 0.0):.4f}")


def test_decay_is_fixed_per_tick_by_default():
    grid = TrailGrid()
    grid.deposit(0.0, 0.0, 1.0)
    grid.decay(dt=0.5)
    assert grid.sample(0.0, 0.0) == pytest.approx(0.96)


def test_frame_independent_decay_scales_with_dt():
    grid = TrailGrid(TrailConfig(frame_independent=True, target_dt=1.0 / 60.0))
    grid.deposit(0.0, 0.0, 1.0)
    grid.decay(dt=2.0 / 60.0)
    assert grid.sample(0.0, 0.0) == pytest.approx(0.96 ** 2)


def test_follow_force_picks_strongest_ray():
    grid = TrailGrid()
    reach = grid.config.sensor_distance
    angle = grid.config.sensor_angle

    # Moving along +X; the +angle ray lands at (cos, -sin) * reach
    target = (reach * math.cos(angle), -reach * math.sin(angle))
    grid.deposit(target[0], target[1], 2.0)

    force = grid.follow_force(0.0, 0.0, 1.0, 0.0)
    expected = np.array([math.cos(angle), -math.sin(angle)]) * grid.config.follow_weight * 2.0
    assert np.allclose(force, expected)


def test_follow_force_prefers_forward_on_ties():
    grid = TrailGrid()
    reach = grid.config.sensor_distance
    grid.deposit(reach, 0.0, 1.0)

    force = grid.follow_force(0.0, 0.0, 2.0, 0.0)
    assert np.allclose(force, [1.5, 0.0])


def test_follow_force_inactive_below_threshold_or_when_still():
    grid = TrailGrid()
    assert np.allclose(grid.follow_force(0.0, 0.0, 1.0, 0.0), 0.0)

    grid.deposit(grid.config.sensor_distance, 0.0, 5.0)
    assert np.allclose(grid.follow_force(0.0, 0.0, 0.0, 0.0), 0.0)


def test_strength_and_texture_saturate():
    grid = TrailGrid()
    grid.deposit(0.0, 0.0, 10.0)
    grid.deposit(20.0, 0.0, 0.75)

    assert grid.strength_at(0.0, 0.0) == 1.0
    assert grid.strength_at(20.0, 0.0) == pytest.approx(0.5)

    tex = grid.to_texture()
    assert tex.dtype == np.uint8
    assert tex.shape == (128, 128)
    ix, iz = grid.cell_of(0.0, 0.0)
    assert tex[iz, ix] == 255

    grid.clear()
    assert not grid.values.any()
