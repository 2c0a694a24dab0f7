"""
Steering forces and integration.

Verifies:
- Neighbor rules (alignment, cohesion, separation)
- Heat seeking with far boost and overheat repel
- Panic, nutrient, wander and fallback terms
- Clamped, damped velocity integration
"""

import math
import sys
import numpy as np
import pytest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from thermobugs import steering
from thermobugs.data_types import FieldSample, FlockConfig
from thermobugs.thermal_field import ThermalField


def test_flock_terms_basic():
    positions = np.array([[0.0, 0.0], [1.0, 0.0], [3.0, 0.0]])
    velocities = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])

    terms = steering.flock_terms(0, positions, velocities, [1, 2], FlockConfig())

    assert terms.neighbor_count == 2
    assert np.allclose(terms.alignment, [0.5, 0.5])
    assert np.allclose(terms.cohesion, [2.0, 0.0])
    # Only the neighbor at distance 1 is inside the separation radius (2.0)
    assert np.allclose(terms.separation, [-1.0, 0.0])


def test_flock_terms_without_neighbors_are_zero():
    positions = np.zeros((1, 2))
    velocities = np.ones((1, 2))
    terms = steering.flock_terms(0, positions, velocities, [], FlockConfig())

    assert terms.neighbor_count == 0
    for vec in (terms.alignment, terms.cohesion, terms.separation):
        assert np.allclose(vec, 0.0)


def test_flock_terms_coincident_neighbors_stay_finite():
    positions = np.zeros((3, 2))
    velocities = np.zeros((3, 2))
    terms = steering.flock_terms(0, positions, velocities, [1, 2], FlockConfig())

    assert np.isfinite(terms.separation).all()
    assert np.isfinite(terms.cohesion).all()


def test_seek_force_points_to_sun_and_boosts_far_agents():
    field = ThermalField()
    config = FlockConfig()

    far = steering.seek_force(30.0, 0.0, field.sample(30.0, 0.0, 0.0), 0.0, 0.0, 0.0, config)
    near = steering.seek_force(2.0, 0.0, field.sample(2.0, 0.0, 0.0), 0.0, 0.0, 0.0, config)

    assert far.far_boost == pytest.approx(1.0)
    assert near.far_boost == pytest.approx(0.0)
    assert far.dist_sun == pytest.approx(30.0)
    assert far.steer[0] < 0.0 and near.steer[0] < 0.0
    assert far.steer[1] == pytest.approx(0.0)


def test_seek_force_at_sun_center_is_finite():
    field = ThermalField()
    seek = steering.seek_force(0.0, 0.0, field.sample(0.0, 0.0, 0.0), 0.0, 0.0, 0.0, FlockConfig())
    assert np.allclose(seek.steer, 0.0)


def test_overheat_subtracts_gradient_pull():
    config = FlockConfig()
    sample = FieldSample(rho=2.0, grad_x=-0.5, grad_z=0.25, rho_sun=2.0, grad_sun_x=-0.5, grad_sun_z=0.25)

    calm = steering.seek_force(1.0, 0.0, sample, 0.0, 0.0, 0.0, config)
    hot = steering.seek_force(1.0, 0.0, sample, 0.0, 0.0, 1.0, config)

    assert np.allclose(hot.steer, calm.steer - np.array([-0.5, 0.25]) * config.repel_gain)

    # Low sun density: no flip even with a strong pulse
    cool = FieldSample(rho=0.5, grad_x=-0.5, grad_z=0.25, rho_sun=0.5, grad_sun_x=-0.5, grad_sun_z=0.25)
    assert np.allclose(
        steering.seek_force(1.0, 0.0, cool, 0.0, 0.0, 1.0, config).steer,
        steering.seek_force(1.0, 0.0, cool, 0.0, 0.0, 0.0, config).steer,
    )


def test_panic_pushes_outward_inside_ring_only():
    radius = 6.0 * 0.78
    inside = steering.panic_force(1.0, 0.0, 0.0, 0.0, radius)
    outside = steering.panic_force(radius * 1.2, 0.0, 0.0, 0.0, radius)

    assert np.allclose(inside, [14.0, 0.0])
    assert np.allclose(outside, 0.0)


def test_nutrient_force_is_normalized_and_bounded():
    assert np.allclose(steering.nutrient_force(0.0, 0.0, [(3.0, 0.0, 0.0)]), [1.0, 0.0])
    assert np.allclose(steering.nutrient_force(0.0, 0.0, [(0.5, 0.0, 0.0), (0.0, 0.0, 0.5)]),
                       [math.sqrt(0.5), math.sqrt(0.5)])
    # Out of range, or exactly on top of the agent
    assert np.allclose(steering.nutrient_force(0.0, 0.0, [(10.0, 0.0, 0.0)]), 0.0)
    assert np.allclose(steering.nutrient_force(0.0, 0.0, [(0.0, 5.0, 0.0)]), 0.0)
    # Balanced pulls cancel out
    assert np.allclose(steering.nutrient_force(0.0, 0.0, [(2.0, 0.0, 0.0), (-2.0, 0.0, 0.0)]), 0.0)


def test_wander_force():
    assert np.allclose(steering.wander_force(0.0), [0.0, 0.3])
    assert steering.advance_wander(1.0, 0.5) == pytest.approx(1.4)


def test_fallback_bias_only_when_nearly_still():
    nudged = steering.fallback_bias(np.zeros(2), 10.0, 0.0, 0.0, 0.0)
    assert np.allclose(nudged, [-0.45, 0.0])

    strong = np.array([3.0, 0.0])
    assert np.allclose(steering.fallback_bias(strong, 10.0, 0.0, 0.0, 0.0), strong)


def test_compose_applies_weights():
    config = FlockConfig()
    flock = steering.FlockTerms(
        alignment=np.array([1.0, 0.0]),
        cohesion=np.array([0.0, 1.0]),
        separation=np.array([1.0, 1.0]),
    )
    seek = steering.SeekTerms(steer=np.array([0.5, 0.0]), far_boost=0.0, dist_sun=1.0)

    accel = steering.compose(flock, seek, config, nutrients=np.array([1.0, 0.0]))
    expected = np.array([0.36 + 1.7 + 0.5 + 0.7, 0.24 + 1.7])
    assert np.allclose(accel, expected)


def test_integrate_damps_velocity():
    config = FlockConfig()
    v = steering.integrate(np.array([1.0, 0.0]), np.zeros(2), 0.1, 1.0, config)
    assert np.allclose(v, [math.exp(-0.088), 0.0])


def test_integrate_clamps_steering_and_speed():
    config = FlockConfig()
    v = steering.integrate(np.zeros(2), np.array([100.0, 0.0]), 0.1, 1.0, config)
    assert np.allclose(v, [0.8 * math.exp(-0.088), 0.0])

    fast = np.array([50.0, 50.0])
    for sf, limit in ((1.0, 4.2), (5.0, 4.2 * 1.8), (0.1, 4.2 * 0.5)):
        out = steering.integrate(fast, np.array([100.0, 100.0]), 0.1, sf, config)
        assert np.hypot(*out) == pytest.approx(limit)

    print("[OK] Speed clamp honours the speed-factor bounds")
