"""
Thermal field: Gaussian sources, analytic gradients, emitter
diffusion/decay, pure sampling vs. per-tick pruning.
"""

import math
import sys
import numpy as np
import pytest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from thermobugs.data_types import FieldConfig
from thermobugs.thermal_field import ThermalField


def test_sun_peak_and_flat_gradient_at_center():
    field = ThermalField()
    s = field.sample(0.0, 0.0, now=0.0)

    assert s.rho == pytest.approx(4.8)
    assert s.rho_sun == pytest.approx(4.8)
    assert s.grad_x == pytest.approx(0.0)
    assert s.grad_z == pytest.approx(0.0)


def test_gradient_between_origin_and_sun_points_at_sun():
    """A point strictly between the origin and the sun is pulled toward the sun"""
    field = ThermalField()
    field.set_sun_position(10.0, 6.0)

    for t in (0.2, 0.5, 0.8):
        px, pz = 10.0 * t, 6.0 * t
        s = field.sample(px, pz, now=0.0)
        to_sun = np.array([10.0 - px, 6.0 - pz])
        assert np.dot([s.grad_x, s.grad_z], to_sun) > 0.0

    print("[OK] Gradient points toward the sun")


def test_analytic_gradient_matches_finite_difference():
    field = ThermalField()
    field.set_sun_position(3.0, -2.0)
    field.add_emitter(1.0, 1.5, now=0.0)
    field.add_emitter(-2.0, 0.5, now=0.3, intensity=3.0, spread=2.0, decay_rate=0.5)

    now = 0.7
    x, z = 0.4, -0.6
    h = 1e-5
    s = field.sample(x, z, now)
    fd_x = (field.sample(x + h, z, now).rho - field.sample(x - h, z, now).rho) / (2 * h)
    fd_z = (field.sample(x, z + h, now).rho - field.sample(x, z - h, now).rho) / (2 * h)

    assert np.allclose([s.grad_x, s.grad_z], [fd_x, fd_z], rtol=1e-5, atol=1e-7)


def test_sun_terms_exclude_emitters():
    field = ThermalField()
    sun_only = field.sample(2.0, 1.0, now=0.0)
    field.add_emitter(2.0, 1.0, now=0.0)
    both = field.sample(2.0, 1.0, now=0.0)

    assert both.rho_sun == pytest.approx(sun_only.rho_sun)
    assert both.grad_sun_x == pytest.approx(sun_only.grad_sun_x)
    assert both.rho == pytest.approx(sun_only.rho + 6.0)


def test_emitter_decays_and_diffuses():
    field = ThermalField(FieldConfig(diffusion=0.8))
    e = field.add_emitter(0.0, 0.0, now=1.0)

    assert e.intensity_at(1.0) == pytest.approx(6.0)
    assert e.intensity_at(2.0) == pytest.approx(6.0 * math.exp(-1.0))
    assert e.sigma2_at(3.0, 0.8) == pytest.approx(1.2 * 1.2 + 2.0 * 0.8 * 2.0)
    # Age never goes negative
    assert e.intensity_at(0.0) == pytest.approx(6.0)


def test_sample_is_pure_and_step_prunes():
    field = ThermalField()
    field.add_emitter(5.0, 5.0, now=0.0)
    field.add_emitter(-5.0, 5.0, now=19.5)

    before = field.sample(5.0, 5.0, now=20.0)
    after = field.sample(5.0, 5.0, now=20.0)
    assert len(field.emitters) == 2, "sample() must not remove emitters"
    assert before == after

    removed = field.step(now=20.0)
    assert removed == 1
    assert len(field.emitters) == 1
    assert field.emitters[0].x == -5.0

    print("[OK] sample() is pure; step() pruned the expired emitter")


def test_heat_pulse_adds_to_sun_and_decays():
    field = ThermalField()
    field.pulse()
    assert field.sun.heat_pulse == pytest.approx(0.9)
    assert field.sample(0.0, 0.0, 0.0).rho_sun == pytest.approx(5.7)

    field.decay_pulse()
    assert field.sun.heat_pulse == pytest.approx(0.9 * 0.98)


def test_visual_radius_clamps_pulse():
    field = ThermalField()
    assert field.visual_radius() == pytest.approx(6.0 * 0.78)

    field.pulse(10.0)
    assert field.visual_radius() == pytest.approx(6.0 * (0.78 + 0.22 * 3.0))


def test_sample_grid_matches_point_samples():
    field = ThermalField()
    field.set_sun_position(1.0, -1.0)
    field.add_emitter(2.0, 2.0, now=0.0)

    xs = np.linspace(-4.0, 4.0, 5)
    zs = np.linspace(-3.0, 3.0, 4)
    grid = field.sample_grid(xs, zs, now=0.5)

    assert grid.shape == (4, 5)
    for iz, z in enumerate(zs):
        for ix, x in enumerate(xs):
            assert grid[iz, ix] == pytest.approx(field.sample(x, z, 0.5).rho)
