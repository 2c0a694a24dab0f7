"""
Pose helpers: heading, look-at quaternion, yaw smoothing, ground
conforming and hop.
"""

import math
import sys
import numpy as np
import pytest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from thermobugs.agent import Agent
from thermobugs.data_types import GroundHit
from thermobugs.geometry import heading_vector, look_rotation, orientation_for
from thermobugs.spatial import angle_diff, smoothstep, yaw_towards
from thermobugs.terrain import FlatTerrain, as_sampler, conform_to_ground, hop_height, update_pose


def test_heading_and_identity_orientation():
    assert np.allclose(heading_vector(0.0), [0.0, 0.0, 1.0])
    q = orientation_for(0.0, np.array([0.0, 1.0, 0.0]), 0.92)
    assert np.allclose(q, [0.0, 0.0, 0.0, 1.0])


def test_quarter_turn_about_y():
    q = orientation_for(math.pi / 2.0, np.array([0.0, 1.0, 0.0]), 0.92)
    s = math.sqrt(0.5)
    assert np.allclose(q, [0.0, s, 0.0, s])


def test_orientation_is_unit_quaternion_on_slopes():
    rng = np.random.default_rng(8)
    for _ in range(50):
        normal = rng.normal(size=3)
        normal[1] = abs(normal[1]) + 0.2
        normal /= np.linalg.norm(normal)
        q = orientation_for(float(rng.uniform(-math.pi, math.pi)), normal, 0.92)
        assert np.linalg.norm(q) == pytest.approx(1.0)


def test_look_rotation_handles_forward_parallel_to_up():
    m = look_rotation(np.array([0.0, 1.0, 0.0]), np.array([0.0, 1.0, 0.0]))
    assert np.isfinite(m).all()
    assert np.allclose(m.T @ m, np.eye(3), atol=1e-9)


def test_angle_diff_and_smoothstep():
    assert angle_diff(math.radians(350), math.radians(10)) == pytest.approx(math.radians(20))
    assert smoothstep(5.0, 4.0, 14.0) == pytest.approx(0.028)
    assert smoothstep(0.5, 6.0, 1.0) == 1.0
    assert smoothstep(3.0, 2.0, 2.0) == 1.0


def test_yaw_turns_toward_velocity_and_holds_when_still():
    yaw = yaw_towards(0.0, 1.0, 0.0, 1.0 / 60.0, 8.0)
    assert 0.0 < yaw < math.pi / 2.0
    assert yaw == pytest.approx((math.pi / 2.0) * (1.0 - math.exp(-8.0 / 60.0)))

    assert yaw_towards(1.23, 0.0, 0.0, 0.1, 8.0) == 1.23


def test_ground_snap_and_slope_lift():
    agent = Agent(index=0, position=[0.0, 50.0, 0.0], velocity=[0.0, 0.0])
    base_y, normal = conform_to_ground(agent, FlatTerrain()(0.0, 0.0))
    assert agent.position[1] == pytest.approx(0.06)
    assert base_y == pytest.approx(0.06)
    assert np.allclose(normal, [0.0, 1.0, 0.0])

    agent.position[1] = float('nan')
    hit = GroundHit(point=(0.0, 2.0, 0.0), normal=(0.0, 4.0, 3.0))
    base_y, normal = conform_to_ground(agent, hit)
    assert agent.position[1] == pytest.approx(2.06)
    assert np.allclose(normal, [0.0, 0.8, 0.6])
    assert base_y == pytest.approx(2.0 + 0.06 + 0.2 * 0.15)


def test_hop_height_is_parabolic():
    assert hop_height(-math.pi / 2.0, 0.5) == pytest.approx(0.0)
    assert hop_height(0.0, 0.0) == pytest.approx(0.22)
    assert hop_height(0.0, 1.0) == pytest.approx(0.22 * 1.4)


def test_update_pose_follows_terrain():
    def slope(x, z):
        return GroundHit(point=(x, 0.1 * x, z), normal=(-0.1, 1.0, 0.0))

    agent = Agent(index=0, position=[10.0, 1.0, 0.0], velocity=[1.0, 0.0])
    base_y = update_pose(agent, slope, far_boost=0.5, dt=1.0 / 60.0)

    assert base_y > 1.06
    rx, ry, rz = agent.render_position
    assert (rx, rz) == (10.0, 0.0)
    assert base_y <= ry <= base_y + 0.22 * 1.4 + 1e-12
    assert agent.yaw > 0.0
    assert agent.position[1] == 1.0, "simulated height within hover range is left alone"


def test_update_pose_snaps_drifted_height_and_sinks_render_only():
    agent = Agent(index=0, position=[0.0, 5.0, 0.0], velocity=[0.0, 0.0])
    agent.hop_phase = -math.pi / 2.0 - 1e-9
    agent.sink_offset = 0.3
    flat = FlatTerrain(height=1.0)

    base_y = update_pose(agent, flat, far_boost=0.0, dt=0.0)

    assert agent.position[1] == pytest.approx(1.06)
    assert base_y == pytest.approx(1.06)
    assert agent.render_position[1] == pytest.approx(1.06 - 0.3, abs=1e-9)

    # A small drift is kept; only the render height follows the ground
    agent.position[1] = 1.5
    update_pose(agent, flat, far_boost=0.0, dt=0.0)
    assert agent.position[1] == 1.5
    assert agent.render_position[1] == pytest.approx(1.06 - 0.3, abs=1e-9)


def test_as_sampler_accepts_callables_and_objects():
    flat = FlatTerrain(height=3.0)

    class Mesh:
        def height_at(self, x, z):
            return GroundHit(point=(x, -1.0, z), normal=(0.0, 1.0, 0.0))

    assert as_sampler(None) is None
    assert as_sampler(flat)(1.0, 2.0).point == (1.0, 3.0, 2.0)
    assert as_sampler(Mesh())(0.0, 0.0).point[1] == -1.0
    with pytest.raises(TypeError):
        as_sampler(42)
