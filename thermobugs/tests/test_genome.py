"""
Genome value type and phenotype mapping.
"""

import colorsys
import sys
import pytest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from thermobugs.agent import Agent
from thermobugs.genome import (
    Genome, GenomeError, body_color, trail_color, to_phenotype, wrap_hue,
)


def _genome(**overrides):
    genes = dict(hue=220.0, value=0.5, pattern_id=2, body_scale=1.5, base_speed=1.0, show_off=0.5)
    genes.update(overrides)
    return Genome(**genes)


def test_wrap_hue():
    assert wrap_hue(390.0) == pytest.approx(30.0)
    assert wrap_hue(-10.0) == pytest.approx(350.0)
    assert wrap_hue(360.0) == 0.0
    assert 0.0 <= wrap_hue(-1e-18) < 360.0


@pytest.mark.parametrize("gene,value", [
    ("hue", 360.0),
    ("hue", -0.1),
    ("value", 1.2),
    ("pattern_id", 5),
    ("pattern_id", 2.5),
    ("body_scale", 0.9),
    ("base_speed", 1.6),
    ("show_off", -0.01),
])
def test_constructor_rejects_out_of_range(gene, value):
    with pytest.raises(GenomeError):
        _genome(**{gene: value})


def test_genome_is_immutable_and_coerces_pattern():
    g = _genome(pattern_id=3.0)
    assert g.pattern_id == 3 and isinstance(g.pattern_id, int)
    with pytest.raises(Exception):
        g.hue = 10.0


def test_sanitized_clamps_instead_of_raising():
    g = Genome.sanitized(hue=-30.0, value=4.0, pattern_id=7.6, body_scale=0.0, base_speed=9.0, show_off=-1.0)
    assert g.hue == pytest.approx(330.0)
    assert g.value == 1.0
    assert g.pattern_id == 4
    assert g.body_scale == 1.0
    assert g.base_speed == 1.5
    assert g.show_off == 0.0


def test_from_dict_defaults_and_round_trip():
    g = Genome.from_dict({'hue': 100.0})
    assert g.hue == 100.0
    assert g.pattern_id == 0
    assert g.value == pytest.approx(0.8)

    original = _genome()
    assert Genome.from_dict(original.to_dict()) == original


def test_phenotype_carries_pattern_metadata():
    p = to_phenotype(_genome(pattern_id=4))
    assert p['spot_count'] == 100
    assert p['spot_size'] == pytest.approx(0.12)
    assert p['body_scale'] == 1.5


def test_body_color_saturation_follows_show_off():
    for show_off, sat in ((0.0, 0.3), (0.5, 0.6), (1.0, 0.9)):
        g = _genome(hue=200.0, value=0.7, show_off=show_off)
        h, s, v = colorsys.rgb_to_hsv(*body_color(g))
        assert h * 360.0 == pytest.approx(200.0, abs=1e-6)
        assert s == pytest.approx(sat)
        assert v == pytest.approx(0.7)


def test_trail_color_is_lighter_same_hue():
    g = _genome(hue=120.0, value=0.6, show_off=0.4)
    body_h, _, _ = colorsys.rgb_to_hls(*body_color(g))
    h, l, s = colorsys.rgb_to_hls(*trail_color(g))

    assert h == pytest.approx(body_h, abs=1e-6)
    assert l == pytest.approx(0.55 + 0.25 * 0.4)


def test_apply_genome_sets_phenotype_scalars():
    agent = Agent(index=0, position=[0.0, 0.0, 0.0], velocity=[0.0, 0.0])
    g = _genome(base_speed=1.3, show_off=0.9, body_scale=2.5)
    agent.apply_genome(g)

    assert agent.genome is g
    assert agent.speed_factor == 1.3
    assert agent.show_off == 0.9
    assert agent.base_scale == 2.5
    assert agent.body_color == pytest.approx(body_color(g))
