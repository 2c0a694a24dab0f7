"""
Genome value type and genome -> phenotype mapping.

A Genome is immutable. The GA replaces genomes wholesale; mutation builds
a new Genome with dataclasses.replace(). The constructor range-checks
every gene and raises GenomeError, while Genome.sanitized() clamps
untrusted input into range instead.
"""

import colorsys
import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, Tuple

from .constants import PATTERN_COUNT

# Gene ranges (inclusive, hue is [0, 360) with wraparound)
HUE_RANGE = (0.0, 360.0)
VALUE_RANGE = (0.0, 1.0)
PATTERN_RANGE = (0, PATTERN_COUNT - 1)
BODY_SCALE_RANGE = (1.0, 3.0)
BASE_SPEED_RANGE = (0.7, 1.5)
SHOWOFF_RANGE = (0.0, 1.0)

# Reaction-diffusion texture metadata per pattern id
PATTERN_META = (
    {'spot_count': 32, 'spot_size': 0.18, 'roughness': 0.18, 'type': 0.65},
    {'spot_count': 24, 'spot_size': 0.20, 'roughness': 0.10, 'type': 0.75},
    {'spot_count': 38, 'spot_size': 0.22, 'roughness': 0.22, 'type': 0.55},
    {'spot_count': 27, 'spot_size': 0.25, 'roughness': 0.20, 'type': 0.45},
    {'spot_count': 100, 'spot_size': 0.12, 'roughness': 0.12, 'type': 0.40},
)


class GenomeError(ValueError):
    """Raised when a genome is built with an out-of-range gene"""
    pass


def wrap_hue(hue: float) -> float:
    """Wrap any angle into [0, 360)"""
    h = math.fmod(float(hue), 360.0)
    if h < 0.0:
        h += 360.0
    # fmod of a tiny negative can round up to exactly 360
    return 0.0 if h >= 360.0 else h


def _clamp(v: float, bounds: Tuple[float, float]) -> float:
    lo, hi = bounds
    return lo if v < lo else hi if v > hi else v


@dataclass(frozen=True)
class Genome:
    """
    Heritable parameter vector of one agent.

    Attributes:
        hue: Body hue in degrees, [0, 360)
        value: HSV brightness, [0, 1]
        pattern_id: Reaction-diffusion pattern, {0..4}
        body_scale: Size multiplier, [1, 3]
        base_speed: Speed factor, [0.7, 1.5]
        show_off: Display intensity (hop height, saturation), [0, 1]
    """
    hue: float
    value: float
    pattern_id: int
    body_scale: float
    base_speed: float
    show_off: float

    def __post_init__(self):
        if not (HUE_RANGE[0] <= self.hue < HUE_RANGE[1]):
            raise GenomeError(f"hue out of range [0, 360): {self.hue}")
        if isinstance(self.pattern_id, bool) or int(self.pattern_id) != self.pattern_id:
            raise GenomeError(f"pattern_id must be an integer: {self.pattern_id!r}")
        object.__setattr__(self, 'pattern_id', int(self.pattern_id))

        checks = (
            ('value', self.value, VALUE_RANGE),
            ('pattern_id', self.pattern_id, PATTERN_RANGE),
            ('body_scale', self.body_scale, BODY_SCALE_RANGE),
            ('base_speed', self.base_speed, BASE_SPEED_RANGE),
            ('show_off', self.show_off, SHOWOFF_RANGE),
        )
        for name, v, (lo, hi) in checks:
            if not (lo <= v <= hi):
                raise GenomeError(f"{name} out of range [{lo}, {hi}]: {v}")

    @classmethod
    def sanitized(
        cls,
        hue: float,
        value: float,
        pattern_id: float,
        body_scale: float,
        base_speed: float,
        show_off: float
    ) -> 'Genome':
        """Build a genome from untrusted numbers, wrapping hue and clamping the rest"""
        return cls(
            hue=wrap_hue(hue),
            value=_clamp(float(value), VALUE_RANGE),
            pattern_id=int(_clamp(int(round(float(pattern_id))), PATTERN_RANGE)),
            body_scale=_clamp(float(body_scale), BODY_SCALE_RANGE),
            base_speed=_clamp(float(base_speed), BASE_SPEED_RANGE),
            show_off=_clamp(float(show_off), SHOWOFF_RANGE),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Genome':
        """
        Deserialize (and sanitize) a genome dict.

        Missing genes fall back to neutral defaults.
        """
        return cls.sanitized(
            hue=data.get('hue', 220.0),
            value=data.get('value', 0.8),
            pattern_id=data.get('pattern_id', 0),
            body_scale=data.get('body_scale', 1.0),
            base_speed=data.get('base_speed', 1.0),
            show_off=data.get('show_off', 0.5),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ============================================================================
# Phenotype Mapping
# ============================================================================

def pattern_meta(pattern_id: int) -> Dict[str, float]:
    """Texture metadata for a pattern id (unknown ids read as pattern 0)"""
    if 0 <= pattern_id < len(PATTERN_META):
        return PATTERN_META[pattern_id]
    return PATTERN_META[0]


def to_phenotype(genome: Genome) -> Dict[str, Any]:
    """Expanded, render-facing view of a genome"""
    meta = pattern_meta(genome.pattern_id)
    return {
        'body_hue': genome.hue,
        'body_value': genome.value,
        'body_scale': genome.body_scale,
        'base_speed': genome.base_speed,
        'show_off': genome.show_off,
        'pattern_id': genome.pattern_id,
        'spot_count': meta['spot_count'],
        'spot_size': meta['spot_size'],
        'roughness': meta['roughness'],
        'pattern_type': meta['type'],
    }


def body_color(genome: Genome) -> Tuple[float, float, float]:
    """Body RGB: genome hue/value, saturation grows with show_off"""
    sat = _clamp(0.3 + genome.show_off * 0.6, (0.0, 1.0))
    return colorsys.hsv_to_rgb(genome.hue / 360.0, sat, genome.value)


def trail_color(genome: Genome) -> Tuple[float, float, float]:
    """
    Trail line RGB: the body hue, a bit more saturated and brighter.

    colorsys works in HLS order (hue, lightness, saturation).
    """
    h, _, s = colorsys.rgb_to_hls(*body_color(genome))
    line_s = _clamp(s + 0.2, (0.0, 1.0))
    line_l = _clamp(0.55 + 0.25 * genome.show_off, (0.0, 1.0))
    return colorsys.hls_to_rgb(h, line_l, line_s)
