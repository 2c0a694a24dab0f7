"""
Thermal field engine.

Scalar heat density over the ground plane, built from one persistent
"sun" source plus transient emitters. Every source is a Gaussian

    G(r) = I * exp(-r^2 / (2 sigma^2))

with analytic gradient dG/dx = -G * dx / sigma^2. Emitters diffuse
(sigma^2 = sigma0^2 + 2 D age) while their intensity decays
(I = I0 exp(-decay * age)).

sample() is a pure query: it never mutates the emitter list. Expired
emitters are dropped by step(), called once per tick by the simulation.
"""

import math
import numpy as np
from dataclasses import dataclass
from typing import List, Optional

from .data_types import FieldConfig, FieldSample
from .constants import (
    HEAT_RING_RADIUS,
    HEAT_RING_BASE,
    HEAT_RING_PULSE,
    HEAT_RING_PULSE_MAX,
)
from .spatial import clamp


@dataclass
class Sun:
    """Persistent heat source that follows the pointer"""
    x: float
    z: float
    base_intensity: float
    spread: float
    heat_pulse: float = 0.0

    @property
    def intensity(self) -> float:
        return self.base_intensity + self.heat_pulse


@dataclass
class Emitter:
    """Transient diffusing heat source (spawned by clicks)"""
    x: float
    z: float
    intensity0: float
    spread0: float
    birth: float
    decay: float

    def intensity_at(self, now: float) -> float:
        age = max(0.0, now - self.birth)
        return self.intensity0 * math.exp(-self.decay * age)

    def sigma2_at(self, now: float, diffusion: float) -> float:
        age = max(0.0, now - self.birth)
        return self.spread0 * self.spread0 + 2.0 * diffusion * age


class ThermalField:
    """
    Sun + emitter heat field with value/gradient sampling.

    Sun and emitter contributions are also reported separately
    (rho_sun, grad_sun_*) so callers can treat the sun as always
    attractive and emitters as ordinary sources.
    """

    def __init__(self, config: Optional[FieldConfig] = None):
        """
        Args:
            config: Field parameters (defaults to FieldConfig())
        """
        self.config = config or FieldConfig()
        sx, sz = self.config.sun_position
        self.sun = Sun(
            x=float(sx),
            z=float(sz),
            base_intensity=self.config.sun_intensity,
            spread=self.config.sun_spread,
        )
        self.emitters: List[Emitter] = []

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set_sun_position(self, x: float, z: float):
        self.sun.x = float(x)
        self.sun.z = float(z)

    def add_emitter(
        self,
        x: float,
        z: float,
        now: float,
        intensity: Optional[float] = None,
        spread: Optional[float] = None,
        decay_rate: Optional[float] = None
    ) -> Emitter:
        """
        Append a transient source born at simulated time `now`.

        Omitted options fall back to the configured emitter defaults.
        """
        emitter = Emitter(
            x=float(x),
            z=float(z),
            intensity0=self.config.emitter_intensity if intensity is None else float(intensity),
            spread0=self.config.emitter_spread if spread is None else float(spread),
            birth=float(now),
            decay=self.config.emitter_decay if decay_rate is None else float(decay_rate),
        )
        self.emitters.append(emitter)
        return emitter

    def pulse(self, amount: Optional[float] = None):
        """Boost the sun intensity (decays back over the following ticks)"""
        self.sun.heat_pulse += self.config.pulse_step if amount is None else amount

    def step(self, now: float) -> int:
        """
        Per-tick maintenance: prune emitters weaker than epsilon.

        Returns:
            Number of emitters removed
        """
        before = len(self.emitters)
        eps = self.config.epsilon
        self.emitters = [e for e in self.emitters if e.intensity_at(now) >= eps]
        return before - len(self.emitters)

    def decay_pulse(self):
        """Exponential heat pulse decay, once per tick"""
        self.sun.heat_pulse *= self.config.pulse_decay

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def sample(self, x: float, z: float, now: float) -> FieldSample:
        """
        Field density and gradient at (x, z).

        Emitters that have already decayed below epsilon are skipped but
        not removed (see step()).
        """
        sun = self.sun
        sigma2 = sun.spread * sun.spread
        dx = x - sun.x
        dz = z - sun.z
        g = sun.intensity * math.exp(-(dx * dx + dz * dz) / (2.0 * sigma2))
        grad_sun_x = g * (-dx / sigma2)
        grad_sun_z = g * (-dz / sigma2)

        rho = g
        grad_x = grad_sun_x
        grad_z = grad_sun_z

        eps = self.config.epsilon
        diffusion = self.config.diffusion
        for emitter in self.emitters:
            intensity = emitter.intensity_at(now)
            if intensity < eps:
                continue
            e_sigma2 = emitter.sigma2_at(now, diffusion)
            ex = x - emitter.x
            ez = z - emitter.z
            ge = intensity * math.exp(-(ex * ex + ez * ez) / (2.0 * e_sigma2))
            rho += ge
            grad_x += ge * (-ex / e_sigma2)
            grad_z += ge * (-ez / e_sigma2)

        return FieldSample(
            rho=rho,
            grad_x=grad_x,
            grad_z=grad_z,
            rho_sun=g,
            grad_sun_x=grad_sun_x,
            grad_sun_z=grad_sun_z,
        )

    def sample_grid(self, xs: np.ndarray, zs: np.ndarray, now: float) -> np.ndarray:
        """
        Vectorized density over a grid (for heat-map consumers).

        Args:
            xs: (W,) sample x coordinates
            zs: (H,) sample z coordinates
            now: Simulated time

        Returns:
            (H, W) array of rho values
        """
        gx, gz = np.meshgrid(np.asarray(xs, dtype=np.float64), np.asarray(zs, dtype=np.float64))
        sigma2 = self.sun.spread * self.sun.spread
        r2 = (gx - self.sun.x) ** 2 + (gz - self.sun.z) ** 2
        rho = self.sun.intensity * np.exp(-r2 / (2.0 * sigma2))

        for emitter in self.emitters:
            intensity = emitter.intensity_at(now)
            if intensity < self.config.epsilon:
                continue
            e_sigma2 = emitter.sigma2_at(now, self.config.diffusion)
            r2 = (gx - emitter.x) ** 2 + (gz - emitter.z) ** 2
            rho += intensity * np.exp(-r2 / (2.0 * e_sigma2))

        return rho

    def visual_radius(self) -> float:
        """Heat-ring radius; grows with the current heat pulse"""
        pulse = clamp(self.sun.heat_pulse, 0.0, HEAT_RING_PULSE_MAX)
        return HEAT_RING_RADIUS * (HEAT_RING_BASE + HEAT_RING_PULSE * pulse)
