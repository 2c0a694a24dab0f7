"""
Genetic algorithm for ThermoBug genomes.

Fitness models a cold environment: cool, mid-dark colors, a moderate
body size, moderate speed/show-off, and (with growing pressure over the
first generations) one specific skin pattern.

Generation loop:
    evaluate()          -> fitness for every slot, survivors/doomed split
    next_generation(d)  -> every doomed slot gets mutate(crossover(select(), select()))

All randomness comes from one numpy Generator so a seeded run is exactly
reproducible.
"""

import math
import numpy as np
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from .genome import (
    Genome,
    BODY_SCALE_RANGE,
    BASE_SPEED_RANGE,
    PATTERN_RANGE,
    SHOWOFF_RANGE,
    VALUE_RANGE,
    pattern_meta,
    wrap_hue,
)
from .data_types import GeneticsConfig
from .lifecycle import slot_index
from .constants import (
    INITIAL_PATTERN_ID,
    SURVIVOR_PATTERN_ID,
    PATTERN_RAMP_GENERATIONS,
    PATTERN_COUNT,
    PALETTE_WEIGHT,
    PATTERN_WEIGHT,
    SIZE_WEIGHT,
    MOVEMENT_WEIGHT,
    HUE_MUTATION_DEGREES,
    VALUE_MUTATION_STRENGTH,
    BODY_SCALE_MUTATION_STRENGTH,
    BASE_SPEED_MUTATION_STRENGTH,
    SHOWOFF_MUTATION_STRENGTH,
)

# Environment optimum
COLD_HUE_BAND = (200.0, 260.0)          # Blue / cyan-blue
VALUE_BAND = (0.3, 0.8)                 # Not too bright
WARM_HUE_BANDS = ((20.0, 80.0),)        # Yellow / orange
WARM_HUE_WRAP = (320.0, 10.0)           # Red / pink across 0 degrees
SIZE_BAND = (1.3, 1.9)
SPEED_BAND = (0.85, 1.15)
SHOWOFF_BAND = (0.4, 0.9)
SPOT_COUNT_BAND = (15, 30)
SPOT_SIZE_BAND = (0.10, 0.25)


def _clamp01(v: float) -> float:
    return 0.0 if v < 0.0 else 1.0 if v > 1.0 else v


def tent_score(v: float, lo: float, hi: float) -> float:
    """
    Symmetric tent over [lo, hi]: 1 at the midpoint, 0.5 at the band edges,
    0 at one full band-width outside the midpoint's half-span.
    """
    mid = 0.5 * (lo + hi)
    half = 0.5 * (hi - lo)
    if half <= 0.0:
        return 0.0
    d = min(abs(v - mid) / half, 2.0)
    return max(0.0, 1.0 - d * 0.5)


class GeneticAlgorithm:
    """
    Fixed-size population of genomes with a parallel fitness array.

    Attributes:
        population: Genome per slot (slot i drives agent i)
        fitness: Fitness per slot from the last evaluate()
        generation: Number of completed next_generation() calls
    """

    def __init__(self, config: Optional[GeneticsConfig] = None, rng: Optional[np.random.Generator] = None):
        """
        Args:
            config: GA parameters (defaults to GeneticsConfig())
            rng: Random generator (defaults to an unseeded PCG64)
        """
        self.config = config or GeneticsConfig()
        self.rng = rng if rng is not None else np.random.Generator(np.random.PCG64())

        self.population_size: int = int(self.config.population_size)
        self.survival_rate: float = float(self.config.survival_rate)
        self.mutation_rate: float = float(self.config.mutation_rate)
        self.crossover_rate: float = float(self.config.crossover_rate)
        self.tournament_size: int = max(1, int(self.config.tournament_size))
        self.lock_pattern_slots: bool = bool(self.config.lock_pattern_slots)
        self.slot_pattern_ids: Optional[List[int]] = self.config.slot_pattern_ids

        self.population: List[Genome] = []
        self.fitness: List[float] = []
        self.generation: int = 0
        self._sorted_indices: List[int] = []

    # ------------------------------------------------------------------
    # Population
    # ------------------------------------------------------------------

    def random_genome(self, index: int = 0) -> Genome:
        """
        Random genome for a slot.

        Gen0 shares one pattern (or the slot's locked pattern); other
        patterns only appear later through mutation.
        """
        rng = self.rng
        return Genome(
            hue=wrap_hue(rng.uniform(0.0, 360.0)),
            value=float(rng.uniform(*VALUE_RANGE)),
            pattern_id=self._locked_pattern(index, INITIAL_PATTERN_ID),
            body_scale=float(rng.uniform(*BODY_SCALE_RANGE)),
            base_speed=float(rng.uniform(*BASE_SPEED_RANGE)),
            show_off=float(rng.uniform(*SHOWOFF_RANGE)),
        )

    def init_population(self, genomes: Optional[Sequence[Genome]] = None) -> List[Genome]:
        """
        Build generation 0.

        Args:
            genomes: Optional explicit genomes; missing slots are filled randomly,
                extra ones are ignored
        """
        genomes = list(genomes or [])[:self.population_size]
        self.population = genomes + [
            self.random_genome(i) for i in range(len(genomes), self.population_size)
        ]
        self.fitness = [0.0] * self.population_size
        self.generation = 0
        self._sorted_indices = []
        return self.population

    def get_population(self) -> List[Genome]:
        return self.population

    def get_generation(self) -> int:
        return self.generation

    def get_sorted_indices(self) -> List[int]:
        """Slot indices by descending fitness from the last evaluate()"""
        return list(self._sorted_indices)

    # ------------------------------------------------------------------
    # Scores (all clamp their output to [0, 1])
    # ------------------------------------------------------------------

    def palette_score(self, g: Genome) -> float:
        """Cold hue +0.6, mid brightness +0.4, warm hue -0.35"""
        h = wrap_hue(g.hue)
        v = g.value
        s = 0.0
        if COLD_HUE_BAND[0] <= h <= COLD_HUE_BAND[1]:
            s += 0.6
        if VALUE_BAND[0] <= v <= VALUE_BAND[1]:
            s += 0.4
        warm = any(lo <= h <= hi for lo, hi in WARM_HUE_BANDS) \
            or h >= WARM_HUE_WRAP[0] or h <= WARM_HUE_WRAP[1]
        if warm:
            s -= 0.35
        return _clamp01(s)

    def pattern_phase(self) -> float:
        """Selection pressure toward the survivor pattern, 0 -> 1 over the ramp"""
        return _clamp01(self.generation / float(PATTERN_RAMP_GENERATIONS))

    def pattern_score(self, g: Genome) -> float:
        """
        Blend of a camouflage score and a target-pattern score.

        Early generations are judged by spot count/size only; later ones
        almost only by matching SURVIVOR_PATTERN_ID.
        """
        pid = int(min(max(g.pattern_id, 0), PATTERN_COUNT - 1))
        meta = pattern_meta(pid)
        base = 0.0
        if SPOT_COUNT_BAND[0] <= meta['spot_count'] <= SPOT_COUNT_BAND[1]:
            base += 0.5
        if SPOT_SIZE_BAND[0] <= meta['spot_size'] <= SPOT_SIZE_BAND[1]:
            base += 0.5
        target = 1.0 if pid == SURVIVOR_PATTERN_ID else 0.0
        phase = self.pattern_phase()
        return _clamp01((1.0 - phase) * base + phase * target)

    def size_score(self, g: Genome) -> float:
        return 1.0 if SIZE_BAND[0] <= g.body_scale <= SIZE_BAND[1] else 0.0

    def movement_score(self, g: Genome) -> float:
        s_speed = tent_score(g.base_speed, *SPEED_BAND)
        s_show = tent_score(g.show_off, *SHOWOFF_BAND)
        return _clamp01(0.5 * (s_speed + s_show))

    def fitness_of(self, g: Genome) -> float:
        """Weighted, normalized sum of the four sub-scores"""
        total = (
            PALETTE_WEIGHT * self.palette_score(g)
            + PATTERN_WEIGHT * self.pattern_score(g)
            + SIZE_WEIGHT * self.size_score(g)
            + MOVEMENT_WEIGHT * self.movement_score(g)
        )
        norm = PALETTE_WEIGHT + PATTERN_WEIGHT + SIZE_WEIGHT + MOVEMENT_WEIGHT
        return _clamp01(total / norm)

    def score_breakdown(self, g: Genome) -> Dict[str, float]:
        return {
            'palette': self.palette_score(g),
            'pattern': self.pattern_score(g),
            'size': self.size_score(g),
            'movement': self.movement_score(g),
            'fitness': self.fitness_of(g),
        }

    # ------------------------------------------------------------------
    # Evaluation & Selection
    # ------------------------------------------------------------------

    def survivor_count(self) -> int:
        return int(math.floor(self.population_size * self.survival_rate))

    def evaluate(self) -> Tuple[List[int], List[int]]:
        """
        Score every slot and split survivors from doomed.

        Ties keep slot order (stable sort), so equal-fitness slots with
        lower indices survive first.

        Returns:
            (survivor_indices, doomed_indices)
        """
        self.fitness = [self.fitness_of(g) for g in self.population]
        order = sorted(range(len(self.population)), key=lambda i: -self.fitness[i])
        self._sorted_indices = order
        k = self.survivor_count()
        return order[:k], order[k:]

    def _select_parent_index(self) -> int:
        """Tournament selection: best of k uniform draws (with replacement)"""
        n = len(self.population)
        best = None
        for _ in range(self.tournament_size):
            idx = int(self.rng.integers(0, n))
            if best is None or self.fitness[idx] > self.fitness[best]:
                best = idx
        return 0 if best is None else best

    def select(self) -> Genome:
        return self.population[self._select_parent_index()]

    # ------------------------------------------------------------------
    # Crossover & Mutation
    # ------------------------------------------------------------------

    def _locked_pattern(self, index: Optional[int], fallback: int) -> int:
        ids = self.slot_pattern_ids
        if self.lock_pattern_slots and ids and index is not None and 0 <= index < len(ids) \
                and ids[index] is not None:
            return int(min(max(int(ids[index]), PATTERN_RANGE[0]), PATTERN_RANGE[1]))
        return fallback

    def crossover(self, p1: Genome, p2: Genome, index: Optional[int] = None) -> Genome:
        """
        Uniform crossover, gated by crossover_rate.

        With probability crossover_rate each gene is an independent coin flip
        between the parents; otherwise the child clones one parent.
        """
        rng = self.rng
        if rng.random() >= self.crossover_rate:
            child = p1 if rng.random() < 0.5 else p2
        else:
            def pick(a, b):
                return a if rng.random() < 0.5 else b

            child = Genome(
                hue=pick(p1.hue, p2.hue),
                value=pick(p1.value, p2.value),
                pattern_id=pick(p1.pattern_id, p2.pattern_id),
                body_scale=pick(p1.body_scale, p2.body_scale),
                base_speed=pick(p1.base_speed, p2.base_speed),
                show_off=pick(p1.show_off, p2.show_off),
            )

        pattern = self._locked_pattern(
            index,
            int(min(max(round(child.pattern_id), PATTERN_RANGE[0]), PATTERN_RANGE[1]))
        )
        if pattern != child.pattern_id:
            child = replace(child, pattern_id=pattern)
        return child

    def _mutate_float(self, v: float, bounds: Tuple[float, float], strength: float) -> float:
        lo, hi = bounds
        delta = self.rng.uniform(-1.0, 1.0) * (hi - lo) * strength
        return float(min(max(v + delta, lo), hi))

    def _mutate_pattern(self, pid: int) -> int:
        """Step +/-1; a step off either end goes the other way instead"""
        lo, hi = PATTERN_RANGE
        step = 1 if self.rng.random() < 0.5 else -1
        nv = pid + step
        if nv < lo or nv > hi:
            nv = pid - step
        return int(min(max(nv, lo), hi))

    def mutate(self, genome: Genome, index: Optional[int] = None) -> Genome:
        """
        Independent per-gene mutation, each gene gated by mutation_rate.

        Returns the same object when no gene mutates, otherwise a new Genome.
        """
        rate = self.mutation_rate
        if rate <= 0.0:
            return genome

        rng = self.rng
        changes = {}
        if rng.random() < rate:
            changes['hue'] = wrap_hue(genome.hue + rng.uniform(-1.0, 1.0) * HUE_MUTATION_DEGREES)
        if rng.random() < rate:
            changes['value'] = self._mutate_float(genome.value, VALUE_RANGE, VALUE_MUTATION_STRENGTH)
        if rng.random() < rate:
            changes['body_scale'] = self._mutate_float(
                genome.body_scale, BODY_SCALE_RANGE, BODY_SCALE_MUTATION_STRENGTH)
        if rng.random() < rate:
            changes['base_speed'] = self._mutate_float(
                genome.base_speed, BASE_SPEED_RANGE, BASE_SPEED_MUTATION_STRENGTH)
        if rng.random() < rate:
            changes['show_off'] = self._mutate_float(genome.show_off, SHOWOFF_RANGE, SHOWOFF_MUTATION_STRENGTH)

        locked = self._locked_pattern(index, -1)
        if locked >= 0:
            if locked != genome.pattern_id:
                changes['pattern_id'] = locked
        elif rng.random() < rate:
            changes['pattern_id'] = self._mutate_pattern(genome.pattern_id)

        if not changes:
            return genome
        return replace(genome, **changes)

    # ------------------------------------------------------------------
    # Next Generation
    # ------------------------------------------------------------------

    def next_generation(self, doomed_indices: Sequence[int]) -> List[Genome]:
        """
        Replace every doomed slot with a bred child; survivors pass through.

        Parents are drawn from the pre-replacement population. Out-of-range
        indices are ignored. Increments the generation counter.
        """
        n = len(self.population)
        if len(self._sorted_indices) != n or len(self.fitness) != n:
            self.evaluate()

        new_pop = list(self.population)
        for idx in doomed_indices:
            idx = slot_index(idx, n)
            if idx is None:
                continue
            child = self.crossover(self.select(), self.select(), idx)
            new_pop[idx] = self.mutate(child, idx)

        self.population = new_pop
        self.generation += 1
        self._sorted_indices = []
        return self.population

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def population_summary(self) -> Dict[str, object]:
        """
        Pattern histogram and mean traits of the current population.

        Returns:
            Dict with generation, pattern_counts (P0..P4), mean_body_scale,
            mean_base_speed, best_fitness, mean_fitness
        """
        pop = self.population
        counts = [0] * PATTERN_COUNT
        for g in pop:
            if 0 <= g.pattern_id < PATTERN_COUNT:
                counts[g.pattern_id] += 1
        n = len(pop) or 1
        fitness = [self.fitness_of(g) for g in pop]
        return {
            'generation': self.generation,
            'pattern_counts': counts,
            'mean_body_scale': sum(g.body_scale for g in pop) / n,
            'mean_base_speed': sum(g.base_speed for g in pop) / n,
            'best_fitness': max(fitness) if fitness else 0.0,
            'mean_fitness': sum(fitness) / n,
        }
