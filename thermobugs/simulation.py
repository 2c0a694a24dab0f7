"""
ThermoBugs simulation kernel.

Owns every piece of mutable state (agents, thermal field, trail grid,
GA population, scheduled events) behind one explicit context object.
Callers build it with init_simulation(), drive it with tick(dt), feed
pointer input through set_heat_position()/pulse_heat(), read the
render sink, and tear it down with dispose().
"""

import math
import time
import numpy as np
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .agent import Agent, LifeState
from .data_types import SceneConfig, RenderState, AgentView, TrailView
from .genome import Genome
from .genetics import GeneticAlgorithm
from .lifecycle import advance_life, mark_newborn, mark_selection, slot_index
from .loader import load_scene
from .rng import make_rng
from .scheduler import EventQueue, REPLACE_GENERATION
from .spatial import clamp
from .spatial_queries import NeighborIndex
from .spawning import spawn_agents, spawn_radius_for
from .terrain import FlatTerrain, as_sampler, update_pose
from .thermal_field import ThermalField
from .trail_grid import TrailGrid
from . import steering
from .constants import (
    GLOW_INNER,
    GLOW_OUTER,
    TRAIL_GLOW_WEIGHT,
    TRAIL_SCALE_BASE,
    TRAIL_SCALE_BOOST,
    TRAIL_OPACITY_BASE,
    TRAIL_OPACITY_BOOST,
    PANIC_DURATION,
    PATTERN_COUNT,
    TICK_TIME_WINDOW,
    ACTIVITY_SPEED_MAX,
    ACTIVITY_LEVEL_MAX,
)


class SimulationDisposedError(RuntimeError):
    """Raised when a disposed simulation is ticked or written to"""
    pass


class ThermoBugSimulation:
    """
    Main simulation class.

    Manages agent slots, the field/trail stores, the GA and the two-phase
    generational transition (death animation -> genome replacement ->
    newborn animation). All time is simulated time advanced by tick(dt).
    """

    def __init__(
        self,
        config: Optional[SceneConfig] = None,
        terrain=None,
        initial_genomes: Optional[Sequence[Genome]] = None
    ):
        """
        Initialize simulation from a scene.

        Args:
            config: Scene configuration (defaults to SceneConfig())
            terrain: Height sampler, callable (x, z) -> GroundHit or an object
                with height_at(x, z); None falls back to flat ground
            initial_genomes: Optional generation-0 genomes (missing slots random)
        """
        self.config: SceneConfig = config or SceneConfig()
        seed = self.config.seed

        # Simulation state
        self.time: float = 0.0
        self.tick_count: int = 0
        self.panic_until: float = -math.inf
        self.nutrients: List[Tuple[float, float, float]] = [
            tuple(float(c) for c in p) for p in self.config.nutrients
        ]
        self._disposed: bool = False

        # Performance metrics
        self._tick_times: List[float] = []
        self._tick_time_sum: float = 0.0
        self._tick_time_window: int = TICK_TIME_WINDOW

        # Stores
        self.field = ThermalField(self.config.thermal)
        self.trail = TrailGrid(self.config.trail)
        self.events = EventQueue()
        self.neighbors = NeighborIndex(use_ckdtree=self.config.flock.use_ckdtree)

        # Terrain collaborator
        self._sampler = as_sampler(terrain)
        if self._sampler is None:
            print("[WARN] No terrain sampler supplied, using flat ground (y=0)")
            self._sampler = FlatTerrain()

        # Population
        self.ga = GeneticAlgorithm(self.config.genetics, rng=make_rng(seed, "genetics"))
        population = self.ga.init_population(initial_genomes)

        self.agents: List[Agent] = spawn_agents(
            population,
            rng=make_rng(seed, "spawning"),
            radius=spawn_radius_for(self.config.terrain_size, self.config.spawn_radius),
            min_spacing=2.0 * self.config.flock.separation_radius,
            max_trail_points=self.config.trail.max_points,
            wander_rng=make_rng(seed, "wander"),
        )

        # Auto-run clock: counts only while no transition is pending
        self._ga_timer: float = 0.0

        print(f"[OK] Simulation initialized: {len(self.agents)} agents, "
              f"seed={seed}, population={self.ga.population_size}")

    # ------------------------------------------------------------------
    # Input Feed
    # ------------------------------------------------------------------

    def _check_alive(self):
        if self._disposed:
            raise SimulationDisposedError("simulation has been disposed")

    @property
    def disposed(self) -> bool:
        return self._disposed

    def set_heat_position(self, x: float, z: float):
        """Move the sun (pointer-to-ground projection)"""
        self._check_alive()
        self.field.set_sun_position(x, z)

    def pulse_heat(self):
        """
        Click event: spawn an emitter at the sun, boost its intensity and
        open the panic window.
        """
        self._check_alive()
        sun = self.field.sun
        self.field.add_emitter(sun.x, sun.z, self.time)
        self.field.pulse()
        self.panic_until = self.time + PANIC_DURATION

    def set_nutrient_points(self, points: Iterable[Sequence[float]]):
        self._check_alive()
        self.nutrients = [(float(p[0]), float(p[1]), float(p[2])) for p in points]

    def add_nutrient_point(self, x: float, y: float, z: float):
        self._check_alive()
        self.nutrients.append((float(x), float(y), float(z)))

    # ------------------------------------------------------------------
    # Population / Selection Bridges
    # ------------------------------------------------------------------

    def get_population(self) -> List[Genome]:
        return self.ga.get_population()

    def get_generation(self) -> int:
        return self.ga.get_generation()

    def apply_population_genomes(
        self,
        population: Optional[Sequence[Genome]] = None,
        indices: Optional[Iterable[int]] = None
    ) -> int:
        """
        Push genomes into agent slots.

        Args:
            population: Genome per slot (defaults to the GA population)
            indices: Slots to update (defaults to all); out-of-range ignored

        Returns:
            Number of slots updated
        """
        self._check_alive()
        population = self.ga.get_population() if population is None else population
        n = min(len(self.agents), len(population))
        targets = range(n) if indices is None else indices

        applied = 0
        for idx in targets:
            idx = slot_index(idx, n)
            if idx is not None:
                self.agents[idx].apply_genome(population[idx])
                applied += 1
        return applied

    def mark_selection(self, survivor_indices: Iterable[int], doomed_indices: Iterable[int]):
        self._check_alive()
        mark_selection(self.agents, survivor_indices, doomed_indices)

    def mark_newborn(self, indices: Iterable[int]):
        self._check_alive()
        mark_newborn(self.agents, indices)

    # ------------------------------------------------------------------
    # Generational Transition
    # ------------------------------------------------------------------

    @property
    def transition_pending(self) -> bool:
        return self.events.has_pending(REPLACE_GENERATION)

    def trigger_next_generation(self) -> bool:
        """
        Start a generational transition now.

        Evaluates the population, starts the death animation of doomed
        slots, and schedules their replacement after
        death_duration + survivors_window of simulated time. Restarts the
        auto-run clock.

        Returns:
            False if a transition is already pending (nothing happens)
        """
        self._check_alive()
        if self.transition_pending:
            return False

        self._ga_timer = 0.0
        survivors, doomed = self.ga.evaluate()
        self.mark_selection(survivors, doomed)
        life = self.config.life
        self.events.schedule(life.death_duration + life.survivors_window, REPLACE_GENERATION, list(doomed))
        return True

    def _replace_generation(self, doomed: Sequence[int]):
        """Breed children into doomed slots and let them fade in"""
        self.ga.next_generation(doomed)
        self.apply_population_genomes(indices=doomed)
        self.mark_newborn(doomed)

    def _process_events(self, dt: float):
        """Fire due replacements, then advance the auto-run clock"""
        for event in self.events.pop_due(self.time):
            if event.name == REPLACE_GENERATION:
                self._replace_generation(event.payload)

        genetics = self.config.genetics
        if genetics.auto_run and not self.transition_pending:
            self._ga_timer += dt
            if self._ga_timer >= genetics.generation_period:
                self.trigger_next_generation()

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self, dt: float):
        """
        Advance simulation by one time step.

        TWO-PHASE TICK CONTRACT:

        Phase A: Force Evaluation (Read-Only)
        -------------------------------------
        Positions and velocities of every agent are copied at tick start.
        Each non-DEAD agent's steering is computed from that snapshot, the
        field at its snapshot position and the trail grid before this
        tick's deposits. Evaluation order therefore cannot bias results.

        Phase B: Integration (Write)
        ----------------------------
        Velocities and positions are integrated, trails deposited, pose,
        hop and render outputs written.

        Around the two phases: due events and the auto-run timer are
        handled first, life-cycle animations advance before the snapshot
        (agents that reach DEAD skip physics), and trail decay and heat
        pulse decay run last.

        Args:
            dt: Elapsed simulated seconds
        """
        self._check_alive()
        start_time = time.perf_counter()
        dt = max(0.0, float(dt))

        self.time += dt
        self._process_events(dt)

        active = [advance_life(agent, dt, self.config.life) for agent in self.agents]
        self.field.step(self.time)

        # ============================================================
        # PHASE A: FORCE EVALUATION (Read-Only)
        # ============================================================
        n = len(self.agents)
        positions = np.empty((n, 2), dtype=np.float64)
        velocities = np.empty((n, 2), dtype=np.float64)
        for i, agent in enumerate(self.agents):
            positions[i] = (agent.position[0], agent.position[2])
            velocities[i] = agent.velocity
        self.neighbors.build(positions, np.array(active, dtype=bool))

        flock_cfg = self.config.flock
        sun = self.field.sun
        heat_pulse = sun.heat_pulse
        panic_active = self.time < self.panic_until
        panic_radius = self.field.visual_radius()

        plans = []
        for i, agent in enumerate(self.agents):
            if not active[i]:
                plans.append(None)
                continue

            x, z = positions[i]
            sample = self.field.sample(x, z, self.time)
            flock = steering.flock_terms(
                i, positions, velocities,
                self.neighbors.neighbors_within(i, flock_cfg.neighbor_radius),
                flock_cfg,
            )
            seek = steering.seek_force(x, z, sample, sun.x, sun.z, heat_pulse, flock_cfg)
            panic = steering.panic_force(x, z, sun.x, sun.z, panic_radius) if panic_active else None
            nutrients = steering.nutrient_force(x, z, self.nutrients) if self.nutrients else None

            wander_phase = steering.advance_wander(agent.wander_phase, dt)
            trail_force = self.trail.follow_force(x, z, velocities[i, 0], velocities[i, 1])

            accel = steering.compose(
                flock, seek, flock_cfg,
                panic=panic,
                nutrients=nutrients,
                wander=steering.wander_force(wander_phase),
                trail=trail_force,
            )
            accel = steering.fallback_bias(accel, x, z, sun.x, sun.z)
            plans.append((accel, wander_phase, seek.far_boost, sample.rho_sun))

        # ============================================================
        # PHASE B: INTEGRATION (Write)
        # ============================================================
        for agent, plan in zip(self.agents, plans):
            if plan is None:
                continue
            accel, wander_phase, far_boost, rho_sun = plan

            agent.wander_phase = wander_phase
            agent.velocity = steering.integrate(agent.velocity, accel, dt, agent.speed_factor, flock_cfg)
            agent.position[0] += agent.velocity[0] * dt
            agent.position[2] += agent.velocity[1] * dt

            self.trail.deposit(agent.x, agent.z, self.config.trail.deposit_amount * agent.life_visibility)
            base_y = update_pose(agent, self._sampler, far_boost, dt)
            self._update_visuals(agent, rho_sun, base_y)

        self.trail.decay(dt)
        self.field.decay_pulse()

        self.tick_count += 1
        self._record_tick_time(time.perf_counter() - start_time)

    def _update_visuals(self, agent: Agent, rho_sun: float, base_y: float):
        """Scale, glow and trail outputs for the render sink (no physics feedback)"""
        strength = self.trail.strength_at(agent.x, agent.z)

        agent.render_scale = agent.base_scale * (TRAIL_SCALE_BASE + TRAIL_SCALE_BOOST * strength) \
            * agent.life_scale

        heat = clamp((rho_sun - GLOW_INNER) / (GLOW_OUTER - GLOW_INNER), 0.0, 1.0)
        glow = clamp(heat * heat * heat + TRAIL_GLOW_WEIGHT * strength, 0.0, 1.0)
        agent.glow = glow * agent.life_visibility

        agent.push_trail_point((agent.x, base_y + 0.1, agent.z))
        agent.trail_opacity = (TRAIL_OPACITY_BASE + TRAIL_OPACITY_BOOST * strength) * agent.life_visibility

    # ------------------------------------------------------------------
    # Render Sink
    # ------------------------------------------------------------------

    def get_render_state(self) -> RenderState:
        """Read-only views of every non-DEAD agent and its trail"""
        agent_views = []
        trail_views = []
        for agent in self.agents:
            if agent.is_dead:
                continue
            agent_views.append(AgentView(
                index=agent.index,
                position=agent.render_position,
                orientation=agent.orientation,
                scale=agent.render_scale,
                glow=agent.glow,
                color=agent.body_color,
                pattern_id=agent.genome.pattern_id if agent.genome is not None else 0,
                state=agent.state.value,
            ))
            trail_views.append(TrailView(
                index=agent.index,
                points=list(agent.trail_points),
                color=agent.trail_color,
                opacity=agent.trail_opacity,
            ))

        sun = self.field.sun
        return RenderState(
            agents=agent_views,
            trails=trail_views,
            heat_position=(sun.x, sun.z),
            heat_ring_radius=self.field.visual_radius(),
            trail_grid=self.trail.values.copy(),
        )

    # ------------------------------------------------------------------
    # Telemetry
    # ------------------------------------------------------------------

    def _record_tick_time(self, elapsed: float):
        """
        Record tick timing for rolling average.

        Args:
            elapsed: Tick time in seconds
        """
        self._tick_times.append(elapsed)
        self._tick_time_sum += elapsed

        if len(self._tick_times) > self._tick_time_window:
            removed = self._tick_times.pop(0)
            self._tick_time_sum -= removed

    def state_counts(self) -> Dict[str, int]:
        counts = {state.value: 0 for state in LifeState}
        for agent in self.agents:
            counts[agent.state.value] += 1
        return counts

    def mean_speed(self) -> float:
        speeds = [a.speed for a in self.agents if not a.is_dead]
        return float(sum(speeds) / len(speeds)) if speeds else 0.0

    def average_speed_level(self) -> float:
        """Mean agent speed mapped to [0, 5] (the ambient audio activity level)"""
        return clamp(self.mean_speed() / ACTIVITY_SPEED_MAX, 0.0, 1.0) * ACTIVITY_LEVEL_MAX

    def get_tick_stats(self) -> dict:
        """
        Get current tick statistics.

        Returns:
            Dict with tick_count, time, avg_tick_time_ms, last_tick_time_ms,
            mean_speed, generation, and one count per life state
        """
        if self._tick_times:
            avg_ms = self._tick_time_sum / len(self._tick_times) * 1000.0
            last_ms = self._tick_times[-1] * 1000.0
        else:
            avg_ms = 0.0
            last_ms = 0.0

        stats = {
            'tick_count': self.tick_count,
            'time': self.time,
            'avg_tick_time_ms': avg_ms,
            'last_tick_time_ms': last_ms,
            'mean_speed': self.mean_speed(),
            'generation': self.ga.get_generation(),
        }
        stats.update(self.state_counts())
        return stats

    def population_summary(self) -> dict:
        return self.ga.population_summary()

    def get_snapshot(self) -> dict:
        """
        Get complete simulation state snapshot.

        Returns:
            Dict with tick_count, time, agents, timing
        """
        return {
            'tick_count': self.tick_count,
            'time': self.time,
            'agent_count': len(self.agents),
            'agents': [a.to_dict() for a in self.agents],
            'timing': self.get_tick_stats(),
        }

    def print_tick_summary(self):
        """Print tick summary to console (lightweight monitoring)"""
        stats = self.get_tick_stats()
        print(f"Tick {stats['tick_count']:5d} | "
              f"t={stats['time']:7.2f}s | "
              f"Avg: {stats['avg_tick_time_ms']:6.3f} ms | "
              f"Speed: {stats['mean_speed']:5.2f} | "
              f"Alive: {stats['alive']} Dying: {stats['dying']} "
              f"Dead: {stats['dead']} Newborn: {stats['newborn']}")

    def print_generation_summary(self):
        summary = self.population_summary()
        patterns = " ".join(f"P{i}:{c}" for i, c in enumerate(summary['pattern_counts'][:PATTERN_COUNT]))
        print(f"Gen {summary['generation']:3d} | {patterns} | "
              f"scale={summary['mean_body_scale']:.2f} speed={summary['mean_base_speed']:.2f} | "
              f"fitness best={summary['best_fitness']:.3f} mean={summary['mean_fitness']:.3f}")

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def dispose(self):
        """
        Tear down: cancel pending transitions and release agents.

        Safe to call twice. Every later tick() or input/bridge write raises
        SimulationDisposedError.
        """
        if self._disposed:
            return
        cancelled = self.events.cancel_all()
        self.agents.clear()
        self.field.emitters.clear()
        self.trail.clear()
        self._disposed = True
        print(f"[OK] Simulation disposed after {self.tick_count} ticks "
              f"({cancelled} pending event(s) cancelled)")


def init_simulation(
    config: Optional[SceneConfig] = None,
    terrain=None,
    initial_genomes: Optional[Sequence[Genome]] = None,
    config_path: Optional[Path] = None
) -> ThermoBugSimulation:
    """
    Build a simulation context.

    Args:
        config: Scene configuration; takes precedence over config_path
        terrain: Height sampler (see ThermoBugSimulation)
        initial_genomes: Optional generation-0 genomes
        config_path: Scene YAML to load when no config is given

    Raises:
        DataLoadError: config_path cannot be loaded
    """
    if config is None and config_path is not None:
        config = load_scene(Path(config_path))
    return ThermoBugSimulation(config=config, terrain=terrain, initial_genomes=initial_genomes)
