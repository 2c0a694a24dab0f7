"""
Data types mirroring the scene YAML schema, plus small value records.

Config dataclasses are populated by loader.py from YAML files. Every
field defaults to the matching constant, so SceneConfig() is a complete
scene on its own.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Any, Dict

from . import constants as C


# ============================================================================
# Scene Configuration
# ============================================================================

@dataclass
class FieldConfig:
    """Thermal field: sun source, emitter diffusion, click pulse"""
    sun_position: Tuple[float, float] = C.SUN_POSITION
    sun_intensity: float = C.SUN_BASE_INTENSITY
    sun_spread: float = C.SUN_SPREAD
    diffusion: float = C.FIELD_DIFFUSION
    epsilon: float = C.FIELD_EPSILON
    emitter_intensity: float = C.EMITTER_INTENSITY_DEFAULT
    emitter_spread: float = C.EMITTER_SPREAD_DEFAULT
    emitter_decay: float = C.EMITTER_DECAY_DEFAULT
    pulse_step: float = C.HEAT_PULSE_STEP
    pulse_decay: float = C.HEAT_PULSE_DECAY


@dataclass
class TrailConfig:
    """Pheromone trail grid and chemotaxis sensing"""
    bound_radius: float = C.TRAIL_BOUND_RADIUS
    grid_size: int = C.TRAIL_GRID_SIZE
    deposit_amount: float = C.TRAIL_DEPOSIT_AMOUNT
    decay_rate: float = C.TRAIL_DECAY_RATE
    frame_independent: bool = False  # decay^(dt/target_dt) instead of fixed per tick
    target_dt: float = C.TRAIL_TARGET_DT
    sensor_distance: float = C.SENSOR_DISTANCE
    sensor_angle: float = C.SENSOR_ANGLE
    follow_weight: float = C.TRAIL_FOLLOW_WEIGHT
    max_points: int = C.TRAIL_MAX_POINTS


@dataclass
class FlockConfig:
    """Neighbor rules and kinematics"""
    neighbor_radius: float = C.NEIGHBOR_RADIUS
    separation_radius: float = C.SEPARATION_RADIUS
    separation_weight: float = C.SEPARATION_WEIGHT
    alignment_weight: float = C.ALIGNMENT_WEIGHT
    cohesion_weight: float = C.COHESION_WEIGHT
    max_speed: float = C.MAX_SPEED
    steer_max: float = C.STEER_MAX
    damping: float = C.DAMPING
    seek_gain: float = C.SEEK_GAIN
    sun_pull: float = C.SUN_PULL
    repel_gain: float = C.REPEL_GAIN
    use_ckdtree: bool = C.USE_CKDTREE


@dataclass
class LifeConfig:
    """Animated death/birth timing"""
    death_duration: float = C.DEATH_DURATION
    survivors_window: float = C.SURVIVORS_WINDOW
    newborn_duration: float = C.NEWBORN_DURATION
    sink_rate: float = C.DYING_SINK_RATE


@dataclass
class GeneticsConfig:
    """Genetic algorithm parameters"""
    population_size: int = C.POPULATION_SIZE
    survival_rate: float = C.SURVIVAL_RATE
    mutation_rate: float = C.MUTATION_RATE
    crossover_rate: float = C.CROSSOVER_RATE
    tournament_size: int = C.TOURNAMENT_SIZE
    generation_period: float = C.GENERATION_PERIOD
    auto_run: bool = True
    lock_pattern_slots: bool = False
    slot_pattern_ids: Optional[List[int]] = None


@dataclass
class SceneConfig:
    """Complete scene configuration"""
    name: str = "thermobugs"
    seed: int = 12345
    terrain_size: float = C.TERRAIN_SIZE
    spawn_radius: Optional[float] = None  # None: min(SPAWN_RADIUS_MAX, 0.25 * terrain_size)
    thermal: FieldConfig = field(default_factory=FieldConfig)
    trail: TrailConfig = field(default_factory=TrailConfig)
    flock: FlockConfig = field(default_factory=FlockConfig)
    life: LifeConfig = field(default_factory=LifeConfig)
    genetics: GeneticsConfig = field(default_factory=GeneticsConfig)
    nutrients: List[Tuple[float, float, float]] = field(default_factory=list)
    description: Optional[str] = None

    @property
    def agent_count(self) -> int:
        """One agent per population slot"""
        return self.genetics.population_size


# ============================================================================
# Field / Terrain Records
# ============================================================================

@dataclass(frozen=True)
class FieldSample:
    """Thermal density and gradient at one ground-plane point"""
    rho: float
    grad_x: float
    grad_z: float
    rho_sun: float
    grad_sun_x: float
    grad_sun_z: float


@dataclass(frozen=True)
class GroundHit:
    """Terrain sampler result: surface point and unit normal"""
    point: Tuple[float, float, float]
    normal: Tuple[float, float, float]


# ============================================================================
# Render Sink (read-only views for the rendering collaborator)
# ============================================================================

@dataclass
class AgentView:
    """Per-agent render state for one tick"""
    index: int
    position: Tuple[float, float, float]
    orientation: Tuple[float, float, float, float]  # quaternion (x, y, z, w)
    scale: float
    glow: float
    color: Tuple[float, float, float]
    pattern_id: int
    state: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'index': self.index,
            'position': list(self.position),
            'orientation': list(self.orientation),
            'scale': float(self.scale),
            'glow': float(self.glow),
            'color': list(self.color),
            'pattern_id': self.pattern_id,
            'state': self.state,
        }


@dataclass
class TrailView:
    """Per-agent trail polyline for one tick"""
    index: int
    points: List[Tuple[float, float, float]]
    color: Tuple[float, float, float]
    opacity: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'index': self.index,
            'points': [list(p) for p in self.points],
            'color': list(self.color),
            'opacity': float(self.opacity),
        }


@dataclass
class RenderState:
    """Everything the renderer consumes for one tick"""
    agents: List[AgentView]
    trails: List[TrailView]
    heat_position: Tuple[float, float]
    heat_ring_radius: float
    trail_grid: Any  # (N, N) float array, rows are Z, columns are X

    def to_dict(self) -> Dict[str, Any]:
        return {
            'agents': [a.to_dict() for a in self.agents],
            'trails': [t.to_dict() for t in self.trails],
            'heat_position': list(self.heat_position),
            'heat_ring_radius': float(self.heat_ring_radius),
        }
