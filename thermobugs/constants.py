"""
Central configuration constants for the ThermoBugs simulation.

Defines default values, thresholds, and tuning parameters used across
multiple modules. Scene YAML files override these per run.
"""

import math

# ============================================================================
# Flocking Configuration
# ============================================================================

NEIGHBOR_RADIUS = 4.0      # Alignment/cohesion neighborhood (world units)
SEPARATION_RADIUS = 2.0    # Repulsion kicks in inside this distance

SEPARATION_WEIGHT = 1.7
ALIGNMENT_WEIGHT = 0.36
COHESION_WEIGHT = 0.24

# Enable scipy.cKDTree neighbor search
# Set to False to use O(n) fallback for A/B comparison
USE_CKDTREE = True
CKDTREE_LEAFSIZE = 16


# ============================================================================
# Dynamics
# ============================================================================

MAX_SPEED = 4.2
STEER_MAX = 8.0
DAMPING = 0.88                 # v *= exp(-DAMPING * dt)

SPEED_FACTOR_MIN = 0.5         # Genome speed factor clamp
SPEED_FACTOR_MAX = 1.8

DISTANCE_EPSILON = 1e-4        # Floor for every distance used as a divisor
STILL_SPEED = 1e-3             # Below this speed the heading is kept


# ============================================================================
# Heat Seeking
# ============================================================================

SEEK_GAIN = 6.2                # Direct bearing-to-sun force
SUN_PULL = 6.0                 # Gradient pull gain
FAR_ACCEL_INNER = 4.0          # Far-boost smoothstep edges (distance to sun)
FAR_ACCEL_OUTER = 14.0
FAR_PULL_BASE = 0.6            # pull *= FAR_PULL_BASE + FAR_PULL_BOOST * farBoost
FAR_PULL_BOOST = 0.7
REPEL_GAIN = 3.8               # Gradient push when overheated

OVERHEAT_TEMP = 0.90           # rhoSun above this counts as overheated...
OVERHEAT_PULSE = 0.6           # ...but only while heatPulse exceeds this


# ============================================================================
# Pose / Ground Conforming / Hop
# ============================================================================

YAW_TURN_RATE = 8.0
FOOT_OFFSET = 0.06
SLOPE_ALIGN = 0.92             # Blend of world-up toward ground normal
SLOPE_LIFT = 0.15
MAX_HOVER = 1.0                # Snap to ground beyond this vertical drift

HOP_AMPLITUDE = 0.22
HOP_FREQ_BASE = 2.0            # Hz
HOP_FREQ_FAR_BOOST = 1.8       # Hz added at full far-boost
HOP_SHOWOFF_BOOST = 0.4


# ============================================================================
# Glow / Visual Feedback
# ============================================================================

GLOW_INNER = 1.2
GLOW_OUTER = 5.8
TRAIL_GLOW_WEIGHT = 0.7
TRAIL_SCALE_BASE = 0.8         # size *= TRAIL_SCALE_BASE + TRAIL_SCALE_BOOST * trail
TRAIL_SCALE_BOOST = 0.5
TRAIL_OPACITY_BASE = 0.2
TRAIL_OPACITY_BOOST = 0.8


# ============================================================================
# Thermal Field
# ============================================================================

SUN_POSITION = (0.0, 0.0)
SUN_BASE_INTENSITY = 4.8
SUN_SPREAD = 12.0
FIELD_DIFFUSION = 0.8          # Emitter sigma^2 grows by 2*D*age
FIELD_EPSILON = 1e-3           # Emitters weaker than this are pruned

EMITTER_INTENSITY_DEFAULT = 6.0
EMITTER_SPREAD_DEFAULT = 1.2
EMITTER_DECAY_DEFAULT = 1.0

HEAT_PULSE_STEP = 0.9          # Added per click
HEAT_PULSE_DECAY = 0.98        # Multiplied once per tick

HEAT_RING_RADIUS = 6.0
HEAT_RING_BASE = 0.78
HEAT_RING_PULSE = 0.22
HEAT_RING_PULSE_MAX = 3.0


# ============================================================================
# Panic (click scare)
# ============================================================================

PANIC_DURATION = 0.9           # Seconds after a click
PANIC_RADIUS_MUL = 1.15        # Times the heat-ring visual radius
PANIC_PUSH = 14.0


# ============================================================================
# Trail Grid (slime-mold chemotaxis)
# ============================================================================

TRAIL_BOUND_RADIUS = 100.0
TRAIL_GRID_SIZE = 128
TRAIL_DEPOSIT_AMOUNT = 3.0
TRAIL_DECAY_RATE = 0.96
TRAIL_TARGET_DT = 1.0 / 60.0   # Reference frame for frame-independent decay

SENSOR_DISTANCE = 12.0
SENSOR_ANGLE = math.pi / 4.0
TRAIL_FOLLOW_WEIGHT = 1.5
TRAIL_ACTIVATION = 0.001
TRAIL_MAX_VIS_VALUE = 1.5      # Cell value that reads as full strength

TRAIL_MAX_POINTS = 220         # Per-agent trail history length


# ============================================================================
# Nutrients / Wander / Fallback
# ============================================================================

NUTRIENT_INNER_R = 1.0
NUTRIENT_OUTER_R = 6.0
NUTRIENT_WEIGHT = 0.7

WANDER_AMPLITUDE = 0.3
WANDER_RATE = 0.8
WANDER_FREQ_X = 1.7
WANDER_FREQ_Z = 1.3

FALLBACK_THRESHOLD = 0.18
FALLBACK_GAIN = 0.45


# ============================================================================
# Life Cycle
# ============================================================================

SURVIVAL_RATE = 0.4
DEATH_DURATION = 2.0
SURVIVORS_WINDOW = 1.0
NEWBORN_DURATION = 1.0
DYING_SINK_RATE = 0.15


# ============================================================================
# Genetic Algorithm
# ============================================================================

POPULATION_SIZE = 40
MUTATION_RATE = 0.15
CROSSOVER_RATE = 0.9
TOURNAMENT_SIZE = 3
GENERATION_PERIOD = 10.0       # Seconds of simulated time between transitions

PATTERN_COUNT = 5
INITIAL_PATTERN_ID = 0         # Gen0 shares one pattern
SURVIVOR_PATTERN_ID = 2        # Pattern the environment ends up favoring
PATTERN_RAMP_GENERATIONS = 20

# Fitness weights (normalized by their sum)
PALETTE_WEIGHT = 1.5
PATTERN_WEIGHT = 1.5
SIZE_WEIGHT = 1.0
MOVEMENT_WEIGHT = 1.0

# Mutation step sizes (fraction of each gene's valid range)
HUE_MUTATION_DEGREES = 40.0
VALUE_MUTATION_STRENGTH = 0.2
BODY_SCALE_MUTATION_STRENGTH = 0.2
BASE_SPEED_MUTATION_STRENGTH = 0.2
SHOWOFF_MUTATION_STRENGTH = 0.3


# ============================================================================
# Spawning
# ============================================================================

AGENT_COUNT = POPULATION_SIZE
TERRAIN_SIZE = 200.0
SPAWN_RADIUS_MAX = 16.0
SPAWN_TRIES = 240
INITIAL_VELOCITY_SPREAD = 0.3
WANDER_PHASE_SPAN = 1000.0


# ============================================================================
# Telemetry
# ============================================================================

TICK_TIME_WINDOW = 100         # Rolling average window (ticks)
ACTIVITY_SPEED_MAX = 2.2       # Mean speed that maps to the top activity level
ACTIVITY_LEVEL_MAX = 5.0
