"""
Life-cycle state machine.

States: ALIVE, DYING, DEAD, NEWBORN. Every transition into DYING or
NEWBORN (and resurrection out of DEAD) is triggered from outside by the
generational orchestrator; the machine itself only finishes animations:

    ALIVE --mark_selection(doomed)--> DYING --death_duration--> DEAD
    DEAD  --mark_selection(survivor)--> ALIVE
    any   --mark_newborn--> NEWBORN --newborn_duration--> ALIVE

life_scale / life_visibility are [0, 1] multipliers for rendering and
the glow gate. They never enter the force equations.
"""

import operator
from typing import Iterable, List, Optional

from .agent import Agent, LifeState
from .data_types import LifeConfig
from .spatial import clamp


def slot_index(idx, count: int) -> Optional[int]:
    """Integer slot in [0, count), or None for anything else (None, floats, out of range)"""
    try:
        i = operator.index(idx)
    except TypeError:
        return None
    if 0 <= i < count:
        return i
    return None


def _slot(agents: List[Agent], idx) -> Optional[Agent]:
    """Agent at a slot index, or None for anything out of range"""
    i = slot_index(idx, len(agents))
    return None if i is None else agents[i]


def resurrect(agent: Agent):
    """DEAD -> ALIVE with full scale/visibility and a fresh trail"""
    agent.state = LifeState.ALIVE
    agent.death_t = 0.0
    agent.newborn_t = 0.0
    agent.life_scale = 1.0
    agent.life_visibility = 1.0
    agent.sink_offset = 0.0
    agent.restart_trail()


def mark_selection(agents: List[Agent], survivor_indices: Iterable[int], doomed_indices: Iterable[int]):
    """
    Apply a GA evaluation to the population.

    Survivors that are DEAD come back to life; other survivors are left
    as they are. Doomed slots start dying. Out-of-range indices are ignored.
    """
    for idx in survivor_indices:
        agent = _slot(agents, idx)
        if agent is None:
            continue
        if agent.state is LifeState.DEAD:
            resurrect(agent)

    for idx in doomed_indices:
        agent = _slot(agents, idx)
        if agent is None:
            continue
        if agent.state is LifeState.DEAD:
            # Already gone; its slot simply waits for a newborn
            continue
        agent.state = LifeState.DYING
        agent.death_t = 0.0
        agent.sink_offset = 0.0
        agent.life_scale = 1.0
        agent.life_visibility = 1.0


def mark_newborn(agents: List[Agent], indices: Iterable[int]):
    """Slots that just received a bred genome fade in from nothing"""
    for idx in indices:
        agent = _slot(agents, idx)
        if agent is None:
            continue
        agent.state = LifeState.NEWBORN
        agent.newborn_t = 0.0
        agent.death_t = 0.0
        agent.life_scale = 0.0
        agent.life_visibility = 0.0
        agent.sink_offset = 0.0
        agent.restart_trail()


def advance_life(agent: Agent, dt: float, config: LifeConfig) -> bool:
    """
    Advance the death/birth animation by dt.

    DYING agents fade 1 -> 0 linearly and sink slowly; NEWBORN agents ease
    0 -> 1 with smoothstep. ALIVE agents are pinned at full scale.

    Returns:
        True if the agent should take part in this tick's physics
        (i.e. it is not DEAD after the update)
    """
    if agent.state is LifeState.DEAD:
        return False

    if agent.state is LifeState.DYING:
        agent.death_t += dt
        t = clamp(agent.death_t / max(config.death_duration, 1e-9), 0.0, 1.0)
        fade = 1.0 - t
        agent.life_scale = fade
        agent.life_visibility = fade
        agent.sink_offset += dt * config.sink_rate * fade
        if t >= 1.0:
            agent.state = LifeState.DEAD
            agent.life_scale = 0.0
            agent.life_visibility = 0.0
            return False
        return True

    if agent.state is LifeState.NEWBORN:
        agent.newborn_t += dt
        t = clamp(agent.newborn_t / max(config.newborn_duration, 1e-9), 0.0, 1.0)
        eased = t * t * (3.0 - 2.0 * t)
        agent.life_scale = eased
        agent.life_visibility = eased
        if t >= 1.0:
            agent.state = LifeState.ALIVE
            agent.death_t = 0.0
            agent.life_scale = 1.0
            agent.life_visibility = 1.0
        return True

    agent.life_scale = 1.0
    agent.life_visibility = 1.0
    return True
