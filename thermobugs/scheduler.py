"""
Scheduled-event queue keyed by simulated time.

Deferred work (the generational replacement after the death animation)
is queued here and drained inside tick(), so runs stay single-threaded
and replayable without wall-clock timers.
"""

import heapq
import itertools
from dataclasses import dataclass, field
from typing import Any, List, Tuple

REPLACE_GENERATION = "replace_generation"


@dataclass
class ScheduledEvent:
    """
    One pending action.

    Attributes:
        name: Event kind (e.g. REPLACE_GENERATION)
        payload: Event data (for REPLACE_GENERATION, the doomed slot indices)
        due_time: Simulated time at which the event fires
    """
    name: str
    payload: Any = None
    due_time: float = 0.0


class EventQueue:
    """Min-heap of (due_time, seq, event); seq keeps insertion order on ties"""

    def __init__(self):
        self._heap: List[Tuple[float, int, ScheduledEvent]] = []
        self._counter = itertools.count()
        self.now: float = 0.0

    def __len__(self) -> int:
        return len(self._heap)

    @property
    def pending(self) -> bool:
        return bool(self._heap)

    def schedule(self, delay: float, name: str, payload: Any = None) -> ScheduledEvent:
        """Queue an event `delay` seconds after the queue's current time"""
        event = ScheduledEvent(name=name, payload=payload, due_time=self.now + max(0.0, float(delay)))
        heapq.heappush(self._heap, (event.due_time, next(self._counter), event))
        return event

    def has_pending(self, name: str) -> bool:
        return any(entry[2].name == name for entry in self._heap)

    def pop_due(self, now: float) -> List[ScheduledEvent]:
        """
        Advance the queue clock and remove every event due at or before it.

        Returns:
            Due events, ordered by due time then insertion order
        """
        self.now = float(now)
        due = []
        while self._heap and self._heap[0][0] <= self.now:
            due.append(heapq.heappop(self._heap)[2])
        return due

    def cancel_all(self) -> int:
        """Drop every pending event; returns how many were dropped"""
        count = len(self._heap)
        self._heap.clear()
        return count
