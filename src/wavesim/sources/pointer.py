from collections import deque
from typing import List

from wavesim.parameters import SimulationParameters
from wavesim.sources.base import ForceSourceBase
from wavesim.sources.injector import ForceEvent


class PointerForceSource(ForceSourceBase):
    """
    Queue of click/pointer impulses in grid coordinates.

    The presentation layer pushes events at any time between ticks; each tick
    drains the whole queue in insertion order.
    """

    def __init__(self, name: str = "Pointer"):
        super().__init__(name=name)
        self._queue: deque[ForceEvent] = deque()

    def push(self, x: float, y: float) -> None:
        self._queue.append(ForceEvent(float(x), float(y)))

    @property
    def pending(self) -> int:
        return len(self._queue)

    def __call__(self, t: float, dt: float, params: SimulationParameters) -> List[ForceEvent]:
        events = list(self._queue)
        self._queue.clear()
        return events

    def reset(self) -> None:
        self._queue.clear()
