from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from wavesim.parameters import SimulationParameters
from wavesim.sources.injector import ForceEvent


class ForceSourceBase(ABC):
    """
    Base class for anything that forces the wave field.

    A source is called once per tick and returns the events to inject into
    the newest layer during that tick.

    Parameters
    ----------
    name : str
        Human-readable label, unique within an engine.
    """

    def __init__(self, *, name: Optional[str] = None):
        if name is None:
            raise ValueError(
                "All force sources must specify a `name`.")

        self.name = name
        self._subscribers: dict[str, list[Callable]] = {}

    @abstractmethod
    def __call__(self, t: float, dt: float, params: SimulationParameters) -> List[ForceEvent]:
        """
        Return the force events for the tick starting at time `t` and lasting `dt`.
        """
        pass

    def reset(self) -> None:
        """Forget any internal state (timers, pending events)."""
        pass

    def subscribe(self, event: str, fn: Callable) -> None:
        """
        Register **fn** as a listener for *event*.

        Parameters
        ----------
        event : str
            Name of the event (e.g. ``"fired"``).
        fn : Callable
            Callback invoked as ``fn(*args, **kwargs)`` whenever the event is
            emitted.
        """
        self._subscribers.setdefault(event, []).append(fn)

    def _emit(self, event: str, *args, **kw):
        """Internal: invoke all callbacks previously registered for *event*."""
        for fn in self._subscribers.get(event, []):
            fn(*args, **kw)
