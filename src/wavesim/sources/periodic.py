from typing import List, Optional, Tuple
import math

from loguru import logger as log

from wavesim.parameters import SimulationParameters
from wavesim.sources.base import ForceSourceBase
from wavesim.sources.injector import ForceEvent
from wavesim.types import Cell


class RepeatingTimer:
    """Fires once whenever accumulated time reaches `period`; the remainder carries over."""

    def __init__(self, period: float):
        self.period = period
        self.elapsed = 0.0

    def tick(self, delta: float) -> bool:
        self.elapsed += delta
        if self.period <= 0 or self.elapsed < self.period:
            return False
        self.elapsed %= self.period
        return True

    def reset(self) -> None:
        self.elapsed = 0.0


class PeriodicPointSource(ForceSourceBase):
    """
    Drives a single cell at the configured forcing frequency.

    Parameters:
        position (Optional[Tuple[float, float]]): Normalised (x, y) in [0, 1]
            of the driven cell. Defaults to the parameters' source cell at
            two thirds of each axis. The cell is clamped out of the
            boundary band.
        name (str): Display name.

    Waveforms (``params.forcing_waveform``):
        - "pulse": once per period 1 / f, the cell is set to the forcing amplitude.
        - "sine": every tick, the cell is set to amplitude * sin(2π f t).

    Nothing is emitted while ``params.apply_force`` is off or f == 0.
    Subscribers of ``"fired"`` get ``(x, y, amplitude)`` for every pulse.
    """

    def __init__(self, position: Optional[Tuple[float, float]] = None,
                 name: str = "Periodic Source"):
        super().__init__(name=name)

        if position is not None and (
                position[0] < 0 or position[0] > 1.0 or
                position[1] < 0 or position[1] > 1.0):
            err = f"Position {position} must be in range [0, 1] for both x and y coordinates."
            log.error(err)
            raise ValueError(err)

        self.position = position
        self.timer = RepeatingTimer(period=0.0)
        self.elapsed = 0.0

    def cell(self, params: SimulationParameters) -> Cell:
        if self.position is None:
            return params.source_cell
        return params.clamp_to_interior(
            int(self.position[0] * (params.dimx - 1)),
            int(self.position[1] * (params.dimy - 1)),
        )

    def __call__(self, t: float, dt: float, params: SimulationParameters) -> List[ForceEvent]:
        elapsed = self.elapsed
        self.elapsed += dt

        freq = params.forcing_frequency_hz
        if not params.apply_force or freq <= 0:
            return []

        x, y = self.cell(params)
        if params.forcing_waveform == "sine":
            amplitude = params.forcing_amplitude * math.sin(2 * math.pi * freq * elapsed)
            return [ForceEvent(x, y, amplitude)]

        self.timer.period = 1.0 / freq
        if not self.timer.tick(dt):
            return []
        self._emit("fired", x, y, params.forcing_amplitude)
        return [ForceEvent(x, y, params.forcing_amplitude)]

    def reset(self) -> None:
        self.timer.reset()
        self.elapsed = 0.0
