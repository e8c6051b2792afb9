from typing import Iterable, NamedTuple, Optional
import math

from loguru import logger as log

from wavesim.parameters import SimulationParameters
from wavesim.physics.grid_buffer import GridBuffer
from wavesim.types import Cell, Shape


class ForceEvent(NamedTuple):
    """A request to set one cell, in grid coordinates (x along dimx, y along dimy)."""
    x: float
    y: float
    amplitude: Optional[float] = None   # None: use the configured forcing amplitude


def resolve_cell(x: float, y: float, shape: Shape) -> Optional[Cell]:
    """
    Round (x, y) to the nearest cell, halves away from zero.

    Returns None unless 0 < ix < dimx and 0 < iy < dimy. Index 0 of either
    axis is rejected as well as anything past the far edge.
    """
    if not (math.isfinite(x) and math.isfinite(y)):
        return None
    ix = int(math.floor(x + 0.5))
    iy = int(math.floor(y + 0.5))
    dimx, dimy = shape
    if 0 < ix < dimx and 0 < iy < dimy:
        return ix, iy
    return None


class ForceInjector:
    """Writes force events into layer 0 as hard sources (overwrite, never add)."""

    def apply(self, grid: GridBuffer, params: SimulationParameters,
              events: Iterable[ForceEvent]) -> int:
        """
        Apply `events` in order; later events win on the same cell.

        Out-of-range events are dropped silently. Returns the number applied.
        """
        u0 = grid.current
        applied = 0
        for event in events:
            cell = resolve_cell(event.x, event.y, params.shape)
            if cell is None:
                continue
            amplitude = params.forcing_amplitude if event.amplitude is None else event.amplitude
            u0[cell] = amplitude
            applied += 1
        if applied:
            log.trace(f"Injected {applied} force event(s)")
        return applied
