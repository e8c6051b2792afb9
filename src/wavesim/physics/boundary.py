from typing import Tuple

from wavesim.physics.grid_buffer import GridBuffer
from wavesim.types import ArrayType

DEFAULT_DECAY_FACTOR = 0.995

# Edges are patched in this order; later edges overwrite shared corner cells.
EDGE_ORDER: Tuple[str, ...] = ("far_x", "near_x", "far_y", "near_y")


class BoundaryHandler:
    """
    Fills the boundary band of layer 0 after the interior update.

    Absorbing mode applies a first-order Mur condition to each edge strip of
    width `margin`:

        u0[b] = r * (u0[b_in] - u1[b]) + u1[b_in],   r = (kappa - 1) / (kappa + 1)

    where b_in is the neighbour of b one cell towards the interior. Each strip
    is swept from the interior outwards so u0[b_in] is always this tick's
    value. Strips span the whole edge; corner blocks end up with the value of
    the last edge in EDGE_ORDER.

    Damping mode holds the band at zero and scales the whole layer by
    `decay_factor`, a crude stand-in for energy leaving the domain.
    """

    def __init__(self, margin: int, use_absorbing_boundary: bool,
                 decay_factor: float = DEFAULT_DECAY_FACTOR):
        self.margin = margin
        self.use_absorbing_boundary = use_absorbing_boundary
        self.decay_factor = decay_factor

    def apply(self, grid: GridBuffer, kappa: ArrayType) -> None:
        if self.use_absorbing_boundary:
            self._apply_absorbing(grid.full(0), grid.full(1), kappa)
        else:
            self._apply_damping(grid.full(0))

    def _apply_absorbing(self, u0: ArrayType, u1: ArrayType, kappa: ArrayType) -> None:
        m = self.margin
        dimx, dimy = u0.shape
        r = (kappa - 1) / (kappa + 1)

        # far-x
        for i in range(dimx - m, dimx):
            u0[i, :] = r[i, :] * (u0[i - 1, :] - u1[i, :]) + u1[i - 1, :]
        # near-x
        for i in range(m - 1, -1, -1):
            u0[i, :] = r[i, :] * (u0[i + 1, :] - u1[i, :]) + u1[i + 1, :]
        # far-y
        for j in range(dimy - m, dimy):
            u0[:, j] = r[:, j] * (u0[:, j - 1] - u1[:, j]) + u1[:, j - 1]
        # near-y
        for j in range(m - 1, -1, -1):
            u0[:, j] = r[:, j] * (u0[:, j + 1] - u1[:, j]) + u1[:, j + 1]

    # The band is held at zero before the decay, which makes the edges
    # reflecting walls. Leaving it untouched would keep the scratch values
    # rotated in from two ticks ago.
    def _apply_damping(self, u0: ArrayType) -> None:
        m = self.margin
        u0[:m, :] = 0
        u0[-m:, :] = 0
        u0[:, :m] = 0
        u0[:, -m:] = 0
        u0 *= self.decay_factor
