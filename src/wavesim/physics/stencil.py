from enum import Enum
from typing import Tuple, List

import numpy as np
from scipy.sparse import coo_matrix, csr_matrix
from loguru import logger as log

from wavesim.parameters import ConfigurationError
from wavesim.physics.grid_buffer import GridBuffer
from wavesim.types import ArrayType, Shape


class StencilKind(Enum):
    """Finite-difference Laplacian; the value is the stencil half-width."""
    ORDER_1 = 1
    ORDER_4 = 4

    @property
    def margin(self) -> int:
        return self.value

    @classmethod
    def from_margin(cls, margin: int) -> "StencilKind":
        for kind in cls:
            if kind.margin == margin:
                return kind
        err = f"No stencil with boundary margin {margin}; supported: {[k.margin for k in cls]}."
        log.error(err)
        raise ConfigurationError(err)


# (centre weight for both axes combined, weights for offsets ±1, ±2, ... per axis)
STENCIL_WEIGHTS = {
    StencilKind.ORDER_1: (-4.0, (1.0,)),
    StencilKind.ORDER_4: (-410.0 / 72.0, (8.0 / 5.0, -1.0 / 5.0, 8.0 / 315.0, -1.0 / 560.0)),
}


def stencil_taps(kind: StencilKind) -> List[Tuple[int, int, float]]:
    """Flat list of (offset_x, offset_y, weight) for `kind`."""
    centre, weights = STENCIL_WEIGHTS[kind]
    taps = [(0, 0, centre)]
    for k, w in enumerate(weights, start=1):
        taps += [(-k, 0, w), (k, 0, w), (0, -k, w), (0, k, w)]
    return taps


def build_stencil_matrix(shape: Shape, kind: StencilKind) -> csr_matrix:
    """
    Sparse (N, N) Laplacian over a row-major flattened (dimx, dimy) grid.

    Rows of interior cells hold the stencil taps; rows of boundary-band cells
    are empty, so the product is zero there.
    """
    dimx, dimy = shape
    m = kind.margin
    N = dimx * dimy

    ix, iy = np.meshgrid(np.arange(m, dimx - m), np.arange(m, dimy - m), indexing="ij")
    ix, iy = ix.ravel(), iy.ravel()
    rows_i = ix * dimy + iy

    rows, cols, data = [], [], []
    for ox, oy, w in stencil_taps(kind):
        rows.append(rows_i)
        cols.append((ix + ox) * dimy + (iy + oy))
        data.append(np.full(rows_i.shape, w, dtype=np.float32))

    L = coo_matrix(
        (np.concatenate(data), (np.concatenate(rows), np.concatenate(cols))),
        shape=(N, N),
    )
    return L.tocsr()


class StencilOperator:
    """
    Leap-frog interior update of the 2D wave equation.

        u0 = Tau * laplacian(u1) + 2 * u1 - u2

    evaluated on [margin, dim - margin) of both axes only. Cells in the
    boundary band are never written here.

    Parameters
    ----------
    kind : StencilKind
        ORDER_1 (5-point) or ORDER_4 (9 points per axis).
    shape : tuple
        Grid shape (dimx, dimy).
    backend : np or cp
        Array module of the fields.
    use_matrix : bool
        If True, apply a precomputed sparse Laplacian instead of array slices.
    """

    def __init__(self, kind: StencilKind, shape: Shape,
                 backend=np, use_matrix: bool = False):
        self.kind = kind
        self.shape = tuple(shape)
        self.xp = backend
        self.use_matrix = use_matrix

        m = kind.margin
        for name, dim in zip(("dimx", "dimy"), self.shape):
            if dim <= 2 * m:
                err = f"{name}={dim} is too small for a stencil of margin {m}."
                log.error(err)
                raise ConfigurationError(err)

        if use_matrix:
            self._init_matrix()
            self.laplacian = self._laplacian_matrix
        else:
            self.laplacian = self._laplacian_stencil

    @property
    def margin(self) -> int:
        return self.kind.margin

    def _init_matrix(self) -> None:
        log.info(f"Building {self.kind.name} Laplacian matrix for {self.shape}...")
        L_csr = build_stencil_matrix(self.shape, self.kind)
        if self.xp is np:
            self.L = L_csr
        else:
            import cupyx.scipy.sparse                # lazy-import cupyx
            self.L = cupyx.scipy.sparse.csr_matrix(L_csr)
        log.info("✅ Stencil matrix constructed.")

    def interior(self, field: ArrayType) -> ArrayType:
        return self._shifted(field, 0, 0)

    def _shifted(self, field: ArrayType, ox: int, oy: int) -> ArrayType:
        m = self.margin
        dimx, dimy = self.shape
        return field[m + ox:dimx - m + ox, m + oy:dimy - m + oy]

    def _laplacian_stencil(self, u: ArrayType) -> ArrayType:
        centre, weights = STENCIL_WEIGHTS[self.kind]
        lap = centre * self._shifted(u, 0, 0)
        for k, w in enumerate(weights, start=1):
            lap = lap + w * (
                self._shifted(u, -k, 0) + self._shifted(u, k, 0)
                + self._shifted(u, 0, -k) + self._shifted(u, 0, k)
            )
        return lap

    def _laplacian_matrix(self, u: ArrayType) -> ArrayType:
        full = (self.L @ u.ravel()).reshape(self.shape)
        return self.interior(full)

    def apply(self, grid: GridBuffer, tau: ArrayType) -> None:
        """Write the interior of layer 0 from layers 1 and 2."""
        u1 = grid.full(1)
        u2 = grid.full(2)
        grid.interior(self.margin)[:] = (
            self.interior(tau) * self.laplacian(u1) + 2 * self.interior(u1) - self.interior(u2)
        )
