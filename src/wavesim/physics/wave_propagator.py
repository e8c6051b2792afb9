from typing import Optional

import numpy as np
from loguru import logger as log

from wavesim.parameters import ConfigurationError, SimulationParameters
from wavesim.physics.boundary import BoundaryHandler
from wavesim.physics.coefficients import CoefficientFields
from wavesim.physics.grid_buffer import GridBuffer
from wavesim.physics.stencil import StencilKind, StencilOperator
from wavesim.types import ArrayType


class WavePropagator:
    """
    2D FDTD wave equation propagator.

    Implements explicit leap-frog time stepping of

        d2u/dt2 = c^2 * laplacian(u)

    on a uniform (dimx, dimy) grid:

        rotate layers   u2 <- u1 <- u0
        interior        u0 = Tau * laplacian(u1) + 2 * u1 - u2
        boundary band   Mur absorbing condition, or zero band + uniform decay

    with Tau = (c * dt / dx)^2. The Laplacian is the 5-point stencil for
    boundary margin 1 and the wide 9-point-per-axis stencil for margin 4.

    Stability requires c * dt / dx <= 1; this is not enforced.

    Parameters
    ----------
    params : SimulationParameters
        Grid shape, physical constants and boundary settings.
    backend : np or cp
        Array module for the grid and coefficient fields.
    use_matrix : bool
        Apply the Laplacian as a precomputed sparse matrix.
    coefficients : CoefficientFields, optional
        Use these Tau/Kappa fields (e.g. a heterogeneous medium) instead of
        deriving uniform ones from `params`.
    """

    def __init__(self, params: SimulationParameters, backend=np,
                 use_matrix: bool = False,
                 coefficients: Optional[CoefficientFields] = None):
        self.params = params
        self.xp = backend
        self.use_matrix = use_matrix

        # Everything that can reject the configuration runs before the grid exists.
        kind = StencilKind.from_margin(params.boundary_margin)
        self.stencil = StencilOperator(kind, params.shape, backend=backend, use_matrix=use_matrix)
        if coefficients is None:
            coefficients = CoefficientFields.from_parameters(params, backend=backend)
        if tuple(coefficients.shape) != params.shape:
            err = f"Coefficient shape {coefficients.shape} does not match grid shape {params.shape}."
            log.error(err)
            raise ConfigurationError(err)
        self.coefficients = coefficients
        self.boundary = BoundaryHandler(
            margin=kind.margin,
            use_absorbing_boundary=params.use_absorbing_boundary,
            decay_factor=params.decay_factor,
        )

        self.grid = GridBuffer(params.shape, backend=backend)
        log.info(
            f"WavePropagator ready: shape={params.shape}, stencil={kind.name}, "
            f"absorbing={params.use_absorbing_boundary}, matrix={use_matrix}"
        )

    @property
    def margin(self) -> int:
        return self.stencil.margin

    def configure_boundary(self, use_absorbing_boundary: bool, decay_factor: float) -> None:
        self.boundary.use_absorbing_boundary = use_absorbing_boundary
        self.boundary.decay_factor = decay_factor

    def step(self) -> None:
        self.grid.rotate()
        self.stencil.apply(self.grid, self.coefficients.tau)
        self.boundary.apply(self.grid, self.coefficients.kappa)

    def get_state(self) -> ArrayType:
        return self.grid.current

    def reset(self) -> None:
        self.grid = GridBuffer(self.params.shape, backend=self.xp)
