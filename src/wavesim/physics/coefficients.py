from typing import Tuple

import numpy as np
from loguru import logger as log

from wavesim.parameters import SimulationParameters, ConfigurationError
from wavesim.types import ArrayType


class CoefficientFields:
    """
    Per-cell factors of the update equations.

    Tau   = ((c * dt) / dx)^2   scales the Laplacian in the interior update.
    Kappa = (c * dt) / dx       enters the absorbing boundary.

    Both are full (dimx, dimy) float32 fields, so heterogeneous media only
    need a velocity field instead of a single speed.
    """

    def __init__(self, tau: ArrayType, kappa: ArrayType):
        assert tau.shape == kappa.shape, \
            f"Tau shape {tau.shape} does not match Kappa shape {kappa.shape}."
        self.tau = tau
        self.kappa = kappa

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.tau.shape

    @classmethod
    def from_parameters(cls, params: SimulationParameters, backend=np) -> "CoefficientFields":
        xp = backend
        courant = cls._courant(params.wave_velocity, params.time_step, params.spatial_step)
        log.info(f"Coefficient fields for {params.shape}: courant={courant:.4f}")
        return cls(
            tau=xp.full(params.shape, courant ** 2, dtype=xp.float32),
            kappa=xp.full(params.shape, courant, dtype=xp.float32),
        )

    @classmethod
    def from_velocity_field(cls, velocity: ArrayType, time_step: float,
                            spatial_step: float, backend=np) -> "CoefficientFields":
        """Build the fields for a medium with a per-cell wave velocity."""
        xp = backend
        courant = cls._courant(xp.asarray(velocity, dtype=xp.float32), time_step, spatial_step)
        return cls(
            tau=(courant ** 2).astype(xp.float32),
            kappa=courant.astype(xp.float32),
        )

    @staticmethod
    def _courant(velocity, time_step: float, spatial_step: float):
        if spatial_step <= 0:
            err = f"Spatial step must be positive, got {spatial_step}."
            log.error(err)
            raise ConfigurationError(err)
        return velocity * time_step / spatial_step


def init(params: SimulationParameters, backend=np) -> Tuple[ArrayType, ArrayType]:
    """Return (Tau, Kappa) for `params`."""
    fields = CoefficientFields.from_parameters(params, backend=backend)
    return fields.tau, fields.kappa
