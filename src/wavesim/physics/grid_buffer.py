from typing import List

import numpy as np

from wavesim.types import ArrayType, Shape

NUM_LAYERS = 3


class GridBuffer:
    """
    Three time layers of a 2D scalar field.

    Layer 0 is the step being computed (or just computed), layer 1 the
    previous step and layer 2 the step before that. The layers are separate
    arrays of shape (dimx, dimy); rotating only swaps references so no data
    is copied and no memory is allocated.

    Parameters
    ----------
    shape : tuple
        Grid shape (dimx, dimy).
    backend : np or cp
        Array module the layers are allocated with.
    """

    def __init__(self, shape: Shape, backend=np):
        self.shape = tuple(shape)
        self.xp = backend
        self.layers: List[ArrayType] = [
            self.xp.zeros(self.shape, dtype=self.xp.float32) for _ in range(NUM_LAYERS)
        ]

    def rotate(self) -> None:
        # 2 <-> 1, then 1 <-> 0: history moves one layer back and the oldest
        # array becomes the scratch layer 0.
        layers = self.layers
        layers[2], layers[1] = layers[1], layers[2]
        layers[1], layers[0] = layers[0], layers[1]

    def full(self, layer: int = 0) -> ArrayType:
        return self.layers[layer]

    def interior(self, margin: int, layer: int = 0) -> ArrayType:
        """Mutable view of [margin, dim - margin) on both axes of `layer`."""
        dimx, dimy = self.shape
        return self.layers[layer][margin:dimx - margin, margin:dimy - margin]

    @property
    def current(self) -> ArrayType:
        return self.layers[0]

    @property
    def previous(self) -> ArrayType:
        return self.layers[1]

    @property
    def older(self) -> ArrayType:
        return self.layers[2]

    def as_array(self) -> ArrayType:
        """Copy of all layers stacked as (3, dimx, dimy)."""
        return self.xp.stack(self.layers)

    def clear(self) -> None:
        for layer in self.layers:
            layer[:] = 0
