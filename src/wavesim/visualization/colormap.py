from collections import deque
from typing import Union

import numpy as np
import matplotlib

from wavesim.types import ArrayType

DEFAULT_STRETCH = 0.8


def sigmoid(amplitude: Union[float, ArrayType], stretch: float = DEFAULT_STRETCH):
    """
    Logistic squashing of an amplitude into (0, 1).

        color = 1 / (1 + exp(-amplitude / stretch))

    Works on scalars and on numpy arrays; CuPy arrays should go through
    `to_numpy` first.
    """
    return 1.0 / (1.0 + np.exp(-(np.asarray(amplitude, dtype=np.float32) / stretch)))


def amplitude_to_rgb(field: np.ndarray, stretch: float = DEFAULT_STRETCH) -> np.ndarray:
    """
    Map a (dimx, dimy) field to RGB with red = sigmoid(u), green = 0, blue = 1.

    Returns a float32 array of shape (dimx, dimy, 3).
    """
    field = np.asarray(field, dtype=np.float32)
    rgb = np.zeros(field.shape + (3,), dtype=np.float32)
    rgb[..., 0] = sigmoid(field, stretch)
    rgb[..., 2] = 1.0
    return rgb


def log_normalize(field: np.ndarray, max_amplitude: float) -> np.ndarray:
    """
    Logarithmic brightness for mesh shading: ln(48 * u / max_amplitude + 1) / 4.

    Values at or below -max_amplitude / 48 have no logarithm and come out as NaN.
    """
    scaled = np.asarray(field, dtype=np.float32) / max_amplitude
    with np.errstate(invalid="ignore", divide="ignore"):
        return np.log(scaled * 48.0 + 1.0) / 4.0


def colorize(field: np.ndarray, cmap: str = "inferno") -> np.ndarray:
    """
    Min-max normalise `field` and run it through a matplotlib colormap.

    Returns RGBA floats of shape field.shape + (4,).
    """
    field = np.asarray(field, dtype=np.float32)
    z_norm = (field - field.min()) / (field.max() - field.min() + 1e-8)
    return matplotlib.colormaps[cmap](z_norm)


class AmplitudeTracker:
    """
    Rolling average of per-frame maximum amplitudes, used as display scale.

    The average is clamped to [lower, upper] so a silent field does not blow
    up the colours and a loud one does not wash them out.
    """

    def __init__(self, window: int = 10, lower: float = 0.1, upper: float = 0.9):
        self.lower = lower
        self.upper = upper
        self.history: deque[float] = deque([0.0] * window, maxlen=window)
        self.max_amplitude = lower

    def update(self, field: np.ndarray) -> float:
        self.history.appendleft(float(np.max(field)))
        avg = sum(self.history) / len(self.history)
        self.max_amplitude = float(np.clip(avg, self.lower, self.upper))
        return self.max_amplitude
