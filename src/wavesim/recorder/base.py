from abc import ABC, abstractmethod

import numpy as np


class RecorderBase(ABC):
    """Minimal interface every field recorder must implement."""

    @abstractmethod
    def start(self, fps: float) -> None: ...

    @abstractmethod
    def stop(self) -> None: ...

    @abstractmethod
    def feed_field(self, field: np.ndarray) -> None: ...

    @property
    @abstractmethod
    def is_recording(self) -> bool: ...
