import math

from wavesim.parameters import SimulationParameters
from wavesim.sources.base import ForceSourceBase
from wavesim.sources.injector import ForceEvent


def small_params(**overrides) -> SimulationParameters:
    conf = dict(
        dimx=16, dimy=16,
        spatial_step=1.0, time_step=1.0, wave_velocity=0.5,
        boundary_margin=1,
        apply_force=False,
    )
    conf.update(overrides)
    return SimulationParameters(**conf)


class MockSource(ForceSourceBase):
    def __init__(self, x, y, name="mock"):
        super().__init__(name=name)
        self.x = x
        self.y = y
        self.calls = 0

    def __call__(self, t, dt, params):
        self.calls += 1
        return [ForceEvent(self.x, self.y, math.sin(t) + 1.0)]
