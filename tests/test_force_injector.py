import math

import numpy as np
import pytest

from wavesim.physics.grid_buffer import GridBuffer
from wavesim.sources.base import ForceSourceBase
from wavesim.sources.injector import ForceEvent, ForceInjector, resolve_cell
from wavesim.sources.periodic import PeriodicPointSource, RepeatingTimer
from wavesim.sources.pointer import PointerForceSource

from utils import small_params


@pytest.mark.parametrize("x, y", [
    (0, 5), (5, 0), (16, 5), (5, 16), (15.5, 3), (-0.4, 3), (float("nan"), 3), (3, float("inf")),
])
def test_out_of_range_events_are_dropped(x, y):
    params = small_params()
    grid = GridBuffer(params.shape)

    applied = ForceInjector().apply(grid, params, [ForceEvent(x, y, 5.0)])

    assert applied == 0
    assert not grid.current.any()


def test_events_round_to_nearest_cell():
    assert resolve_cell(15.4, 3, (16, 16)) == (15, 3)
    assert resolve_cell(2.5, 2.5, (16, 16)) == (3, 3)
    assert resolve_cell(0.6, 1.2, (16, 16)) == (1, 1)
    assert resolve_cell(0.4, 1.2, (16, 16)) is None


def test_injection_overwrites_and_last_event_wins():
    params = small_params(forcing_amplitude=60.0)
    grid = GridBuffer(params.shape)
    grid.current[4, 4] = 100.0
    grid.current[7, 7] = -3.0

    events = [ForceEvent(4, 4, 1.0), ForceEvent(4.2, 3.9, 2.0), ForceEvent(7, 7)]
    applied = ForceInjector().apply(grid, params, events)

    assert applied == 3
    assert grid.current[4, 4] == 2.0
    assert grid.current[7, 7] == 60.0
    # history layers are never touched
    assert not grid.previous.any()
    assert not grid.older.any()


def test_repeating_timer_carries_remainder():
    timer = RepeatingTimer(period=1.0)
    fired = [timer.tick(0.375) for _ in range(8)]
    assert fired == [False, False, True, False, False, True, False, True]
    assert timer.elapsed == pytest.approx(0.0, abs=1e-9)


def test_periodic_pulse_fires_once_per_period():
    params = small_params(dimx=30, dimy=30, apply_force=True, forcing_frequency_hz=1.0,
                          forcing_waveform="pulse", tick_interval_ms=250.0)
    source = PeriodicPointSource()
    fired = []
    source.subscribe("fired", lambda *args: fired.append(args))

    dt = params.tick_interval_s
    calls = [source(i * dt, dt, params) for i in range(8)]

    hits = [i + 1 for i, events in enumerate(calls) if events]
    assert hits == [4, 8]
    assert calls[3] == [ForceEvent(20, 20, 60.0)]
    assert fired == [(20, 20, 60.0), (20, 20, 60.0)]


def test_periodic_sine_follows_elapsed_time():
    params = small_params(apply_force=True, forcing_frequency_hz=1.0,
                          forcing_waveform="sine", tick_interval_ms=250.0, forcing_amplitude=10.0)
    source = PeriodicPointSource()
    dt = params.tick_interval_s

    first = source(0.0, dt, params)
    second = source(dt, dt, params)

    assert first[0].amplitude == pytest.approx(0.0, abs=1e-9)
    assert second[0].amplitude == pytest.approx(10.0)
    assert (second[0].x, second[0].y) == params.source_cell


@pytest.mark.parametrize("overrides", [
    dict(apply_force=False, forcing_frequency_hz=1.0),
    dict(apply_force=True, forcing_frequency_hz=0.0),
])
def test_periodic_source_can_be_disabled(overrides):
    params = small_params(tick_interval_ms=250.0, **overrides)
    source = PeriodicPointSource()
    assert all(source(0.0, 0.25, params) == [] for _ in range(12))


def test_periodic_source_position():
    params = small_params(dimx=11, dimy=21)
    assert PeriodicPointSource(position=(0.5, 0.5)).cell(params) == (5, 10)
    with pytest.raises(ValueError):
        PeriodicPointSource(position=(1.5, 0.5))


def test_periodic_reset_restarts_timer():
    params = small_params(apply_force=True, tick_interval_ms=250.0)
    source = PeriodicPointSource()
    for _ in range(3):
        source(0.0, 0.25, params)
    source.reset()
    assert [bool(source(0.0, 0.25, params)) for _ in range(4)] == [False, False, False, True]


def test_pointer_drains_queue_in_order():
    params = small_params()
    pointer = PointerForceSource()
    pointer.push(3, 4)
    pointer.push(5.5, 6)
    assert pointer.pending == 2

    events = pointer(0.0, 0.027, params)

    assert events == [ForceEvent(3.0, 4.0), ForceEvent(5.5, 6.0)]
    assert pointer.pending == 0
    assert pointer(0.0, 0.027, params) == []


def test_pointer_reset_drops_pending():
    pointer = PointerForceSource()
    pointer.push(1, 1)
    pointer.reset()
    assert pointer.pending == 0


def test_sources_require_a_name():
    class Anonymous(ForceSourceBase):
        def __call__(self, t, dt, params):
            return []

    with pytest.raises(ValueError):
        Anonymous()
    assert Anonymous(name="quiet").name == "quiet"


def test_pointer_event_reaches_the_field():
    params = small_params(forcing_amplitude=60.0)
    grid = GridBuffer(params.shape)
    pointer = PointerForceSource()
    pointer.push(8.4, 7.6)

    ForceInjector().apply(grid, params, pointer(0.0, 0.027, params))

    assert grid.current[8, 8] == 60.0
    assert np.count_nonzero(grid.current) == 1
    assert not math.isnan(float(grid.current.sum()))


def test_periodic_position_is_kept_out_of_the_band():
    params = small_params(dimx=11, dimy=21, boundary_margin=1)
    assert PeriodicPointSource(position=(0.0, 0.5)).cell(params) == (1, 10)
    assert PeriodicPointSource(position=(1.0, 1.0)).cell(params) == (9, 19)

    wide = small_params(dimx=12, dimy=12, boundary_margin=4)
    assert PeriodicPointSource(position=(0.0, 0.0)).cell(wide) == (4, 4)
    assert PeriodicPointSource(position=(1.0, 0.5)).cell(wide) == (7, 5)
