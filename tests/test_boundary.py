import numpy as np
import pytest

from wavesim.physics.boundary import BoundaryHandler
from wavesim.physics.grid_buffer import GridBuffer
from wavesim.physics.wave_propagator import WavePropagator

from utils import small_params


def _random_grid(shape, seed=0):
    rng = np.random.default_rng(seed)
    grid = GridBuffer(shape)
    for layer in grid.layers:
        layer[:] = rng.uniform(-1, 1, shape)
    return grid


def test_damping_scales_layer_and_zeroes_band():
    grid = _random_grid((10, 9))
    before = grid.current.copy()
    previous = grid.previous.copy()

    BoundaryHandler(margin=2, use_absorbing_boundary=False, decay_factor=0.9).apply(
        grid, kappa=np.full((10, 9), 0.5, dtype=np.float32))

    expected = np.zeros_like(before)
    expected[2:8, 2:7] = before[2:8, 2:7] * np.float32(0.9)
    assert np.allclose(grid.current, expected)
    assert np.max(np.abs(grid.current)) <= 0.9 * np.max(np.abs(before)) + 1e-7
    # history is left alone
    assert np.array_equal(grid.previous, previous)


def test_absorbing_edge_cell_follows_mur_formula():
    shape = (6, 6)
    grid = _random_grid(shape, seed=3)
    u0, u1 = grid.current.copy(), grid.previous.copy()
    kappa = np.full(shape, 0.5, dtype=np.float32)
    r = (0.5 - 1) / (0.5 + 1)

    BoundaryHandler(margin=1, use_absorbing_boundary=True).apply(grid, kappa)

    new = grid.current
    for y in (2, 3):
        # far-x and near-x strips, away from the y strips
        assert new[5, y] == pytest.approx(r * (u0[4, y] - u1[5, y]) + u1[4, y], abs=1e-6)
        assert new[0, y] == pytest.approx(r * (u0[1, y] - u1[0, y]) + u1[1, y], abs=1e-6)
    for x in (2, 3):
        assert new[x, 5] == pytest.approx(r * (u0[x, 4] - u1[x, 5]) + u1[x, 4], abs=1e-6)
        assert new[x, 0] == pytest.approx(r * (u0[x, 1] - u1[x, 0]) + u1[x, 1], abs=1e-6)
    # interior untouched
    assert np.array_equal(new[1:5, 1:5], u0[1:5, 1:5])


def test_absorbing_strip_is_swept_outwards():
    shape = (8, 8)
    grid = _random_grid(shape, seed=5)
    u1 = grid.previous.copy()
    kappa = np.full(shape, 0.5, dtype=np.float32)
    r = (0.5 - 1) / (0.5 + 1)

    BoundaryHandler(margin=2, use_absorbing_boundary=True).apply(grid, kappa)

    new = grid.current
    y = 4
    # outer cell of the far-x strip uses this tick's value of the inner one
    assert new[7, y] == pytest.approx(r * (new[6, y] - u1[7, y]) + u1[6, y], abs=1e-6)
    assert new[0, y] == pytest.approx(r * (new[1, y] - u1[0, y]) + u1[1, y], abs=1e-6)


def test_later_edges_own_the_corners():
    shape = (6, 6)
    grid = _random_grid(shape, seed=7)
    kappa = np.full(shape, 0.5, dtype=np.float32)
    r = (0.5 - 1) / (0.5 + 1)
    u1 = grid.previous.copy()

    BoundaryHandler(margin=1, use_absorbing_boundary=True).apply(grid, kappa)

    new = grid.current
    # near-y runs last, so (0, 0) comes from its y neighbour
    assert new[0, 0] == pytest.approx(r * (new[0, 1] - u1[0, 0]) + u1[0, 1], abs=1e-6)
    assert new[5, 0] == pytest.approx(r * (new[5, 1] - u1[5, 0]) + u1[5, 1], abs=1e-6)


def _gaussian_run(use_absorbing_boundary, steps=400, shape=(64, 64)):
    params = small_params(dimx=shape[0], dimy=shape[1], boundary_margin=1,
                          use_absorbing_boundary=use_absorbing_boundary, decay_factor=1.0)
    prop = WavePropagator(params)
    x, y = np.meshgrid(np.arange(shape[0]) - shape[0] // 2,
                       np.arange(shape[1]) - shape[1] // 2, indexing="ij")
    pulse = np.exp(-(x ** 2 + y ** 2) / (2 * 3.0 ** 2)).astype(np.float32)
    prop.grid.current[:] = pulse
    prop.grid.previous[:] = pulse

    energies = []
    for step in range(steps):
        prop.step()
        if step >= steps - 100:
            energies.append(float(np.sum(prop.get_state() ** 2)))
    return np.mean(energies)


def test_absorbing_boundary_lets_waves_leave():
    reflecting = _gaussian_run(use_absorbing_boundary=False)
    absorbing = _gaussian_run(use_absorbing_boundary=True)
    assert absorbing < 0.2 * reflecting, f"absorbing={absorbing:.3e} reflecting={reflecting:.3e}"


def test_damping_drains_energy_over_time():
    params = small_params(dimx=32, dimy=32, decay_factor=0.995)
    prop = WavePropagator(params)
    prop.grid.current[16, 16] = 10.0

    energies = []
    for _ in range(400):
        prop.step()
        energies.append(float(np.sum(prop.get_state() ** 2)))

    assert np.mean(energies[300:]) < np.mean(energies[100:200])
    assert np.max(np.abs(prop.get_state())) < 10.0
