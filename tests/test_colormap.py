import numpy as np
import pytest

from wavesim.visualization.colormap import (
    AmplitudeTracker, amplitude_to_rgb, colorize, log_normalize, sigmoid,
)


def test_sigmoid_is_centred_and_symmetric():
    assert float(sigmoid(0.0)) == pytest.approx(0.5)
    a = np.linspace(-5, 5, 11)
    assert np.allclose(sigmoid(a) + sigmoid(-a), 1.0)
    assert np.all(np.diff(sigmoid(a)) > 0)


def test_amplitude_to_rgb_channels():
    field = np.array([[0.0, 2.0], [-2.0, 0.5]], dtype=np.float32)
    rgb = amplitude_to_rgb(field)

    assert rgb.shape == (2, 2, 3)
    assert rgb.dtype == np.float32
    assert np.allclose(rgb[..., 0], sigmoid(field))
    assert not rgb[..., 1].any()
    assert np.all(rgb[..., 2] == 1.0)


def test_colorize_returns_rgba_in_unit_range():
    field = np.random.default_rng(0).normal(size=(8, 6)).astype(np.float32)
    rgba = colorize(field)
    assert rgba.shape == (8, 6, 4)
    assert rgba.min() >= 0.0 and rgba.max() <= 1.0


def test_log_normalize():
    out = log_normalize(np.array([0.0, 1.0]), max_amplitude=1.0)
    assert out[0] == 0.0
    assert out[1] == pytest.approx(np.log(49.0) / 4.0, rel=1e-6)


def test_amplitude_tracker_is_clamped():
    tracker = AmplitudeTracker(window=4)
    assert tracker.update(np.zeros((3, 3))) == pytest.approx(0.1)
    for _ in range(4):
        level = tracker.update(np.full((3, 3), 10.0))
    assert level == pytest.approx(0.9)

    tracker = AmplitudeTracker(window=2)
    tracker.update(np.full((3, 3), 0.4))
    assert tracker.update(np.full((3, 3), 0.6)) == pytest.approx(0.5)
