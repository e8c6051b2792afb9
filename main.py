"""
WaveSim – headless demo launcher
================================

Runs the tile wave simulation without a window:

    • the periodic source pulses (or sings) at two thirds of the grid
    • a few scripted "clicks" land on the field
    • optionally every tick is recorded to HDF5 and the last frame
      saved as a colourised PNG

Edit the `RUN_MODE` and FLAGS at the top; no other changes
needed when you switch setups.
"""
from pathlib import Path
import signal
import sys

import numpy as np
import matplotlib.image
from loguru import logger

from wavesim.engine import WaveEngine
from wavesim.parameters import SimulationParameters
from wavesim.utils.utils import to_numpy
from wavesim.visualization.colormap import AmplitudeTracker, amplitude_to_rgb, colorize

# -----------------------------------------------------------------------------
# 1) HIGH-LEVEL SWITCHES
# -----------------------------------------------------------------------------
RUN_MODE = "realtime"    # "realtime" | "batch"
FLAGS = dict(
    use_gpu=False,
    use_matrix=False,
    push_clicks=True,
    record=False,
    save_snapshot=True,
)

PRESET_PATH   = Path("outputs/presets/default.json")
SNAPSHOT_PATH = Path("outputs/snapshots/last_frame.png")

# -----------------------------------------------------------------------------
# 2) GLOBAL PARAMS
# -----------------------------------------------------------------------------
N_TICKS = 400
CLICK_EVERY = 90         # ticks between scripted clicks

WAVE_CONF = dict(
    dimx=16 * 20,
    dimy=9 * 20,
    boundary_margin=4,
    use_absorbing_boundary=True,
    forcing_amplitude=60.0,
    forcing_frequency_hz=1.0,
    forcing_waveform="pulse",
    # forcing_waveform="sine",
    tick_interval_ms=27.0,
)


# -----------------------------------------------------------------------------
# 3) MAIN
# -----------------------------------------------------------------------------
def main() -> None:
    # ---------------------------------------------------------------- Config
    if PRESET_PATH.exists():
        params = SimulationParameters.load_preset(PRESET_PATH)
    else:
        params = SimulationParameters(**WAVE_CONF)

    engine = WaveEngine(params, use_gpu=FLAGS["use_gpu"], use_matrix=FLAGS["use_matrix"])
    tracker = AmplitudeTracker()
    engine.periodic.subscribe(
        "fired", lambda x, y, amp: logger.debug(f"Pulse at ({x}, {y}) amplitude {amp}")
    )

    if FLAGS["record"]:
        engine.enable_recording()

    # ---------------------------------------------------------------- Loop
    rng = np.random.default_rng(0)
    engine.start()
    signal.signal(signal.SIGINT, signal.SIG_DFL)

    for i in range(N_TICKS):
        if FLAGS["push_clicks"] and i % CLICK_EVERY == 0:
            x, y = rng.uniform(0, params.dimx), rng.uniform(0, params.dimy)
            engine.push_force_event(x, y)

        if RUN_MODE == "realtime":
            engine.advance(params.tick_interval_s)
        else:
            engine.tick()
        tracker.update(to_numpy(engine.get_field()))

    engine.stop()
    logger.info(
        f"Done after {engine.tick_count} ticks (t={engine.time:.2f}s): "
        f"max={engine.max_amplitude:.3f}, min={engine.min_amplitude:.3f}, "
        f"display scale={tracker.max_amplitude:.2f}"
    )

    # ---------------------------------------------------------------- Output
    path = engine.disable_recording()
    if path is not None:
        logger.info(f"Recording written to {path}")

    if FLAGS["save_snapshot"]:
        field = to_numpy(engine.get_field())
        SNAPSHOT_PATH.parent.mkdir(parents=True, exist_ok=True)
        matplotlib.image.imsave(SNAPSHOT_PATH, colorize(field.T))
        matplotlib.image.imsave(
            SNAPSHOT_PATH.with_name(SNAPSHOT_PATH.stem + "_tile.png"),
            amplitude_to_rgb(field.T / tracker.max_amplitude),
        )
        logger.info(f"Snapshot saved to {SNAPSHOT_PATH}")


if __name__ == "__main__":
    sys.exit(main())
