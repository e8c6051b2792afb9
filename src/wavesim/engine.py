from typing import Optional, Dict, Any, List
from pathlib import Path

import numpy as np
from loguru import logger as log

from wavesim.parameters import SimulationParameters
from wavesim.physics.coefficients import CoefficientFields
from wavesim.physics.wave_propagator import WavePropagator
from wavesim.recorder.hdf5_recorder import FieldRecorder
from wavesim.sources.base import ForceSourceBase
from wavesim.sources.injector import ForceEvent, ForceInjector
from wavesim.sources.periodic import PeriodicPointSource
from wavesim.sources.pointer import PointerForceSource
from wavesim.types import ArrayType
from wavesim.utils.utils import get_backend, timed, to_numpy


class WaveEngine:
    """
    Owns one wave simulation and everything that may write to its grid.

    An external scheduler either calls `tick()` directly or feeds wall-clock
    time into `advance()`, which runs one tick per elapsed tick interval while
    the engine is started. A tick is: collect events from all sources, inject
    them into layer 0, step the propagator.

    Parameters
    ----------
    parameters : SimulationParameters, optional
        Defaults to `SimulationParameters()`.
    use_gpu : bool
        Run on CuPy arrays.
    use_matrix : bool
        Apply the Laplacian as a sparse matrix.
    stats_every : int
        Log field statistics every this many ticks (0 disables).
    """

    def __init__(self,
                 parameters: Optional[SimulationParameters] = None,
                 use_gpu: bool = False,
                 use_matrix: bool = False,
                 stats_every: int = 100):

        self.params = parameters if parameters is not None else SimulationParameters()
        self.use_gpu = use_gpu
        self.use_matrix = use_matrix
        self.stats_every = stats_every
        self.xp = get_backend(use_gpu)

        self.propagator = WavePropagator(self.params, backend=self.xp, use_matrix=use_matrix)
        self.injector = ForceInjector()

        self.sources: Dict[str, ForceSourceBase] = {}
        self.periodic = PeriodicPointSource()
        self.pointer = PointerForceSource()
        self.add_source(self.periodic)
        self.add_source(self.pointer)

        self.running = False
        self.time = 0.0
        self.tick_count = 0
        self._accumulator = 0.0

        self.recorder: Optional[FieldRecorder] = None

    # ---------------------------------------------------------------- sources
    def add_source(self, source: ForceSourceBase) -> None:
        if source.name in self.sources:
            raise ValueError(f"Source '{source.name}' already exists.")

        self.sources[source.name] = source
        log.info(f"Added source '{source.name}' to WaveEngine.")

    def remove_source(self, name: str) -> ForceSourceBase:
        if name not in self.sources:
            raise KeyError(f"No source named '{name}'.")
        log.info(f"Removed source '{name}' from WaveEngine.")
        return self.sources.pop(name)

    def push_force_event(self, x: float, y: float) -> None:
        """Queue a click at grid coordinates (x, y) for the next tick."""
        self.pointer.push(x, y)

    # ---------------------------------------------------------------- scheduling
    def start(self) -> None:
        self.running = True
        log.info("▶️  Simulation started")

    def stop(self) -> None:
        self.running = False
        log.info("⏸️  Simulation paused")

    def toggle(self) -> bool:
        if self.running:
            self.stop()
        else:
            self.start()
        return self.running

    def advance(self, elapsed_s: float) -> int:
        """Run the ticks due after `elapsed_s` seconds of wall-clock time."""
        if not self.running:
            return 0
        self._accumulator += elapsed_s
        interval = self.params.tick_interval_s
        ticks = 0
        while self._accumulator >= interval:
            self._accumulator -= interval
            self.tick()
            ticks += 1
        return ticks

    def tick(self) -> None:
        dt = self.params.tick_interval_s
        events: List[ForceEvent] = []
        for source in self.sources.values():
            events.extend(source(self.time, dt, self.params))

        self.injector.apply(self.propagator.grid, self.params, events)
        self.propagator.step()

        self.time += dt
        self.tick_count += 1

        if self.recorder is not None and self.recorder.is_recording:
            self.recorder.feed_field(to_numpy(self.propagator.get_state()))

        if self.stats_every and self.tick_count % self.stats_every == 0:
            log.debug(
                f"tick {self.tick_count}: max u={self.max_amplitude:.4g}, "
                f"min u={self.min_amplitude:.4g}"
            )

    def run(self, n_ticks: int) -> None:
        with timed(f"{n_ticks} ticks on {self.params.shape}"):
            for _ in range(n_ticks):
                self.tick()

    def reset(self) -> None:
        """Zero the field on a freshly allocated grid and drop pending events."""
        self.propagator.reset()
        for source in self.sources.values():
            source.reset()
        self.time = 0.0
        self.tick_count = 0
        self._accumulator = 0.0
        log.info("✅ Field reset.")

    # ---------------------------------------------------------------- parameters
    def update_parameters(self, **changes: Any) -> SimulationParameters:
        """
        Change parameters between ticks.

        Invalid changes raise `ConfigurationError` and leave the engine as it
        was. Changes to shape or physical constants rebuild the grid (zeroed)
        and the coefficient fields.
        """
        return self.set_parameters(self.params.replace(**changes))

    def set_parameters(self, params: SimulationParameters) -> SimulationParameters:
        if self.params.requires_reinit(params):
            propagator = WavePropagator(params, backend=self.xp, use_matrix=self.use_matrix)
            if self.recorder is not None and self.recorder.is_recording \
                    and params.shape != self.params.shape:
                log.warning("Grid shape changed; stopping the running recording.")
                self.disable_recording()
            self.propagator = propagator
            self.pointer.reset()
            log.info(f"♻️  Reinitialised simulation for {params.shape}")
        else:
            self.propagator.params = params
            self.propagator.configure_boundary(params.use_absorbing_boundary, params.decay_factor)
        self.params = params
        return params

    def reset_parameters(self) -> SimulationParameters:
        return self.set_parameters(SimulationParameters())

    def set_velocity_field(self, velocity: ArrayType) -> None:
        """
        Use a per-cell wave velocity (heterogeneous medium).

        The field applies until the next reinitialising parameter change.
        """
        coefficients = CoefficientFields.from_velocity_field(
            velocity, self.params.time_step, self.params.spatial_step, backend=self.xp,
        )
        if coefficients.shape != self.params.shape:
            raise ValueError(
                f"Velocity field shape {coefficients.shape} does not match grid shape {self.params.shape}."
            )
        self.propagator.coefficients = coefficients

    # ---------------------------------------------------------------- output
    def get_field(self) -> ArrayType:
        """Current amplitude layer, read-only on the CPU backend."""
        field = self.propagator.get_state()
        if self.xp is np:
            field = field.view()
            field.flags.writeable = False
        return field

    @property
    def max_amplitude(self) -> float:
        return float(self.xp.max(self.propagator.get_state()))

    @property
    def min_amplitude(self) -> float:
        return float(self.xp.min(self.propagator.get_state()))

    # ---------------------------------------------------------------- recording
    def enable_recording(self, record_dir: Optional[Path] = None, chunk_frames: int = 64) -> FieldRecorder:
        if self.recorder is None or not self.recorder.is_recording:
            self.recorder = FieldRecorder(
                resolution=self.params.shape,
                chunk_frames=chunk_frames,
                record_dir=record_dir,
                attrs=self.params.to_dict(),
            )
        self.recorder.start(fps=1.0 / self.params.tick_interval_s)
        return self.recorder

    def disable_recording(self) -> Optional[Path]:
        if self.recorder is None:
            return None
        self.recorder.stop()
        return self.recorder.path
