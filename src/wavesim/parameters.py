from typing import Dict, Any, Tuple
from pathlib import Path
import json

from loguru import logger as log

SUPPORTED_MARGINS: Tuple[int, ...] = (1, 4)
WAVEFORMS: Tuple[str, ...] = ("pulse", "sine")

# Changing any of these invalidates the grid shape or the coefficient fields.
REINIT_FIELDS: Tuple[str, ...] = (
    "dimx", "dimy", "spatial_step", "time_step", "wave_velocity", "boundary_margin",
)

DEFAULTS: Dict[str, Any] = dict(
    dimx=16 * 20,
    dimy=9 * 20,
    spatial_step=1.0,
    time_step=1.0,
    wave_velocity=0.5,
    boundary_margin=4,
    use_absorbing_boundary=False,
    forcing_amplitude=60.0,
    forcing_frequency_hz=1.0,
    apply_force=True,
    forcing_waveform="pulse",
    decay_factor=0.995,
    tick_interval_ms=27.0,
)


class ConfigurationError(ValueError):
    """Raised when a set of simulation parameters cannot be simulated."""


def _reject(err: str) -> None:
    log.error(err)
    raise ConfigurationError(err)


class SimulationParameters:
    """
    Configuration of a 2D wave simulation.

    Parameters
    ----------
    dimx, dimy : int
        Grid size in cells along x and y. Field arrays have shape (dimx, dimy).
    spatial_step : float
        Grid spacing Δx. Must be positive.
    time_step : float
        Time step Δt. Must be positive.
    wave_velocity : float
        Propagation speed c.
    boundary_margin : int
        Stencil half-width; 1 selects the 5-point stencil, 4 the wide one.
        Cells closer than this to an edge belong to the boundary band.
    use_absorbing_boundary : bool
        Mur absorbing edges if True, uniform damping with `decay_factor`
        otherwise.
    forcing_amplitude : float
        Value written into a cell by the periodic source and by click events.
    forcing_frequency_hz : float
        Frequency of the periodic source. 0 disables it.
    apply_force : bool
        Whether the periodic source is active at all.
    forcing_waveform : str
        "pulse": hard pulse once per period. "sine": amplitude * sin(2πft)
        written every tick.
    decay_factor : float
        Energy loss fraction applied per tick when the absorbing boundary is off.
    tick_interval_ms : float
        Real-time length of one simulation tick.

    Instances are treated as immutable; use `replace` to derive a new one.
    """

    def __init__(self, **kwargs: Any):
        unknown = set(kwargs) - set(DEFAULTS)
        if unknown:
            _reject(f"Unknown simulation parameter(s): {sorted(unknown)}")

        values = dict(DEFAULTS, **kwargs)
        self.dimx: int = int(values["dimx"])
        self.dimy: int = int(values["dimy"])
        self.spatial_step: float = float(values["spatial_step"])
        self.time_step: float = float(values["time_step"])
        self.wave_velocity: float = float(values["wave_velocity"])
        self.boundary_margin: int = int(values["boundary_margin"])
        self.use_absorbing_boundary: bool = bool(values["use_absorbing_boundary"])
        self.forcing_amplitude: float = float(values["forcing_amplitude"])
        self.forcing_frequency_hz: float = float(values["forcing_frequency_hz"])
        self.apply_force: bool = bool(values["apply_force"])
        self.forcing_waveform: str = str(values["forcing_waveform"])
        self.decay_factor: float = float(values["decay_factor"])
        self.tick_interval_ms: float = float(values["tick_interval_ms"])

        self.validate()

    # ---------------------------------------------------------------- derived
    @property
    def shape(self) -> Tuple[int, int]:
        return (self.dimx, self.dimy)

    @property
    def courant_number(self) -> float:
        return self.wave_velocity * self.time_step / self.spatial_step

    @property
    def tick_interval_s(self) -> float:
        return self.tick_interval_ms / 1000.0

    @property
    def source_cell(self) -> Tuple[int, int]:
        """Cell driven by the periodic source, two thirds along each axis."""
        return self.clamp_to_interior(4 * self.dimx // 6, 4 * self.dimy // 6)

    def clamp_to_interior(self, ix: int, iy: int) -> Tuple[int, int]:
        """Nearest cell to (ix, iy) outside the boundary band."""
        m = self.boundary_margin
        return (
            min(max(ix, m), self.dimx - m - 1),
            min(max(iy, m), self.dimy - m - 1),
        )

    # ---------------------------------------------------------------- checks
    def validate(self) -> None:
        if self.spatial_step <= 0:
            _reject(f"Spatial step must be positive, got {self.spatial_step}.")
        if self.time_step <= 0:
            _reject(f"Time step must be positive, got {self.time_step}.")
        if self.boundary_margin not in SUPPORTED_MARGINS:
            _reject(
                f"Unsupported boundary margin {self.boundary_margin}; "
                f"expected one of {SUPPORTED_MARGINS}."
            )
        for name, dim in (("dimx", self.dimx), ("dimy", self.dimy)):
            if dim <= 2 * self.boundary_margin:
                _reject(
                    f"{name}={dim} leaves no interior for boundary margin "
                    f"{self.boundary_margin} (need {name} > {2 * self.boundary_margin})."
                )
        if not 0.0 < self.decay_factor <= 1.0:
            _reject(f"Decay factor must lie in (0, 1], got {self.decay_factor}.")
        if self.forcing_frequency_hz < 0:
            _reject(f"Forcing frequency must be >= 0, got {self.forcing_frequency_hz}.")
        if self.tick_interval_ms <= 0:
            _reject(f"Tick interval must be positive, got {self.tick_interval_ms}.")
        if self.forcing_waveform not in WAVEFORMS:
            _reject(f"Unknown forcing waveform '{self.forcing_waveform}', expected one of {WAVEFORMS}.")

        if self.courant_number > 1.0:
            log.warning(
                f"Courant number {self.courant_number:.3f} > 1; "
                "the explicit scheme will not be stable."
            )

    # ---------------------------------------------------------------- copies
    def to_dict(self) -> Dict[str, Any]:
        return {key: getattr(self, key) for key in DEFAULTS}

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "SimulationParameters":
        return cls(**values)

    def replace(self, **changes: Any) -> "SimulationParameters":
        return SimulationParameters(**dict(self.to_dict(), **changes))

    def requires_reinit(self, other: "SimulationParameters") -> bool:
        """True if switching to `other` needs a new grid and coefficient fields."""
        return any(getattr(self, key) != getattr(other, key) for key in REINIT_FIELDS)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SimulationParameters):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self.to_dict().items())
        return f"SimulationParameters({fields})"

    # ---------------------------------------------------------------- presets
    def save_preset(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        log.info(f"✅ Preset saved to {path}")
        return path

    @classmethod
    def load_preset(cls, path: Path) -> "SimulationParameters":
        with open(path, "r") as f:
            config = json.load(f)
        params = cls.from_dict(config)
        log.info(f"✅ Preset loaded from {path}")
        return params
