from typing import Any, Dict, Optional, Tuple
from pathlib import Path
import uuid

import numpy as np
import h5py
from loguru import logger as log

from .base import RecorderBase


class FieldRecorder(RecorderBase):
    """
    Records snapshots of the current amplitude layer into an HDF5 file.

    Frames collect in a RAM buffer of `chunk_frames` frames and are appended
    to the resizable ``fields`` dataset whenever the buffer fills up and on
    `stop`. Each session goes to its own file ``session_<id>.h5`` below
    `record_dir`.

    Parameters
    ----------
    resolution : tuple
        Field shape (dimx, dimy).
    chunk_frames : int
        Frames held in RAM before a flush.
    record_dir : Path, optional
        Output directory, ``outputs/recordings`` by default.
    attrs : dict, optional
        Stored as HDF5 attributes on the dataset (e.g. simulation parameters).
    """

    def __init__(self,
                 resolution: Tuple[int, int],
                 chunk_frames: int = 64,
                 *,
                 record_dir: Optional[Path] = None,
                 attrs: Optional[Dict[str, Any]] = None) -> None:
        self.resolution = tuple(resolution)
        self.chunk_frames = max(1, int(chunk_frames))
        self.record_dir = Path(record_dir or "outputs/recordings")
        self.attrs = dict(attrs or {})

        self._ram = np.zeros((self.chunk_frames,) + self.resolution, dtype=np.float32)
        self._ram_frame_idx = 0
        self._session_id: Optional[str] = None
        self.path: Optional[Path] = None
        self.frames_written = 0

    # ‑‑ public API ---------------------------------------------------------
    @property
    def is_recording(self) -> bool:
        return self._session_id is not None

    def start(self, fps: float) -> None:
        if self._session_id is not None:
            log.warning("Recorder already running; ignoring duplicate start()")
            return
        self.record_dir.mkdir(parents=True, exist_ok=True)
        self._session_id = uuid.uuid4().hex[:8]
        self.path = self.record_dir / f"session_{self._session_id}.h5"
        self._ram_frame_idx = 0
        self.frames_written = 0

        Nx, Ny = self.resolution
        with h5py.File(self.path, "w") as f:
            dset = f.create_dataset(
                "fields", (0, Nx, Ny), np.float32,
                maxshape=(None, Nx, Ny), chunks=(1, Nx, Ny),
            )
            dset.attrs["fps"] = fps
            for key, value in self.attrs.items():
                dset.attrs[key] = value
        log.info(f"🎙️  HDF5 recorder started (session {self._session_id}) -> {self.path}")

    def stop(self) -> None:
        if self._session_id is None:
            return
        log.info("🛑 Stopping HDF5 recorder…")
        self._flush()
        log.info(f"Recorded {self.frames_written} frame(s) to {self.path}")
        self._session_id = None

    def feed_field(self, field: np.ndarray) -> None:
        if self._session_id is None:
            return
        assert field.shape == self.resolution, "resolution mismatch"
        self._ram[self._ram_frame_idx] = field
        self._ram_frame_idx += 1
        if self._ram_frame_idx >= self.chunk_frames:
            self._flush()

    # ‑‑ internal -----------------------------------------------------------
    def _flush(self) -> None:
        n = self._ram_frame_idx
        if n == 0:
            return
        with h5py.File(self.path, "r+") as f:
            dset = f["fields"]
            off = dset.shape[0]
            dset.resize(off + n, axis=0)
            dset[off:off + n] = self._ram[:n]
        self.frames_written += n
        self._ram_frame_idx = 0
        log.debug(f"Flushed {n} frame(s) to {self.path}")


def load_recording(path: Path) -> Tuple[np.ndarray, Dict[str, Any]]:
    """Read back all frames and dataset attributes of a recording."""
    with h5py.File(path, "r") as f:
        dset = f["fields"]
        return dset[:], dict(dset.attrs)
