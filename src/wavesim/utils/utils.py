from contextlib import contextmanager
import time

from loguru import logger as log
import numpy as np


def get_backend(use_gpu: bool = False):
    """
    Return the array module used for the field arrays.

    Parameters
    ----------
    use_gpu : bool
        If True, return ``cupy`` (imported lazily, it is an optional
        dependency); otherwise ``numpy``.
    """
    if not use_gpu:
        return np

    import cupy as cp                            # lazy-import cupy
    return cp


def to_numpy(arr) -> np.ndarray:
    """Bring a numpy or CuPy array to host memory."""
    if isinstance(arr, np.ndarray):
        return arr
    return arr.get()


@contextmanager
def timed(label: str):
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        log.info(f"⏱️ {label} took {elapsed:,.2f} s")
