from typing import Tuple, TYPE_CHECKING, Any

# Field arrays are numpy or CuPy arrays of shape (dimx, dimy).
if TYPE_CHECKING:
    import numpy
    ArrayType = numpy.ndarray
else:
    ArrayType = Any

Shape = Tuple[int, int]
Cell = Tuple[int, int]
