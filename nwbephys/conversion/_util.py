from typing import Any, Tuple
import numpy as np


def _is_numeric_dtype(dtype: np.dtype) -> bool:
    """Return True if the dtype is a numeric or boolean dtype."""
    return np.issubdtype(dtype, np.number) or np.issubdtype(dtype, np.bool_)


def _get_default_chunks(shape: Tuple, dtype: Any, chunk_size_bytes: int) -> Tuple:
    """Chunk along the first axis only, aiming at chunk_size_bytes per chunk."""
    if len(shape) == 0:
        return ()
    # zarr does not accept zero-length chunks
    tail = tuple(max(int(d), 1) for d in shape[1:])
    dtype_size = np.dtype(dtype).itemsize
    row_size = int(np.prod(tail)) if len(tail) > 0 else 1
    rows_per_chunk = chunk_size_bytes // max(dtype_size * row_size, 1)
    if rows_per_chunk < 1:
        return (1,) + tail
    if rows_per_chunk >= shape[0]:
        return (max(int(shape[0]), 1),) + tail
    return (int(rows_per_chunk),) + tail
