from typing import TYPE_CHECKING, Any, Sequence, Tuple, Union
import numpy as np

from ..errors import OutOfBoundsError, ContainerIOError


if TYPE_CHECKING:
    from ..Container.Container import Container  # pragma: no cover


class LazyArrayHandle:
    """
    A handle onto an array-shaped dataset inside a container.

    The shape and dtype are read once when the handle is created. No data is
    read until materialize() (or indexing) is called, and nothing read is
    kept by the handle, so every call goes back to the container.
    """
    def __init__(self, _array: Any, *, _container: "Container", _path: str):
        """
        Do not use this constructor directly. Instead, use Container.dataset().
        """
        self._array = _array
        self._container = _container
        self._path = _path
        shape, dtype = _container._backend.array_info(_array)
        self._shape: Tuple[int, ...] = tuple(int(s) for s in shape)
        self._dtype: np.dtype = np.dtype(dtype)

    @property
    def shape(self) -> Tuple[int, ...]:
        return self._shape

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    @property
    def ndim(self) -> int:
        return len(self._shape)

    @property
    def size(self) -> int:
        return int(np.prod(self._shape)) if len(self._shape) > 0 else 1

    @property
    def name(self) -> str:
        return self._path

    @property
    def container(self) -> "Container":
        return self._container

    def __len__(self):
        """We conform to h5py, which is the number of elements in the first dimension. TypeError if scalar"""
        if self.ndim == 0:
            raise TypeError("Scalar dataset")
        return self._shape[0]

    def __repr__(self):
        return f"<{self.__class__.__name__}: {self._path} shape={self._shape} dtype={self._dtype}>"

    def __str__(self):
        return self.__repr__()

    def materialize(
        self,
        start: Union[Sequence[int], None] = None,
        count: Union[Sequence[Union[int, None]], None] = None
    ):
        """
        Read data from the container.

        With no arguments the whole array is read (for a scalar dataset, the
        scalar value). Otherwise the rectangular block [start[i], start[i] +
        count[i]) is read along every dimension i. A count of None means
        "to the end of that dimension". The result has shape equal to count.

        Raises OutOfBoundsError if start and count do not both have one entry
        per dimension, or if the block does not fit inside the array.
        """
        if start is None and count is None:
            if self.ndim == 0:
                return self._read(())
            return self._read(tuple(slice(0, n) for n in self._shape))
        if start is None or count is None:
            raise TypeError("start and count must be given together")
        return self._read(check_block(self._shape, start, count, label=self._path))

    def __getitem__(self, selection):
        return self._read(selection)

    def _read(self, selection: Any):
        self._container._check_open()
        try:
            return self._container._backend.read_array(self._array, selection)
        except (OSError, RuntimeError) as e:
            raise ContainerIOError(f"Unable to read {self._path}: {e}") from e


def check_block(
    shape: Sequence[int],
    start: Sequence[int],
    count: Sequence[Union[int, None]],
    *,
    label: str = ''
) -> Tuple[slice, ...]:
    """Validate a (start, count) block against shape and return it as slices."""
    if len(start) != len(count) or len(start) != len(shape):
        raise OutOfBoundsError(
            f"start ({len(start)} entries) and count ({len(count)} entries) "
            f"must have one entry per dimension of {label} (shape {tuple(shape)})"
        )
    ret = []
    for i, (s, c, n) in enumerate(zip(start, count, shape)):
        s = int(s)
        c = n - s if c is None else int(c)
        if s < 0 or c < 0 or s + c > n:
            raise OutOfBoundsError(
                f"Block [{s}, {s + c}) is out of bounds for dimension {i} of {label} with size {n}"
            )
        ret.append(slice(s, s + c))
    return tuple(ret)
