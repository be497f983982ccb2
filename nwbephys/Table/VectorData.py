from typing import Any, List, Sequence, Tuple, Union
import numpy as np

from ..LazyArrayHandle.LazyArrayHandle import LazyArrayHandle
from ..References.ObjectView import ObjectView


ColumnData = Union[List[Any], np.ndarray, LazyArrayHandle]


class VectorData:
    """
    One column of a table.

    While a file is being built the data is held in memory (a list or numpy
    array) and can be appended to. Columns read from a container hold a
    LazyArrayHandle instead and are read-only.
    """
    neurodata_type = 'VectorData'

    def __init__(self, *, name: str, description: str, data: Union[ColumnData, None] = None):
        self.name = name
        self.description = description
        self._data: ColumnData = [] if data is None else data

    @property
    def data(self) -> ColumnData:
        return self._data

    @property
    def is_lazy(self) -> bool:
        return isinstance(self._data, LazyArrayHandle)

    def __len__(self):
        return len(self._data)

    def __getitem__(self, selection):
        if self.is_lazy:
            return self._data[selection]
        return _as_array(self._data)[selection]

    def values(self) -> np.ndarray:
        """The whole column as a numpy array."""
        if isinstance(self._data, LazyArrayHandle):
            return self._data.materialize()
        return _as_array(self._data)

    def append(self, value: Any):
        self._check_in_memory()
        if isinstance(self._data, np.ndarray):
            self._data = list(self._data)
        self._data.append(value)

    def extend(self, values: Sequence[Any]):
        self._check_in_memory()
        if isinstance(self._data, np.ndarray):
            self._data = list(self._data)
        self._data.extend(values)

    def __repr__(self):
        return f'<{self.__class__.__name__}: {self.name} ({len(self)} elements)>'

    def _check_in_memory(self):
        if self.is_lazy:
            raise ValueError(f"Cannot modify column {self.name}: it was read from a container")


class ElementIdentifiers(VectorData):
    """The row identifier column of a table."""
    neurodata_type = 'ElementIdentifiers'

    def __init__(self, *, data: Union[ColumnData, None] = None):
        super().__init__(name='id', description='', data=data)


class VectorIndex(VectorData):
    """
    Index column for a ragged column. Element i is the end offset (exclusive)
    of row i in the flat target column, so row i spans
    target[index[i - 1]:index[i]] (with index[-1] taken as 0).
    """
    neurodata_type = 'VectorIndex'

    def __init__(self, *, name: str, description: str, target: VectorData, data: Union[ColumnData, None] = None):
        super().__init__(name=name, description=description, data=data)
        self.target = target

    def get_range(self, i: int) -> Tuple[int, int]:
        n = len(self)
        if i < 0:
            i += n
        if i < 0 or i >= n:
            raise IndexError(f"Row {i} out of range for {self.name} with {n} rows")
        stop = int(self[i])
        start = 0 if i == 0 else int(self[i - 1])
        return start, stop

    def get_ragged(self, i: int) -> np.ndarray:
        """The elements of the target column that belong to row i."""
        start, stop = self.get_range(i)
        return self.target[start:stop]

    def append_values(self, values: Sequence[Any]):
        self.target.extend(list(values))
        self.append(len(self.target))


def _as_array(data: Union[List[Any], np.ndarray]) -> np.ndarray:
    if isinstance(data, np.ndarray):
        return data
    if len(data) > 0 and all(isinstance(v, ObjectView) for v in data):
        # keep the views as objects rather than letting numpy look inside them
        ret = np.empty((len(data),), dtype=object)
        for i, v in enumerate(data):
            ret[i] = v
        return ret
    return np.array(data)
