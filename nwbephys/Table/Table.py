from typing import Any, Dict, List, Mapping, Sequence, Union
import uuid
import numpy as np

from .VectorData import VectorData, VectorIndex, ElementIdentifiers, ColumnData


ConditionValue = Union[bool, int, float, str]


class Table:
    """
    A table of named columns with a parallel row identifier column (an NWB
    DynamicTable).

    Every column has one element per row, except ragged columns, which are
    stored as a flat column plus a VectorIndex named "<column>_index" that
    has one element per row. Rows are only ever appended.
    """
    neurodata_type = 'DynamicTable'
    namespace = 'hdmf-common'

    def __init__(
        self,
        name: str,
        description: str,
        *,
        columns: Union[Sequence[VectorData], None] = None,
        id: Union[ElementIdentifiers, ColumnData, None] = None
    ):
        self.name = name
        self.description = description
        self.object_id = str(uuid.uuid4())
        self._columns: Dict[str, VectorData] = {}
        self._colnames: List[str] = []
        self._readonly = False
        for col in (columns or []):
            self._add_column_object(col)
        if isinstance(id, ElementIdentifiers):
            self._id = id
        elif id is not None:
            self._id = ElementIdentifiers(data=id)
        else:
            num_rows = self._num_rows_from_columns()
            self._id = ElementIdentifiers(data=list(range(num_rows)))
        self.validate()

    @property
    def id(self) -> ElementIdentifiers:
        return self._id

    @property
    def colnames(self) -> List[str]:
        return list(self._colnames)

    @property
    def readonly(self) -> bool:
        return self._readonly

    @property
    def columns(self) -> List[VectorData]:
        """All columns including index columns, in storage order."""
        return list(self._columns.values())

    def __len__(self):
        return len(self._id)

    def __contains__(self, colname: str):
        return colname in self._columns

    def __getitem__(self, colname: str) -> VectorData:
        if colname == 'id':
            return self._id
        if colname not in self._columns:
            raise KeyError(f"No column named {colname} in table {self.name}")
        return self._columns[colname]

    def is_ragged(self, colname: str) -> bool:
        index = self._columns.get(f'{colname}_index', None)
        return isinstance(index, VectorIndex) and index.target is self._columns.get(colname)

    def add_column(self, name: str, description: str, *, data: Union[Sequence[Any], np.ndarray, None] = None, index: bool = False):
        """
        Add a column. If the table already has rows, data must supply one
        value per row. With index=True the column is ragged and each value
        is itself a sequence.
        """
        self._check_writable()
        if name in self._columns or name == 'id':
            raise ValueError(f"Column {name} already exists in table {self.name}")
        if data is None:
            if len(self) > 0:
                raise ValueError(f"Column {name} needs data for the {len(self)} existing rows of table {self.name}")
            data = []
        if len(data) != len(self):
            raise ValueError(f"Column {name} has {len(data)} values but table {self.name} has {len(self)} rows")
        if index:
            col = VectorData(name=name, description=description)
            idx = VectorIndex(name=f'{name}_index', description=f'Index for VectorData {name}', target=col)
            for values in data:
                idx.append_values(values)
            self._add_column_object(col)
            self._add_column_object(idx)
        else:
            self._add_column_object(VectorData(name=name, description=description, data=list(data)))

    def add_row(self, *, id: Union[int, None] = None, **values: Any):
        """Append a row. A value must be given for every column."""
        self._check_writable()
        missing = [c for c in self._colnames if c not in values]
        if missing:
            raise ValueError(f"Missing values for columns {missing} in table {self.name}")
        extra = [c for c in values if c not in self._colnames]
        if extra:
            raise ValueError(f"Unknown columns {extra} in table {self.name}")
        # convert everything before appending so a bad value leaves the table unchanged
        row_id = len(self) if id is None else int(id)
        ragged: Dict[str, List[Any]] = {}
        for colname in self._colnames:
            if self.is_ragged(colname):
                try:
                    ragged[colname] = list(values[colname])
                except TypeError as e:
                    raise TypeError(f"Value of ragged column {colname} in table {self.name} must be a sequence") from e
        for colname in self._colnames:
            if colname in ragged:
                index = self._columns[f'{colname}_index']
                assert isinstance(index, VectorIndex)
                index.append_values(ragged[colname])
            else:
                self._columns[colname].append(values[colname])
        self._id.append(row_id)

    def column_values(self, colname: str) -> Union[np.ndarray, List[np.ndarray]]:
        """Materialize a column. Ragged columns give one array per row."""
        if self.is_ragged(colname):
            index = self._columns[f'{colname}_index']
            assert isinstance(index, VectorIndex)
            flat = index.target.values()
            ends = index.values()
            starts = np.concatenate([[0], ends[:-1]]).astype(np.int64) if len(ends) > 0 else ends
            return [flat[int(s):int(e)] for s, e in zip(starts, ends)]
        return self[colname].values()

    def get_row(self, i: int) -> Dict[str, Any]:
        n = len(self)
        if i < 0:
            i += n
        if i < 0 or i >= n:
            raise IndexError(f"Row {i} out of range for table {self.name} with {n} rows")
        ret: Dict[str, Any] = {'id': int(self._id[i])}
        for colname in self._colnames:
            if self.is_ragged(colname):
                index = self._columns[f'{colname}_index']
                assert isinstance(index, VectorIndex)
                ret[colname] = index.get_ragged(i)
            else:
                ret[colname] = self._columns[colname][i]
        return ret

    def select_rows(self, conditions: Mapping[str, ConditionValue]) -> np.ndarray:
        """Indices of the rows where every named column equals the given value."""
        mask = np.ones((len(self),), dtype=bool)
        for colname, value in conditions.items():
            if colname != 'id' and colname not in self._colnames:
                raise KeyError(f"No column named {colname} in table {self.name}")
            if self.is_ragged(colname):
                raise ValueError(f"Cannot select rows on ragged column {colname}")
            mask &= np.asarray(self[colname].values() == value, dtype=bool)
        return np.nonzero(mask)[0]

    def validate(self):
        """Check that every column has one element per row."""
        n = len(self)
        for colname in self._colnames:
            col = self._columns[f'{colname}_index'] if self.is_ragged(colname) else self._columns[colname]
            if len(col) != n:
                raise ValueError(f"Column {col.name} has {len(col)} rows but table {self.name} has {n} ids")

    def __repr__(self):
        return f'<{self.__class__.__name__} "{self.name}" ({len(self)} rows): {", ".join(self._colnames)}>'

    def __str__(self):
        return self.__repr__()

    def _add_column_object(self, col: VectorData):
        if col.name in self._columns:
            raise ValueError(f"Column {col.name} already exists in table {self.name}")
        if isinstance(col, VectorIndex):
            if col.target.name not in self._columns:
                self._add_column_object(col.target)
            elif self._columns[col.target.name] is not col.target:
                raise ValueError(f"Index {col.name} does not point at column {col.target.name} of table {self.name}")
            self._columns[col.name] = col
        else:
            self._columns[col.name] = col
            self._colnames.append(col.name)

    def _num_rows_from_columns(self) -> int:
        for colname in self._colnames:
            col = self._columns[f'{colname}_index'] if self.is_ragged(colname) else self._columns[colname]
            return len(col)
        return 0

    def _check_writable(self):
        if self._readonly:
            raise ValueError(f"Cannot modify table {self.name}: it was read from a container")
