from typing import Any, Sequence, Union

from .Table import Table
from .VectorData import VectorData, ElementIdentifiers, ColumnData


class TimeIntervals(Table):
    """A table of time intervals (trials, epochs, ...) with start_time and stop_time columns in seconds."""
    neurodata_type = 'TimeIntervals'
    namespace = 'core'

    def __init__(
        self,
        name: str,
        description: str,
        *,
        columns: Union[Sequence[VectorData], None] = None,
        id: Union[ElementIdentifiers, ColumnData, None] = None
    ):
        columns = list(columns or [])
        names = [c.name for c in columns]
        if 'start_time' not in names:
            columns.insert(0, VectorData(name='start_time', description='Start time of epoch, in seconds'))
        if 'stop_time' not in names:
            columns.insert(1, VectorData(name='stop_time', description='Stop time of epoch, in seconds'))
        super().__init__(name=name, description=description, columns=columns, id=id)

    def add_interval(self, start_time: float, stop_time: float, *, id: Union[int, None] = None, **values: Any):
        if stop_time < start_time:
            raise ValueError(f"stop_time ({stop_time}) is before start_time ({start_time})")
        self.add_row(id=id, start_time=float(start_time), stop_time=float(stop_time), **values)
