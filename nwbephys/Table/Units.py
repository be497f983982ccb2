from typing import Any, Sequence, Tuple, Union
import numpy as np

from .Table import Table
from .VectorData import VectorData, VectorIndex, ElementIdentifiers, ColumnData


class Units(Table):
    """Data about sorted units. Spike times are a ragged column with one list of times per unit."""
    neurodata_type = 'Units'
    namespace = 'core'

    def __init__(
        self,
        *,
        name: str = 'units',
        description: str = 'units table',
        columns: Union[Sequence[VectorData], None] = None,
        id: Union[ElementIdentifiers, ColumnData, None] = None
    ):
        columns = list(columns or [])
        names = [c.name for c in columns] + [c.target.name for c in columns if isinstance(c, VectorIndex)]
        if 'spike_times' not in names:
            spike_times = VectorData(name='spike_times', description='the spike times for each unit in seconds')
            columns.append(VectorIndex(name='spike_times_index', description='Index for VectorData spike_times', target=spike_times))
        super().__init__(name=name, description=description, columns=columns, id=id)

    def add_unit(self, spike_times: Sequence[float], *, id: Union[int, None] = None, **values: Any):
        self.add_row(id=id, spike_times=[float(t) for t in spike_times], **values)

    def get_unit_spike_times(self, i: int) -> np.ndarray:
        index = self['spike_times_index']
        assert isinstance(index, VectorIndex)
        return index.get_ragged(i)


def create_spike_times(cluster_ids: Sequence[int], spike_times: Sequence[float]) -> Tuple[np.ndarray, VectorData, VectorIndex]:
    """
    Group spike times by cluster.

    Parameters
    ----------
    cluster_ids : Sequence[int]
        Cluster (unit) id of each spike.
    spike_times : Sequence[float]
        Time of each spike in seconds, same length as cluster_ids.

    Returns
    -------
    unit_ids : np.ndarray
        The distinct cluster ids, sorted.
    spike_times_vector : VectorData
        The spike times of all units concatenated in the order of unit_ids.
        Within a unit the input order is kept.
    spike_times_index : VectorIndex
        End offset of each unit in spike_times_vector.
    """
    cluster_ids = np.asarray(cluster_ids)
    spike_times = np.asarray(spike_times, dtype=np.float64)
    if cluster_ids.shape != spike_times.shape or cluster_ids.ndim != 1:
        raise ValueError(f"cluster_ids and spike_times must be 1-d with the same length, got {cluster_ids.shape} and {spike_times.shape}")
    unit_ids = np.unique(cluster_ids)
    flat = []
    ends = []
    for unit_id in unit_ids:
        flat.extend(spike_times[cluster_ids == unit_id].tolist())
        ends.append(len(flat))
    spike_times_vector = VectorData(name='spike_times', description='the spike times for each unit in seconds', data=flat)
    spike_times_index = VectorIndex(
        name='spike_times_index',
        description='Index for VectorData spike_times',
        target=spike_times_vector,
        data=ends
    )
    return unit_ids, spike_times_vector, spike_times_index
