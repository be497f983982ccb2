from typing import Dict, Sequence, Union
import uuid
import numpy as np

from ..LazyArrayHandle.LazyArrayHandle import LazyArrayHandle
from ..Table.Table import Table
from ..TimeSeries.TimeSeries import TimeSeries


class Device:
    neurodata_type = 'Device'
    namespace = 'core'

    def __init__(self, *, name: str, description: str = '', manufacturer: str = ''):
        self.name = name
        self.description = description
        self.manufacturer = manufacturer
        self.object_id = str(uuid.uuid4())

    def __repr__(self):
        return f'<Device "{self.name}">'


class ElectrodeGroup:
    """A group of electrodes on one device (for example one shank of a probe)."""
    neurodata_type = 'ElectrodeGroup'
    namespace = 'core'

    def __init__(self, *, name: str, description: str, location: str, device: Device):
        self.name = name
        self.description = description
        self.location = location
        self.device = device
        self.object_id = str(uuid.uuid4())

    def __repr__(self):
        return f'<ElectrodeGroup "{self.name}" device={self.device.name}>'


class Clustering:
    """
    Clustered spike data: the cluster number of each event, its peak over
    RMS and its time in seconds.
    """
    neurodata_type = 'Clustering'
    namespace = 'core'

    def __init__(
        self,
        *,
        name: str = 'Clustering',
        description: str,
        num: Union[Sequence[int], np.ndarray, LazyArrayHandle],
        peak_over_rms: Union[Sequence[float], np.ndarray, LazyArrayHandle],
        times: Union[Sequence[float], np.ndarray, LazyArrayHandle]
    ):
        self.name = name
        self.description = description
        self.num = num if isinstance(num, LazyArrayHandle) else np.asarray(num)
        self.peak_over_rms = peak_over_rms if isinstance(peak_over_rms, LazyArrayHandle) else np.asarray(peak_over_rms, dtype=np.float64)
        self.times = times if isinstance(times, LazyArrayHandle) else np.asarray(times, dtype=np.float64)
        if len(self.num) != len(self.times):
            raise ValueError(f"Clustering {name}: num has {len(self.num)} elements but times has {len(self.times)}")
        self.object_id = str(uuid.uuid4())

    def __repr__(self):
        return f'<Clustering "{self.name}" ({len(self.times)} events)>'


DataInterface = Union[TimeSeries, Table, Clustering]


class ProcessingModule:
    """A named collection of processed data interfaces."""
    neurodata_type = 'ProcessingModule'
    namespace = 'core'

    def __init__(self, *, name: str, description: str):
        self.name = name
        self.description = description
        self.data_interfaces: Dict[str, DataInterface] = {}
        self.object_id = str(uuid.uuid4())

    def add(self, data_interface: DataInterface):
        if not isinstance(data_interface, (TimeSeries, Table, Clustering)):
            raise TypeError(f"Unsupported data interface for processing module {self.name}: {type(data_interface)}")
        if data_interface.name in self.data_interfaces:
            raise ValueError(f"Processing module {self.name} already contains {data_interface.name}")
        self.data_interfaces[data_interface.name] = data_interface

    def __getitem__(self, name: str) -> DataInterface:
        return self.data_interfaces[name]

    def __contains__(self, name: str):
        return name in self.data_interfaces

    def __repr__(self):
        return f'<ProcessingModule "{self.name}": {", ".join(self.data_interfaces)}>'
