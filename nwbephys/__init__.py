from .Container import Container, ContainerOpts
from .LazyArrayHandle import LazyArrayHandle
from .References import ObjectView, RegionReference, SoftLink, resolve, resolve_object_view
from .Table import Table, TimeIntervals, Units, VectorData, VectorIndex, ElementIdentifiers, create_spike_times
from .TimeSeries import TimeSeries, ElectricalSeries
from .NWBFile import NWBFile, Device, ElectrodeGroup, Clustering, ProcessingModule
from .NWBIO import write_nwb, export_nwb, read_nwb
from .TrialAlignment import load_trial_aligned_data
from .errors import (
    NwbEphysError,
    OutOfBoundsError,
    BrokenReferenceError,
    IndexOutOfRangeError,
    EmptySelectionError,
    ContainerIOError,
)

__all__ = [
    "Container",
    "ContainerOpts",
    "LazyArrayHandle",
    "ObjectView",
    "RegionReference",
    "SoftLink",
    "resolve",
    "resolve_object_view",
    "Table",
    "TimeIntervals",
    "Units",
    "VectorData",
    "VectorIndex",
    "ElementIdentifiers",
    "create_spike_times",
    "TimeSeries",
    "ElectricalSeries",
    "NWBFile",
    "Device",
    "ElectrodeGroup",
    "Clustering",
    "ProcessingModule",
    "write_nwb",
    "export_nwb",
    "read_nwb",
    "load_trial_aligned_data",
    "NwbEphysError",
    "OutOfBoundsError",
    "BrokenReferenceError",
    "IndexOutOfRangeError",
    "EmptySelectionError",
    "ContainerIOError",
]
