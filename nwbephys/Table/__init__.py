from .VectorData import VectorData, VectorIndex, ElementIdentifiers
from .Table import Table
from .TimeIntervals import TimeIntervals
from .Units import Units, create_spike_times

__all__ = [
    "VectorData",
    "VectorIndex",
    "ElementIdentifiers",
    "Table",
    "TimeIntervals",
    "Units",
    "create_spike_times",
]
