from .NWBFile import NWBFile, ELECTRODES_PATH
from .records import Device, ElectrodeGroup, Clustering, ProcessingModule

__all__ = [
    "NWBFile",
    "ELECTRODES_PATH",
    "Device",
    "ElectrodeGroup",
    "Clustering",
    "ProcessingModule",
]
