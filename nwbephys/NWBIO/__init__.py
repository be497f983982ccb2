from .write_nwb import write_nwb, export_nwb
from .read_nwb import read_nwb, read_nwb_container

__all__ = [
    "write_nwb",
    "export_nwb",
    "read_nwb",
    "read_nwb_container",
]
