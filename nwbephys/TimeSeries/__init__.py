from .TimeSeries import TimeSeries, ElectricalSeries

__all__ = [
    "TimeSeries",
    "ElectricalSeries",
]
