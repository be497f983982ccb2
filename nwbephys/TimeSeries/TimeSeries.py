from typing import Sequence, Union
import uuid
import warnings
import numpy as np

from ..LazyArrayHandle.LazyArrayHandle import LazyArrayHandle, check_block
from ..References.RegionReference import RegionReference


ArrayData = Union[np.ndarray, LazyArrayHandle]


class TimeSeries:
    """
    Samples of a quantity over time. Samples are along the first axis of
    data (time x channels for multi-channel data).

    Timing is given either by starting_time and rate (regularly sampled) or
    by an explicit timestamp for every sample, never both.
    """
    neurodata_type = 'TimeSeries'
    namespace = 'core'

    def __init__(
        self,
        *,
        name: str,
        data: Union[ArrayData, Sequence],
        unit: str,
        starting_time: Union[float, None] = None,
        rate: Union[float, None] = None,
        timestamps: Union[ArrayData, Sequence[float], None] = None,
        description: str = 'no description',
        comments: str = 'no comments',
        conversion: float = 1.0,
        resolution: float = -1.0
    ):
        self.name = name
        self.unit = unit
        self.description = description
        self.comments = comments
        self.conversion = float(conversion)
        self.resolution = float(resolution)
        self.object_id = str(uuid.uuid4())
        self._data: ArrayData = data if isinstance(data, LazyArrayHandle) else np.asarray(data)
        if len(self._data.shape) == 0:
            raise ValueError(f"Data of time series {name} must have at least one dimension")

        if timestamps is not None and rate is not None:
            warnings.warn(f"Time series {name} has both timestamps and a rate. Using the timestamps and ignoring the rate.")
            rate = None
            starting_time = None
        if timestamps is None and rate is None:
            raise ValueError(f"Time series {name} needs either timestamps or a rate")
        if starting_time is not None and rate is None:
            raise ValueError(f"starting_time of time series {name} requires a rate")
        if rate is not None and rate <= 0:
            raise ValueError(f"Rate of time series {name} must be positive, got {rate}")

        self._rate: Union[float, None] = None if rate is None else float(rate)
        self._starting_time: Union[float, None] = None
        self._timestamps: Union[ArrayData, None] = None
        if self._rate is not None:
            self._starting_time = 0.0 if starting_time is None else float(starting_time)
        else:
            assert timestamps is not None
            self._timestamps = timestamps if isinstance(timestamps, LazyArrayHandle) else np.asarray(timestamps, dtype=np.float64)
            if len(self._timestamps.shape) != 1 or self._timestamps.shape[0] != self.num_samples:
                raise ValueError(
                    f"Time series {name} has {self.num_samples} samples but timestamps of shape {self._timestamps.shape}"
                )

    @property
    def data(self) -> ArrayData:
        return self._data

    @property
    def rate(self) -> Union[float, None]:
        return self._rate

    @property
    def starting_time(self) -> Union[float, None]:
        return self._starting_time

    @property
    def timestamps(self) -> Union[ArrayData, None]:
        return self._timestamps

    @property
    def num_samples(self) -> int:
        return int(self._data.shape[0])

    @property
    def num_channels(self) -> int:
        """Size of the second axis of data (1 for one-dimensional data)."""
        return int(self._data.shape[1]) if len(self._data.shape) > 1 else 1

    def sample_time(self, k: int) -> float:
        """Time in seconds of sample k."""
        n = self.num_samples
        if k < 0 or k >= n:
            raise IndexError(f"Sample {k} out of range for time series {self.name} with {n} samples")
        if self._rate is not None:
            assert self._starting_time is not None
            return self._starting_time + k / self._rate
        assert self._timestamps is not None
        return float(_read_block(self._timestamps, [k], [1])[0])

    def sample_index(self, t: float, timestamps: Union[np.ndarray, None] = None) -> int:
        """
        Index of the sample nearest to time t. Times before the first or
        after the last sample are extrapolated with the sampling period, so
        the result may lie outside [0, num_samples).

        For a series with timestamps, timestamps may be the already
        materialized result of get_timestamps(), in which case the container
        is not read again.
        """
        if self._rate is not None:
            assert self._starting_time is not None
            return int(round((t - self._starting_time) * self._rate))
        ts = self.get_timestamps() if timestamps is None else timestamps
        n = len(ts)
        if t <= ts[0]:
            return int(round((t - ts[0]) / self.sampling_period(ts))) if n > 1 else 0
        if t >= ts[-1]:
            return n - 1 + (int(round((t - ts[-1]) / self.sampling_period(ts))) if n > 1 else 0)
        i = int(np.searchsorted(ts, t))
        # ts[i - 1] < t <= ts[i]
        return i if ts[i] - t < t - ts[i - 1] else i - 1

    def get_timestamps(self) -> np.ndarray:
        if self._rate is not None:
            assert self._starting_time is not None
            return self._starting_time + np.arange(self.num_samples) / self._rate
        assert self._timestamps is not None
        return _read_block(self._timestamps, None, None).astype(np.float64)

    def sampling_period(self, timestamps: Union[np.ndarray, None] = None) -> float:
        """1 / rate, or the median spacing of the timestamps (read unless given)."""
        if self._rate is not None:
            return 1 / self._rate
        ts = self.get_timestamps() if timestamps is None else timestamps
        if len(ts) < 2:
            raise ValueError(f"Cannot determine sampling period of time series {self.name} from {len(ts)} timestamps")
        return float(np.median(np.diff(ts)))

    def read_samples(self, start: int, count: int, *, channel_start: int = 0, channel_count: Union[int, None] = None) -> np.ndarray:
        """Read samples [start, start + count) of channels [channel_start, channel_start + channel_count)."""
        if len(self._data.shape) == 1:
            if channel_start != 0 or channel_count not in (None, 1):
                raise ValueError(f"Time series {self.name} has a single channel")
            return _read_block(self._data, [start], [count])
        starts = [start, channel_start] + [0] * (len(self._data.shape) - 2)
        counts = [count, channel_count] + [None] * (len(self._data.shape) - 2)
        return _read_block(self._data, starts, counts)

    def __repr__(self):
        timing = f'rate={self._rate}' if self._rate is not None else 'timestamps'
        return f'<{self.__class__.__name__} "{self.name}" shape={tuple(self._data.shape)} unit={self.unit} {timing}>'


class ElectricalSeries(TimeSeries):
    """Voltage traces of extracellular recordings, one column per electrode."""
    neurodata_type = 'ElectricalSeries'

    def __init__(
        self,
        *,
        name: str,
        data: Union[ArrayData, Sequence],
        electrodes: RegionReference,
        unit: str = 'volts',
        starting_time: Union[float, None] = None,
        rate: Union[float, None] = None,
        timestamps: Union[ArrayData, Sequence[float], None] = None,
        description: str = 'no description',
        comments: str = 'no comments',
        conversion: float = 1.0,
        resolution: float = -1.0,
        filtering: Union[str, None] = None
    ):
        super().__init__(
            name=name,
            data=data,
            unit=unit,
            starting_time=starting_time,
            rate=rate,
            timestamps=timestamps,
            description=description,
            comments=comments,
            conversion=conversion,
            resolution=resolution
        )
        if len(electrodes) != self.num_channels:
            raise ValueError(
                f"Electrical series {name} has {self.num_channels} channels but references {len(electrodes)} electrodes"
            )
        self.electrodes = electrodes
        self.filtering = filtering


def _read_block(data: ArrayData, start, count) -> np.ndarray:
    if isinstance(data, LazyArrayHandle):
        return data.materialize(start, count)
    if start is None:
        return data
    return data[check_block(data.shape, start, count, label='data')]
