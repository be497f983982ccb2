from typing import Mapping, Sequence, Tuple, Union
import warnings
import numpy as np

from ..NWBFile.NWBFile import NWBFile
from ..Table.Table import Table, ConditionValue
from ..TimeSeries.TimeSeries import TimeSeries
from ..errors import EmptySelectionError


Window = Union[float, Tuple[float, float], Sequence[float]]


def load_trial_aligned_data(
    trials: Union[Table, NWBFile],
    timeseries: Union[TimeSeries, str],
    window: Window,
    conditions: Union[Mapping[str, ConditionValue], None] = None,
    *,
    channels: Union[Sequence[int], None] = None
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Cut a window of samples around the start of each selected trial.

    Parameters
    ----------
    trials : Union[Table, NWBFile]
        A table with a start_time column, or an NWB file whose trials table
        is used.
    timeseries : Union[TimeSeries, str]
        The series to cut. A name is looked up in the acquisition of the NWB
        file passed as trials.
    window : float or (before, after)
        Window in seconds relative to each trial start. A single number w
        means (-w, w).
    conditions : Mapping[str, value], optional
        Only trials whose columns equal all of the given values are used.
    channels : Sequence[int], optional
        Channels to read, by default all of them.

    Returns
    -------
    data : np.ndarray
        Array of shape (samples per window, channels, selected trials).
        Samples of a window that fall outside the recording are NaN.
    tt : np.ndarray
        Time of each window sample relative to the trial start, in seconds.
    """
    if isinstance(trials, NWBFile):
        nwb = trials
        if nwb.trials is None:
            raise ValueError("The NWB file has no trials")
        trials = nwb.trials
        if isinstance(timeseries, str):
            if timeseries not in nwb.acquisition:
                raise KeyError(f"No acquisition named {timeseries}")
            timeseries = nwb.acquisition[timeseries]
    if isinstance(timeseries, str):
        raise TypeError("A time series name can only be used together with an NWB file")

    before, after = _parse_window(window)
    rows = trials.select_rows(conditions or {})
    if len(rows) == 0:
        raise EmptySelectionError(f"No trials of {trials.name} match {dict(conditions or {})}")
    start_times = np.asarray(trials.column_values('start_time'))[rows]

    # read once, not once per trial
    timestamps = timeseries.get_timestamps() if timeseries.rate is None else None
    period = timeseries.sampling_period(timestamps)
    offset_before = int(round(before / period))
    offset_after = int(round(after / period))
    num_window_samples = offset_after - offset_before + 1
    if num_window_samples < 1:
        raise ValueError(f"Window ({before}, {after}) is shorter than one sample")
    tt = np.arange(offset_before, offset_after + 1) * period

    channel_list = _channel_list(timeseries, channels)
    channel_start = min(channel_list)
    channel_count = max(channel_list) - channel_start + 1
    n = timeseries.num_samples
    one_dimensional = len(timeseries.data.shape) == 1

    ret = np.full((num_window_samples, len(channel_list), len(rows)), np.nan, dtype=np.float64)
    padded = False
    for j, t in enumerate(start_times):
        center = timeseries.sample_index(float(t), timestamps)
        a = center + offset_before
        b = center + offset_after + 1
        a_clamped = max(a, 0)
        b_clamped = min(b, n)
        if a_clamped != a or b_clamped != b:
            padded = True
        if b_clamped <= a_clamped:
            continue
        if one_dimensional:
            block = timeseries.read_samples(a_clamped, b_clamped - a_clamped).reshape(-1, 1)
        else:
            block = timeseries.read_samples(
                a_clamped,
                b_clamped - a_clamped,
                channel_start=channel_start,
                channel_count=channel_count
            )
            block = block[:, [c - channel_start for c in channel_list]]
        ret[a_clamped - a:b_clamped - a, :, j] = block
    if padded:
        warnings.warn(f"Some trial windows extend past the samples of {timeseries.name} and were padded with NaN.")
    return ret, tt


def _parse_window(window: Window) -> Tuple[float, float]:
    if isinstance(window, (int, float, np.integer, np.floating)):
        w = float(window)
        if w < 0:
            raise ValueError(f"Window must not be negative, got {window}")
        return -w, w
    if len(window) != 2:
        raise ValueError(f"Window must be a number or a pair (before, after), got {window}")
    before, after = float(window[0]), float(window[1])
    if after < before:
        raise ValueError(f"Window end {after} is before its start {before}")
    return before, after


def _channel_list(timeseries: TimeSeries, channels: Union[Sequence[int], None]) -> Sequence[int]:
    num_channels = timeseries.num_channels
    if channels is None:
        return list(range(num_channels))
    channels = [int(c) for c in channels]
    if len(channels) == 0:
        raise ValueError("No channels selected")
    for c in channels:
        if c < 0 or c >= num_channels:
            raise IndexError(f"Channel {c} out of range for {timeseries.name} with {num_channels} channels")
    return channels
