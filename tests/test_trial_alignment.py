import tempfile
import pytest
import numpy as np
from nwbephys import (
    Container,
    LazyArrayHandle,
    TimeIntervals,
    TimeSeries,
    export_nwb,
    read_nwb,
    load_trial_aligned_data,
    EmptySelectionError,
)
from utils import arrays_are_equal, container_paths, create_example_nwbfile


def _create_trials():
    trials = TimeIntervals(name='trials', description='experimental trials')
    trials.add_column('correct', 'whether the trial was correct')
    trials.add_interval(0.1, 1.0, correct=False)
    trials.add_interval(1.5, 2.0, correct=True)
    trials.add_interval(2.5, 3.0, correct=False)
    return trials


def test_select_incorrect_trials():
    data = np.arange(1000 * 10, dtype=np.float64).reshape(1000, 10)
    ts = TimeSeries(name='ts', data=data, unit='volts', starting_time=0.0, rate=200.0)
    trials = _create_trials()
    ret, tt = load_trial_aligned_data(trials, ts, [-0.05, 0.5], {'correct': False})
    assert ret.shape == (111, 10, 2)
    assert len(tt) == 111
    assert abs(tt[0] + 0.05) < 1e-12
    assert abs(tt[-1] - 0.5) < 1e-12
    # trial 0 starts at sample 20, trial 2 at sample 500
    assert arrays_are_equal(ret[:, :, 0], data[10:121])
    assert arrays_are_equal(ret[:, :, 1], data[490:601])


def test_symmetric_window_and_channels():
    data = np.arange(1000 * 10, dtype=np.float64).reshape(1000, 10)
    ts = TimeSeries(name='ts', data=data, unit='volts', starting_time=0.0, rate=200.0)
    ret, tt = load_trial_aligned_data(_create_trials(), ts, 0.1, channels=[7, 2])
    assert ret.shape == (41, 2, 3)
    assert arrays_are_equal(ret[:, 0, 1], data[280:321, 7])
    assert arrays_are_equal(ret[:, 1, 1], data[280:321, 2])


def test_timestamps_series():
    data = np.arange(1000, dtype=np.float64)
    ts = TimeSeries(name='ts', data=data, unit='volts', timestamps=np.arange(1000) / 200.0)
    ret, _ = load_trial_aligned_data(_create_trials(), ts, [-0.05, 0.5], {'correct': True})
    assert ret.shape == (111, 1, 1)
    assert arrays_are_equal(ret[:, 0, 0], data[290:401])


def test_timestamps_are_read_once(monkeypatch):
    full_reads = []
    materialize = LazyArrayHandle.materialize

    def counting_materialize(self, start=None, count=None):
        if start is None:
            full_reads.append(self.name)
        return materialize(self, start, count)

    monkeypatch.setattr(LazyArrayHandle, 'materialize', counting_materialize)
    data = np.arange(1000, dtype=np.float64)
    with tempfile.TemporaryDirectory() as tmpdir:
        for path in container_paths(tmpdir):
            full_reads.clear()
            with Container.create(path) as c:
                timestamps = c.create_dataset('/timestamps', np.arange(1000) / 200.0)
                ts = TimeSeries(name='ts', data=data, unit='volts', timestamps=timestamps)
                ret, _ = load_trial_aligned_data(_create_trials(), ts, [-0.05, 0.5])
                assert ret.shape == (111, 1, 3)
                assert arrays_are_equal(ret[:, 0, 0], data[10:121])
                assert arrays_are_equal(ret[:, 0, 2], data[490:601])
            assert full_reads == ['/timestamps']


def test_edge_windows_are_padded():
    data = np.ones((560, 2))
    ts = TimeSeries(name='ts', data=data, unit='volts', rate=200.0)
    with pytest.warns(UserWarning):
        ret, _ = load_trial_aligned_data(_create_trials(), ts, [-0.2, 0.5], {'correct': False})
    assert ret.shape == (141, 2, 2)
    # trial 0 starts at sample 20: 20 samples are missing on the left
    assert np.all(np.isnan(ret[:20, :, 0]))
    assert np.all(ret[20:, :, 0] == 1)
    # trial 2 starts at sample 500: the recording ends at 560, 41 samples missing on the right
    assert np.all(ret[:100, :, 1] == 1)
    assert np.all(np.isnan(ret[100:, :, 1]))


def test_empty_selection():
    ts = TimeSeries(name='ts', data=np.zeros((100,)), unit='volts', rate=200.0)
    trials = _create_trials()
    with pytest.raises(EmptySelectionError):
        load_trial_aligned_data(trials, ts, 0.1, {'correct': True, 'start_time': 0.1})
    with pytest.raises(KeyError):
        load_trial_aligned_data(trials, ts, 0.1, {'not_a_column': True})
    with pytest.raises(ValueError):
        load_trial_aligned_data(trials, ts, [0.5, -0.5])


def test_from_nwb_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        for path in container_paths(tmpdir, 'ecephys.nwb'):
            nwb = create_example_nwbfile()
            expected = nwb.acquisition['ElectricalSeries'].data
            export_nwb(nwb, path)
            with read_nwb(path) as nwb2:
                ret, tt = load_trial_aligned_data(nwb2, 'ElectricalSeries', [-0.05, 0.5], {'correct': False})
                assert ret.shape == (111, 10, 2)
                assert arrays_are_equal(ret[:, :, 0], expected[10:121])
                assert arrays_are_equal(ret[:, :, 1], expected[490:601])


if __name__ == '__main__':
    test_select_incorrect_trials()
