import tempfile
import datetime
import pytest
import numpy as np
from nwbephys import (
    NWBFile,
    Container,
    ElectricalSeries,
    LazyArrayHandle,
    TimeIntervals,
    Clustering,
    export_nwb,
    read_nwb,
    resolve,
    write_nwb,
    IndexOutOfRangeError,
)
from nwbephys.NWBFile import ELECTRODES_PATH
from utils import arrays_are_equal, container_paths, create_example_nwbfile


def test_build_nwbfile():
    nwb = create_example_nwbfile()
    assert list(nwb.devices) == ['array']
    assert list(nwb.electrode_groups) == ['shank0', 'shank1']
    assert nwb.electrode_groups['shank1'].device is nwb.devices['array']
    assert nwb.electrodes is not None
    assert len(nwb.electrodes) == 10
    assert nwb.electrodes.colnames == ['x', 'y', 'z', 'imp', 'location', 'filtering', 'group', 'group_name', 'label']
    assert nwb.electrodes.get_row(6)['group_name'] == 'shank1'
    assert nwb.electrodes.get_row(6)['group'].path == '/general/extracellular_ephys/shank1'
    assert nwb.trials is not None
    assert len(nwb.trials) == 3
    assert nwb.experimenter == ['Last, First M.']
    s = str(nwb)
    assert 'Mouse5_Day3' in s
    assert 'ElectricalSeries' in s
    with pytest.raises(IndexOutOfRangeError):
        nwb.create_electrode_table_region([0, 10], 'too far')
    with pytest.raises(ValueError):
        nwb.create_device('array')
    with pytest.raises(ValueError):
        nwb.add_electrode(group=nwb.electrode_groups['shank0'], location='brain area')


def test_builders_reject_foreign_objects():
    nwb = create_example_nwbfile()
    other = create_example_nwbfile()
    with pytest.raises(ValueError):
        nwb.create_electrode_group('shank9', description='', location='', device=other.devices['array'])
    with pytest.raises(ValueError):
        nwb.add_electrode(group=other.electrode_groups['shank0'], location='brain area', label='x')


def test_naive_session_start_time_warns():
    with pytest.warns(UserWarning):
        nwb = NWBFile(
            session_description='d',
            identifier='i',
            session_start_time=datetime.datetime(2020, 1, 1)
        )
    assert nwb.session_start_time.tzinfo is not None


def test_nwbfile_round_trip():
    with tempfile.TemporaryDirectory() as tmpdir:
        for path in container_paths(tmpdir, 'ecephys.nwb'):
            nwb = create_example_nwbfile()
            export_nwb(nwb, path)
            with read_nwb(path) as nwb2:
                assert nwb2.identifier == nwb.identifier
                assert nwb2.session_description == nwb.session_description
                assert nwb2.session_start_time == nwb.session_start_time
                assert nwb2.experimenter == nwb.experimenter
                assert nwb2.lab == nwb.lab
                assert nwb2.institution == nwb.institution
                assert nwb2.session_id == nwb.session_id
                assert nwb2.object_id == nwb.object_id

                # devices and electrode groups, with the device link followed
                assert nwb2.devices['array'].manufacturer == 'Probe Company 9000'
                assert nwb2.electrode_groups['shank0'].device is nwb2.devices['array']
                assert nwb2.container is not None
                assert nwb2.container.get_link('/general/extracellular_ephys/shank0/device').path == '/general/devices/array'

                # electrode table
                electrodes = nwb2.electrodes
                assert electrodes is not None
                assert electrodes.readonly
                assert electrodes.colnames == nwb.electrodes.colnames
                assert len(electrodes) == 10
                assert list(electrodes.column_values('label')) == list(nwb.electrodes.column_values('label'))
                assert electrodes.get_row(6)['group'].path == '/general/extracellular_ephys/shank1'
                assert np.all(np.isnan(electrodes.column_values('x')))

                # the electrical series and its region of the electrode table
                es = nwb2.acquisition['ElectricalSeries']
                assert isinstance(es, ElectricalSeries)
                assert isinstance(es.data, LazyArrayHandle)
                assert es.data.shape == (1000, 10)
                assert es.rate == 200.0
                assert es.unit == 'volts'
                assert es.electrodes.target == ELECTRODES_PATH
                assert es.electrodes.indices == tuple(range(10))
                assert resolve(es.electrodes, nwb2.container) == list(range(10))
                expected = nwb.acquisition['ElectricalSeries'].data
                assert arrays_are_equal(es.data.materialize([100, 2], [5, 3]), expected[100:105, 2:5])

                # trials
                trials = nwb2.trials
                assert isinstance(trials, TimeIntervals)
                assert arrays_are_equal(trials.column_values('start_time'), [0.1, 1.5, 2.5])
                assert list(trials.select_rows({'correct': False})) == [0, 2]

                # processing
                clustering = nwb2.processing['ecephys']['Clustering']
                assert isinstance(clustering, Clustering)
                assert arrays_are_equal(clustering.times.materialize(), [0.5, 1.2, 1.3, 2.4, 3.1, 4.5])

                # units with ragged spike times
                units = nwb2.units
                assert units is not None
                assert list(units.id.values()) == [0, 1, 2]
                assert arrays_are_equal(units.get_unit_spike_times(0), [0.5, 2.4, 4.9])
                assert arrays_are_equal(units.get_unit_spike_times(1), [1.2, 3.1])
                assert arrays_are_equal(units.get_unit_spike_times(2), [1.3, 4.5])
            assert nwb2.container is None


def test_export_read_file():
    # a file read back (with lazy data) can be written to a new container
    with tempfile.TemporaryDirectory() as tmpdir:
        export_nwb(create_example_nwbfile(), f'{tmpdir}/a.nwb')
        with read_nwb(f'{tmpdir}/a.nwb') as nwb:
            export_nwb(nwb, f'{tmpdir}/b.nwb.zarr')
        with read_nwb(f'{tmpdir}/b.nwb.zarr') as nwb:
            assert nwb.electrodes is not None
            assert len(nwb.electrodes) == 10
            assert nwb.units is not None
            assert arrays_are_equal(nwb.units.get_unit_spike_times(1), [1.2, 3.1])


def test_write_into_in_memory_container():
    nwb = create_example_nwbfile()
    c = Container.in_memory()
    write_nwb(nwb, c)
    assert c.attrs('/')['neurodata_type'] == 'NWBFile'
    assert c.read_scalar('/identifier') == 'Mouse5_Day3'
    assert c.dataset('/units/spike_times_index').materialize().tolist() == [3, 5, 7]
    c.close()


def test_read_non_nwb_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        with Container.create(f'{tmpdir}/x.h5') as c:
            c.create_dataset('/X', [1, 2, 3])
        with pytest.raises(ValueError):
            read_nwb(f'{tmpdir}/x.h5')


if __name__ == '__main__':
    test_nwbfile_round_trip()
