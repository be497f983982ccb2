from typing import List
import datetime
import numpy as np
from nwbephys import (
    NWBFile,
    ElectricalSeries,
    Clustering,
    Units,
    create_spike_times,
)


def container_paths(tmpdir: str, name: str = 'test') -> List[str]:
    """One path per backend: an HDF5 file and a zarr directory."""
    return [f'{tmpdir}/{name}.h5', f'{tmpdir}/{name}.zarr']


def create_example_nwbfile(*, num_shanks: int = 2, channels_per_shank: int = 5, num_samples: int = 1000, rate: float = 200.0) -> NWBFile:
    nwb = NWBFile(
        session_description='mouse in open exploration',
        identifier='Mouse5_Day3',
        session_start_time=datetime.datetime(2018, 4, 25, 2, 30, 3, tzinfo=datetime.timezone.utc),
        experimenter='Last, First M.',
        lab='Bag End Laboratory',
        institution='University of Middle Earth at the Shire',
        session_id='IBL-0001'
    )
    device = nwb.create_device('array', description='the best array', manufacturer='Probe Company 9000')
    nwb.add_electrode_column('label', 'label of electrode')
    for ishank in range(num_shanks):
        group = nwb.create_electrode_group(
            f'shank{ishank}',
            description=f'electrode group for shank {ishank}',
            location='brain area',
            device=device
        )
        for ielec in range(channels_per_shank):
            nwb.add_electrode(
                group=group,
                location='brain area',
                label=f'shank{ishank}elec{ielec}'
            )
    num_channels = num_shanks * channels_per_shank
    region = nwb.create_electrode_table_region(list(range(num_channels)), 'all electrodes')
    data = np.arange(num_samples * num_channels, dtype=np.float64).reshape(num_samples, num_channels)
    nwb.add_acquisition(ElectricalSeries(
        name='ElectricalSeries',
        data=data,
        electrodes=region,
        starting_time=0.0,
        rate=rate
    ))

    nwb.add_trial_column('correct', 'whether the trial was correct')
    nwb.add_trial(0.1, 1.0, correct=False)
    nwb.add_trial(1.5, 2.0, correct=True)
    nwb.add_trial(2.5, 3.0, correct=False)

    ecephys_module = nwb.create_processing_module('ecephys', 'extracellular electrophysiology data')
    ecephys_module.add(Clustering(
        description='my_description',
        num=[0, 1, 2, 0, 1, 2],
        peak_over_rms=[100.0, 101.0, 102.0],
        times=[0.5, 1.2, 1.3, 2.4, 3.1, 4.5]
    ))

    unit_ids, spike_times_vector, spike_times_index = create_spike_times(
        [0, 1, 2, 0, 1, 2, 0],
        [0.5, 1.2, 1.3, 2.4, 3.1, 4.5, 4.9]
    )
    nwb.units = Units(columns=[spike_times_vector, spike_times_index], id=unit_ids.tolist())
    return nwb


def arrays_are_equal(a, b):
    a = np.asarray(a)
    b = np.asarray(b)
    if a.shape != b.shape:
        return False
    # if this is numeric data we need to use allclose so that we can handle NaNs
    if np.issubdtype(a.dtype, np.number) and np.issubdtype(b.dtype, np.number):
        return np.allclose(a, b, equal_nan=True)
    else:
        return np.array_equal(a, b)


def lists_are_equal(a, b):
    if len(a) != len(b):
        return False
    for aa, bb in zip(a, b):
        if aa != bb:
            if np.isnan(aa) and np.isnan(bb):
                # nan != nan, but we want to consider them equal
                continue
            return False
    return True
