import datetime
import numpy as np
import nwbephys

# Session metadata
nwb = nwbephys.NWBFile(
    session_description='mouse in open exploration',
    identifier='Mouse5_Day3',
    session_start_time=datetime.datetime(2018, 4, 25, 2, 30, 3, tzinfo=datetime.timezone.utc),
    lab='Bag End Laboratory',
    institution='University of Middle Earth at the Shire'
)

# One device with four shanks of three electrodes each
device = nwb.create_device('array', description='the best array', manufacturer='Probe Company 9000')
nwb.add_electrode_column('label', 'label of electrode')
num_shanks = 4
channels_per_shank = 3
for ishank in range(num_shanks):
    group = nwb.create_electrode_group(
        f'shank{ishank}',
        description=f'electrode group for shank {ishank}',
        location='brain area',
        device=device
    )
    for ielec in range(channels_per_shank):
        nwb.add_electrode(group=group, location='brain area', label=f'shank{ishank}elec{ielec}')

# Voltage traces referencing all electrodes (samples x channels)
num_channels = num_shanks * channels_per_shank
region = nwb.create_electrode_table_region(list(range(num_channels)), 'all electrodes')
nwb.add_acquisition(nwbephys.ElectricalSeries(
    name='ElectricalSeries',
    data=np.random.randn(3000, num_channels),
    electrodes=region,
    starting_time=0.0,
    rate=1000.0
))

# Trials
nwb.add_trial_column('correct', 'whether the trial was correct')
nwb.add_trial(0.1, 1.0, correct=False)
nwb.add_trial(1.5, 2.0, correct=True)
nwb.add_trial(2.5, 3.0, correct=False)

# Sorted spikes
ecephys_module = nwb.create_processing_module('ecephys', 'extracellular electrophysiology data')
ecephys_module.add(nwbephys.Clustering(
    description='my_description',
    num=[0, 1, 2, 0, 1, 2],
    peak_over_rms=[100.0, 101.0, 102.0],
    times=[0.5, 1.2, 1.3, 2.4, 3.1, 4.5]
))
num_cells = 10
firing_rate = 20
num_spikes = 200
cluster_ids = np.random.randint(0, num_cells, size=num_spikes)
spike_times = np.sort(np.random.exponential(1 / firing_rate, size=num_spikes).cumsum())
unit_ids, spike_times_vector, spike_times_index = nwbephys.create_spike_times(cluster_ids, spike_times)
nwb.units = nwbephys.Units(columns=[spike_times_vector, spike_times_index], id=unit_ids)

print(nwb)
nwbephys.export_nwb(nwb, 'ecephys_tutorial.nwb')

# Read back lazily
with nwbephys.read_nwb('ecephys_tutorial.nwb') as nwb2:
    es = nwb2.acquisition['ElectricalSeries']
    print(es.data)
    print('First 10 samples of channels 0-2:')
    print(es.data.materialize([0, 0], [10, 3]))
    assert nwb2.container is not None
    print('Electrode ids:', nwbephys.resolve(es.electrodes, nwb2.container))
    data, tt = nwbephys.load_trial_aligned_data(nwb2, 'ElectricalSeries', [-0.05, 0.5], {'correct': False})
    print(f'Trial aligned data: {data.shape} ({len(tt)} samples per trial)')
    assert nwb2.units is not None
    print('Spike times of unit 0:', nwb2.units.get_unit_spike_times(0))
