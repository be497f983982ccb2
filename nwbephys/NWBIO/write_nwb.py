from typing import Union
import uuid
import numpy as np

from ..Container.Container import Container
from ..Container.ContainerOpts import ContainerOpts
from ..LazyArrayHandle.LazyArrayHandle import LazyArrayHandle
from ..NWBFile.NWBFile import NWBFile, NWB_VERSION, DEVICES_PATH, EXTRACELLULAR_EPHYS_PATH, ELECTRODES_PATH
from ..NWBFile.records import Clustering, Device, ElectrodeGroup, ProcessingModule
from ..References.ObjectView import ObjectView
from ..Table.Table import Table
from ..Table.VectorData import VectorData, VectorIndex
from ..TimeSeries.TimeSeries import TimeSeries, ElectricalSeries


def export_nwb(nwb: NWBFile, path: str, *, mode: str = "w", opts: Union[ContainerOpts, None] = None):
    """
    Write an NWB file to a new container at path (an HDF5 file, or a zarr
    directory if path ends with '.zarr').
    """
    with Container.create(path, mode=mode, opts=opts) as container:  # type: ignore
        write_nwb(nwb, container)


def write_nwb(nwb: NWBFile, container: Container):
    """
    Write an NWB file into an empty container and flush it.

    Objects are written before anything that refers to them: devices,
    electrode groups (which link to their device), the electrode table
    (which references the groups), acquisition (which references the
    electrode table), intervals, processing and units.
    """
    _write_attrs(container, '/', 'NWBFile', 'core', nwb.object_id)
    container.set_attr('/', 'nwb_version', NWB_VERSION)
    container.create_dataset('/identifier', nwb.identifier)
    container.create_dataset('/session_description', nwb.session_description)
    container.create_dataset('/session_start_time', nwb.session_start_time.isoformat())
    container.create_dataset('/timestamps_reference_time', nwb.timestamps_reference_time.isoformat())
    container.create_dataset('/file_create_date', [nwb.file_create_date.isoformat()])
    for name in ['acquisition', 'analysis', 'processing', 'stimulus/presentation', 'stimulus/templates', 'general']:
        container.require_group(f'/{name}')
    if nwb.experimenter is not None:
        container.create_dataset('/general/experimenter', nwb.experimenter)
    for name in ['lab', 'institution', 'session_id']:
        value = getattr(nwb, name)
        if value is not None:
            container.create_dataset(f'/general/{name}', value)

    for device in nwb.devices.values():
        _write_device(container, device)
    for group in nwb.electrode_groups.values():
        _write_electrode_group(container, group)
    if nwb.electrodes is not None:
        _write_table(container, ELECTRODES_PATH, nwb.electrodes)
    for timeseries in nwb.acquisition.values():
        _write_timeseries(container, f'/acquisition/{timeseries.name}', timeseries)
    for intervals in nwb.intervals.values():
        _write_table(container, f'/intervals/{intervals.name}', intervals)
    for module in nwb.processing.values():
        _write_processing_module(container, module)
    if nwb.units is not None:
        _write_table(container, '/units', nwb.units)
    container.flush()


def _write_attrs(container: Container, path: str, neurodata_type: str, namespace: str, object_id: Union[str, None] = None):
    container.set_attrs(path, {
        'namespace': namespace,
        'neurodata_type': neurodata_type,
        'object_id': object_id if object_id is not None else str(uuid.uuid4())
    })


def _write_device(container: Container, device: Device):
    path = f'{DEVICES_PATH}/{device.name}'
    container.create_group(path)
    _write_attrs(container, path, device.neurodata_type, device.namespace, device.object_id)
    container.set_attrs(path, {'description': device.description, 'manufacturer': device.manufacturer})


def _write_electrode_group(container: Container, group: ElectrodeGroup):
    path = f'{EXTRACELLULAR_EPHYS_PATH}/{group.name}'
    container.create_group(path)
    _write_attrs(container, path, group.neurodata_type, group.namespace, group.object_id)
    container.set_attrs(path, {'description': group.description, 'location': group.location})
    container.set_soft_link(f'{path}/device', f'{DEVICES_PATH}/{group.device.name}')


def _write_table(container: Container, path: str, table: Table):
    table.validate()
    container.create_group(path)
    _write_attrs(container, path, table.neurodata_type, table.namespace, table.object_id)
    container.set_attrs(path, {'description': table.description, 'colnames': table.colnames})
    container.create_dataset(f'{path}/id', table.id.values())
    _write_attrs(container, f'{path}/id', table.id.neurodata_type, 'hdmf-common')
    # targets come before their index columns in table.columns
    for col in table.columns:
        _write_column(container, f'{path}/{col.name}', col)
        if isinstance(col, VectorIndex):
            container.set_attr(f'{path}/{col.name}', 'target', container.object_view(f'{path}/{col.target.name}'))


def _write_column(container: Container, path: str, col: VectorData):
    container.create_dataset(path, col.values())
    _write_attrs(container, path, col.neurodata_type, 'hdmf-common')
    container.set_attr(path, 'description', col.description)


def _write_timeseries(container: Container, path: str, timeseries: TimeSeries):
    container.create_group(path)
    _write_attrs(container, path, timeseries.neurodata_type, timeseries.namespace, timeseries.object_id)
    container.set_attrs(path, {'description': timeseries.description, 'comments': timeseries.comments})
    container.create_dataset(f'{path}/data', _materialize(timeseries.data))
    container.set_attrs(f'{path}/data', {
        'unit': timeseries.unit,
        'conversion': timeseries.conversion,
        'resolution': timeseries.resolution,
        'offset': 0.0
    })
    if timeseries.rate is not None:
        container.create_dataset(f'{path}/starting_time', timeseries.starting_time)
        container.set_attrs(f'{path}/starting_time', {'rate': timeseries.rate, 'unit': 'seconds'})
    else:
        assert timeseries.timestamps is not None
        container.create_dataset(f'{path}/timestamps', _materialize(timeseries.timestamps))
        container.set_attrs(f'{path}/timestamps', {'interval': 1, 'unit': 'seconds'})
    if isinstance(timeseries, ElectricalSeries):
        electrodes = timeseries.electrodes
        container.create_dataset(f'{path}/electrodes', np.array(electrodes.indices, dtype=np.int64))
        _write_attrs(container, f'{path}/electrodes', 'DynamicTableRegion', 'hdmf-common')
        container.set_attrs(f'{path}/electrodes', {
            'description': electrodes.description,
            'table': ObjectView(electrodes.target, electrodes.object_id)
        })
        if timeseries.filtering is not None:
            container.set_attr(path, 'filtering', timeseries.filtering)


def _write_clustering(container: Container, path: str, clustering: Clustering):
    container.create_group(path)
    _write_attrs(container, path, clustering.neurodata_type, clustering.namespace, clustering.object_id)
    container.set_attr(path, 'description', clustering.description)
    container.create_dataset(f'{path}/num', _materialize(clustering.num))
    container.create_dataset(f'{path}/peak_over_rms', _materialize(clustering.peak_over_rms))
    container.create_dataset(f'{path}/times', _materialize(clustering.times))
    container.set_attrs(f'{path}/times', {'resolution': -1.0, 'unit': 'seconds'})


def _write_processing_module(container: Container, module: ProcessingModule):
    path = f'/processing/{module.name}'
    container.create_group(path)
    _write_attrs(container, path, module.neurodata_type, module.namespace, module.object_id)
    container.set_attr(path, 'description', module.description)
    for name, data_interface in module.data_interfaces.items():
        if isinstance(data_interface, TimeSeries):
            _write_timeseries(container, f'{path}/{name}', data_interface)
        elif isinstance(data_interface, Table):
            _write_table(container, f'{path}/{name}', data_interface)
        elif isinstance(data_interface, Clustering):
            _write_clustering(container, f'{path}/{name}', data_interface)
        else:
            raise TypeError(f"Unsupported data interface in processing module {module.name}: {type(data_interface)}")


def _materialize(x: Union[np.ndarray, LazyArrayHandle]) -> np.ndarray:
    if isinstance(x, LazyArrayHandle):
        return x.materialize()
    return x
