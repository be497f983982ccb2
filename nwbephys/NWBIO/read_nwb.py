from typing import Dict, List, Union
import datetime
import numpy as np

from ..Container.Container import Container, ContainerMode
from ..NWBFile.NWBFile import NWBFile, DEVICES_PATH, EXTRACELLULAR_EPHYS_PATH, ELECTRODES_PATH
from ..NWBFile.records import Clustering, Device, ElectrodeGroup, ProcessingModule
from ..References.RegionReference import RegionReference
from ..References.resolve import resolve_object_view
from ..Table.Table import Table
from ..Table.TimeIntervals import TimeIntervals
from ..Table.Units import Units
from ..Table.VectorData import VectorData, VectorIndex, ElementIdentifiers
from ..TimeSeries.TimeSeries import TimeSeries, ElectricalSeries
from ..errors import BrokenReferenceError


_table_classes = {
    'DynamicTable': Table,
    'TimeIntervals': TimeIntervals,
    'Units': Units,
}

_timeseries_classes = {
    'TimeSeries': TimeSeries,
    'ElectricalSeries': ElectricalSeries,
}


def read_nwb(url_or_path: str, *, mode: ContainerMode = "r") -> NWBFile:
    """
    Open an NWB file (local HDF5 file, zarr directory or remote HDF5 URL).

    No array data is read: every dataset of the returned file is a
    LazyArrayHandle. The container stays open until the file is closed.
    """
    container = Container.open(url_or_path, mode=mode)
    try:
        return read_nwb_container(container)
    except Exception:
        container.close()
        raise


def read_nwb_container(container: Container) -> NWBFile:
    root_attrs = container.attrs('/')
    if root_attrs.get('neurodata_type', None) != 'NWBFile':
        raise ValueError(f"Not an NWB file: {container.source}")
    experimenter = None
    if '/general/experimenter' in container:
        experimenter = _as_str_list(container.read_scalar('/general/experimenter'))
    file_create_date = _as_str_list(container.read_scalar('/file_create_date'))
    nwb = NWBFile(
        session_description=str(container.read_scalar('/session_description')),
        identifier=str(container.read_scalar('/identifier')),
        session_start_time=datetime.datetime.fromisoformat(str(container.read_scalar('/session_start_time'))),
        file_create_date=datetime.datetime.fromisoformat(file_create_date[0]) if file_create_date else None,
        experimenter=experimenter,
        lab=_read_optional_str(container, '/general/lab'),
        institution=_read_optional_str(container, '/general/institution'),
        session_id=_read_optional_str(container, '/general/session_id')
    )
    nwb.object_id = root_attrs.get('object_id', nwb.object_id)

    if DEVICES_PATH in container:
        for name in container.keys(DEVICES_PATH):
            path = f'{DEVICES_PATH}/{name}'
            attrs = container.attrs(path)
            device = Device(name=name, description=attrs.get('description', ''), manufacturer=attrs.get('manufacturer', ''))
            _set_object_id(device, attrs)
            nwb.devices[name] = device

    if EXTRACELLULAR_EPHYS_PATH in container:
        for name in container.keys(EXTRACELLULAR_EPHYS_PATH):
            path = f'{EXTRACELLULAR_EPHYS_PATH}/{name}'
            attrs = container.attrs(path)
            if attrs.get('neurodata_type', None) != 'ElectrodeGroup':
                continue
            group = ElectrodeGroup(
                name=name,
                description=attrs.get('description', ''),
                location=attrs.get('location', ''),
                device=_read_group_device(container, nwb, path)
            )
            _set_object_id(group, attrs)
            nwb.electrode_groups[name] = group

    if ELECTRODES_PATH in container:
        nwb.electrodes = _read_table(container, ELECTRODES_PATH)

    for name in _keys_if_exists(container, '/acquisition'):
        nwb.acquisition[name] = _read_timeseries(container, f'/acquisition/{name}')

    for name in _keys_if_exists(container, '/intervals'):
        table = _read_table(container, f'/intervals/{name}')
        if not isinstance(table, TimeIntervals):
            raise ValueError(f"Expected TimeIntervals at /intervals/{name}")
        nwb.intervals[name] = table

    for name in _keys_if_exists(container, '/processing'):
        nwb.processing[name] = _read_processing_module(container, f'/processing/{name}')

    if '/units' in container:
        units = _read_table(container, '/units')
        if not isinstance(units, Units):
            raise ValueError("Expected Units at /units")
        nwb.units = units

    nwb.container = container
    return nwb


def _read_group_device(container: Container, nwb: NWBFile, group_path: str) -> Device:
    link = container.get_link(f'{group_path}/device')
    if link is None:
        raise BrokenReferenceError(f"Electrode group {group_path} has no device link")
    if link.path not in container:
        raise BrokenReferenceError(f"Device of electrode group {group_path} no longer exists: {link.path}")
    for device in nwb.devices.values():
        if f'{DEVICES_PATH}/{device.name}' == link.path:
            return device
    raise BrokenReferenceError(f"Device of electrode group {group_path} is not in {DEVICES_PATH}: {link.path}")


def _read_table(container: Container, path: str) -> Table:
    attrs = container.attrs(path)
    neurodata_type = attrs.get('neurodata_type', None)
    if neurodata_type not in _table_classes:
        raise ValueError(f"Unsupported table type at {path}: {neurodata_type}")
    columns: Dict[str, VectorData] = {}
    indexes: List[VectorIndex] = []
    for name in container.keys(path):
        if name == 'id':
            continue
        col_path = f'{path}/{name}'
        col_attrs = container.attrs(col_path)
        if col_attrs.get('neurodata_type', None) == 'VectorIndex':
            target_path = resolve_object_view(col_attrs['target'], container)
            target_name = target_path.split('/')[-1]
            indexes.append(VectorIndex(
                name=name,
                description=col_attrs.get('description', ''),
                target=VectorData(name=target_name, description='', data=container.dataset(target_path)),
                data=container.dataset(col_path)
            ))
        else:
            columns[name] = VectorData(name=name, description=col_attrs.get('description', ''), data=container.dataset(col_path))
    for index in indexes:
        # use the same object for the target column as the one in columns
        index.target = columns[index.target.name]
    ordered: List[VectorData] = []
    for colname in attrs.get('colnames', []):
        if colname not in columns:
            raise ValueError(f"Column {colname} of table {path} is missing")
        ordered.append(columns[colname])
        ordered.extend(idx for idx in indexes if idx.target is columns[colname])
    cls = _table_classes[neurodata_type]
    table = cls(
        name=path.split('/')[-1],
        description=attrs.get('description', ''),
        columns=ordered,
        id=ElementIdentifiers(data=container.dataset(f'{path}/id'))
    )
    _set_object_id(table, attrs)
    table._readonly = True
    return table


def _read_timeseries(container: Container, path: str) -> TimeSeries:
    attrs = container.attrs(path)
    neurodata_type = attrs.get('neurodata_type', None)
    if neurodata_type not in _timeseries_classes:
        raise ValueError(f"Unsupported time series type at {path}: {neurodata_type}")
    data_attrs = container.attrs(f'{path}/data')
    kwargs = dict(
        name=path.split('/')[-1],
        data=container.dataset(f'{path}/data'),
        unit=data_attrs.get('unit', 'unknown'),
        description=attrs.get('description', 'no description'),
        comments=attrs.get('comments', 'no comments'),
        conversion=data_attrs.get('conversion', 1.0),
        resolution=data_attrs.get('resolution', -1.0)
    )
    if f'{path}/starting_time' in container:
        kwargs['starting_time'] = float(container.read_scalar(f'{path}/starting_time'))
        kwargs['rate'] = float(container.attrs(f'{path}/starting_time')['rate'])
    else:
        kwargs['timestamps'] = container.dataset(f'{path}/timestamps')
    if neurodata_type == 'ElectricalSeries':
        electrodes_attrs = container.attrs(f'{path}/electrodes')
        table = electrodes_attrs['table']
        kwargs['electrodes'] = RegionReference(
            target=table.path,
            indices=tuple(container.dataset(f'{path}/electrodes').materialize()),
            object_id=table.object_id,
            description=electrodes_attrs.get('description', '')
        )
        kwargs['filtering'] = attrs.get('filtering', None)
    ts = _timeseries_classes[neurodata_type](**kwargs)
    _set_object_id(ts, attrs)
    return ts


def _read_processing_module(container: Container, path: str) -> ProcessingModule:
    attrs = container.attrs(path)
    module = ProcessingModule(name=path.split('/')[-1], description=attrs.get('description', ''))
    _set_object_id(module, attrs)
    for name in container.keys(path):
        sub_path = f'{path}/{name}'
        neurodata_type = container.attrs(sub_path).get('neurodata_type', None)
        if neurodata_type == 'Clustering':
            module.add(_read_clustering(container, sub_path))
        elif neurodata_type in _table_classes:
            module.add(_read_table(container, sub_path))
        elif neurodata_type in _timeseries_classes:
            module.add(_read_timeseries(container, sub_path))
        else:
            raise ValueError(f"Unsupported data interface type at {sub_path}: {neurodata_type}")
    return module


def _read_clustering(container: Container, path: str) -> Clustering:
    attrs = container.attrs(path)
    clustering = Clustering(
        name=path.split('/')[-1],
        description=attrs.get('description', ''),
        num=container.dataset(f'{path}/num'),
        peak_over_rms=container.dataset(f'{path}/peak_over_rms'),
        times=container.dataset(f'{path}/times')
    )
    _set_object_id(clustering, attrs)
    return clustering


def _keys_if_exists(container: Container, path: str) -> List[str]:
    if path not in container:
        return []
    return container.keys(path)


def _read_optional_str(container: Container, path: str) -> Union[str, None]:
    if path not in container:
        return None
    return str(container.read_scalar(path))


def _as_str_list(x) -> List[str]:
    if isinstance(x, str):
        return [x]
    return [str(v) for v in np.asarray(x).reshape(-1)]


def _set_object_id(obj, attrs: dict):
    object_id = attrs.get('object_id', None)
    if object_id is not None:
        obj.object_id = object_id
