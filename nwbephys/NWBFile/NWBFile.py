from typing import TYPE_CHECKING, Any, Dict, List, Sequence, Union
import datetime
import uuid
import warnings
import numpy as np

from .records import Device, ElectrodeGroup, ProcessingModule
from ..References.ObjectView import ObjectView
from ..References.RegionReference import RegionReference
from ..Table.Table import Table
from ..Table.TimeIntervals import TimeIntervals
from ..Table.Units import Units
from ..TimeSeries.TimeSeries import TimeSeries
from ..errors import IndexOutOfRangeError


if TYPE_CHECKING:
    from ..Container.Container import Container  # pragma: no cover


NWB_VERSION = '2.7.0'

DEVICES_PATH = '/general/devices'
EXTRACELLULAR_EPHYS_PATH = '/general/extracellular_ephys'
ELECTRODES_PATH = f'{EXTRACELLULAR_EPHYS_PATH}/electrodes'

# default columns of the electrode table, in the order they are written
_electrode_columns = [
    ('x', 'the x coordinate of the channel location'),
    ('y', 'the y coordinate of the channel location'),
    ('z', 'the z coordinate of the channel location'),
    ('imp', 'the impedance of the channel'),
    ('location', 'the location of channel within the subject e.g. brain region'),
    ('filtering', 'description of hardware filtering'),
    ('group', 'a reference to the ElectrodeGroup this electrode is a part of'),
    ('group_name', 'the name of the ElectrodeGroup this electrode is a part of'),
]


class NWBFile:
    """
    An NWB session: general metadata plus the devices, electrodes,
    acquired data, intervals, processed data and units recorded in it.

    Build one in memory and write it with export_nwb(), or get one back
    from read_nwb(). A file returned by read_nwb() keeps its container open
    (all of its datasets are read lazily) until close() is called.
    """
    def __init__(
        self,
        *,
        session_description: str,
        identifier: str,
        session_start_time: datetime.datetime,
        file_create_date: Union[datetime.datetime, None] = None,
        experimenter: Union[str, Sequence[str], None] = None,
        lab: Union[str, None] = None,
        institution: Union[str, None] = None,
        session_id: Union[str, None] = None
    ):
        self.session_description = session_description
        self.identifier = identifier
        self.session_start_time = _with_timezone(session_start_time, label='session_start_time')
        if file_create_date is None:
            file_create_date = datetime.datetime.now().astimezone()
        self.file_create_date = _with_timezone(file_create_date, label='file_create_date')
        if isinstance(experimenter, str):
            experimenter = [experimenter]
        self.experimenter: Union[List[str], None] = None if experimenter is None else list(experimenter)
        self.lab = lab
        self.institution = institution
        self.session_id = session_id
        self.object_id = str(uuid.uuid4())

        self.devices: Dict[str, Device] = {}
        self.electrode_groups: Dict[str, ElectrodeGroup] = {}
        self.acquisition: Dict[str, TimeSeries] = {}
        self.intervals: Dict[str, TimeIntervals] = {}
        self.processing: Dict[str, ProcessingModule] = {}
        self.electrodes: Union[Table, None] = None
        self.units: Union[Units, None] = None

        # set by read_nwb()
        self.container: Union["Container", None] = None

    @property
    def timestamps_reference_time(self) -> datetime.datetime:
        return self.session_start_time

    @property
    def trials(self) -> Union[TimeIntervals, None]:
        return self.intervals.get('trials', None)

    ##############################
    # devices and electrodes
    def create_device(self, name: str, *, description: str = '', manufacturer: str = '') -> Device:
        device = Device(name=name, description=description, manufacturer=manufacturer)
        self.add_device(device)
        return device

    def add_device(self, device: Device):
        _check_new_name(self.devices, device.name, 'device')
        self.devices[device.name] = device

    def create_electrode_group(self, name: str, *, description: str, location: str, device: Device) -> ElectrodeGroup:
        if self.devices.get(device.name, None) is not device:
            raise ValueError(f"Device {device.name} has not been added to this file")
        group = ElectrodeGroup(name=name, description=description, location=location, device=device)
        _check_new_name(self.electrode_groups, name, 'electrode group')
        self.electrode_groups[name] = group
        return group

    def add_electrode_column(self, name: str, description: str):
        """Add a custom column to the electrode table. Must be called before the first electrode is added."""
        self._require_electrodes().add_column(name, description)

    def add_electrode(
        self,
        *,
        group: ElectrodeGroup,
        location: str,
        x: float = np.nan,
        y: float = np.nan,
        z: float = np.nan,
        imp: float = np.nan,
        filtering: str = 'none',
        id: Union[int, None] = None,
        **values: Any
    ):
        """Append a row to the electrode table. Extra keyword arguments fill custom columns."""
        if self.electrode_groups.get(group.name, None) is not group:
            raise ValueError(f"Electrode group {group.name} has not been added to this file")
        electrodes = self._require_electrodes()
        electrodes.add_row(
            id=id,
            x=float(x),
            y=float(y),
            z=float(z),
            imp=float(imp),
            location=location,
            filtering=filtering,
            group=ObjectView(f'{EXTRACELLULAR_EPHYS_PATH}/{group.name}', group.object_id),
            group_name=group.name,
            **values
        )

    def create_electrode_table_region(self, region: Sequence[int], description: str) -> RegionReference:
        """Reference the rows of the electrode table at the given indices."""
        if self.electrodes is None:
            raise ValueError("The electrode table is empty")
        n = len(self.electrodes)
        for i in region:
            if i < 0 or i >= n:
                raise IndexOutOfRangeError(f"Electrode index {i} is out of range for electrode table with {n} rows")
        return RegionReference.from_indices(
            ObjectView(ELECTRODES_PATH, self.electrodes.object_id),
            region,
            description=description
        )

    ##############################
    # data
    def add_acquisition(self, timeseries: TimeSeries):
        _check_new_name(self.acquisition, timeseries.name, 'acquisition')
        self.acquisition[timeseries.name] = timeseries

    def add_trial_column(self, name: str, description: str):
        self._require_trials().add_column(name, description)

    def add_trial(self, start_time: float, stop_time: float, **values: Any):
        self._require_trials().add_interval(start_time, stop_time, **values)

    def add_time_intervals(self, time_intervals: TimeIntervals):
        _check_new_name(self.intervals, time_intervals.name, 'time intervals')
        self.intervals[time_intervals.name] = time_intervals

    def create_processing_module(self, name: str, description: str) -> ProcessingModule:
        module = ProcessingModule(name=name, description=description)
        _check_new_name(self.processing, name, 'processing module')
        self.processing[name] = module
        return module

    def close(self):
        if self.container is not None:
            self.container.close()
            self.container = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def __str__(self):
        lines = [
            f'NWBFile "{self.identifier}"',
            f'  session_description: {self.session_description}',
            f'  session_start_time: {self.session_start_time.isoformat()}',
        ]
        if self.experimenter:
            lines.append(f'  experimenter: {", ".join(self.experimenter)}')
        for label, value in [('lab', self.lab), ('institution', self.institution), ('session_id', self.session_id)]:
            if value is not None:
                lines.append(f'  {label}: {value}')
        sections: List[tuple] = [
            ('devices', self.devices),
            ('electrode_groups', self.electrode_groups),
            ('acquisition', self.acquisition),
            ('intervals', self.intervals),
            ('processing', self.processing),
        ]
        for label, items in sections:
            if items:
                lines.append(f'  {label}:')
                for v in items.values():
                    lines.append(f'    {v!r}')
        if self.electrodes is not None:
            lines.append(f'  electrodes: {self.electrodes!r}')
        if self.units is not None:
            lines.append(f'  units: {self.units!r}')
        return '\n'.join(lines)

    def __repr__(self):
        return f'<NWBFile "{self.identifier}">'

    def _require_electrodes(self) -> Table:
        if self.electrodes is None:
            self.electrodes = Table(name='electrodes', description='metadata about extracellular electrodes')
            for colname, description in _electrode_columns:
                self.electrodes.add_column(colname, description)
        return self.electrodes

    def _require_trials(self) -> TimeIntervals:
        if 'trials' not in self.intervals:
            self.intervals['trials'] = TimeIntervals(name='trials', description='experimental trials')
        return self.intervals['trials']


def _check_new_name(items: Dict[str, Any], name: str, what: str):
    if name in items:
        raise ValueError(f"A {what} named {name} already exists")


def _with_timezone(dt: datetime.datetime, *, label: str) -> datetime.datetime:
    if dt.tzinfo is None:
        warnings.warn(f"{label} has no time zone; assuming local time.")
        return dt.astimezone()
    return dt
