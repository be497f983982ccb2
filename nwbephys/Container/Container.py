from typing import Any, Dict, List, Literal, Tuple, Union
import os
import uuid
import warnings

from .ContainerOpts import ContainerOpts, _compression_not_specified_
from .backends.H5pyBackend import H5pyBackend
from .backends.ZarrBackend import ZarrBackend
from ..References.ObjectView import ObjectView
from ..References.SoftLink import SoftLink
from ..conversion.attr_conversion import prepare_attr
from ..conversion.data_conversion import prepare_data
from ..errors import ContainerIOError


ContainerMode = Literal["r", "r+", "w", "w-", "x", "a"]

ContainerBackend = Union[H5pyBackend, ZarrBackend]


class Container:
    def __init__(self, _backend: ContainerBackend, *, _mode: ContainerMode, _source_url_or_path: Union[str, None], _opts: ContainerOpts):
        """
        Do not use this constructor directly. Instead, use: create, open or
        in_memory.
        """
        self._backend = _backend
        self._mode: ContainerMode = _mode
        self._source_url_or_path = _source_url_or_path
        self._opts = _opts
        self._is_open = True

    @staticmethod
    def create(path: str, *, mode: ContainerMode = "w", opts: Union[ContainerOpts, None] = None):
        """
        Create a new container file (or directory, for zarr).

        Parameters
        ----------
        path : str
            Local path. Paths ending with '.zarr' create a zarr directory
            store, anything else an HDF5 file.
        mode : Literal["w", "w-", "x"], optional
            "w" truncates an existing file, "w-" and "x" fail if it exists.
        opts : Union[ContainerOpts, None], optional
            Compression and chunking options, by default ContainerOpts().
        """
        if mode not in ["w", "w-", "x"]:
            raise ValueError(f"Unsupported mode for create: {mode}")
        return Container.open(path, mode=mode, opts=opts)

    @staticmethod
    def open(url_or_path: str, *, mode: ContainerMode = "r", opts: Union[ContainerOpts, None] = None):
        """
        Open a container.

        Parameters
        ----------
        url_or_path : str
            Local path of an HDF5 file, local path of a zarr directory (ending
            with '.zarr'), or http(s) URL of a remote HDF5 file. Remote files
            can only be opened read-only.
        mode : Literal["r", "r+", "w", "w-", "x", "a"], optional
            The mode to open the container in. See the api docs for h5py.File
            for more information on the modes, by default "r".
        opts : Union[ContainerOpts, None], optional
            Compression and chunking options used when writing datasets.
        """
        if opts is None:
            opts = ContainerOpts()
        if _is_url(url_or_path):
            if mode != "r":
                raise ValueError("Remote containers can only be opened in read-only mode")
            try:
                backend = H5pyBackend.open_remote(url_or_path, opts=opts)
            except OSError as e:
                raise ContainerIOError(f"Unable to open {url_or_path}: {e}") from e
            return Container(backend, _mode=mode, _source_url_or_path=url_or_path, _opts=opts)

        if mode in ["r", "r+"]:
            # file must exist
            if not os.path.exists(url_or_path):
                raise FileNotFoundError(f"File does not exist: {url_or_path}")
        elif mode in ["w-", "x"]:
            # create file, fail if exists
            if os.path.exists(url_or_path):
                raise ValueError(f"File already exists: {url_or_path}")
        elif mode not in ["w", "a"]:
            raise Exception(f"Unhandled mode: {mode}")

        try:
            if _is_zarr_path(url_or_path):
                backend = ZarrBackend.open_directory(url_or_path, mode=mode, opts=opts)
            else:
                backend = H5pyBackend.open_file(url_or_path, mode=mode, opts=opts)
        except OSError as e:
            raise ContainerIOError(f"Unable to open {url_or_path}: {e}") from e
        ret = Container(backend, _mode=mode, _source_url_or_path=url_or_path, _opts=opts)
        ret._ensure_root_object_id()
        return ret

    @staticmethod
    def in_memory(opts: Union[ContainerOpts, None] = None):
        """Create an empty zarr-backed container held in memory."""
        if opts is None:
            opts = ContainerOpts()
        ret = Container(ZarrBackend.in_memory(opts=opts), _mode="w", _source_url_or_path=None, _opts=opts)
        ret._ensure_root_object_id()
        return ret

    @property
    def mode(self):
        return 'r' if self._mode == 'r' else 'r+'

    @property
    def source(self) -> Union[str, None]:
        return self._source_url_or_path

    @property
    def opts(self) -> ContainerOpts:
        return self._opts

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def object_id(self) -> Union[str, None]:
        return self.attrs('/').get('object_id', None)

    ##############################
    # read
    def __contains__(self, path: str) -> bool:
        self._check_open()
        return self._backend.has(_normalize_path(path))

    def keys(self, path: str = '/') -> List[str]:
        self._check_open()
        return self._backend.keys(self._existing(path))

    def is_group(self, path: str) -> bool:
        self._check_open()
        return self._backend.is_group(self._existing(path))

    def attrs(self, path: str = '/') -> Dict[str, Any]:
        """Attributes of the object at path as plain Python values.

        Object references are returned as ObjectView values.
        """
        self._check_open()
        return self._backend.get_attrs(self._existing(path))

    def dataset(self, path: str):
        """Return a LazyArrayHandle for the dataset at path. No data is read."""
        from ..LazyArrayHandle.LazyArrayHandle import LazyArrayHandle  # avoid circular import
        self._check_open()
        path = self._existing(path)
        return LazyArrayHandle(self._backend.get_array(path), _container=self, _path=path)

    def read_scalar(self, path: str):
        return self.dataset(path).materialize()

    def get_link(self, path: str) -> Union[SoftLink, None]:
        """Return the soft link stored at path, or None if path is not a soft link."""
        self._check_open()
        target = self._backend.get_soft_link(_normalize_path(path))
        if target is None:
            return None
        return SoftLink(target)

    def object_view(self, path: str) -> ObjectView:
        """Create an ObjectView of the existing object at path."""
        path = self._existing(path)
        return ObjectView(path, self.attrs(path).get('object_id', None))

    ##############################
    # write
    def create_group(self, path: str):
        self._check_writable('create group')
        path = _normalize_path(path)
        if path in self:
            raise ValueError(f"Object already exists: {path}")
        self._require_parent(path)
        self._backend.create_group(path)

    def require_group(self, path: str):
        path = _normalize_path(path)
        if path in self:
            if not self.is_group(path):
                raise Exception(f'Expected a group at {path}')
            return
        self.create_group(path)

    def create_dataset(
        self,
        path: str,
        data: Any,
        *,
        chunks: Union[Tuple, None] = None,
        compression: Any = _compression_not_specified_
    ):
        """
        Create a dataset and write all of its data.

        Parameters
        ----------
        path : str
            Absolute path of the new dataset. Missing parent groups are
            created.
        data : any
            Scalar, list or numpy array of numbers, bools or strings, or a
            list / object array of ObjectView values (stored as object
            references).
        chunks : Union[Tuple, None], optional
            Chunk shape. By default numeric datasets are chunked along the
            first axis according to ContainerOpts.chunk_size_bytes.
        compression : optional
            Overrides ContainerOpts.compression for this dataset.
        """
        self._check_writable('create dataset')
        path = _normalize_path(path)
        if path in self:
            raise ValueError(f"Object already exists: {path}")
        self._require_parent(path)
        arr, kind = prepare_data(data, label=path)
        try:
            self._backend.create_dataset(path, arr, kind, chunks=chunks, compression=compression)
        except OSError as e:
            raise ContainerIOError(f"Unable to write dataset {path}: {e}") from e
        return self.dataset(path)

    def set_attr(self, path: str, key: str, value: Any):
        self._check_writable('set attribute')
        path = self._existing(path)
        self._backend.set_attr(path, key, prepare_attr(value, label=f'{path}.{key}'))

    def set_attrs(self, path: str, attrs: Dict[str, Any]):
        for k, v in attrs.items():
            self.set_attr(path, k, v)

    def set_soft_link(self, path: str, target: str):
        """Create a soft link at path pointing to target. The target need not exist yet."""
        self._check_writable('create soft link')
        path = _normalize_path(path)
        if path in self or self.get_link(path) is not None:
            raise ValueError(f"Object already exists: {path}")
        self._require_parent(path)
        self._backend.set_soft_link(path, _normalize_path(target))

    def delete(self, path: str):
        """Remove the object (or soft link) at path."""
        self._check_writable('delete')
        path = _normalize_path(path)
        if path == '/':
            raise ValueError("Cannot delete the root group")
        if path not in self and self.get_link(path) is None:
            raise KeyError(f"No object at {path}")
        self._backend.delete(path)

    def flush(self):
        if not self._is_open:
            return
        if self._mode != 'r':
            try:
                self._backend.flush()
            except OSError as e:
                raise ContainerIOError(f"Unable to flush {self._source_url_or_path}: {e}") from e

    def close(self):
        if not self._is_open:
            warnings.warn('Container already closed.')
            return
        self.flush()
        self._backend.close()
        self._is_open = False

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def __str__(self):
        return f'<Container "{self._source_url_or_path or "memory"}" (mode {self.mode})>'

    def __repr__(self):
        return self.__str__()

    def _check_open(self):
        if not self._is_open:
            raise ContainerIOError(f"Container is closed: {self._source_url_or_path}")

    def _check_writable(self, what: str):
        self._check_open()
        if self._mode == 'r':
            raise ValueError(f"Cannot {what} in read-only mode")

    def _existing(self, path: str) -> str:
        path = _normalize_path(path)
        if not self._backend.has(path):
            raise KeyError(f"No object at {path}")
        return path

    def _require_parent(self, path: str):
        parent = _parent_path(path)
        if parent != '/' and parent not in self:
            self.create_group(parent)

    def _ensure_root_object_id(self):
        if self._mode == 'r':
            return
        if 'object_id' not in self._backend.get_attrs('/'):
            self._backend.set_attr('/', 'object_id', str(uuid.uuid4()))


def _is_url(url_or_path: str) -> bool:
    return url_or_path.startswith("http://") or url_or_path.startswith("https://")


def _is_zarr_path(path: str) -> bool:
    return path.rstrip('/').endswith('.zarr')


def _normalize_path(path: str) -> str:
    parts = [p for p in path.split('/') if p]
    return '/' + '/'.join(parts)


def _parent_path(path: str) -> str:
    parts = [p for p in path.split('/') if p]
    return '/' + '/'.join(parts[:-1])
