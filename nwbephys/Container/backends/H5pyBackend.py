from typing import Any, Dict, List, Tuple, Union
import numpy as np
import h5py
from numcodecs.abc import Codec

from ..ContainerOpts import ContainerOpts, _compression_not_specified_
from ...References.ObjectView import ObjectView
from ...conversion.attr_conversion import normalize_attr
from ...conversion.data_conversion import DataKind
from ...conversion._util import _get_default_chunks
from ...errors import BrokenReferenceError


class H5pyBackend:
    """Container backend for HDF5 files, local or remote, through h5py."""
    def __init__(self, h5f: h5py.File, *, opts: ContainerOpts, _file_obj: Any = None):
        self._h5f = h5f
        self._opts = opts
        # for remote files, the file-like object that h5py reads from
        self._file_obj = _file_obj

    @staticmethod
    def open_file(path: str, *, mode: str, opts: ContainerOpts):
        return H5pyBackend(h5py.File(path, mode), opts=opts)

    @staticmethod
    def open_remote(url: str, *, opts: ContainerOpts):
        import remfile  # only needed for remote files
        ff = remfile.File(url)
        return H5pyBackend(h5py.File(ff, "r"), opts=opts, _file_obj=ff)

    @property
    def writable(self) -> bool:
        return self._h5f.mode != 'r'

    def has(self, path: str) -> bool:
        # h5py follows soft links here, so a dangling link counts as missing
        return path in self._h5f

    def is_group(self, path: str) -> bool:
        return isinstance(self._h5f[path], h5py.Group)

    def keys(self, path: str) -> List[str]:
        grp = self._h5f[path]
        if not isinstance(grp, h5py.Group):
            raise TypeError(f"Not a group: {path}")
        return list(grp.keys())

    def get_attrs(self, path: str) -> Dict[str, Any]:
        ret = {}
        for k, v in self._h5f[path].attrs.items():
            if isinstance(v, h5py.Reference):
                ret[k] = self._deref(v, label=f'{path}.{k}')
            else:
                ret[k] = normalize_attr(v, label=f'{path}.{k}')
        return ret

    def set_attr(self, path: str, key: str, value: Any):
        obj = self._h5f[path]
        if isinstance(value, ObjectView):
            obj.attrs[key] = self._ref_for(value, label=f'{path}.{key}')
        elif isinstance(value, list):
            arr = np.array(value)
            if arr.dtype.kind in ['U', 'S', 'O']:
                arr = np.array(value, dtype=h5py.string_dtype())
            obj.attrs[key] = arr
        else:
            obj.attrs[key] = value

    def create_group(self, path: str):
        self._h5f.create_group(path)

    def create_dataset(
        self,
        path: str,
        data: np.ndarray,
        kind: DataKind,
        *,
        chunks: Union[Tuple, None],
        compression: Any
    ):
        if kind == "str":
            self._h5f.create_dataset(path, data=data, dtype=h5py.string_dtype())
        elif kind == "reference":
            refs = np.empty(data.shape, dtype=h5py.ref_dtype)
            refs_1d_view = refs.reshape(-1)
            for i, v in enumerate(data.reshape(-1)):
                refs_1d_view[i] = self._ref_for(v, label=path)
            self._h5f.create_dataset(path, data=refs, dtype=h5py.ref_dtype)
        elif data.ndim == 0 or data.size == 0:
            # scalar and empty datasets cannot be compressed
            self._h5f.create_dataset(path, data=data)
        else:
            kwargs = self._compression_kwargs(compression)
            if kwargs or chunks is not None:
                kwargs['chunks'] = chunks if chunks is not None else _get_default_chunks(data.shape, data.dtype, self._opts.chunk_size_bytes)
            self._h5f.create_dataset(path, data=data, **kwargs)

    def get_array(self, path: str) -> h5py.Dataset:
        x = self._h5f[path]
        if not isinstance(x, h5py.Dataset):
            raise TypeError(f"Not a dataset: {path}")
        return x

    def array_info(self, arr: h5py.Dataset) -> Tuple[Tuple, np.dtype]:
        dtype = arr.dtype
        if h5py.check_string_dtype(dtype) is not None or h5py.check_ref_dtype(dtype) is not None:
            dtype = np.dtype('O')
        return arr.shape, dtype

    def read_array(self, arr: h5py.Dataset, selection: Any):
        if h5py.check_string_dtype(arr.dtype) is not None:
            return arr.asstr()[selection]
        if h5py.check_ref_dtype(arr.dtype) is not None:
            x = arr[selection]
            if isinstance(x, h5py.Reference):
                return self._deref(x, label=arr.name)
            ret = np.empty(x.shape, dtype=object)
            ret_1d_view = ret.reshape(-1)
            for i, ref in enumerate(x.reshape(-1)):
                ret_1d_view[i] = self._deref(ref, label=arr.name)
            return ret
        return arr[selection]

    def set_soft_link(self, path: str, target: str):
        self._h5f[path] = h5py.SoftLink(target)

    def get_soft_link(self, path: str) -> Union[str, None]:
        link = self._h5f.get(path, getlink=True)
        if isinstance(link, h5py.SoftLink):
            return link.path
        return None

    def delete(self, path: str):
        del self._h5f[path]

    def flush(self):
        if self.writable:
            self._h5f.flush()

    def close(self):
        self._h5f.close()
        if self._file_obj is not None:
            self._file_obj.close()

    def _ref_for(self, view: ObjectView, *, label: str) -> h5py.Reference:
        if view.path not in self._h5f:
            raise BrokenReferenceError(f"Cannot create reference at {label}: no object at {view.path}")
        return self._h5f[view.path].ref

    def _deref(self, ref: h5py.Reference, *, label: str) -> ObjectView:
        if not ref:
            raise BrokenReferenceError(f"Null reference at {label}")
        try:
            target = self._h5f[ref]
        except (ValueError, KeyError) as e:
            raise BrokenReferenceError(f"Unable to dereference {label}: {e}") from e
        object_id = target.attrs.get('object_id', None)
        if isinstance(object_id, bytes):
            object_id = object_id.decode('utf-8')
        return ObjectView(target.name, object_id)

    def _compression_kwargs(self, compression: Any) -> Dict[str, Any]:
        if compression is _compression_not_specified_:
            compression = self._opts.compression
        if compression is None:
            return {}
        elif isinstance(compression, Codec):
            raise Exception('numcodecs codecs are only supported for zarr containers')
        elif compression == 'gzip':
            return {'compression': 'gzip', 'compression_opts': self._opts.compression_level}
        else:
            raise Exception(f'Compression {compression} is not supported')
