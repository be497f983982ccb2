from typing import Any, Dict, List, Tuple, Union
import numpy as np
import zarr
import numcodecs
from numcodecs.abc import Codec

from ..ContainerOpts import ContainerOpts, _compression_not_specified_
from ...References.ObjectView import ObjectView
from ...conversion.attr_conversion import normalize_attr
from ...conversion.data_conversion import DataKind
from ...conversion.nan_inf_ninf import encode_nan_inf_ninf, decode_nan_inf_ninf
from ...conversion.references import encode_reference, decode_references
from ...conversion._util import _get_default_chunks
from ...errors import BrokenReferenceError


# Attributes that encode container structure rather than user metadata
_special_attribute_keys = [
    "_SCALAR",
    "_SOFT_LINK",
    "_REFERENCE",
]

# Guard against soft links that point at each other
_max_soft_link_depth = 32


class ZarrBackend:
    """
    Container backend for zarr (v2) groups.

    Zarr has no native soft links, scalar datasets or object references, so
    they are represented the same way as in hdmf-zarr: a soft link is
    an empty group with a _SOFT_LINK attribute, a scalar dataset is an array
    of shape (1,) with a _SCALAR attribute, and a reference is a JSON value
    {"_REFERENCE": {...}} (see encode_reference()).
    """
    def __init__(self, root: zarr.Group, *, opts: ContainerOpts, writable: bool):
        self._root = root
        self._opts = opts
        self._writable = writable

    @staticmethod
    def open_directory(path: str, *, mode: str, opts: ContainerOpts):
        if mode == 'x':
            mode = 'w-'
        root = zarr.open_group(path, mode=mode)
        return ZarrBackend(root, opts=opts, writable=mode != 'r')

    @staticmethod
    def in_memory(*, opts: ContainerOpts):
        store = zarr.storage.MemoryStore()
        root = zarr.group(store=store)
        return ZarrBackend(root, opts=opts, writable=True)

    @property
    def writable(self) -> bool:
        return self._writable

    def has(self, path: str) -> bool:
        return self._resolve(path) is not None

    def is_group(self, path: str) -> bool:
        return isinstance(self._require(path), zarr.Group)

    def keys(self, path: str) -> List[str]:
        grp = self._require(path)
        if not isinstance(grp, zarr.Group):
            raise TypeError(f"Not a group: {path}")
        return list(grp.keys())

    def get_attrs(self, path: str) -> Dict[str, Any]:
        x = self._require(path)
        ret = {}
        for k, v in x.attrs.asdict().items():
            if k in _special_attribute_keys:
                continue
            v = decode_references(decode_nan_inf_ninf(v))
            ret[k] = normalize_attr(v, label=f'{path}.{k}')
        return ret

    def set_attr(self, path: str, key: str, value: Any):
        x = self._require(path)
        if isinstance(value, ObjectView):
            x.attrs[key] = self._encode_ref(value, label=f'{path}.{key}')
        else:
            x.attrs[key] = encode_nan_inf_ninf(value)

    def create_group(self, path: str):
        parent, name = self._parent_and_name(path)
        parent.create_group(name)

    def create_dataset(
        self,
        path: str,
        data: np.ndarray,
        kind: DataKind,
        *,
        chunks: Union[Tuple, None],
        compression: Any
    ):
        parent, name = self._parent_and_name(path)
        if data.ndim == 0:
            # zarr doesn't support scalar datasets, so we make an array of
            # shape (1,) and set the _SCALAR attribute
            if kind == "reference":
                raise Exception(f'Scalar reference datasets are not supported: dataset {path}')
            if kind == "str":
                ds = parent.create_dataset(
                    name,
                    shape=(1,),
                    chunks=(1,),
                    dtype=object,
                    data=[data[()]],
                    object_codec=numcodecs.JSON()
                )
            else:
                ds = parent.create_dataset(
                    name,
                    shape=(1,),
                    chunks=(1,),
                    dtype=data.dtype,
                    data=[data[()]]
                )
            ds.attrs['_SCALAR'] = True
            return
        if chunks is None:
            # object arrays are sized as if each element took 64 bytes
            chunk_dtype = data.dtype if kind == "numeric" else np.dtype("V64")
            chunks = _get_default_chunks(data.shape, chunk_dtype, self._opts.chunk_size_bytes)
        if kind == "numeric":
            compressor = self._compressor(compression)
            parent.create_dataset(
                name,
                shape=data.shape,
                chunks=chunks,
                dtype=data.dtype,
                data=data,
                compressor=compressor
            )
            return
        if kind == "reference":
            encoded = np.empty(data.shape, dtype=object)
            encoded_1d_view = encoded.reshape(-1)
            for i, v in enumerate(data.reshape(-1)):
                encoded_1d_view[i] = self._encode_ref(v, label=path)
            data = encoded
        parent.create_dataset(
            name,
            shape=data.shape,
            chunks=chunks,
            dtype=object,
            data=data,
            object_codec=numcodecs.JSON()
        )

    def get_array(self, path: str) -> zarr.Array:
        x = self._require(path)
        if not isinstance(x, zarr.Array):
            raise TypeError(f"Not a dataset: {path}")
        return x

    def array_info(self, arr: zarr.Array) -> Tuple[Tuple, np.dtype]:
        if arr.attrs.get('_SCALAR', False):
            return (), arr.dtype
        return arr.shape, arr.dtype

    def read_array(self, arr: zarr.Array, selection: Any):
        if arr.attrs.get('_SCALAR', False):
            if selection != () and selection != Ellipsis:
                raise TypeError(f'Cannot slice a scalar dataset with {selection}')
            # With some versions of zarr, [:][0] is needed rather than [0]
            # to avoid "buffer source array is read-only"
            return decode_references(arr[:][0])
        return decode_references(arr[selection])

    def set_soft_link(self, path: str, target: str):
        parent, name = self._parent_and_name(path)
        grp = parent.create_group(name)
        grp.attrs['_SOFT_LINK'] = {'path': target}

    def get_soft_link(self, path: str) -> Union[str, None]:
        x = self._resolve(path, follow_last=False)
        if isinstance(x, zarr.Group):
            soft_link = x.attrs.get('_SOFT_LINK', None)
            if soft_link is not None:
                return soft_link['path']
        return None

    def delete(self, path: str):
        parent, name = self._parent_and_name(path)
        if name not in parent:
            raise KeyError(f"No object at {path}")
        del parent[name]

    def flush(self):
        pass

    def close(self):
        store = self._root.store
        if hasattr(store, 'close'):
            store.close()

    def _resolve(self, path: str, *, follow_last: bool = True, _depth: int = 0) -> Union[zarr.Group, zarr.Array, None]:
        if _depth > _max_soft_link_depth:
            raise Exception(f"Too many levels of soft links when resolving {path}")
        parts = [p for p in path.split('/') if p]
        x: Any = self._root
        for i, part in enumerate(parts):
            if not isinstance(x, zarr.Group) or part not in x:
                return None
            x = x[part]
            is_last = i == len(parts) - 1
            if isinstance(x, zarr.Group) and (follow_last or not is_last):
                # follow the link if this is a soft link
                soft_link = x.attrs.get('_SOFT_LINK', None)
                if soft_link is not None:
                    x = self._resolve(soft_link['path'], _depth=_depth + 1)
                    if x is None:
                        return None
        return x

    def _require(self, path: str) -> Union[zarr.Group, zarr.Array]:
        x = self._resolve(path)
        if x is None:
            raise KeyError(f"No object at {path}")
        return x

    def _parent_and_name(self, path: str) -> Tuple[zarr.Group, str]:
        parts = [p for p in path.split('/') if p]
        if len(parts) == 0:
            raise ValueError("The root group has no parent")
        parent = self._require('/' + '/'.join(parts[:-1]))
        if not isinstance(parent, zarr.Group):
            raise TypeError(f"Parent of {path} is not a group")
        return parent, parts[-1]

    def _encode_ref(self, view: ObjectView, *, label: str) -> dict:
        target = self._resolve(view.path)
        if target is None:
            raise BrokenReferenceError(f"Cannot create reference at {label}: no object at {view.path}")
        return encode_reference(
            view.path,
            object_id=target.attrs.get('object_id', None),
            source_object_id=self._root.attrs.get('object_id', None)
        )

    def _compressor(self, compression: Any) -> Union[Codec, None]:
        if compression is _compression_not_specified_:
            compression = self._opts.compression
        if compression is None:
            return None
        elif isinstance(compression, Codec):
            return compression
        elif compression == 'gzip':
            return numcodecs.GZip(level=self._opts.compression_level)
        else:
            raise Exception(f'Compression {compression} is not supported')
