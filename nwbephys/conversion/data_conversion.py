from typing import Any, Literal, Tuple
import numpy as np

from ._util import _is_numeric_dtype


DataKind = Literal["numeric", "str", "reference"]


def prepare_data(data: Any, *, label: str) -> Tuple[np.ndarray, DataKind]:
    """Convert data passed to create_dataset to a numpy array and classify it.

    Parameters
    ----------
    data : any
        A scalar, list, tuple or numpy array. Strings (or bytes) and ObjectView
        values are accepted in addition to numbers and bools.
    label : str
        The path of the dataset, for error messages.

    Returns
    -------
    tuple
        (array, kind) where kind is "numeric" for numbers and bools, "str" for
        strings (returned as an object array of str) and "reference" for
        object references (returned as an object array of ObjectView).
    """
    from ..References.ObjectView import ObjectView  # Avoid circular import

    if data is None:
        raise Exception(f'No data provided for dataset {label}')
    if isinstance(data, ObjectView):
        raise Exception(f'Scalar reference datasets are not supported: dataset {label}')
    if isinstance(data, (str, bytes)):
        x = np.empty((), dtype=object)
        x[()] = data.decode('utf-8') if isinstance(data, bytes) else data
        return x, "str"
    if isinstance(data, (list, tuple)):
        if len(data) > 0 and all(isinstance(v, ObjectView) for v in data):
            x = np.empty((len(data),), dtype=object)
            for i, v in enumerate(data):
                x[i] = v
            return x, "reference"
        data = np.array(data)
    if not isinstance(data, np.ndarray):
        data = np.array(data)

    if np.issubdtype(data.dtype, np.complexfloating):
        raise Exception(f'Complex datasets are not supported: dataset {label} with dtype {data.dtype}')
    if _is_numeric_dtype(data.dtype):
        return data, "numeric"
    if data.dtype.kind in ['U', 'S']:
        return _to_str_object_array(data, label=label), "str"
    if data.dtype.kind == 'O':
        flat = data.reshape(-1)
        if len(flat) > 0 and all(isinstance(v, ObjectView) for v in flat):
            return data, "reference"
        if all(isinstance(v, (str, bytes)) for v in flat):
            return _to_str_object_array(data, label=label), "str"
        raise Exception(f'Object dataset {label} must contain only strings or only references')
    raise Exception(f'Not yet implemented: dataset {label} with dtype {data.dtype} and shape {data.shape}')


def _to_str_object_array(data: np.ndarray, *, label: str) -> np.ndarray:
    ret = np.empty(data.shape, dtype=object)
    data_1d_view = data.reshape(-1)
    ret_1d_view = ret.reshape(-1)
    for i, val in enumerate(data_1d_view):
        if isinstance(val, bytes):
            ret_1d_view[i] = val.decode('utf-8')
        elif isinstance(val, str):
            ret_1d_view[i] = str(val)
        else:
            raise Exception(f'Cannot handle value of type {type(val)} in string dataset {label}')
    return ret
