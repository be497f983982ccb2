from typing import Any
import numpy as np


# These would be indistinguishable from encoded floats in zarr attributes
_special_strings = ['NaN', 'Infinity', '-Infinity']


def prepare_attr(attr: Any, *, label: str = ''):
    """Check an attribute value before writing and convert it to plain Python.

    Allowed values are str, bytes, int, float, bool, ObjectView and
    (nested) lists, tuples or numpy arrays whose elements are all strings, all
    numbers or all bools. Returns a scalar or a nested list.
    """
    from ..References.ObjectView import ObjectView  # Avoid circular import

    if attr is None:
        raise Exception(f"Attribute value cannot be None at {label}")
    if isinstance(attr, ObjectView):
        return attr
    if isinstance(attr, str):
        if attr in _special_strings:
            raise ValueError(f"Special string {attr} not allowed in attribute value at {label}")
        return attr
    if isinstance(attr, bytes):
        return attr.decode('utf-8')
    if isinstance(attr, (bool, np.bool_)):
        return bool(attr)
    if isinstance(attr, (int, np.integer)):
        return int(attr)
    if isinstance(attr, (float, np.floating)):
        return float(attr)
    if isinstance(attr, (complex, np.complexfloating)):
        raise Exception(f"Complex number is not supported at {label}")
    if isinstance(attr, (list, tuple)):
        attr = np.array(attr, dtype=_determine_list_dtype(list(attr), label=label))
    if isinstance(attr, np.ndarray):
        kind = attr.dtype.kind
        if kind in ['i', 'u', 'f', 'b']:
            return attr.tolist()
        elif kind in ['U', 'S', 'O']:
            x = _decode_bytes_to_str_in_nested_list(attr.tolist(), label=label)
            for s in _flatten_list(x):
                if s in _special_strings:
                    raise ValueError(f"Special string {s} not allowed in attribute value at {label}")
            return x
        raise Exception(f"Unexpected dtype for attribute numpy array: {attr.dtype} at {label}")
    raise Exception(f"Unexpected type for attribute: {type(attr)} at {label}")


def normalize_attr(attr: Any, *, label: str = ''):
    """Convert an attribute value as returned by h5py or zarr to plain Python.

    numpy scalars become int/float/bool, bytes become str and arrays become
    nested lists. ObjectView values are passed through.
    """
    from ..References.ObjectView import ObjectView  # Avoid circular import

    if isinstance(attr, ObjectView):
        return attr
    if isinstance(attr, str):
        return attr
    if isinstance(attr, bytes):
        return attr.decode('utf-8')
    if isinstance(attr, (bool, np.bool_)):
        return bool(attr)
    if isinstance(attr, (int, np.integer)):
        return int(attr)
    if isinstance(attr, (float, np.floating)):
        return float(attr)
    if isinstance(attr, list):
        return [normalize_attr(a, label=label) for a in attr]
    if isinstance(attr, np.ndarray):
        if attr.dtype.kind in ['i', 'u', 'f', 'b']:
            return attr.tolist()
        elif attr.dtype.kind in ['U', 'S', 'O']:
            return _decode_bytes_to_str_in_nested_list(attr.tolist(), label=label)
        raise Exception(f"Unexpected dtype for attribute numpy array: {attr.dtype} at {label}")
    raise Exception(f"Unexpected type for attribute: {type(attr)} at {label}")


def _decode_bytes_to_str_in_nested_list(x, *, label: str):
    if isinstance(x, bytes):
        return x.decode('utf-8')
    elif isinstance(x, str):
        return x
    elif isinstance(x, list):
        return [_decode_bytes_to_str_in_nested_list(y, label=label) for y in x]
    else:
        raise Exception(f"Expected only strings in attribute at {label}, got {type(x)}")


def _determine_list_dtype(x: list, *, label: str):
    x_flattened = _flatten_list(x)
    if len(x_flattened) == 0:
        return np.dtype(np.int64)
    # bool is checked first because it is a subclass of int
    if all(isinstance(i, (bool, np.bool_)) for i in x_flattened):
        return np.bool_
    elif all(isinstance(i, (int, np.integer)) and not isinstance(i, bool) for i in x_flattened):
        return np.int64
    elif all(isinstance(i, (int, float, np.integer, np.floating)) and not isinstance(i, bool) for i in x_flattened):
        return np.float64
    elif all(isinstance(i, (str, bytes)) for i in x_flattened):
        return np.dtype('O')
    else:
        raise Exception(f"Mixed types in list attribute at {label}")


def _flatten_list(x):
    if isinstance(x, (list, tuple)):
        return [a for i in x for a in _flatten_list(i)]
    else:
        return [x]
