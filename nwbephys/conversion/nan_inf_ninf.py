import math
import numpy as np


# JSON has no representation for these, so zarr attributes carry them as strings
_special_float_strings = {
    'NaN': float('nan'),
    'Infinity': float('inf'),
    '-Infinity': float('-inf'),
}


def encode_nan_inf_ninf(val):
    """Replace NaN, Infinity and -Infinity floats in a nested value by strings."""
    if isinstance(val, (list, tuple)):
        return [encode_nan_inf_ninf(v) for v in val]
    if isinstance(val, dict):
        return {k: encode_nan_inf_ninf(v) for k, v in val.items()}
    if isinstance(val, (float, np.floating)):
        if math.isnan(val):
            return 'NaN'
        if math.isinf(val):
            return 'Infinity' if val > 0 else '-Infinity'
        return float(val)
    return val


def decode_nan_inf_ninf(val):
    """Inverse of encode_nan_inf_ninf()."""
    if isinstance(val, list):
        return [decode_nan_inf_ninf(v) for v in val]
    if isinstance(val, dict):
        return {k: decode_nan_inf_ninf(v) for k, v in val.items()}
    if isinstance(val, str) and val in _special_float_strings:
        return _special_float_strings[val]
    return val
