from typing import Any, Union
import numpy as np


def encode_reference(path: str, *, object_id: Union[str, None], source_object_id: Union[str, None]) -> dict:
    """Encode an object reference as a JSON-serializable value.

    This is the form used for references in zarr attributes and in zarr
    object arrays. The value is a dictionary with a single key, '_REFERENCE',
    whose value is another dictionary with the following keys:

    * object_id is the object ID of the target object.
    * path is the absolute path of the target object.
    * source is always '.', meaning that path is relative to the root of the
      container.
    * source_object_id is the object ID of the root of the container.

    See
    https://hdmf-zarr.readthedocs.io/en/latest/storage.html#storing-object-references-in-attributes
    """
    return {
        "_REFERENCE": {
            "object_id": object_id,
            "path": path,
            "source": ".",
            "source_object_id": source_object_id,
        }
    }


def is_encoded_reference(x: Any) -> bool:
    return isinstance(x, dict) and '_REFERENCE' in x


def decode_references(x: Any):
    """Replace encoded references in a nested structure by ObjectView values.

    Lists and object arrays are modified in place.
    """
    from ..References.ObjectView import ObjectView  # Avoid circular import
    if isinstance(x, dict):
        # x should only be a dict when x represents an encoded reference
        if is_encoded_reference(x):
            ref = x['_REFERENCE']
            if ref.get('source', '.') != '.':
                raise Exception(f'For now, source of reference must be ".", got "{ref.get("source")}"')
            return ObjectView(ref['path'], ref.get('object_id', None))
        else:
            raise Exception(f"Unexpected dict in selection: {x}")
    elif isinstance(x, list):
        for i, v in enumerate(x):
            x[i] = decode_references(v)
    elif isinstance(x, np.ndarray):
        if x.dtype == object:
            view_1d = x.reshape(-1)
            for i in range(len(view_1d)):
                view_1d[i] = decode_references(view_1d[i])
    return x
