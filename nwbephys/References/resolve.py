from typing import TYPE_CHECKING, List

from .ObjectView import ObjectView
from .RegionReference import RegionReference
from ..errors import BrokenReferenceError, IndexOutOfRangeError


if TYPE_CHECKING:
    from ..Container.Container import Container  # pragma: no cover


def resolve_object_view(view: ObjectView, container: "Container") -> str:
    """Return the path of the target of view, checking that it still exists.

    If the view carries an object_id, the object found at the path must still
    have that object_id, otherwise the original target was removed (and maybe
    replaced) and BrokenReferenceError is raised. An object at the path
    without any object_id does not match.
    """
    if view.path not in container:
        raise BrokenReferenceError(f"Reference target no longer exists: {view.path}")
    if view.object_id is not None:
        current_object_id = container.attrs(view.path).get('object_id', None)
        if current_object_id != view.object_id:
            raise BrokenReferenceError(
                f'Mismatch in object_id for {view.path}: "{view.object_id}" and "{current_object_id}"'
            )
    return view.path


def resolve(ref: RegionReference, container: "Container") -> List[int]:
    """
    Return the row identifiers (values of the id column) of the rows of the
    target table selected by ref, in the order of ref.indices.

    Raises BrokenReferenceError if the target table is gone and
    IndexOutOfRangeError if an index is not a valid row of the table. Only
    the span of the id column covering the selected rows is read.
    """
    path = resolve_object_view(ref.table, container)
    id_path = f'{path}/id'
    if not container.is_group(path) or id_path not in container:
        raise BrokenReferenceError(f"Reference target is not a table: {path}")
    ids = container.dataset(id_path)
    num_rows = ids.shape[0]
    for i in ref.indices:
        if i < 0 or i >= num_rows:
            raise IndexOutOfRangeError(f"Row index {i} is out of range for table {path} with {num_rows} rows")
    if len(ref.indices) == 0:
        return []
    lo = min(ref.indices)
    hi = max(ref.indices)
    block = ids.materialize([lo], [hi - lo + 1])
    return [int(block[i - lo]) for i in ref.indices]
