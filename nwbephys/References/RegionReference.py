from typing import Tuple, Union, Sequence
from dataclasses import dataclass, field

from .ObjectView import ObjectView


@dataclass(frozen=True)
class RegionReference:
    """
    An immutable selection of rows of a table, identified by the path of the
    table and the row indices (0-based). The rows are not copied; use
    resolve() to look them up in a container.

    Attributes:
        target (str): Absolute path of the target table.

        indices (Tuple[int, ...]): Row indices into the target table, in the
        order in which they were given.

        object_id (Union[str, None]): object_id of the target table, if known.

        description (str): Free text description. Not part of the identity of
        the reference.
    """
    target: str
    indices: Tuple[int, ...]
    object_id: Union[str, None] = None
    description: str = field(default='', compare=False)

    def __post_init__(self):
        # normalize so that numpy integers and lists compare equal to tuples of ints
        object.__setattr__(self, 'indices', tuple(int(i) for i in self.indices))

    @staticmethod
    def from_range(target: Union[str, ObjectView], start: int, stop: int, *, description: str = ''):
        """Create a reference to the contiguous rows [start, stop) of target."""
        if stop < start:
            raise ValueError(f"Invalid row range: [{start}, {stop})")
        return RegionReference.from_indices(target, range(start, stop), description=description)

    @staticmethod
    def from_indices(target: Union[str, ObjectView], indices: Sequence[int], *, description: str = ''):
        if isinstance(target, ObjectView):
            return RegionReference(
                target=target.path,
                indices=tuple(indices),
                object_id=target.object_id,
                description=description
            )
        return RegionReference(target=target, indices=tuple(indices), description=description)

    @property
    def table(self) -> ObjectView:
        return ObjectView(self.target, self.object_id)

    def __len__(self):
        return len(self.indices)
