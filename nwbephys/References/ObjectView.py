from typing import Union
from dataclasses import dataclass


@dataclass(frozen=True)
class ObjectView:
    """
    A non-owning pointer to a group or dataset inside a container.

    Attributes:
        path (str): Absolute path of the target object.

        object_id (Union[str, None]): The object_id attribute of the target at
        the time the view was created. When set, resolving the view checks
        that the object found at path is still the same object.
    """
    path: str
    object_id: Union[str, None] = None

    def __repr__(self):
        return f"ObjectView({self.path})"
