from .ObjectView import ObjectView
from .RegionReference import RegionReference
from .SoftLink import SoftLink
from .resolve import resolve, resolve_object_view

__all__ = [
    "ObjectView",
    "RegionReference",
    "SoftLink",
    "resolve",
    "resolve_object_view",
]
