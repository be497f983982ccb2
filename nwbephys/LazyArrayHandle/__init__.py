from .LazyArrayHandle import LazyArrayHandle, check_block

__all__ = [
    "LazyArrayHandle",
    "check_block",
]
