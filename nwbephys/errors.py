class NwbEphysError(Exception):
    """Base class for the conditions reported by nwbephys."""
    pass


class OutOfBoundsError(NwbEphysError, IndexError):
    """A partial read asked for a block outside the declared shape."""
    pass


class BrokenReferenceError(NwbEphysError, LookupError):
    """The target of a stored reference no longer exists in the container."""
    pass


class IndexOutOfRangeError(NwbEphysError, IndexError):
    """A resolved row index exceeds the current row count of its table."""
    pass


class EmptySelectionError(NwbEphysError, ValueError):
    """A filtered query matched zero rows."""
    pass


class ContainerIOError(NwbEphysError, OSError):
    """The underlying container library reported a read or write failure."""
    pass
