from dataclasses import dataclass


@dataclass(frozen=True)
class SoftLink:
    """A named link to another path in the same container."""
    path: str
