from .Container import Container, ContainerMode
from .ContainerOpts import ContainerOpts

__all__ = [
    "Container",
    "ContainerMode",
    "ContainerOpts",
]
