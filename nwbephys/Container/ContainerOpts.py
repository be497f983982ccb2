from typing import Union
from dataclasses import dataclass
from numcodecs.abc import Codec


# Sentinel for create_dataset(compression=...) meaning "use ContainerOpts.compression"
_compression_not_specified_ = object()


@dataclass(frozen=True)
class ContainerOpts:
    """
    Options for the Container class.

    Attributes:
        compression (Union[str, Codec, None]): Compression applied to numeric
        datasets. Either "gzip", None for no compression, or (for zarr
        containers only) a numcodecs Codec. Default is "gzip".

        compression_level (int): The gzip compression level. Default is 4,
        which is also the default for h5py.

        chunk_size_bytes (int): Target size in bytes of the chunks of numeric
        datasets that are chunked automatically. Chunking is only done along
        the first axis. Default is 1024 * 1024 * 20.
    """
    compression: Union[str, Codec, None] = 'gzip'
    compression_level: int = 4
    chunk_size_bytes: int = 1024 * 1024 * 20
