"""
Storage interfaces for stagedfs.

These protocols define the boundary between staged channels and object store
implementations, enabling clean dependency injection and testing with fakes.
"""
from __future__ import annotations

import tempfile
from typing import BinaryIO, Callable, Protocol, runtime_checkable

__all__ = ["ObjectGateway", "spooled_download", "SPOOL_MAX_BYTES", "CHUNK_SIZE"]

CHUNK_SIZE = 1024 * 1024  # 1 MiB

# Downloads larger than this spill from memory to a temp file
SPOOL_MAX_BYTES = 8 * 1024 * 1024


@runtime_checkable
class ObjectGateway(Protocol):
    """
    Protocol for whole-object store operations.

    Objects are only ever read, replaced or removed whole. All failures other
    than "not found" in exists() surface as RemoteIOError.
    """

    def exists(self, bucket: str, key: str) -> bool:
        """
        Check whether an object exists.

        Returns:
            True if the object exists, False if it does not

        Raises:
            RemoteIOError: For transport, auth or service errors (never for "not found")
        """
        ...

    def fetch(self, bucket: str, key: str) -> BinaryIO:
        """
        Open the full content of an object as a readable stream.

        The caller must close the returned stream.

        Raises:
            RemoteObjectNotFound: If the object does not exist
            RemoteIOError: For other store errors
        """
        ...

    def store(
        self,
        bucket: str,
        key: str,
        stream: BinaryIO,
        content_length: int,
        content_type: str,
    ) -> None:
        """
        Replace an object with the content of ``stream``.

        Args:
            bucket: Bucket or container name
            key: Object key
            stream: Readable stream positioned at the start of the content
            content_length: Exact number of bytes in the stream
            content_type: Media type recorded with the object

        Raises:
            RemoteIOError: For transport, auth or quota errors
        """
        ...

    def delete(self, bucket: str, key: str) -> None:
        """
        Remove an object.

        Raises:
            RemoteObjectNotFound: If the object does not exist
            RemoteIOError: For other store errors
        """
        ...


def spooled_download(write_into: Callable[[BinaryIO], None]) -> BinaryIO:
    """
    Collect a download into a rewound spooled temp file.

    Args:
        write_into: Callable that writes the full object into the given file

    Returns:
        Readable stream positioned at offset 0; small objects stay in memory
    """
    spool = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_BYTES)
    try:
        write_into(spool)
        spool.seek(0)
    except BaseException:
        spool.close()
        raise
    return spool
