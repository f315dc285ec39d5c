"""
Fake object gateway implementation for testing.

This implementation explicitly subclasses ObjectGateway to ensure interface
changes break CI immediately, preventing silent drift.
"""
from __future__ import annotations

import io
from dataclasses import dataclass
from typing import BinaryIO, Dict, List, Optional, Set, Tuple

from ...errors import RemoteIOError, RemoteObjectNotFound
from ..base import ObjectGateway

__all__ = ["InMemoryObjectGateway", "StoredObject"]


@dataclass(frozen=True)
class StoredObject:
    """Content and metadata of one object held by the fake."""
    data: bytes
    content_type: str

    @property
    def content_length(self) -> int:
        return len(self.data)


class _FailingStream(io.BytesIO):
    """Serves ``limit`` bytes, then fails like a dropped connection."""

    def __init__(self, data: bytes, limit: int) -> None:
        super().__init__(data)
        self._limit = limit

    def read(self, size: Optional[int] = -1) -> bytes:
        if self.tell() >= self._limit:
            raise ConnectionResetError("connection reset during fetch")
        if size is None or size < 0 or self.tell() + size > self._limit:
            size = self._limit - self.tell()
        return super().read(size)


class InMemoryObjectGateway(ObjectGateway):
    """
    In-memory object store keyed by (bucket, key) for testing.

    This is a test double; not for production use.
    Records every fetch/store/delete call and supports failure injection.
    """

    def __init__(self) -> None:
        self._objects: Dict[Tuple[str, str], StoredObject] = {}
        self.fetches: List[Tuple[str, str]] = []
        self.stores: List[Tuple[str, str, StoredObject]] = []
        self.deletes: List[Tuple[str, str]] = []
        self.opened_streams: List[BinaryIO] = []
        # Operations that should fail ("exists", "fetch", "store", "delete")
        self.fail_on: Set[str] = set()
        # Fail fetch streams after this many bytes
        self.fail_fetch_after: Optional[int] = None

    def put_object(self, bucket: str, key: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        """Seed an object directly (test utility)."""
        self._objects[(bucket, key)] = StoredObject(data=data, content_type=content_type)

    def get_object(self, bucket: str, key: str) -> StoredObject:
        """Read an object directly (test utility)."""
        return self._objects[(bucket, key)]

    def _maybe_fail(self, operation: str, bucket: str, key: str) -> None:
        if operation in self.fail_on:
            raise RemoteIOError(f"injected {operation} failure for {bucket}/{key}", bucket=bucket, key=key)

    def exists(self, bucket: str, key: str) -> bool:
        self._maybe_fail("exists", bucket, key)
        return (bucket, key) in self._objects

    def fetch(self, bucket: str, key: str) -> BinaryIO:
        self.fetches.append((bucket, key))
        self._maybe_fail("fetch", bucket, key)
        if (bucket, key) not in self._objects:
            raise RemoteObjectNotFound(f"Object not found: {bucket}/{key}", bucket=bucket, key=key)
        data = self._objects[(bucket, key)].data
        if self.fail_fetch_after is not None:
            stream: BinaryIO = _FailingStream(data, self.fail_fetch_after)
        else:
            stream = io.BytesIO(data)
        self.opened_streams.append(stream)
        return stream

    def store(
        self,
        bucket: str,
        key: str,
        stream: BinaryIO,
        content_length: int,
        content_type: str,
    ) -> None:
        self._maybe_fail("store", bucket, key)
        data = stream.read()
        if len(data) != content_length:
            raise RemoteIOError(
                f"content length mismatch for {bucket}/{key}: declared {content_length}, sent {len(data)}",
                bucket=bucket,
                key=key,
            )
        stored = StoredObject(data=data, content_type=content_type)
        self._objects[(bucket, key)] = stored
        self.stores.append((bucket, key, stored))

    def delete(self, bucket: str, key: str) -> None:
        self._maybe_fail("delete", bucket, key)
        if (bucket, key) not in self._objects:
            raise RemoteObjectNotFound(f"Object not found: {bucket}/{key}", bucket=bucket, key=key)
        del self._objects[(bucket, key)]
        self.deletes.append((bucket, key))

    def clear(self) -> None:
        """Clear all stored data and call records (test utility)."""
        self._objects.clear()
        self.fetches.clear()
        self.stores.clear()
        self.deletes.clear()
        self.opened_streams.clear()
        self.fail_on.clear()
        self.fail_fetch_after = None
