"""
Local directory object store.

Maps ``file://bucket/key`` onto ``<root>/bucket/key``. Stores are atomic
(temp file + rename) so readers never observe a half-written object, which
keeps the whole-object contract of remote stores.
"""
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import BinaryIO, Union

from ..errors import RemoteIOError, RemoteObjectNotFound
from ..path_safety import safe_bucket, safe_key
from .base import CHUNK_SIZE, ObjectGateway

__all__ = ["LocalDirectoryGateway"]

logger = logging.getLogger(__name__)


class LocalDirectoryGateway(ObjectGateway):
    """
    ObjectGateway backed by a directory tree.

    Content types are not persisted; the filesystem has nowhere to keep them.
    """

    def __init__(self, root: Union[str, Path]) -> None:
        self._root = Path(root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Local directory gateway rooted at {self._root}")

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, bucket: str, key: str) -> Path:
        """
        Translate bucket/key into a path under root.

        Raises:
            ValueError: If the key is unsafe or resolves outside root
        """
        path = (self._root / safe_bucket(bucket) / safe_key(key)).resolve()
        try:
            path.relative_to(self._root)
        except ValueError:
            raise ValueError(f"Suspicious key outside root: {bucket}/{key}")
        return path

    def exists(self, bucket: str, key: str) -> bool:
        return self._resolve(bucket, key).is_file()

    def fetch(self, bucket: str, key: str) -> BinaryIO:
        path = self._resolve(bucket, key)
        try:
            return open(path, "rb")
        except (FileNotFoundError, IsADirectoryError):
            raise RemoteObjectNotFound(f"Object not found: {bucket}/{key}", bucket=bucket, key=key)
        except OSError as e:
            raise RemoteIOError(f"Local store read error for {bucket}/{key}: {e}", bucket=bucket, key=key) from e

    def store(
        self,
        bucket: str,
        key: str,
        stream: BinaryIO,
        content_length: int,
        content_type: str,
    ) -> None:
        target_path = self._resolve(bucket, key)
        try:
            _write_stream_atomically(target_path, stream, expected_size=content_length)
        except ValueError as e:
            raise RemoteIOError(str(e), bucket=bucket, key=key) from e
        except OSError as e:
            raise RemoteIOError(f"Local store write error for {bucket}/{key}: {e}", bucket=bucket, key=key) from e
        logger.debug(f"Stored {content_length} bytes ({content_type}) at {target_path}")

    def delete(self, bucket: str, key: str) -> None:
        path = self._resolve(bucket, key)
        try:
            path.unlink()
        except FileNotFoundError:
            raise RemoteObjectNotFound(f"Object not found: {bucket}/{key}", bucket=bucket, key=key)
        except OSError as e:
            raise RemoteIOError(f"Local store delete error for {bucket}/{key}: {e}", bucket=bucket, key=key) from e


def _write_stream_atomically(target_path: Path, stream: BinaryIO, *, expected_size: int) -> None:
    """
    Stream content to file with atomic write and size verification.

    Content is written to a temp file in the target directory and renamed into
    place, so a failure never leaves a partial object behind.

    Raises:
        ValueError: If the number of bytes read differs from expected_size
        OSError: If file operations fail
    """
    target_path.parent.mkdir(parents=True, exist_ok=True)

    fd, temp_name = tempfile.mkstemp(prefix=".stagedfs.tmp.", dir=target_path.parent)
    temp_path = Path(temp_name)

    try:
        written = 0
        with os.fdopen(fd, "wb") as out:
            while True:
                chunk = stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                out.write(chunk)
                written += len(chunk)
            out.flush()
            os.fsync(out.fileno())

        if written != expected_size:
            raise ValueError(f"Size mismatch for {target_path}: expected {expected_size}, got {written}")

        os.replace(temp_path, target_path)

    except Exception:
        try:
            temp_path.unlink()
        except FileNotFoundError:
            pass
        raise
