"""
Local scratch files backing open staged channels.

Each channel owns exactly one scratch file. The file is created empty in the
configured scratch directory, named after the object key so it can be traced
back to its object, and removed when the channel closes or fails to open.
"""
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from .path_safety import scratch_suffix

__all__ = ["ScratchFile"]

logger = logging.getLogger(__name__)


class ScratchFile:
    """
    A uniquely named local file exclusively owned by one channel.

    Release is best-effort and idempotent: it never raises, so it can run in
    cleanup paths without masking the error that triggered the cleanup.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._released = False

    @classmethod
    def allocate(cls, key: str, *, directory: Optional[str] = None, prefix: str = "stagedfs-") -> ScratchFile:
        """
        Create a fresh, empty scratch file for ``key``.

        Args:
            key: Object key the file stages; slashes become underscores in the name
            directory: Scratch directory (None = process temp dir)
            prefix: File name prefix

        Raises:
            OSError: If the file cannot be created
        """
        if directory is not None:
            Path(directory).mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(prefix=prefix, suffix=scratch_suffix(key), dir=directory)
        os.close(fd)
        logger.debug(f"Allocated scratch file {name} for {key}")
        return cls(Path(name))

    @property
    def path(self) -> Path:
        return self._path

    @property
    def released(self) -> bool:
        return self._released

    def size(self) -> int:
        return self._path.stat().st_size

    def release(self) -> None:
        """Delete the file; missing files and deletion failures are ignored."""
        if self._released:
            return
        self._released = True
        try:
            self._path.unlink()
            logger.debug(f"Removed scratch file {self._path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to remove scratch file {self._path}: {e}")

    def __repr__(self) -> str:
        return f"ScratchFile({str(self._path)!r}, released={self._released})"
