"""
Local random-access channel over a file on disk.

A thin, unbuffered wrapper over an OS file descriptor with seekable channel
semantics: explicit position, reads and writes at the position, truncate that
only ever shrinks, and a size query. Staged channels delegate every positional
operation here.
"""
from __future__ import annotations

import io
import logging
import os
from pathlib import Path
from typing import Iterable, Union

from .errors import ClosedChannelError
from .options import OpenOption, local_open_flags

__all__ = ["LocalChannel"]

logger = logging.getLogger(__name__)


class LocalChannel:
    """
    Seekable byte channel over a local file.

    Writing past the end extends the file; the gap, if any, reads as zeros.
    Every operation on a closed channel raises ClosedChannelError.
    """

    def __init__(self, raw: io.FileIO, path: Path) -> None:
        self._raw = raw
        self._path = path

    @classmethod
    def open(cls, path: Union[str, Path], options: Iterable[OpenOption]) -> LocalChannel:
        """
        Open a channel over ``path`` honoring the given options.

        Raises:
            ValueError: If the options are contradictory
            OSError: If the file cannot be opened
        """
        opts = frozenset(options)
        flags = local_open_flags(opts)
        if flags & os.O_RDWR:
            mode = "r+b"
        elif flags & os.O_WRONLY:
            mode = "ab" if flags & os.O_APPEND else "wb"
        else:
            mode = "rb"

        fd = os.open(path, flags, 0o600)
        try:
            raw = io.FileIO(fd, mode, closefd=True)
        except Exception:
            os.close(fd)
            raise
        if flags & os.O_APPEND:
            # Append channels start at the end, as with open(..., "a+")
            raw.seek(0, os.SEEK_END)
        logger.debug(f"Opened local channel {path} mode={mode} options={sorted(o.value for o in opts)}")
        return cls(raw, Path(path))

    def _check_open(self) -> io.FileIO:
        if self._raw.closed:
            raise ClosedChannelError(f"channel is closed: {self._path}")
        return self._raw

    @property
    def is_open(self) -> bool:
        return not self._raw.closed

    def readinto(self, buffer) -> int:
        """Read into ``buffer`` at the current position; 0 at end of content."""
        n = self._check_open().readinto(buffer)
        return n or 0

    def write(self, buffer) -> int:
        """Write ``buffer`` at the current position (at the end in append mode)."""
        raw = self._check_open()
        view = memoryview(buffer).cast("B")
        written = 0
        # Raw writes may be partial
        while written < len(view):
            n = raw.write(view[written:])
            if n is None:
                break
            written += n
        return written

    def position(self) -> int:
        return self._check_open().tell()

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        return self._check_open().seek(offset, whence)

    def size(self) -> int:
        return os.fstat(self._check_open().fileno()).st_size

    def truncate(self, size: int) -> None:
        """
        Shrink the file to ``size`` bytes.

        A size at or above the current size leaves the content untouched. In
        either case a position beyond ``size`` is moved back to ``size``.

        Raises:
            io.UnsupportedOperation: If the channel was not opened for writing
        """
        if size < 0:
            raise ValueError(f"negative size: {size}")
        raw = self._check_open()
        if not raw.writable():
            raise io.UnsupportedOperation(f"channel not open for writing: {self._path}")
        if size < self.size():
            raw.truncate(size)
        if raw.tell() > size:
            raw.seek(size)

    def close(self) -> None:
        self._raw.close()
