"""
Staged seekable channels over whole-object stores.

Object stores only read, replace or remove whole objects. A staged channel
bridges that to random access:

- open: the remote object (if any) is copied into a local scratch file and a
  local channel is opened over it
- use: read/write/seek/truncate/size act on the local copy only; nothing
  touches the store while the channel is open
- close: the final local content is uploaded once (or the remote object is
  deleted when DELETE_ON_CLOSE was requested) and the scratch file is removed

Edits are not crash-durable: a process that dies before close loses every write
since open. Two channels on the same object keep independent copies and the
last one to close wins; there is no locking or conflict detection.
"""
from __future__ import annotations

import logging
import os
from enum import Enum
from typing import Iterable, Optional, Union

from .content_type import DETECT_PREFIX_BYTES, ContentTypeDetector, SniffingDetector
from .errors import remote_errors
from .local_channel import LocalChannel
from .models import ObjectPath
from .options import OpenOption, OpenPolicy, options_from_mode
from .scratch import ScratchFile
from .settings import Settings
from .storage.base import CHUNK_SIZE, ObjectGateway

__all__ = ["StagedSeekableChannel", "ChannelState", "open_channel"]

logger = logging.getLogger(__name__)


class ChannelState(str, Enum):
    """Lifecycle of a staged channel."""
    CONSTRUCTING = "constructing"
    OPEN = "open"
    CLOSED = "closed"


class StagedSeekableChannel:
    """
    Random-access channel over one remote object, committed on close.

    Args:
        path: Object location (bucket + key)
        options: Open options; frozen for the channel's lifetime
        gateway: Store the object lives in
        detector: Content-type detector used at commit (default: SniffingDetector)
        settings: Scratch directory configuration (default: Settings())

    Raises:
        AlreadyExistsError: CREATE_NEW requested and the object exists
        RemoteIOError: Existence check or fetch failed
        ValueError: Contradictory options
        OSError: Local scratch allocation or open failed

    Examples:
        >>> with StagedSeekableChannel(path, {OpenOption.WRITE, OpenOption.CREATE}, gateway=gw) as ch:
        ...     ch.write(b"hello")
    """

    def __init__(
        self,
        path: ObjectPath,
        options: Iterable[OpenOption],
        *,
        gateway: ObjectGateway,
        detector: Optional[ContentTypeDetector] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._state = ChannelState.CONSTRUCTING
        self._path = path
        self._policy = OpenPolicy.from_options(options)
        self._gateway = gateway
        self._detector = detector or SniffingDetector()
        self._settings = settings or Settings()

        with remote_errors("exists", path.bucket, path.key):
            existed = gateway.exists(path.bucket, path.key)

        self._policy.check_existing(existed, str(path))

        self._scratch = ScratchFile.allocate(
            path.key,
            directory=self._settings.scratch_dir,
            prefix=self._settings.scratch_prefix,
        )
        try:
            if self._policy.should_populate(existed):
                self._populate()
            self._local = LocalChannel.open(self._scratch.path, self._policy.local_options)
        except BaseException:
            self._scratch.release()
            raise

        self._state = ChannelState.OPEN
        logger.debug(f"Opened staged channel for {path} (existed={existed})")

    def _populate(self) -> None:
        """Copy the full remote content into the scratch file."""
        bucket, key = self._path.bucket, self._path.key
        with remote_errors("fetch", bucket, key):
            stream = self._gateway.fetch(bucket, key)
        try:
            with open(self._scratch.path, "wb") as out:
                while True:
                    # A partial copy counts as a failed fetch
                    with remote_errors("fetch", bucket, key):
                        chunk = stream.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    out.write(chunk)
        finally:
            with remote_errors("fetch", bucket, key):
                stream.close()
        logger.debug(f"Staged {self._scratch.size()} bytes of {self._path} into {self._scratch.path}")

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def path(self) -> ObjectPath:
        return self._path

    @property
    def options(self) -> frozenset:
        return self._policy.options

    @property
    def state(self) -> ChannelState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is ChannelState.OPEN and self._local.is_open

    @property
    def scratch_path(self) -> str:
        return str(self._scratch.path)

    # ------------------------------------------------------------------
    # Random access (local only)
    # ------------------------------------------------------------------

    def readinto(self, buffer) -> int:
        """Read into ``buffer``; returns bytes read, 0 at end of content."""
        return self._local.readinto(buffer)

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes (all remaining content when negative)."""
        remaining = max(self._local.size() - self._local.position(), 0)
        if size is None or size < 0 or size > remaining:
            size = remaining
        buffer = bytearray(size)
        n = self._local.readinto(buffer)
        return bytes(buffer[:n])

    def write(self, buffer) -> int:
        return self._local.write(buffer)

    def position(self, new_position: Optional[int] = None) -> Union[int, StagedSeekableChannel]:
        """
        Get the current position, or set it and return the channel.

        Positions past the end are allowed; a later write fills the gap with zeros.
        """
        if new_position is None:
            return self._local.position()
        if new_position < 0:
            raise ValueError(f"negative position: {new_position}")
        self._local.seek(new_position)
        return self

    def tell(self) -> int:
        return self._local.position()

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        return self._local.seek(offset, whence)

    def truncate(self, size: int) -> StagedSeekableChannel:
        """Shrink content to ``size`` bytes; larger sizes leave content unchanged."""
        self._local.truncate(size)
        return self

    def size(self) -> int:
        return self._local.size()

    # ------------------------------------------------------------------
    # Close
    # ------------------------------------------------------------------

    def close(self) -> None:
        """
        Commit (or delete) the object and release the scratch file.

        Closing an already closed channel does nothing. The scratch file is
        removed whatever happens; a failed upload or delete still raises
        RemoteIOError, with the local channel already closed.
        """
        if self._state is not ChannelState.OPEN:
            return
        try:
            try:
                self._local.close()
            finally:
                self._state = ChannelState.CLOSED
            if self._policy.delete_on_close:
                self._delete_remote()
            else:
                self._commit()
        finally:
            self._scratch.release()

    def _delete_remote(self) -> None:
        with remote_errors("delete", self._path.bucket, self._path.key):
            self._gateway.delete(self._path.bucket, self._path.key)
        logger.debug(f"Deleted {self._path} on close")

    def _commit(self) -> None:
        with open(self._scratch.path, "rb") as stream:
            content_length = self._scratch.size()
            content_type = self._detector.detect(stream.read(DETECT_PREFIX_BYTES), self._path.name)
            stream.seek(0)
            with remote_errors("store", self._path.bucket, self._path.key):
                self._gateway.store(self._path.bucket, self._path.key, stream, content_length, content_type)
        logger.debug(f"Committed {content_length} bytes ({content_type}) to {self._path}")

    def __enter__(self) -> StagedSeekableChannel:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"StagedSeekableChannel({str(self._path)!r}, state={self._state.value})"


def open_channel(
    uri: str,
    mode: Union[str, Iterable[OpenOption]] = "r",
    *,
    settings: Optional[Settings] = None,
    gateway: Optional[ObjectGateway] = None,
    detector: Optional[ContentTypeDetector] = None,
) -> StagedSeekableChannel:
    """
    Open a staged channel for an object URI.

    Args:
        uri: Object URI ({az|s3|file|http}://bucket/key)
        mode: Python open() mode string or an iterable of OpenOption
        settings: Settings (default: loaded from environment)
        gateway: Gateway to use instead of the one selected by URI scheme
        detector: Content-type detector

    Returns:
        An open StagedSeekableChannel

    Examples:
        >>> with open_channel("file://notes/today.txt", "a") as ch:
        ...     ch.write(b"one more line\\n")
    """
    from .storage.object_store import gateway_for
    from .storage.uri import parse_object_uri

    if settings is None:
        from .settings import create_settings_from_env
        settings = create_settings_from_env()

    parsed = parse_object_uri(uri)
    options = options_from_mode(mode) if isinstance(mode, str) else frozenset(mode)
    if gateway is None:
        gateway = gateway_for(uri, settings)

    return StagedSeekableChannel(parsed.path, options, gateway=gateway, detector=detector, settings=settings)
