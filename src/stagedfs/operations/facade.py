"""
Operations Facade - Application service layer.

Provides a clean interface between the CLI and staged channels, centralizing
gateway selection and the open mode each command uses while keeping CLI
commands thin and testable.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import BinaryIO, Optional

from ..channel import StagedSeekableChannel, open_channel
from ..content_type import DETECT_PREFIX_BYTES, ContentTypeDetector, SniffingDetector
from ..errors import RemoteObjectNotFound
from ..options import OpenOption
from ..settings import Settings
from ..storage.base import CHUNK_SIZE, ObjectGateway
from ..storage.object_store import gateway_for
from ..storage.uri import parse_object_uri

logger = logging.getLogger(__name__)


def _copy(src: BinaryIO, write) -> int:
    """Copy ``src`` to ``write`` in chunks; returns bytes copied."""
    total = 0
    while True:
        chunk = src.read(CHUNK_SIZE)
        if not chunk:
            return total
        write(chunk)
        total += len(chunk)


@dataclass(frozen=True)
class OpsConfig:
    """
    Configuration for Operations facade.

    Centralizes policy decisions so commands don't each pick their own.
    """
    verbose: bool = False         # Show detailed output


@dataclass(frozen=True)
class ObjectSummary:
    """
    Outcome of one command against an object.

    Attributes:
        uri: Object URI the command ran against
        size: Object size after the command (bytes)
        transferred: Bytes read or written by the command
        content_type: Detected content type, when known
        deleted: Whether the object was removed
    """
    uri: str
    size: int
    transferred: int = 0
    content_type: Optional[str] = None
    deleted: bool = False


class Operations:
    """
    Operations facade for CLI commands.

    Each mutating command opens one staged channel, applies its edit locally
    and commits on close, so every command is a single whole-object upload.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        config: Optional[OpsConfig] = None,
        gateway: Optional[ObjectGateway] = None,
        detector: Optional[ContentTypeDetector] = None,
    ) -> None:
        """
        Initialize operations facade.

        Args:
            settings: Settings for gateways and scratch files
            config: Operations configuration
            gateway: Gateway to use for every URI (default: chosen per URI scheme)
            detector: Content-type detector (default: SniffingDetector)
        """
        self.settings = settings
        self.config = config or OpsConfig()
        self._gateway = gateway
        self.detector = detector or SniffingDetector()

    def gateway(self, uri: str) -> ObjectGateway:
        if self._gateway is not None:
            return self._gateway
        return gateway_for(uri, self.settings)

    def _open(self, uri: str, options, gateway: Optional[ObjectGateway] = None) -> StagedSeekableChannel:
        return open_channel(
            uri,
            options,
            settings=self.settings,
            gateway=gateway or self.gateway(uri),
            detector=self.detector,
        )

    def cat(self, uri: str, out: BinaryIO) -> ObjectSummary:
        """
        Write the full content of an object to ``out``.

        Streams straight from the gateway: a staged channel would re-store the
        object on close, and would stage a missing object as empty.

        Raises:
            RemoteObjectNotFound: If the object does not exist
        """
        parsed = parse_object_uri(uri)
        stream = self.gateway(uri).fetch(parsed.bucket, parsed.key)
        try:
            copied = _copy(stream, out.write)
        finally:
            stream.close()
        return ObjectSummary(uri=uri, size=copied, transferred=copied)

    def put(self, uri: str, source: BinaryIO) -> ObjectSummary:
        """Replace (or create) an object with the content of ``source``."""
        with self._open(uri, "w") as channel:
            copied = _copy(source, channel.write)
            size = channel.size()
        return ObjectSummary(uri=uri, size=size, transferred=copied)

    def append(self, uri: str, source: BinaryIO) -> ObjectSummary:
        """Append ``source`` to an object, creating it when absent."""
        with self._open(uri, "a") as channel:
            copied = _copy(source, channel.write)
            size = channel.size()
        return ObjectSummary(uri=uri, size=size, transferred=copied)

    def patch(self, uri: str, offset: int, source: BinaryIO) -> ObjectSummary:
        """
        Overwrite bytes of an object starting at ``offset``.

        Offsets past the end extend the object; the gap reads as zeros.

        Raises:
            ValueError: If offset is negative
        """
        if offset < 0:
            raise ValueError(f"Offset must be non-negative, got {offset}")
        options = {OpenOption.READ, OpenOption.WRITE, OpenOption.CREATE}
        with self._open(uri, options) as channel:
            channel.position(offset)
            copied = _copy(source, channel.write)
            size = channel.size()
        return ObjectSummary(uri=uri, size=size, transferred=copied)

    def truncate(self, uri: str, size: int) -> ObjectSummary:
        """
        Shrink an object to ``size`` bytes.

        Objects already at or below ``size`` are left unchanged.

        Raises:
            ValueError: If size is negative
            RemoteObjectNotFound: If the object does not exist
        """
        if size < 0:
            raise ValueError(f"Size must be non-negative, got {size}")
        parsed = parse_object_uri(uri)
        gateway = self.gateway(uri)
        if not gateway.exists(parsed.bucket, parsed.key):
            raise RemoteObjectNotFound(f"Object not found: {parsed.bucket}/{parsed.key}",
                                       bucket=parsed.bucket, key=parsed.key)
        with self._open(uri, {OpenOption.READ, OpenOption.WRITE}, gateway) as channel:
            before = channel.size()
            new_size = channel.truncate(size).size()
        logger.debug(f"Truncated {uri} from {before} to {new_size} bytes")
        return ObjectSummary(uri=uri, size=new_size, transferred=before - new_size)

    def remove(self, uri: str) -> ObjectSummary:
        """
        Delete an object through a delete-on-close channel.

        Raises:
            RemoteObjectNotFound: If the object does not exist
        """
        with self._open(uri, {OpenOption.READ, OpenOption.DELETE_ON_CLOSE}) as channel:
            size = channel.size()
        return ObjectSummary(uri=uri, size=size, deleted=True)

    def stat(self, uri: str) -> ObjectSummary:
        """
        Report size and detected content type without modifying the object.

        Reads through the gateway directly since a staged channel would
        re-store the object on close.

        Raises:
            RemoteObjectNotFound: If the object does not exist
        """
        parsed = parse_object_uri(uri)
        gateway = self.gateway(uri)
        stream = gateway.fetch(parsed.bucket, parsed.key)
        try:
            prefix = stream.read(DETECT_PREFIX_BYTES)
            size = len(prefix) + _copy(stream, lambda chunk: None)
        finally:
            stream.close()
        content_type = self.detector.detect(prefix, parsed.path.name)
        return ObjectSummary(uri=uri, size=size, content_type=content_type)
