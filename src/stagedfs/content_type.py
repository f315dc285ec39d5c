"""
Content-type detection for committed objects.

Detection is deterministic and never fails: magic bytes first, then the file
name, then a text heuristic, and finally ``application/octet-stream``.
"""
from __future__ import annotations

import mimetypes
from typing import Optional, Protocol, runtime_checkable

__all__ = [
    "ContentTypeDetector",
    "SniffingDetector",
    "DEFAULT_CONTENT_TYPE",
    "DETECT_PREFIX_BYTES",
]

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Bytes of content handed to the detector
DETECT_PREFIX_BYTES = 8192

_MAGIC = [
    (b"%PDF-", "application/pdf"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"PK\x03\x04", "application/zip"),
    (b"\x1f\x8b", "application/gzip"),
    (b"BZh", "application/x-bzip2"),
    (b"\xfd7zXZ\x00", "application/x-xz"),
    (b"\x28\xb5\x2f\xfd", "application/zstd"),
    (b"7z\xbc\xaf\x27\x1c", "application/x-7z-compressed"),
    (b"PAR1", "application/vnd.apache.parquet"),
    (b"SQLite format 3\x00", "application/vnd.sqlite3"),
    (b"\x7fELF", "application/x-executable"),
    (b"OggS", "application/ogg"),
    (b"ID3", "audio/mpeg"),
    (b"%!PS", "application/postscript"),
    (b"<?xml", "application/xml"),
]

# Generic containers a file name may refine (a .docx is a zip, a .svg is xml)
_REFINABLE = {"application/zip", "application/xml"}


@runtime_checkable
class ContentTypeDetector(Protocol):
    """Protocol for best-effort media type detection."""

    def detect(self, prefix: bytes, name_hint: str) -> str:
        """
        Guess the media type of content.

        Args:
            prefix: Leading bytes of the content (may be empty)
            name_hint: File name of the object, used when bytes are inconclusive

        Returns:
            A media type string; never raises for inconclusive input
        """
        ...


def _sniff(prefix: bytes) -> Optional[str]:
    for magic, media_type in _MAGIC:
        if prefix.startswith(magic):
            return media_type
    if prefix[:4] == b"RIFF" and prefix[8:12] == b"WEBP":
        return "image/webp"
    if prefix[:4] == b"RIFF" and prefix[8:12] == b"WAVE":
        return "audio/wav"
    if prefix[4:8] == b"ftyp":
        return "video/mp4"
    return None


def _looks_like_text(prefix: bytes) -> bool:
    if not prefix or b"\x00" in prefix:
        return False
    try:
        prefix.decode("utf-8")
    except UnicodeDecodeError as e:
        # A multi-byte character cut off by the prefix boundary is still text
        return e.start >= len(prefix) - 3 and e.reason == "unexpected end of data"
    return True


class SniffingDetector:
    """Default detector: magic bytes, then file name, then a UTF-8 text check."""

    def detect(self, prefix: bytes, name_hint: str) -> str:
        by_magic = _sniff(prefix)
        by_name, _ = mimetypes.guess_type(name_hint, strict=False) if name_hint else (None, None)

        if by_magic and by_name and by_magic in _REFINABLE:
            return by_name
        if by_magic:
            return by_magic
        if by_name:
            return by_name
        if _looks_like_text(prefix):
            return "text/plain"
        return DEFAULT_CONTENT_TYPE
