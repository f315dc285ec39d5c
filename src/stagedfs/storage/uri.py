"""
URI parsing utilities for object stores.

Provides consistent parsing and validation of object URIs across the
supported backends (Azure, S3, local directory, HTTP).
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

from ..models import ObjectPath

__all__ = ["ParsedURI", "parse_object_uri", "SCHEMES"]

Scheme = Literal["az", "s3", "file", "http"]

SCHEMES = ("az", "s3", "file", "http")


@dataclass(frozen=True)
class ParsedURI:
    """
    Parsed components of an object URI.

    Attributes:
        scheme: Storage backend scheme (az, s3, file, http)
        bucket: Container/bucket name
        key: Object key within the bucket
        original: Original URI string for error messages
    """
    scheme: Scheme
    bucket: str
    key: str
    original: str

    @property
    def path(self) -> ObjectPath:
        return ObjectPath(bucket=self.bucket, key=self.key)


def parse_object_uri(uri: str) -> ParsedURI:
    """
    Parse and validate an object URI.

    Accepts URIs in the form: {az|s3|file|http}://bucket/key

    Validation:
    - Rejects URIs containing ".." (path traversal)
    - Rejects URIs with backslashes (non-POSIX paths)
    - Rejects URIs starting with "/" after the scheme
    - Rejects empty bucket or key parts

    Args:
        uri: Object URI to parse

    Returns:
        ParsedURI with validated components

    Raises:
        ValueError: If URI format is invalid or contains unsafe patterns

    Examples:
        >>> parse_object_uri("s3://mybucket/models/model.pkl")
        ParsedURI(scheme='s3', bucket='mybucket', key='models/model.pkl', original='...')

        >>> parse_object_uri("file://scratch/notes.txt")
        ParsedURI(scheme='file', bucket='scratch', key='notes.txt', original='...')
    """
    if not uri:
        raise ValueError("URI cannot be empty")

    if ".." in uri:
        raise ValueError(f"URI contains path traversal: {uri}")

    if "\\" in uri:
        raise ValueError(f"URI contains backslashes (use forward slashes): {uri}")

    match = re.match(r"^(az|s3|file|http)://(.+)$", uri)
    if not match:
        raise ValueError(f"Invalid URI format, expected scheme://bucket/key: {uri}")

    scheme, remainder = match.groups()

    if remainder.startswith("/"):
        raise ValueError(f"URI path cannot start with '/': {uri}")

    if "/" not in remainder:
        raise ValueError(f"URI missing key part, expected bucket/key: {uri}")

    bucket, key = remainder.split("/", 1)

    if not bucket:
        raise ValueError(f"Bucket name cannot be empty: {uri}")

    if not key:
        raise ValueError(f"Key cannot be empty: {uri}")

    return ParsedURI(
        scheme=scheme,  # type: ignore  # validated by the regex above
        bucket=bucket,
        key=key,
        original=uri,
    )
