"""
Key safety utilities for stagedfs.

This module provides shared validation for object keys and bucket names so that
keys can be mapped onto local paths (scratch names, the local directory store)
without escaping their root.
"""
from __future__ import annotations

from pathlib import PurePosixPath

# Longest key-derived suffix kept in a scratch file name; most filesystems cap
# a single name component at 255 bytes.
MAX_SCRATCH_SUFFIX = 120


def safe_key(key: str) -> str:
    """
    Validate an object key.

    This function enforces the following safety rules:
    - No empty strings or "."
    - No absolute keys (starting with '/')
    - No trailing '/' (directory markers are not objects)
    - No parent directory references ('..' components)
    - No backslashes

    Args:
        key: Object key within a bucket

    Returns:
        The key unchanged

    Raises:
        ValueError: If key violates safety rules

    Examples:
        >>> safe_key("reports/2024/q1.csv")
        'reports/2024/q1.csv'

        >>> safe_key("../secrets.txt")
        ValueError: unsafe key: ../secrets.txt

        >>> safe_key("logs/")
        ValueError: unsafe key: logs/
    """
    if not key or key == "." or "\\" in key:
        raise ValueError(f"unsafe key: {key}")
    if key.startswith("/") or key.endswith("/"):
        raise ValueError(f"unsafe key: {key}")
    if ".." in PurePosixPath(key).parts:
        raise ValueError(f"unsafe key: {key}")
    return key


def safe_bucket(bucket: str) -> str:
    """Validate a bucket/container name: non-empty, single path component."""
    if not bucket or bucket in (".", "..") or "/" in bucket or "\\" in bucket:
        raise ValueError(f"unsafe bucket: {bucket}")
    return bucket


def scratch_suffix(key: str) -> str:
    """
    Derive a human-traceable scratch file suffix from a key.

    Slashes become underscores; only the tail of long keys is kept.

    Examples:
        >>> scratch_suffix("data/2024/report.csv")
        'data_2024_report.csv'
    """
    suffix = key.replace("/", "_")
    return suffix[-MAX_SCRATCH_SUFFIX:]
