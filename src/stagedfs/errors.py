"""
Staged channel error classes.

Provides a clear taxonomy of errors that can occur while a staged channel is
opened, used and closed. Remote failures are mapped from SDK and HTTP errors at
the gateway boundary so callers see one consistent hierarchy regardless of the
backing object store.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional


class StagedChannelError(Exception):
    """Base class for all stagedfs errors."""
    pass


class AlreadyExistsError(StagedChannelError, FileExistsError):
    """
    Exclusive creation requested for an object that already exists.

    Raised synchronously at channel construction, before any scratch file
    is allocated.
    """
    pass


class RemoteIOError(StagedChannelError, OSError):
    """
    Failure talking to the remote object store.

    Raised when:
    - fetch fails while a channel is being constructed
    - store or delete fails while a channel is being closed
    - an existence check fails for reasons other than "not found"
    """

    def __init__(self, message: str, *, bucket: Optional[str] = None, key: Optional[str] = None):
        super().__init__(message)
        self.bucket = bucket
        self.key = key


class RemoteObjectNotFound(RemoteIOError):
    """
    Remote object does not exist.

    Raised when:
    - fetch finds the object gone after the existence check
    - delete targets an object that no longer exists
    """
    pass


class RemoteAuthError(RemoteIOError):
    """
    Authentication or authorization error.

    Raised when:
    - HTTP 401 Unauthorized (invalid credentials)
    - HTTP 403 Forbidden (insufficient permissions)
    - SDK credential failures
    """
    pass


class ClosedChannelError(StagedChannelError, ValueError):
    """I/O operation attempted on a closed channel."""
    pass


@contextmanager
def remote_errors(action: str, bucket: str, key: str) -> Iterator[None]:
    """
    Surface anything escaping a gateway call as a RemoteIOError.

    Errors already in the RemoteIOError family pass through untouched so the
    gateway's own classification (not found, auth) is preserved.
    """
    try:
        yield
    except RemoteIOError:
        raise
    except Exception as e:
        raise RemoteIOError(f"{action} failed for {bucket}/{key}: {e}", bucket=bucket, key=key) from e


__all__ = [
    "StagedChannelError",
    "AlreadyExistsError",
    "RemoteIOError",
    "RemoteObjectNotFound",
    "RemoteAuthError",
    "ClosedChannelError",
    "remote_errors",
]
