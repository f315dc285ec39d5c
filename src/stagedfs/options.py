"""
Open options and the policy that turns them into staging behavior.

A channel is opened with a set of intents (create, create-new, delete-on-close
and options passed through to the local file). The policy is evaluated once at
construction and once at close from a frozen snapshot of that set.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable

from .errors import AlreadyExistsError

__all__ = ["OpenOption", "OpenPolicy", "local_open_flags", "options_from_mode"]


class OpenOption(str, Enum):
    """Open intents recognized by staged channels."""
    READ = "read"
    WRITE = "write"
    APPEND = "append"
    TRUNCATE_EXISTING = "truncate_existing"
    CREATE = "create"
    CREATE_NEW = "create_new"
    DELETE_ON_CLOSE = "delete_on_close"
    SPARSE = "sparse"
    SYNC = "sync"
    DSYNC = "dsync"


def local_open_flags(options: Iterable[OpenOption]) -> int:
    """
    Translate open options into ``os.open`` flags for the scratch file.

    Rules:
    - readable if READ is present, or if neither WRITE nor APPEND is
    - writable if WRITE or APPEND is present
    - CREATE/CREATE_NEW/TRUNCATE_EXISTING only take effect on writable channels
    - SPARSE and DELETE_ON_CLOSE have no effect on the local file

    Raises:
        ValueError: If APPEND is combined with TRUNCATE_EXISTING
    """
    opts = frozenset(options)
    writable = OpenOption.WRITE in opts or OpenOption.APPEND in opts
    readable = OpenOption.READ in opts or not writable

    if OpenOption.APPEND in opts and OpenOption.TRUNCATE_EXISTING in opts:
        raise ValueError("APPEND + TRUNCATE_EXISTING not allowed")

    if readable and writable:
        flags = os.O_RDWR
    elif writable:
        flags = os.O_WRONLY
    else:
        flags = os.O_RDONLY

    if writable:
        if OpenOption.CREATE_NEW in opts:
            flags |= os.O_CREAT | os.O_EXCL
        elif OpenOption.CREATE in opts:
            flags |= os.O_CREAT
        if OpenOption.TRUNCATE_EXISTING in opts:
            flags |= os.O_TRUNC
        if OpenOption.APPEND in opts:
            flags |= os.O_APPEND
    if OpenOption.SYNC in opts:
        flags |= getattr(os, "O_SYNC", 0)
    if OpenOption.DSYNC in opts:
        flags |= getattr(os, "O_DSYNC", 0)
    # Windows opens in text mode unless told otherwise
    flags |= getattr(os, "O_BINARY", 0)
    return flags


@dataclass(frozen=True)
class OpenPolicy:
    """
    Decisions derived from a frozen option set.

    Attributes:
        options: The caller's options, frozen at construction
    """
    options: FrozenSet[OpenOption]

    def __post_init__(self) -> None:
        # Reject impossible combinations before any remote call is made
        local_open_flags(self.local_options)

    @classmethod
    def from_options(cls, options: Iterable[OpenOption]) -> OpenPolicy:
        return cls(options=frozenset(OpenOption(o) for o in options))

    @property
    def create_new(self) -> bool:
        return OpenOption.CREATE_NEW in self.options

    @property
    def delete_on_close(self) -> bool:
        return OpenOption.DELETE_ON_CLOSE in self.options

    @property
    def local_options(self) -> FrozenSet[OpenOption]:
        """
        Options for the local channel over the scratch file.

        CREATE_NEW is consumed by the remote existence check; the scratch file
        was just created by this process, so a second exclusivity check on it
        would always fail.
        """
        return self.options - {OpenOption.CREATE_NEW}

    def check_existing(self, exists: bool, where: str) -> None:
        """Raise AlreadyExistsError when exclusive creation meets an existing object."""
        if exists and self.create_new:
            raise AlreadyExistsError(f"target already exists: {where}")

    def should_populate(self, exists: bool) -> bool:
        """Existing remote content is always staged locally before the channel opens."""
        return exists


_MODE_OPTIONS = {
    "r": {OpenOption.READ},
    "w": {OpenOption.WRITE, OpenOption.CREATE, OpenOption.TRUNCATE_EXISTING},
    "a": {OpenOption.WRITE, OpenOption.APPEND, OpenOption.CREATE},
    "x": {OpenOption.WRITE, OpenOption.CREATE_NEW},
}


def options_from_mode(mode: str) -> FrozenSet[OpenOption]:
    """
    Map a Python ``open()`` mode string to open options.

    Examples:
        >>> sorted(o.value for o in options_from_mode("rb"))
        ['read']

        >>> sorted(o.value for o in options_from_mode("r+"))
        ['read', 'write']

    Raises:
        ValueError: For text mode or malformed mode strings
    """
    if "t" in mode:
        raise ValueError(f"staged channels are binary only: {mode!r}")
    stripped = mode.replace("b", "")
    plus = stripped.endswith("+")
    base = stripped[:-1] if plus else stripped
    if base not in _MODE_OPTIONS or stripped.count("+") > 1 or mode.count("b") > 1:
        raise ValueError(f"invalid mode: {mode!r}")

    options = set(_MODE_OPTIONS[base])
    if plus:
        options |= {OpenOption.READ, OpenOption.WRITE}
    return frozenset(options)
