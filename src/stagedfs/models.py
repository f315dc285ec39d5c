"""
Data models for stagedfs.

These Pydantic models provide type safety and validation for the identifiers
passed between the URI layer, gateways and channels.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .path_safety import safe_bucket, safe_key


class ObjectPath(BaseModel):
    """
    Location of one object in a whole-object store.

    Immutable and hashable so it can key in-memory stores and appear in
    error messages unchanged.
    """
    model_config = ConfigDict(frozen=True)

    bucket: str = Field(..., description="Bucket or container name")
    key: str = Field(..., description="Object key within the bucket (POSIX-style)")

    @field_validator("bucket")
    @classmethod
    def validate_bucket(cls, v: str) -> str:
        return safe_bucket(v)

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        return safe_key(v)

    @property
    def name(self) -> str:
        """Last key component, used as the file name hint."""
        return self.key.rsplit("/", 1)[-1]

    def __str__(self) -> str:
        return f"{self.bucket}/{self.key}"
