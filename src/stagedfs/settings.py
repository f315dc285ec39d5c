"""
Settings and configuration for stagedfs.

Centralizes configuration values and provides validation with fail-fast behavior.
Loads settings from environment variables at gateway/channel construction time.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Optional

__all__ = ["Settings", "create_settings_from_env"]


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for stagedfs channels and gateways.

    Scratch Settings:
        scratch_dir: Directory for staging files (None = process temp dir)
        scratch_prefix: File name prefix for staging files

    Local Directory Store:
        local_root: Root directory backing file:// URIs

    HTTP Object Store:
        http_endpoint: Base URL backing http:// URIs
        http_timeout_s: HTTP request timeout in seconds
        http_insecure: Skip TLS verification for local/dev use

    Azure Blob Storage:
        az_connection_string: Azure storage connection string
        az_account: Azure storage account name
        az_key: Azure storage account key
        az_blob_endpoint: Custom Azure blob endpoint (for Azurite/private endpoints)
        ext_timeout_s: Cloud SDK operation timeout

    S3:
        s3_endpoint: Custom endpoint URL (MinIO, R2, localstack)
        s3_region: Region name
    """
    # Scratch settings
    scratch_dir: Optional[str] = None
    scratch_prefix: str = "stagedfs-"

    # Local directory store
    local_root: Optional[str] = None

    # HTTP object store
    http_endpoint: Optional[str] = None
    http_timeout_s: float = 30.0
    http_insecure: bool = False

    # Azure settings
    az_connection_string: Optional[str] = None
    az_account: Optional[str] = None
    az_key: Optional[str] = None
    az_blob_endpoint: Optional[str] = None
    ext_timeout_s: float = 60.0

    # S3 settings
    s3_endpoint: Optional[str] = None
    s3_region: Optional[str] = None

    def __post_init__(self):
        """Validate settings on construction."""
        if not self.scratch_prefix:
            raise ValueError("scratch_prefix cannot be empty")
        if "/" in self.scratch_prefix or "\\" in self.scratch_prefix:
            raise ValueError(f"scratch_prefix cannot contain path separators: {self.scratch_prefix}")

        # Endpoint must be a plain http(s) base URL
        if self.http_endpoint is not None:
            url_pattern = r"^https?://[a-zA-Z0-9.-]+(?::[0-9]+)?(?:/.*)?$"
            if not re.match(url_pattern, self.http_endpoint):
                raise ValueError(f"Invalid http_endpoint format: {self.http_endpoint}")

        # Validate timeouts are positive
        if self.http_timeout_s <= 0:
            raise ValueError(f"http_timeout_s must be positive, got {self.http_timeout_s}")

        if self.ext_timeout_s <= 0:
            raise ValueError(f"ext_timeout_s must be positive, got {self.ext_timeout_s}")

        # Validate Azure auth: either connection string OR (account + key)
        has_conn_str = bool(self.az_connection_string)
        has_account_key = bool(self.az_account and self.az_key)

        if has_conn_str and has_account_key:
            raise ValueError("Specify either az_connection_string OR (az_account + az_key), not both")

        # Azure auth is optional, but if partially configured it must be complete
        if self.az_account and not self.az_key:
            raise ValueError("az_account specified but az_key is missing")
        if self.az_key and not self.az_account:
            raise ValueError("az_key specified but az_account is missing")


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        Scratch:
        - STAGEDFS_SCRATCH_DIR (default: process temp dir)
        - STAGEDFS_SCRATCH_PREFIX (default: "stagedfs-")

        Local directory store:
        - STAGEDFS_LOCAL_ROOT (optional)

        HTTP object store:
        - STAGEDFS_HTTP_ENDPOINT (optional)
        - STAGEDFS_HTTP_TIMEOUT (default: 30.0)
        - STAGEDFS_HTTP_INSECURE (default: false)

        Azure:
        - AZURE_STORAGE_CONNECTION_STRING (optional)
        - AZURE_STORAGE_ACCOUNT (optional)
        - AZURE_STORAGE_KEY (optional)
        - STAGEDFS_AZURE_BLOB_ENDPOINT (optional, for Azurite/custom endpoints)
        - STAGEDFS_EXT_TIMEOUT (default: 60.0)

        S3:
        - STAGEDFS_S3_ENDPOINT (optional)
        - STAGEDFS_S3_REGION, falling back to AWS_REGION (optional)

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid

    Note:
        Creates a fresh Settings instance every time (no caching).
        This ensures test isolation and eliminates global state.
    """
    def str_to_bool(value: str) -> bool:
        return value.lower() in ('true', '1', 'yes', 'on')

    def get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        return float(value) if value else default

    return Settings(
        scratch_dir=os.getenv("STAGEDFS_SCRATCH_DIR") or None,
        scratch_prefix=os.getenv("STAGEDFS_SCRATCH_PREFIX") or "stagedfs-",
        local_root=os.getenv("STAGEDFS_LOCAL_ROOT") or None,
        http_endpoint=os.getenv("STAGEDFS_HTTP_ENDPOINT") or None,
        http_timeout_s=get_float("STAGEDFS_HTTP_TIMEOUT", 30.0),
        http_insecure=str_to_bool(os.getenv("STAGEDFS_HTTP_INSECURE", "false")),
        az_connection_string=os.getenv("AZURE_STORAGE_CONNECTION_STRING") or None,
        az_account=os.getenv("AZURE_STORAGE_ACCOUNT") or None,
        az_key=os.getenv("AZURE_STORAGE_KEY") or None,
        az_blob_endpoint=os.getenv("STAGEDFS_AZURE_BLOB_ENDPOINT") or None,
        ext_timeout_s=get_float("STAGEDFS_EXT_TIMEOUT", 60.0),
        s3_endpoint=os.getenv("STAGEDFS_S3_ENDPOINT") or None,
        s3_region=os.getenv("STAGEDFS_S3_REGION") or os.getenv("AWS_REGION") or None,
    )
