"""
Cloud object store gateways.

Implements the ObjectGateway protocol for Azure Blob Storage and S3, plus the
scheme-based factory used to pick a gateway for a URI.
"""
from __future__ import annotations

import logging
import re
from typing import Any, BinaryIO, Optional

from ..errors import RemoteAuthError, RemoteIOError, RemoteObjectNotFound
from ..settings import Settings
from .base import ObjectGateway, spooled_download
from .uri import parse_object_uri

__all__ = ["AzureObjectGateway", "S3ObjectGateway", "gateway_for"]

logger = logging.getLogger(__name__)


class AzureObjectGateway(ObjectGateway):
    """
    ObjectGateway for Azure Blob Storage.

    Uses azure-storage-blob SDK with connection string or account+key authentication.
    Supports custom endpoints for Azurite and private Azure clouds. Buckets map
    to containers, keys to blob names.
    """

    def __init__(self, *, settings: Settings, service_client: Any = None) -> None:
        """
        Initialize Azure gateway with settings.

        Args:
            settings: Settings containing Azure authentication and configuration
            service_client: Pre-built BlobServiceClient (skips auth validation)

        Raises:
            ValueError: If Azure authentication is not properly configured
        """
        self._settings = settings
        self._service_client = service_client
        if service_client is None:
            self._validate_azure_auth()

        if settings.az_connection_string:
            logger.debug("Azure gateway using connection string auth")
        elif settings.az_account:
            logger.debug(f"Azure gateway using account+key auth for {settings.az_account}")
        if settings.az_blob_endpoint:
            logger.debug(f"Azure gateway custom endpoint: {settings.az_blob_endpoint}")

    def _validate_azure_auth(self) -> None:
        """Validate Azure authentication configuration."""
        has_conn_str = bool(self._settings.az_connection_string)
        has_account_key = bool(self._settings.az_account and self._settings.az_key)

        if not has_conn_str and not has_account_key:
            raise ValueError(
                "Azure authentication not configured: need AZURE_STORAGE_CONNECTION_STRING "
                "or (AZURE_STORAGE_ACCOUNT + AZURE_STORAGE_KEY)"
            )

    def _get_service_client(self):
        """
        Get (and cache) the BlobServiceClient.

        Connection patterns:

        1. Connection string: BlobServiceClient.from_connection_string()
        2. Connection string + custom endpoint: account name taken from the
           connection string, endpoint overridden (Azurite/private clouds)
        3. Account+key: https://{account}.blob.core.windows.net
        4. Account+key + custom endpoint: {endpoint}/{account}

        All patterns include retry configuration (5 retries, 0.4s backoff) for
        resilience against transient network issues and Azure throttling.
        """
        if self._service_client is not None:
            return self._service_client

        try:
            from azure.storage.blob import BlobServiceClient
        except ImportError:
            raise ImportError("azure-storage-blob package required for Azure object storage")

        settings = self._settings
        client_kwargs = dict(
            connection_timeout=settings.ext_timeout_s,
            retry_total=5,
            retry_backoff_factor=0.4,
        )

        if settings.az_connection_string:
            account_match = re.search(r'AccountName=([^;]+)', settings.az_connection_string)
            if settings.az_blob_endpoint and account_match:
                endpoint_url = f"{settings.az_blob_endpoint.rstrip('/')}/{account_match.group(1)}"
                # Azurite accepts anonymous requests
                service_client = BlobServiceClient(account_url=endpoint_url, credential=None, **client_kwargs)
            else:
                service_client = BlobServiceClient.from_connection_string(
                    settings.az_connection_string, **client_kwargs
                )
        else:
            if settings.az_blob_endpoint:
                account_url = f"{settings.az_blob_endpoint.rstrip('/')}/{settings.az_account}"
            else:
                account_url = f"https://{settings.az_account}.blob.core.windows.net"
            service_client = BlobServiceClient(account_url=account_url, credential=settings.az_key, **client_kwargs)

        self._service_client = service_client
        return service_client

    def _blob_client(self, bucket: str, key: str):
        return self._get_service_client().get_blob_client(container=bucket, blob=key)

    @staticmethod
    def _sdk_errors():
        try:
            from azure.core.exceptions import ClientAuthenticationError, ResourceNotFoundError
        except ImportError:
            raise ImportError("azure-storage-blob package required for Azure object storage")
        return ResourceNotFoundError, ClientAuthenticationError

    def _map_error(self, e: Exception, action: str, bucket: str, key: str) -> RemoteIOError:
        not_found, auth_error = self._sdk_errors()
        if isinstance(e, not_found):
            return RemoteObjectNotFound(f"Blob not found: {bucket}/{key}", bucket=bucket, key=key)
        if isinstance(e, auth_error):
            return RemoteAuthError(f"Azure authentication failed for {bucket}/{key}: {e}", bucket=bucket, key=key)
        return RemoteIOError(f"Azure blob {action} error for {bucket}/{key}: {e}", bucket=bucket, key=key)

    def exists(self, bucket: str, key: str) -> bool:
        blob_client = self._blob_client(bucket, key)
        try:
            return bool(blob_client.exists())
        except Exception as e:
            raise self._map_error(e, "exists", bucket, key) from e

    def fetch(self, bucket: str, key: str) -> BinaryIO:
        blob_client = self._blob_client(bucket, key)
        try:
            downloader = blob_client.download_blob()
            return spooled_download(downloader.readinto)
        except Exception as e:
            raise self._map_error(e, "download", bucket, key) from e

    def store(
        self,
        bucket: str,
        key: str,
        stream: BinaryIO,
        content_length: int,
        content_type: str,
    ) -> None:
        try:
            from azure.storage.blob import ContentSettings
        except ImportError:
            raise ImportError("azure-storage-blob package required for Azure object storage")

        blob_client = self._blob_client(bucket, key)
        try:
            blob_client.upload_blob(
                stream,
                length=content_length,
                content_settings=ContentSettings(content_type=content_type),
                overwrite=True,
            )
        except Exception as e:
            raise self._map_error(e, "upload", bucket, key) from e
        logger.debug(f"Uploaded {content_length} bytes ({content_type}) to az://{bucket}/{key}")

    def delete(self, bucket: str, key: str) -> None:
        blob_client = self._blob_client(bucket, key)
        try:
            blob_client.delete_blob()
        except Exception as e:
            raise self._map_error(e, "delete", bucket, key) from e


_S3_NOT_FOUND = {"404", "NoSuchKey", "NotFound"}
_S3_AUTH = {"401", "403", "AccessDenied", "InvalidAccessKeyId", "SignatureDoesNotMatch", "ExpiredToken"}


class S3ObjectGateway(ObjectGateway):
    """
    ObjectGateway for S3 and S3-compatible services (MinIO, R2, localstack).

    Credentials come from the standard boto3 chain (environment, shared
    config, instance metadata).
    """

    def __init__(self, *, settings: Settings, client: Any = None) -> None:
        """
        Initialize S3 gateway with settings.

        Args:
            settings: Settings containing optional endpoint and region
            client: Pre-built boto3 S3 client
        """
        self._settings = settings
        self._client = client
        logger.debug(
            f"S3 gateway endpoint: {settings.s3_endpoint or 'default'}, region: {settings.s3_region or 'default'}"
        )

    def _get_client(self):
        if self._client is None:
            try:
                import boto3
                from botocore.config import Config
            except ImportError:
                raise ImportError("boto3 package required for S3 object storage")
            timeout = self._settings.ext_timeout_s
            self._client = boto3.client(
                "s3",
                endpoint_url=self._settings.s3_endpoint,
                region_name=self._settings.s3_region,
                config=Config(connect_timeout=timeout, read_timeout=timeout),
            )
        return self._client

    @staticmethod
    def _error_code(e: Exception) -> Optional[str]:
        response = getattr(e, "response", None)
        if isinstance(response, dict):
            return str(response.get("Error", {}).get("Code"))
        return None

    def _map_error(self, e: Exception, action: str, bucket: str, key: str) -> RemoteIOError:
        code = self._error_code(e)
        if code in _S3_NOT_FOUND:
            return RemoteObjectNotFound(f"Object not found: s3://{bucket}/{key}", bucket=bucket, key=key)
        if code in _S3_AUTH:
            return RemoteAuthError(f"S3 access denied for {bucket}/{key} ({code})", bucket=bucket, key=key)
        return RemoteIOError(f"S3 {action} error for {bucket}/{key}: {e}", bucket=bucket, key=key)

    def exists(self, bucket: str, key: str) -> bool:
        client = self._get_client()
        try:
            client.head_object(Bucket=bucket, Key=key)
        except Exception as e:
            error = self._map_error(e, "head", bucket, key)
            if isinstance(error, RemoteObjectNotFound):
                return False
            raise error from e
        return True

    def fetch(self, bucket: str, key: str) -> BinaryIO:
        client = self._get_client()
        try:
            response = client.get_object(Bucket=bucket, Key=key)
        except Exception as e:
            raise self._map_error(e, "get", bucket, key) from e
        return response["Body"]

    def store(
        self,
        bucket: str,
        key: str,
        stream: BinaryIO,
        content_length: int,
        content_type: str,
    ) -> None:
        client = self._get_client()
        try:
            client.put_object(
                Bucket=bucket,
                Key=key,
                Body=stream,
                ContentLength=content_length,
                ContentType=content_type,
            )
        except Exception as e:
            raise self._map_error(e, "put", bucket, key) from e
        logger.debug(f"Uploaded {content_length} bytes ({content_type}) to s3://{bucket}/{key}")

    def delete(self, bucket: str, key: str) -> None:
        # S3 deletes of missing keys succeed silently; report them instead
        if not self.exists(bucket, key):
            raise RemoteObjectNotFound(f"Object not found: s3://{bucket}/{key}", bucket=bucket, key=key)
        client = self._get_client()
        try:
            client.delete_object(Bucket=bucket, Key=key)
        except Exception as e:
            raise self._map_error(e, "delete", bucket, key) from e


def gateway_for(uri: str, settings: Settings) -> ObjectGateway:
    """
    Create appropriate gateway based on URI scheme.

    Args:
        uri: Object URI
        settings: Settings for gateway configuration

    Returns:
        ObjectGateway for the URI scheme

    Raises:
        ValueError: For invalid URI format or an unconfigured backend
    """
    parsed = parse_object_uri(uri)

    if parsed.scheme == "az":
        return AzureObjectGateway(settings=settings)
    elif parsed.scheme == "s3":
        return S3ObjectGateway(settings=settings)
    elif parsed.scheme == "http":
        from .http_store import HttpObjectGateway
        return HttpObjectGateway(settings=settings)
    elif parsed.scheme == "file":
        if not settings.local_root:
            raise ValueError("Local directory store not configured: need STAGEDFS_LOCAL_ROOT")
        from .local_store import LocalDirectoryGateway
        return LocalDirectoryGateway(settings.local_root)
    else:
        # parse_object_uri already validates schemes
        raise ValueError(f"Unsupported URI scheme: {parsed.scheme}")
