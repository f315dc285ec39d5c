"""
HTTP object store client.

Talks to any store exposing objects as plain resources under a base URL
(``<endpoint>/<bucket>/<key>``) with HEAD/GET/PUT/DELETE, e.g. a MinIO bucket
behind a gateway, a WebDAV share or a simple blob server.
"""
from __future__ import annotations

import logging
from typing import BinaryIO, Dict, Optional
from urllib.parse import quote

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..errors import RemoteAuthError, RemoteIOError, RemoteObjectNotFound
from ..settings import Settings
from .base import CHUNK_SIZE, ObjectGateway, spooled_download

__all__ = ["HttpObjectGateway"]

logger = logging.getLogger(__name__)

# Transient transport failures only; HTTP status errors are never retried
_retry_transient = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type(httpx.TransportError),
    reraise=True,
)


class HttpObjectGateway(ObjectGateway):
    """
    ObjectGateway over HTTP.

    Connect/read timeouts and dropped connections are retried here with
    exponential backoff, so the staged channel itself never retries.
    """

    def __init__(self, *, settings: Settings, client: Optional[httpx.Client] = None) -> None:
        """
        Initialize HTTP gateway with settings.

        Args:
            settings: Settings containing http_endpoint and timeouts
            client: Pre-built httpx client (tests inject one with a mock transport)

        Raises:
            ValueError: If http_endpoint is not configured
        """
        if not settings.http_endpoint:
            raise ValueError("HTTP object store not configured: need STAGEDFS_HTTP_ENDPOINT")
        self._settings = settings
        self.base_url = settings.http_endpoint.rstrip("/")

        if client is None:
            client = httpx.Client(
                base_url=self.base_url,
                timeout=httpx.Timeout(settings.http_timeout_s, connect=5.0),
                follow_redirects=True,
                verify=not settings.http_insecure,
                headers={"User-Agent": "stagedfs/0.1.0"},
            )
        self.client = client
        logger.debug(f"HTTP gateway for {self.base_url}, timeout: {settings.http_timeout_s}s")

    def _url(self, bucket: str, key: str) -> str:
        return f"/{quote(bucket, safe='')}/{quote(key, safe='/')}"

    def _raise_for_status(self, response: httpx.Response, bucket: str, key: str, action: str) -> None:
        status = response.status_code
        if status < 400:
            return
        if status == 404:
            raise RemoteObjectNotFound(f"Object not found: {bucket}/{key}", bucket=bucket, key=key)
        if status in (401, 403):
            raise RemoteAuthError(
                f"Authentication failed for {action} {bucket}/{key} (HTTP {status})", bucket=bucket, key=key
            )
        raise RemoteIOError(f"Object store error {status} on {action} {bucket}/{key}", bucket=bucket, key=key)

    @_retry_transient
    def _request(self, method: str, bucket: str, key: str) -> httpx.Response:
        return self.client.request(method, self._url(bucket, key))

    @_retry_transient
    def _download(self, bucket: str, key: str) -> BinaryIO:
        with self.client.stream("GET", self._url(bucket, key)) as response:
            self._raise_for_status(response, bucket, key, "GET")

            def write_into(spool: BinaryIO) -> None:
                for chunk in response.iter_bytes(CHUNK_SIZE):
                    spool.write(chunk)

            return spooled_download(write_into)

    @_retry_transient
    def _upload(self, bucket: str, key: str, stream: BinaryIO, start: int, headers: Dict[str, str]) -> httpx.Response:
        # A retried attempt resends from the beginning
        stream.seek(start)
        return self.client.request("PUT", self._url(bucket, key), content=stream, headers=headers)

    def exists(self, bucket: str, key: str) -> bool:
        try:
            response = self._request("HEAD", bucket, key)
        except httpx.HTTPError as e:
            raise RemoteIOError(f"Network error checking {bucket}/{key}: {e}", bucket=bucket, key=key) from e
        if response.status_code == 404:
            return False
        self._raise_for_status(response, bucket, key, "HEAD")
        return True

    def fetch(self, bucket: str, key: str) -> BinaryIO:
        try:
            return self._download(bucket, key)
        except httpx.HTTPError as e:
            raise RemoteIOError(f"Network error fetching {bucket}/{key}: {e}", bucket=bucket, key=key) from e

    def store(
        self,
        bucket: str,
        key: str,
        stream: BinaryIO,
        content_length: int,
        content_type: str,
    ) -> None:
        headers = {
            "Content-Type": content_type,
            "Content-Length": str(content_length),
        }
        try:
            response = self._upload(bucket, key, stream, stream.tell(), headers)
        except httpx.HTTPError as e:
            raise RemoteIOError(f"Network error storing {bucket}/{key}: {e}", bucket=bucket, key=key) from e
        self._raise_for_status(response, bucket, key, "PUT")
        logger.debug(f"Stored {content_length} bytes ({content_type}) at {self.base_url}/{bucket}/{key}")

    def delete(self, bucket: str, key: str) -> None:
        try:
            response = self._request("DELETE", bucket, key)
        except httpx.HTTPError as e:
            raise RemoteIOError(f"Network error deleting {bucket}/{key}: {e}", bucket=bucket, key=key) from e
        self._raise_for_status(response, bucket, key, "DELETE")

    def close(self) -> None:
        self.client.close()
