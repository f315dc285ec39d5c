"""
Tests for the HTTP object store gateway.

Uses httpx.MockTransport to emulate a plain HEAD/GET/PUT/DELETE object server
without network access.
"""
from __future__ import annotations

import io

import httpx
import pytest

from stagedfs.channel import StagedSeekableChannel
from stagedfs.errors import RemoteAuthError, RemoteIOError, RemoteObjectNotFound
from stagedfs.models import ObjectPath
from stagedfs.options import OpenOption
from stagedfs.settings import Settings
from stagedfs.storage.http_store import HttpObjectGateway

ENDPOINT = "http://objects.test"


class FakeObjectServer:
    """Minimal object server keyed by URL path."""

    def __init__(self):
        self.objects = {}
        self.requests = []
        self.status_override = None
        self.transport_failures = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.transport_failures:
            self.transport_failures -= 1
            raise httpx.ConnectError("connection refused", request=request)
        if self.status_override is not None:
            return httpx.Response(self.status_override)

        path = request.url.path
        if request.method == "HEAD":
            return httpx.Response(200 if path in self.objects else 404)
        if request.method == "GET":
            if path not in self.objects:
                return httpx.Response(404)
            content, content_type = self.objects[path]
            return httpx.Response(200, content=content, headers={"Content-Type": content_type})
        if request.method == "PUT":
            self.objects[path] = (request.read(), request.headers.get("Content-Type"))
            return httpx.Response(201)
        if request.method == "DELETE":
            if self.objects.pop(path, None) is None:
                return httpx.Response(404)
            return httpx.Response(204)
        return httpx.Response(405)


@pytest.fixture
def server():
    return FakeObjectServer()


@pytest.fixture
def http_gateway(server):
    settings = Settings(http_endpoint=ENDPOINT)
    client = httpx.Client(transport=httpx.MockTransport(server), base_url=ENDPOINT)
    gateway = HttpObjectGateway(settings=settings, client=client)
    yield gateway
    gateway.close()


@pytest.fixture
def no_sleep(monkeypatch):
    """Skip tenacity backoff waits."""
    monkeypatch.setattr("time.sleep", lambda seconds: None)


class TestHttpObjectGateway:
    """Test HttpObjectGateway against the ObjectGateway contract."""

    def test_requires_endpoint(self):
        """Test construction fails without an endpoint."""
        with pytest.raises(ValueError, match="STAGEDFS_HTTP_ENDPOINT"):
            HttpObjectGateway(settings=Settings())

    def test_default_client(self):
        """Test the default client is bound to the endpoint."""
        gateway = HttpObjectGateway(settings=Settings(http_endpoint="http://objects.test/prefix/"))
        assert gateway.base_url == "http://objects.test/prefix"
        assert str(gateway.client.base_url).startswith("http://objects.test/prefix")
        gateway.close()

    def test_exists(self, server, http_gateway):
        server.objects["/bucket/a/b.txt"] = (b"x", "text/plain")

        assert http_gateway.exists("bucket", "a/b.txt")
        assert not http_gateway.exists("bucket", "missing")

    def test_store_sends_length_and_type(self, server, http_gateway):
        """Test PUT carries the body, Content-Length and Content-Type."""
        http_gateway.store("bucket", "k.json", io.BytesIO(b'{"a": 1}'), 8, "application/json")

        request = server.requests[-1]
        assert request.method == "PUT"
        assert request.headers["Content-Length"] == "8"
        assert server.objects["/bucket/k.json"] == (b'{"a": 1}', "application/json")

    def test_fetch(self, server, http_gateway):
        server.objects["/bucket/k"] = (b"payload", "application/octet-stream")

        stream = http_gateway.fetch("bucket", "k")
        try:
            assert stream.read() == b"payload"
        finally:
            stream.close()

    def test_keys_are_url_quoted(self, server, http_gateway):
        """Test keys with spaces are escaped but keep their slashes."""
        http_gateway.store("bucket", "my dir/file one.txt", io.BytesIO(b"x"), 1, "text/plain")
        assert server.requests[-1].url.raw_path == b"/bucket/my%20dir/file%20one.txt"

    def test_fetch_missing(self, http_gateway):
        with pytest.raises(RemoteObjectNotFound):
            http_gateway.fetch("bucket", "missing")

    def test_delete(self, server, http_gateway):
        server.objects["/bucket/k"] = (b"x", "text/plain")

        http_gateway.delete("bucket", "k")
        assert "/bucket/k" not in server.objects
        with pytest.raises(RemoteObjectNotFound):
            http_gateway.delete("bucket", "k")

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_errors(self, server, http_gateway, status):
        """Test 401/403 map to RemoteAuthError."""
        server.status_override = status
        with pytest.raises(RemoteAuthError, match=f"HTTP {status}"):
            http_gateway.exists("bucket", "k")

    def test_server_error(self, server, http_gateway):
        """Test other error statuses map to RemoteIOError."""
        server.status_override = 500
        with pytest.raises(RemoteIOError, match="500"):
            http_gateway.store("bucket", "k", io.BytesIO(b"x"), 1, "text/plain")

    def test_transient_errors_retried(self, server, http_gateway, no_sleep):
        """Test dropped connections are retried before succeeding."""
        server.objects["/bucket/k"] = (b"x", "text/plain")
        server.transport_failures = 2

        assert http_gateway.exists("bucket", "k")
        assert len(server.requests) == 3

    def test_retried_upload_resends_full_body(self, server, http_gateway, no_sleep):
        """Test a retried PUT rewinds the stream to where it started."""
        server.transport_failures = 1
        http_gateway.store("bucket", "k", io.BytesIO(b"complete"), 8, "text/plain")

        assert server.objects["/bucket/k"] == (b"complete", "text/plain")

    def test_retries_exhausted(self, server, http_gateway, no_sleep):
        """Test persistent transport failures surface as RemoteIOError."""
        server.transport_failures = 10

        with pytest.raises(RemoteIOError, match="Network error") as exc_info:
            http_gateway.fetch("bucket", "k")
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert len(server.requests) == 3


class TestChannelOverHttp:
    """Test a staged channel end to end over the HTTP gateway."""

    def test_edit_round_trip(self, server, http_gateway, settings):
        """Test an existing object is fetched, edited locally and stored once."""
        server.objects["/bucket/notes.txt"] = (b"hello world", "text/plain")
        path = ObjectPath(bucket="bucket", key="notes.txt")

        with StagedSeekableChannel(
            path, {OpenOption.READ, OpenOption.WRITE}, gateway=http_gateway, settings=settings
        ) as channel:
            channel.position(6)
            channel.write(b"there")

        puts = [r for r in server.requests if r.method == "PUT"]
        assert len(puts) == 1
        assert server.objects["/bucket/notes.txt"] == (b"hello there", "text/plain")
