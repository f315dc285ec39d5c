"""
Contract tests for the local directory object store.
"""
from __future__ import annotations

import io
from pathlib import Path
from unittest.mock import patch

import pytest

from stagedfs.errors import RemoteIOError, RemoteObjectNotFound
from stagedfs.storage.base import ObjectGateway
from stagedfs.storage.local_store import LocalDirectoryGateway


@pytest.fixture
def store(tmp_path):
    return LocalDirectoryGateway(tmp_path / "root")


class TestLocalDirectoryGateway:
    """Test LocalDirectoryGateway against the ObjectGateway contract."""

    def test_satisfies_protocol(self, store):
        assert isinstance(store, ObjectGateway)

    def test_root_created(self, tmp_path, store):
        assert (tmp_path / "root").is_dir()
        assert store.root == (tmp_path / "root").resolve()

    def test_store_then_fetch(self, store):
        """Test stored content is fetched back byte for byte."""
        store.store("bucket", "a/b.txt", io.BytesIO(b"payload"), 7, "text/plain")

        assert store.exists("bucket", "a/b.txt")
        with store.fetch("bucket", "a/b.txt") as stream:
            assert stream.read() == b"payload"

    def test_store_replaces(self, store):
        """Test a second store fully replaces the object."""
        store.store("bucket", "k", io.BytesIO(b"long original"), 13, "text/plain")
        store.store("bucket", "k", io.BytesIO(b"short"), 5, "text/plain")

        with store.fetch("bucket", "k") as stream:
            assert stream.read() == b"short"

    def test_exists_false_for_missing(self, store):
        assert not store.exists("bucket", "missing")

    def test_exists_false_for_directory(self, store):
        """Test key prefixes (directories) are not objects."""
        store.store("bucket", "dir/file", io.BytesIO(b"x"), 1, "text/plain")
        assert not store.exists("bucket", "dir")

    def test_fetch_missing(self, store):
        with pytest.raises(RemoteObjectNotFound):
            store.fetch("bucket", "missing")

    def test_delete(self, store):
        store.store("bucket", "k", io.BytesIO(b"x"), 1, "text/plain")
        store.delete("bucket", "k")
        assert not store.exists("bucket", "k")

    def test_delete_missing(self, store):
        with pytest.raises(RemoteObjectNotFound):
            store.delete("bucket", "missing")

    def test_size_mismatch_leaves_no_partial_object(self, tmp_path, store):
        """Test a short stream fails the store and leaves nothing behind."""
        with pytest.raises(RemoteIOError, match="Size mismatch"):
            store.store("bucket", "k", io.BytesIO(b"abc"), 10, "text/plain")

        assert not store.exists("bucket", "k")
        assert list((tmp_path / "root" / "bucket").iterdir()) == []

    def test_failed_replace_keeps_previous_object(self, store):
        """Test a failure during rename keeps the old content intact."""
        store.store("bucket", "k", io.BytesIO(b"old"), 3, "text/plain")

        with patch("stagedfs.storage.local_store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(RemoteIOError, match="disk full"):
                store.store("bucket", "k", io.BytesIO(b"new"), 3, "text/plain")

        with store.fetch("bucket", "k") as stream:
            assert stream.read() == b"old"

    @pytest.mark.parametrize("key", ["../escape", "a/../../escape", "/abs"])
    def test_traversal_rejected(self, store, key):
        """Test keys cannot escape the root."""
        with pytest.raises(ValueError):
            store.exists("bucket", key)

    def test_symlink_escape_rejected(self, tmp_path, store):
        """Test a symlinked bucket pointing outside root is refused."""
        outside = tmp_path / "outside"
        outside.mkdir()
        (tmp_path / "root" / "linked").symlink_to(outside)

        with pytest.raises(ValueError, match="outside root"):
            store.store("linked", "k", io.BytesIO(b"x"), 1, "text/plain")
        assert list(Path(outside).iterdir()) == []
