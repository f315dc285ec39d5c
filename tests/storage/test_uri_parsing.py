"""
Tests for URI parsing utilities.

Tests the parse_object_uri function with valid and invalid URIs,
edge cases, and security validation.
"""
from __future__ import annotations

import pytest

from stagedfs.models import ObjectPath
from stagedfs.storage.uri import SCHEMES, ParsedURI, parse_object_uri


class TestParseObjectURI:
    """Test parse_object_uri function."""

    @pytest.mark.parametrize("scheme", SCHEMES)
    def test_valid_uri_for_every_scheme(self, scheme):
        """Test every supported scheme parses into bucket and key."""
        uri = f"{scheme}://mybucket/models/model.pkl"
        result = parse_object_uri(uri)

        assert result == ParsedURI(scheme=scheme, bucket="mybucket", key="models/model.pkl", original=uri)

    def test_path_property(self):
        """Test the parsed URI converts to a validated ObjectPath."""
        result = parse_object_uri("az://container/data/train.csv")
        assert result.path == ObjectPath(bucket="container", key="data/train.csv")
        assert result.path.name == "train.csv"

    def test_key_keeps_nested_slashes(self):
        result = parse_object_uri("s3://bucket/a/b/c/d.json")
        assert result.bucket == "bucket"
        assert result.key == "a/b/c/d.json"

    def test_empty_uri(self):
        with pytest.raises(ValueError, match="URI cannot be empty"):
            parse_object_uri("")

    def test_path_traversal_rejected(self):
        """Test '..' anywhere in the URI is rejected."""
        with pytest.raises(ValueError, match="path traversal"):
            parse_object_uri("s3://bucket/../secrets")

    def test_backslashes_rejected(self):
        with pytest.raises(ValueError, match="backslashes"):
            parse_object_uri("az://container\\blob")

    @pytest.mark.parametrize("uri", [
        "gs://bucket/key",
        "https://bucket/key",
        "bucket/key",
        "s3:/bucket/key",
        "s3://",
    ])
    def test_invalid_format(self, uri):
        """Test unsupported schemes and malformed URIs are rejected."""
        with pytest.raises(ValueError, match="Invalid URI format"):
            parse_object_uri(uri)

    def test_leading_slash_rejected(self):
        with pytest.raises(ValueError, match="cannot start with '/'"):
            parse_object_uri("file:///etc/passwd")

    def test_missing_key(self):
        with pytest.raises(ValueError, match="missing key part"):
            parse_object_uri("s3://bucket")

    def test_empty_key(self):
        with pytest.raises(ValueError, match="Key cannot be empty"):
            parse_object_uri("s3://bucket/")
