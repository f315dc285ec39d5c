"""
Test error mapping and CLI exit code functionality.

Validates that exceptions are correctly mapped to exit codes and that
the run_and_exit wrapper handles errors appropriately for CLI commands.
"""
from __future__ import annotations

from unittest.mock import Mock

import pytest
import typer
from pydantic import ValidationError

from stagedfs.errors import (
    AlreadyExistsError, ClosedChannelError, RemoteAuthError, RemoteIOError,
    RemoteObjectNotFound, StagedChannelError, remote_errors
)
from stagedfs.models import ObjectPath
from stagedfs.operations.mappers import EXIT_CODES, exit_code_for, run_and_exit


class TestExitCodeMapping:
    """Test exception to exit code mapping."""

    def test_known_exceptions_mapped_correctly(self):
        """Test that stagedfs exceptions map to their exit codes."""
        assert exit_code_for(RemoteObjectNotFound("gone")) == 1
        assert exit_code_for(RemoteIOError("timeout")) == 3
        assert exit_code_for(RemoteAuthError("denied")) == 3
        assert exit_code_for(AlreadyExistsError("taken")) == 4
        assert exit_code_for(ClosedChannelError("closed")) == 5

    def test_validation_errors(self):
        """Test ValueError and pydantic ValidationError map to 2."""
        assert exit_code_for(ValueError("bad")) == 2
        with pytest.raises(ValidationError) as exc_info:
            ObjectPath(bucket="", key="k")
        assert exit_code_for(exc_info.value) == 2

    def test_subclasses_inherit_codes(self):
        """Test unmapped subclasses use their nearest mapped parent."""
        class ThrottledError(RemoteIOError):
            pass

        assert exit_code_for(ThrottledError("slow down")) == 3

    def test_unknown_exception_maps_to_fallback(self):
        """Test that unknown exceptions map to fallback exit code."""
        assert exit_code_for(RuntimeError("test")) == 3
        assert exit_code_for(FileNotFoundError("test")) == 3
        assert exit_code_for(StagedChannelError("test")) == 3

    def test_exit_code_constants(self):
        """Test that exit code constants are defined."""
        assert EXIT_CODES["RemoteObjectNotFound"] == 1
        assert EXIT_CODES["ValueError"] == 2
        assert EXIT_CODES["RemoteIOError"] == 3
        assert EXIT_CODES["AlreadyExistsError"] == 4
        assert EXIT_CODES["ClosedChannelError"] == 5


class TestRunAndExit:
    """Test run_and_exit wrapper function."""

    def test_successful_function_returns_result(self):
        """Test that successful functions return their result."""
        func = Mock(return_value="success")

        assert run_and_exit(func) == "success"
        func.assert_called_once()

    def test_exception_converted_to_typer_exit(self, capsys):
        """Test that exceptions become typer.Exit with the mapped code."""
        def failing():
            raise RemoteObjectNotFound("Object not found: b/k")

        with pytest.raises(typer.Exit) as exc_info:
            run_and_exit(failing)

        assert exc_info.value.exit_code == 1
        assert isinstance(exc_info.value.__cause__, RemoteObjectNotFound)
        assert "Error: Object not found: b/k" in capsys.readouterr().err


class TestErrorTaxonomy:
    """Test the error hierarchy and remote error wrapping."""

    def test_builtin_bases(self):
        """Test errors can be caught by their built-in counterparts."""
        assert issubclass(AlreadyExistsError, FileExistsError)
        assert issubclass(RemoteIOError, OSError)
        assert issubclass(ClosedChannelError, ValueError)
        assert issubclass(RemoteObjectNotFound, RemoteIOError)

    def test_remote_io_error_carries_location(self):
        error = RemoteIOError("boom", bucket="b", key="k")
        assert (error.bucket, error.key) == ("b", "k")
        assert str(error) == "boom"

    def test_remote_errors_wraps_unexpected(self):
        """Test unexpected exceptions are wrapped and chained."""
        with pytest.raises(RemoteIOError, match="fetch failed for b/k: reset") as exc_info:
            with remote_errors("fetch", "b", "k"):
                raise ConnectionResetError("reset")

        assert isinstance(exc_info.value.__cause__, ConnectionResetError)
        assert exc_info.value.key == "k"

    def test_remote_errors_preserves_classification(self):
        """Test RemoteIOError subclasses pass through unchanged."""
        original = RemoteAuthError("denied", bucket="b", key="k")
        with pytest.raises(RemoteAuthError) as exc_info:
            with remote_errors("store", "b", "k"):
                raise original

        assert exc_info.value is original
