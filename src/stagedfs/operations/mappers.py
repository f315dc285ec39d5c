"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and CLI command wrappers
to ensure consistent error handling across all Typer commands.
"""
from __future__ import annotations

import typer
from typing import Callable, TypeVar

T = TypeVar('T')

# Exit codes by exception class name
EXIT_CODES = {
    "RemoteObjectNotFound": 1,
    "ValidationError": 2,
    "ValueError": 2,
    "RemoteIOError": 3,
    "RemoteAuthError": 3,
    "AlreadyExistsError": 4,
    "ClosedChannelError": 5,
}

def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.

    Returns exit codes:
    - 0: Success
    - 1: Object not found (RemoteObjectNotFound)
    - 2: Invalid input (ValueError, pydantic ValidationError)
    - 3: Remote I/O or auth failure (RemoteIOError) or unknown error
    - 4: Exclusive create hit an existing object (AlreadyExistsError)
    - 5: Channel used after close (ClosedChannelError)

    The most specific class in the exception's MRO wins, so subclasses of
    mapped errors inherit their parent's code.

    Args:
        exc: Exception to map

    Returns:
        Exit code (1-5, with 3 as fallback for unknown exceptions)
    """
    for cls in type(exc).__mro__:
        code = EXIT_CODES.get(cls.__name__)
        if code is not None:
            return code
    return 3

def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.

    Executes the given function and maps any exceptions to appropriate
    exit codes using typer.Exit. This centralizes error handling so
    CLI commands don't need individual try/except blocks.

    Args:
        func: Function to execute

    Returns:
        Function result if successful

    Raises:
        typer.Exit: With appropriate exit code if function raises exception
    """
    try:
        return func()
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=exit_code_for(e)) from e
