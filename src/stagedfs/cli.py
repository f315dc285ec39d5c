"""
stagedfs CLI

Edits whole-object stores through staged channels:
- cat: Print an object's content
- put: Replace an object with new content
- append: Append content to an object
- patch: Overwrite bytes at an offset
- truncate: Shrink an object
- rm: Delete an object
- stat: Show size and detected content type
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import BinaryIO, Iterator

import typer

from .cli_context import CLIContext
from .operations import run_and_exit
from .operations.printers import (
    print_cat_summary, print_remove_summary, print_stat,
    print_truncate_summary, print_write_summary
)

app = typer.Typer(name="stagedfs", help="Random-access edits over whole-object stores")

URI_HELP = "Object URI ({az|s3|file|http}://bucket/key)"
SOURCE_HELP = "Input file, or - for stdin"


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed output and debug logs"),
) -> None:
    """Random-access edits over whole-object stores."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    ctx.obj = {"verbose": verbose}


def _context(ctx: typer.Context) -> CLIContext:
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    return CLIContext.from_env(verbose=verbose)


@contextmanager
def _open_source(source: str) -> Iterator[BinaryIO]:
    """Open SOURCE for binary reading; ``-`` is stdin and is left open."""
    if source == "-":
        yield typer.get_binary_stream("stdin")
        return
    with open(source, "rb") as f:
        yield f


@app.command()
def cat(
    ctx: typer.Context,
    uri: str = typer.Argument(..., help=URI_HELP),
) -> None:
    """Print an object's content to stdout."""

    def _cat() -> None:
        context = _context(ctx)
        out = typer.get_binary_stream("stdout")
        summary = context.operations.cat(uri, out)
        out.flush()
        if context.config.verbose:
            print_cat_summary(summary)

    run_and_exit(_cat)


@app.command()
def put(
    ctx: typer.Context,
    uri: str = typer.Argument(..., help=URI_HELP),
    source: str = typer.Argument("-", help=SOURCE_HELP),
) -> None:
    """Replace (or create) an object with new content."""

    def _put() -> None:
        context = _context(ctx)
        with _open_source(source) as src:
            summary = context.operations.put(uri, src)
        print_write_summary("Wrote", summary)

    run_and_exit(_put)


@app.command()
def append(
    ctx: typer.Context,
    uri: str = typer.Argument(..., help=URI_HELP),
    source: str = typer.Argument("-", help=SOURCE_HELP),
) -> None:
    """Append content to an object, creating it when absent."""

    def _append() -> None:
        context = _context(ctx)
        with _open_source(source) as src:
            summary = context.operations.append(uri, src)
        print_write_summary("Appended", summary)

    run_and_exit(_append)


@app.command()
def patch(
    ctx: typer.Context,
    uri: str = typer.Argument(..., help=URI_HELP),
    offset: int = typer.Argument(..., help="Byte offset to start writing at"),
    source: str = typer.Argument("-", help=SOURCE_HELP),
) -> None:
    """Overwrite bytes of an object starting at OFFSET."""

    def _patch() -> None:
        context = _context(ctx)
        with _open_source(source) as src:
            summary = context.operations.patch(uri, offset, src)
        print_write_summary("Patched", summary)

    run_and_exit(_patch)


@app.command()
def truncate(
    ctx: typer.Context,
    uri: str = typer.Argument(..., help=URI_HELP),
    size: int = typer.Argument(..., help="New size in bytes"),
) -> None:
    """Shrink an object to SIZE bytes."""

    def _truncate() -> None:
        context = _context(ctx)
        summary = context.operations.truncate(uri, size)
        print_truncate_summary(summary)

    run_and_exit(_truncate)


@app.command()
def rm(
    ctx: typer.Context,
    uri: str = typer.Argument(..., help=URI_HELP),
) -> None:
    """Delete an object."""

    def _rm() -> None:
        context = _context(ctx)
        summary = context.operations.remove(uri)
        print_remove_summary(summary)

    run_and_exit(_rm)


@app.command()
def stat(
    ctx: typer.Context,
    uri: str = typer.Argument(..., help=URI_HELP),
) -> None:
    """Show an object's size and detected content type."""

    def _stat() -> None:
        context = _context(ctx)
        summary = context.operations.stat(uri)
        print_stat(summary, verbose=context.config.verbose)

    run_and_exit(_stat)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
