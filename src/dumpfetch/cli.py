"""
dumpfetch CLI.

Usage:
    dumpfetch check catalog.json pages-articles
    dumpfetch fetch catalog.json pages-articles -o pages.xml
    dumpfetch fetch catalog.json stub-meta-history --spool-dir /var/tmp | head
"""

from __future__ import annotations

import asyncio
import signal
import sys
import zlib
from pathlib import Path
from typing import BinaryIO

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from dumpfetch.cancel import CancelToken
from dumpfetch.config import get_settings
from dumpfetch.exceptions import DumpFetchError, FetchCancelledError
from dumpfetch.logging import setup_logging
from dumpfetch.models import ResourceCatalog

console = Console()
err_console = Console(stderr=True)

COPY_BUFFER_SIZE = 1024 * 1024


def load_catalog(path: Path) -> ResourceCatalog:
    """Load catalog JSON or exit with an error."""
    try:
        return ResourceCatalog.from_file(path)
    except (OSError, ValueError) as e:
        err_console.print(f"[red]Error:[/red] unable to load catalog {path}: {escape(str(e))}")
        raise SystemExit(1)


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level (default: DUMPFETCH_LOG_LEVEL or INFO)",
)
@click.option("--log-json/--no-log-json", default=None, help="Emit JSON log lines")
@click.version_option(package_name="dumpfetch")
def main(log_level: str | None, log_json: bool | None) -> None:
    """dumpfetch command-line interface."""
    setup_logging(level=log_level.upper() if log_level else None, json_format=log_json)


# =============================================================================
# Check Command
# =============================================================================


@main.command()
@click.argument("catalog", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("names", nargs=-1, required=True)
def check(catalog: Path, names: tuple[str, ...]) -> None:
    """Check that NAMES exist in CATALOG and list their resources."""
    resources = load_catalog(catalog)
    try:
        resources.check_for(*names)
    except DumpFetchError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise SystemExit(1)

    if resources.date:
        console.print(f"[dim]Dump date:[/dim] {resources.date.isoformat()}")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Name")
    table.add_column("#", justify="right")
    table.add_column("Compression")
    table.add_column("URL")
    table.add_column("SHA1")

    for name in names:
        for index, descriptor in enumerate(resources.get(name), start=1):
            table.add_row(
                name,
                str(index),
                descriptor.compression.value,
                descriptor.url,
                descriptor.sha1,
            )

    console.print(table)


# =============================================================================
# Fetch Command
# =============================================================================


@main.command()
@click.argument("catalog", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("name")
@click.option(
    "--spool-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for temporary downloads (default: DUMPFETCH_SPOOL_DIR or system temp)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write decompressed content here instead of stdout",
)
def fetch(catalog: Path, name: str, spool_dir: Path | None, output: Path | None) -> None:
    """Download NAME from CATALOG and write its decompressed content.

    Every resource of NAME is fetched in order, verified, decompressed and
    appended to the output.
    """
    resources = load_catalog(catalog)
    spool_dir = spool_dir or get_settings().spool_dir
    spool_dir.mkdir(parents=True, exist_ok=True)

    cancel = CancelToken()
    try:
        if output is None:
            count = asyncio.run(_fetch_async(resources, name, spool_dir, sys.stdout.buffer, cancel))
        else:
            with open(output, "wb") as sink:
                count = asyncio.run(_fetch_async(resources, name, spool_dir, sink, cancel))
    except (KeyboardInterrupt, FetchCancelledError):
        err_console.print("[yellow]Cancelled[/yellow]")
        raise SystemExit(130)
    except (DumpFetchError, OSError, EOFError, zlib.error) as e:
        # OSError/EOFError/zlib.error: corrupt compressed content or an unwritable output
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise SystemExit(1)

    err_console.print(f"[green]Done:[/green] {count} resource(s) for '{name}'")


def _copy_stream(stream: BinaryIO, sink: BinaryIO, cancel: CancelToken) -> None:
    """Copy stream to sink, checking the token between chunks."""
    while True:
        cancel.raise_if_cancelled()
        chunk = stream.read(COPY_BUFFER_SIZE)
        if not chunk:
            return
        sink.write(chunk)


def _install_interrupt_handler(loop: asyncio.AbstractEventLoop, cancel: CancelToken) -> bool:
    """Route SIGINT to the token. Returns False where the loop cannot take signal handlers."""
    try:
        loop.add_signal_handler(signal.SIGINT, cancel.cancel)
    except (NotImplementedError, RuntimeError, ValueError):
        # Windows loops and non-main threads: Ctrl-C stays a KeyboardInterrupt
        return False
    return True


async def _fetch_async(
    catalog: ResourceCatalog,
    name: str,
    spool_dir: Path,
    sink: BinaryIO,
    cancel: CancelToken,
) -> int:
    """Async fetch implementation."""
    from dumpfetch.services.hub import AsyncDumpHub

    loop = asyncio.get_running_loop()
    handles_interrupt = _install_interrupt_handler(loop, cancel)
    try:
        hub = AsyncDumpHub(catalog, spool_dir)
        iterator = hub.open(name, cancel)
        count = 0
        async for stream in iterator:
            count += 1
            err_console.print(f"[dim]Streaming part {count} of '{name}'[/dim]")
            with stream:
                await asyncio.to_thread(_copy_stream, stream, sink, cancel)
        return count
    finally:
        if handles_interrupt:
            loop.remove_signal_handler(signal.SIGINT)


# =============================================================================
# Entry Point
# =============================================================================


if __name__ == "__main__":
    main()
