"""CLI for blobdisk."""

import logging
import sys
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from .adapter import BlobStorageAdapter
from .config import load_filesystems_config
from .errors import BlobDiskError, FilesystemError
from .manager import FilesystemManager
from .utils import format_timestamp, humanize_size


app = typer.Typer(help="""\
Work with files on a configured blob storage disk. Disks are defined in
filesystems.yaml (or the file named by BLOBDISK_CONFIG).""")

console = Console()
err_console = Console(stderr=True)

_state = {"config": None, "disk": None}


@app.callback()
def main(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Filesystems config file"),
    disk: Optional[str] = typer.Option(None, "--disk", "-d", help="Disk name (default: configured default)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Blob storage disk operations."""
    _state["config"] = config
    _state["disk"] = disk
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def require_disk() -> BlobStorageAdapter:
    """Load configuration and resolve the selected disk.

    Raises:
        typer.Exit: If the configuration is missing or invalid
    """
    try:
        manager = FilesystemManager(load_filesystems_config(_state["config"]))
        return manager.disk(_state["disk"])
    except FileNotFoundError as e:
        err_console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)
    except (BlobDiskError, ValidationError) as e:
        err_console.print("[red]CONFIGURATION ERROR[/red]")
        err_console.print(f"   {e}")
        raise typer.Exit(1)


@contextmanager
def report_errors():
    """Print filesystem errors and exit non-zero."""
    try:
        yield
    except FilesystemError as e:
        err_console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)


@app.command()
def ls(
    path: str = typer.Argument("", help="Path prefix to list"),
    deep: bool = typer.Option(False, "--deep", help="Accepted for compatibility; listings are flat"),
):
    """List files under a path.

    Examples:
        blobdisk ls reports
        blobdisk --disk archive ls 2024/
    """
    adapter = require_disk()
    table = Table(show_header=True, header_style="bold")
    table.add_column("Path")
    table.add_column("Size", justify="right")
    table.add_column("Modified")
    table.add_column("Type")

    count = 0
    with report_errors():
        for attributes in adapter.list_contents(path, deep):
            table.add_row(
                attributes.path,
                humanize_size(attributes.file_size),
                format_timestamp(attributes.last_modified),
                attributes.mime_type or "-",
            )
            count += 1

    if count:
        console.print(table)
    else:
        console.print(f"[dim]No files under '{path}'[/dim]")


@app.command()
def cat(path: str = typer.Argument(..., help="File to print")):
    """Write a file's contents to stdout."""
    adapter = require_disk()
    with report_errors():
        content = adapter.read(path)
    sys.stdout.buffer.write(content)
    sys.stdout.flush()


@app.command()
def put(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Local file to upload"),
    path: str = typer.Argument(..., help="Destination path on the disk"),
    mimetype: Optional[str] = typer.Option(None, "--mimetype", help="Content type (default: guessed)"),
):
    """Upload a local file."""
    adapter = require_disk()
    config = {"mimetype": mimetype} if mimetype else {}
    with report_errors(), source.open("rb") as f:
        adapter.write_stream(path, f, config)
    console.print(f"[green]✓[/green] Uploaded {source} → {path}")


@app.command()
def rm(path: str = typer.Argument(..., help="File to delete")):
    """Delete a file."""
    adapter = require_disk()
    with report_errors():
        adapter.delete(path)
    console.print(f"[green]✓[/green] Deleted {path}")


@app.command()
def cp(
    source: str = typer.Argument(..., help="Source path"),
    destination: str = typer.Argument(..., help="Destination path"),
):
    """Copy a file within the disk."""
    adapter = require_disk()
    with report_errors():
        adapter.copy(source, destination)
    console.print(f"[green]✓[/green] Copied {source} → {destination}")


@app.command()
def mv(
    source: str = typer.Argument(..., help="Source path"),
    destination: str = typer.Argument(..., help="Destination path"),
):
    """Move a file within the disk (copy, then delete the source).

    If the delete fails after the copy succeeded, the file is left at both
    locations and the command exits non-zero.
    """
    adapter = require_disk()
    with report_errors():
        adapter.move(source, destination)
    console.print(f"[green]✓[/green] Moved {source} → {destination}")


@app.command()
def stat(path: str = typer.Argument(..., help="File to inspect")):
    """Show a file's metadata."""
    adapter = require_disk()
    with report_errors():
        attributes = adapter.file_size(path)
        visibility = adapter.visibility(path).visibility

    table = Table(show_header=False, box=None)
    table.add_column(style="bold")
    table.add_column()
    table.add_row("Path", attributes.path)
    table.add_row("Size", f"{attributes.file_size} ({humanize_size(attributes.file_size)})")
    table.add_row("Modified", format_timestamp(attributes.last_modified))
    table.add_row("Type", attributes.mime_type or "-")
    table.add_row("Visibility", visibility.value if visibility else "-")
    for key, value in attributes.extra_metadata.items():
        if key == "creationTime":
            value = format_timestamp(value)
        table.add_row(key, str(value))
    console.print(table)


@app.command()
def url(
    path: str = typer.Argument(..., help="File path"),
    expires: Optional[int] = typer.Option(
        None, "--expires", help="Minutes until expiry; produces a signed temporary URL"
    ),
):
    """Print a direct or temporary URL for a file."""
    adapter = require_disk()
    if expires is None:
        console.print(adapter.url(path), soft_wrap=True)
        return

    expiration = datetime.now(timezone.utc) + timedelta(minutes=expires)
    try:
        console.print(adapter.temporary_url(path, expiration), soft_wrap=True)
    except (BlobDiskError, NotImplementedError) as e:
        err_console.print(f"[red]✗[/red] Cannot sign URL: {e}")
        raise typer.Exit(1)


@app.command()
def exists(path: str = typer.Argument(..., help="File path")):
    """Exit 0 if the file exists, 1 otherwise."""
    adapter = require_disk()
    if adapter.file_exists(path):
        console.print(f"[green]✓[/green] {path}")
        return
    console.print(f"[yellow]✗[/yellow] {path} not found")
    raise typer.Exit(1)


if __name__ == "__main__":
    app()
