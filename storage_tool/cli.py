"""
Command-line interface for the soundboard storage bucket.

Provides upload, listing and maintenance commands using Click framework.
Settings are read from the environment (or a .env file).
"""

import logging
from pathlib import Path

import click
from botocore.exceptions import BotoCoreError, ClientError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, BarColumn, DownloadColumn, TextColumn
from rich.prompt import Confirm
from rich.table import Table

from shared.constants import CLEANUP_MIN_SIZE, DEFAULT_CONTENT_TYPE
from shared.exceptions import ConfigError, StorageError
from .s3_storage import S3AudioStorage, sanitize_file_name

console = Console()


def _fail(message: str):
    console.print(f"[red]Error: {escape(message)}[/red]")
    raise click.exceptions.Exit(1)


def _load_storage() -> S3AudioStorage:
    """Build the facade from the environment or exit with the missing settings."""
    try:
        return S3AudioStorage()
    except ConfigError as e:
        _fail(str(e))


def _format_size(num_bytes: int) -> str:
    size = float(num_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024


@click.group()
@click.version_option(version="1.0.0")
@click.option('--verbose', '-v', is_flag=True, help='Show debug logging')
def cli(verbose):
    """
    🔊 Soundboard Storage Tool

    Upload and manage the soundboard's .mp3 clips in S3
    (or any S3-compatible storage).
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)]
    )


@cli.command()
def check():
    """Verify bucket access with the configured credentials."""
    storage = _load_storage()
    if storage.test_connection():
        console.print(f"[green]✓[/green] Connected to bucket [cyan]{storage.bucket_name}[/cyan]")
    else:
        _fail(f"Could not reach bucket {storage.bucket_name}")


@cli.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--name', help='Clip name in the bucket (defaults to the file name)')
@click.option('--content-type', default=DEFAULT_CONTENT_TYPE, show_default=True,
              help='MIME type stored with the clip')
def upload(path, name, content_type):
    """Upload an audio clip and print its public URL."""
    storage = _load_storage()
    file_name = name or path.name

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        console=console
    ) as progress:
        task = progress.add_task(f"[cyan]Uploading {sanitize_file_name(file_name)}...",
                                 total=path.stat().st_size)
        try:
            with open(path, 'rb') as f:
                public_url = storage.upload_file(
                    file_name, f,
                    content_type=content_type,
                    progress_callback=lambda p: progress.update(task, completed=p.bytes_uploaded)
                )
        except StorageError as e:
            _fail(str(e))

    console.print(f"[green]✅ Uploaded:[/green] {public_url}")


@cli.command()
@click.argument('name')
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
def delete(name, yes):
    """Delete a clip from the bucket."""
    storage = _load_storage()
    key = sanitize_file_name(name)
    if not yes and not Confirm.ask(f"Delete [cyan]{key}[/cyan]?"):
        return

    try:
        storage.delete_file(name)
    except StorageError as e:
        _fail(str(e))
    console.print(f"[green]🗑️  Deleted:[/green] {key}")


@cli.command(name='list')
def list_clips():
    """List all clips in the bucket."""
    storage = _load_storage()
    try:
        files = storage.list_files()
    except StorageError as e:
        _fail(str(e))

    if not files:
        console.print("[yellow]No clips found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Name", style="cyan")
    table.add_column("Size", justify="right", style="green")
    table.add_column("Modified", style="yellow")
    table.add_column("URL")

    for audio_file in files:
        table.add_row(
            audio_file.name,
            _format_size(audio_file.size),
            audio_file.last_modified.strftime("%Y-%m-%d %H:%M"),
            audio_file.url
        )

    console.print(table)
    console.print(f"\n{len(files)} clips")


@cli.command()
@click.argument('name')
def exists(name):
    """Check whether a clip exists (exit code 1 if it does not)."""
    storage = _load_storage()
    key = sanitize_file_name(name)
    try:
        found = storage.file_exists(name)
    except (ClientError, BotoCoreError) as e:
        _fail(str(e))

    if not found:
        console.print(f"[yellow]✗ {key} not found[/yellow]")
        raise click.exceptions.Exit(1)
    console.print(f"[green]✓[/green] {key} exists")


@cli.command()
@click.argument('name')
def info(name):
    """Show size, type and upload metadata of a clip."""
    storage = _load_storage()
    key = sanitize_file_name(name)
    try:
        file_info = storage.get_file_info(name)
    except (ClientError, BotoCoreError) as e:
        _fail(str(e))

    if file_info is None:
        _fail(f"{key} not found")

    lines = [
        f"[bold]Size:[/bold] {_format_size(file_info.size)} ({file_info.size} bytes)",
        f"[bold]Modified:[/bold] {file_info.last_modified.isoformat()}",
        f"[bold]Type:[/bold] {file_info.content_type or 'unknown'}",
    ]
    for meta_key, value in sorted(file_info.metadata.items()):
        lines.append(f"[bold]{meta_key}:[/bold] {value}")
    lines.append(f"[bold]URL:[/bold] {storage.get_public_url(key)}")

    console.print(Panel.fit("\n".join(lines), title=key, border_style="cyan"))


@cli.command()
def stats():
    """Show number of clips and total size."""
    storage = _load_storage()
    bucket_stats = storage.get_bucket_stats()
    console.print(f"[bold]Bucket:[/bold] {storage.bucket_name}")
    console.print(f"[bold]Clips:[/bold] {bucket_stats.file_count}")
    console.print(f"[bold]Total size:[/bold] {_format_size(bucket_stats.total_size)}")


@cli.command()
@click.option('--min-size', default=CLEANUP_MIN_SIZE, show_default=True,
              help='Delete clips smaller than this many bytes')
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
def cleanup(min_size, yes):
    """Remove clips that are too small to be valid audio."""
    storage = _load_storage()
    if not yes and not Confirm.ask(f"Delete every clip smaller than {min_size} bytes?"):
        return

    try:
        removed = storage.cleanup_files(min_size=min_size)
    except StorageError as e:
        _fail(str(e))

    if not removed:
        console.print("[green]Nothing to clean up[/green]")
        return
    for name in removed:
        console.print(f"  [red]-[/red] {name}")
    console.print(f"\n[green]Removed {len(removed)} clips[/green]")


@cli.command()
@click.argument('name')
@click.argument('dest', type=click.Path(dir_okay=False, writable=True, path_type=Path))
def download(name, dest):
    """Stream a clip from the bucket into a local file."""
    storage = _load_storage()
    written = 0
    try:
        with storage.get_file_stream(name) as stream, open(dest, 'wb') as f:
            for chunk in stream.iter_chunks():
                f.write(chunk)
                written += len(chunk)
    except (StorageError, OSError) as e:
        _fail(str(e))

    console.print(f"[green]✅ Saved {_format_size(written)} to {dest}[/green]")


@cli.command()
@click.argument('key')
def url(key):
    """Print the public URL for a key (no existence check)."""
    storage = _load_storage()
    console.print(storage.get_public_url(key), soft_wrap=True)


if __name__ == '__main__':
    cli()
