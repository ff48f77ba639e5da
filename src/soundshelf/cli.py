#!/usr/bin/env python3
"""Command-line interface for soundshelf.

This CLI is primarily for debugging and development: it runs the same
extraction and similarity code the API uses, against local files.
For production use, run the API service.
"""

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from soundshelf.exceptions import SoundshelfError
from soundshelf.models.metadata import AudioMetadata
from soundshelf.services.metadata import MetadataExtractor
from soundshelf.services.similarity import DEFAULT_TOP_K, rank_candidates

logger = logging.getLogger("soundshelf")


class _FileFeatures:
    """Adapts extracted metadata to the fields the similarity scorer reads.

    Local files carry no user tags, so the tag set is always empty.
    """

    def __init__(self, path: Path, metadata: AudioMetadata) -> None:
        self.path = path
        self.metadata = metadata
        self.genre = metadata.genre
        self.composer = metadata.composer
        self.album = metadata.album
        self.year = metadata.year
        self.tags: list[str] = []


def setup_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Configure logging with Rich handler.

    Args:
        verbose: If True, set log level to DEBUG. Otherwise WARNING.
        console: Optional Console instance to use for RichHandler.
    """
    level = logging.DEBUG if verbose else logging.WARNING

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = RichHandler(
        rich_tracebacks=True,
        show_path=False,
        console=console,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    root_logger.setLevel(level)
    root_logger.addHandler(handler)


def print_section_header(console: Console, title: str, subtitle: str = "") -> None:
    """Print a section header with optional subtitle."""
    header = f"  {title.upper()}"
    if subtitle:
        header += f"  [dim]│[/dim]  {subtitle}"
    console.print()
    console.rule(style="dim")
    console.print(header)
    console.rule(style="dim")


def format_duration(seconds: float | None) -> str:
    """Format duration as M:SS or H:MM:SS."""
    if seconds is None:
        return "[dim](unknown)[/dim]"
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_bitrate(bitrate: int | None) -> str:
    """Format bitrate for display in kbps.

    Containers report bitrate in bps; values that already look like kbps
    are shown as-is.
    """
    if bitrate is None:
        return "[dim](unknown)[/dim]"
    if bitrate > 10000:
        bitrate = bitrate // 1000
    return f"{bitrate} kbps"


def print_metadata_card(console: Console, path: Path, metadata: AudioMetadata) -> None:
    """Print one file's extracted metadata as a vertical card."""
    print_section_header(console, "Metadata", str(path))

    table = Table(show_header=False, padding=(0, 1), box=None)
    table.add_column("Field", style="bold cyan", width=14)
    table.add_column("Value", overflow="fold")

    table.add_row("Title", metadata.title)
    table.add_row("Artist", metadata.artist)
    if len(metadata.artists) > 1:
        table.add_row("Artists", " / ".join(metadata.artists))
    table.add_row("Composer", " / ".join(metadata.composer))
    table.add_row("Album", metadata.album)
    if metadata.year:
        table.add_row("Year", str(metadata.year))
    table.add_row("Genre", " / ".join(metadata.genre))
    table.add_row("Duration", format_duration(metadata.duration))
    table.add_row("Bitrate", format_bitrate(metadata.bitrate))
    if metadata.sample_rate:
        table.add_row("Sample Rate", f"{metadata.sample_rate} Hz")
    if metadata.channels:
        table.add_row("Channels", str(metadata.channels))
    table.add_row("Format", metadata.format or "[dim](unknown)[/dim]")
    table.add_row("Size", f"{metadata.file_size} bytes")
    if metadata.picture:
        table.add_row(
            "Picture",
            f"{metadata.picture.mime_type or 'unknown'} "
            f"({len(metadata.picture.data)} bytes)",
        )
    else:
        table.add_row("Picture", "[dim](none)[/dim]")

    console.print(table)


def _extract_all(
    extractor: MetadataExtractor, files: tuple[Path, ...]
) -> tuple[list[tuple[Path, AudioMetadata]], list[tuple[Path, str]]]:
    results: list[tuple[Path, AudioMetadata]] = []
    errors: list[tuple[Path, str]] = []
    for path in files:
        try:
            results.append((path, extractor.extract_file(path, path.name)))
        except SoundshelfError as e:
            errors.append((path, e.message))
    return results, errors


def _print_errors(console: Console, errors: list[tuple[Path, str]]) -> None:
    if not errors:
        return
    console.print()
    console.print("[red]Errors:[/red]")
    for path, error in errors:
        console.print(f"  [red]- {path}: {error}[/red]")


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Inspect audio metadata and song similarity."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose=verbose)


@main.command(name="inspect")
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    metavar="FILE...",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def inspect_cmd(files: tuple[Path, ...], as_json: bool) -> None:
    """Show the metadata an upload of FILE would produce.

    \b
    Examples:
      soundshelf inspect track.mp3
      soundshelf inspect *.flac --json
    """
    console = Console()
    results, errors = _extract_all(MetadataExtractor(), files)

    if as_json:
        data = [
            m.model_dump(exclude={"picture"})
            | {"path": str(p), "has_picture": m.has_picture}
            for p, m in results
        ]
        json.dump(data, sys.stdout, indent=2, ensure_ascii=False, default=str)
        sys.stdout.write("\n")
    else:
        for path, metadata in results:
            print_metadata_card(console, path, metadata)

    _print_errors(console, errors)
    if errors and not results:
        raise click.ClickException("No files could be read.")


@main.command(name="similar")
@click.argument(
    "seed", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    metavar="FILE...",
)
@click.option(
    "-n",
    "--limit",
    type=click.IntRange(min=1),
    default=DEFAULT_TOP_K,
    show_default=True,
    help="Maximum number of matches to show.",
)
def similar_cmd(seed: Path, files: tuple[Path, ...], limit: int) -> None:
    """Rank FILEs by similarity to SEED.

    \b
    Examples:
      soundshelf similar seed.mp3 library/*.mp3
      soundshelf similar seed.flac a.flac b.flac -n 2
    """
    console = Console()
    extractor = MetadataExtractor()

    try:
        seed_meta = extractor.extract_file(seed, seed.name)
    except SoundshelfError as e:
        logger.error(e.message)
        raise click.ClickException(e.message) from e

    candidates = [p for p in files if p.resolve() != seed.resolve()]
    results, errors = _extract_all(extractor, tuple(candidates))
    ranked = rank_candidates(
        _FileFeatures(seed, seed_meta),
        [_FileFeatures(p, m) for p, m in results],
        limit=limit,
    )

    print_section_header(console, "Similar", seed_meta.title)
    table = Table(padding=(0, 1))
    table.add_column("#", justify="right", style="dim")
    table.add_column("Score", justify="right", style="bold")
    table.add_column("Title")
    table.add_column("Album")
    table.add_column("File", style="dim", overflow="fold")
    for i, item in enumerate(ranked, 1):
        table.add_row(
            str(i),
            f"{item.score:g}",
            item.song.metadata.title,
            item.song.metadata.album,
            str(item.song.path),
        )
    console.print(table)

    _print_errors(console, errors)


if __name__ == "__main__":
    main()
