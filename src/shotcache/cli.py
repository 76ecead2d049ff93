"""Typer-based CLI entry point."""

from __future__ import annotations

import functools
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich import print
from rich.logging import RichHandler
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn

from .appctx import AppContext
from .application.use_cases import (
    CleanupOrphansUseCase,
    ClearCacheUseCase,
    GetCacheStatsUseCase,
    GetThumbnailEncodedUseCase,
    GetThumbnailUseCase,
    PregenerateRequest,
    PregenerateThumbnailsUseCase,
    RemoveThumbnailUseCase,
    ThumbnailRequest,
)
from .errors import ShotCacheError
from .events.thumbnail_events import PregenerateProgressEvent, ThumbnailErrorEvent

app = typer.Typer(help="Disk-backed thumbnail cache for screenshot libraries")

WIDTH_OPTION = typer.Option(None, "--width", help="Bounding box width in pixels")
HEIGHT_OPTION = typer.Option(None, "--height", help="Bounding box height in pixels")
QUALITY_OPTION = typer.Option(None, "--quality", help="JPEG quality (1-100)")


def _handle_errors(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ShotCacheError as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(1) from exc

    return wrapper


def _context(ctx: typer.Context) -> AppContext:
    return ctx.ensure_object(dict)["app"]


def _options(width: Optional[int], height: Optional[int], quality: Optional[int]) -> dict:
    return {"width": width, "height": height, "quality": quality}


def _check(response) -> None:
    if not response.success:
        typer.echo(f"Error: {response.error}", err=True)
        raise typer.Exit(1)


@app.callback()
def main(
    ctx: typer.Context,
    cache_dir: Optional[Path] = typer.Option(None, "--cache-dir", help="Thumbnail directory override"),
    settings: Optional[Path] = typer.Option(None, "--settings", help="Path to settings.json"),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Increase log output"),
) -> None:
    """Manage the thumbnail cache."""

    level = logging.WARNING - 10 * min(verbose, 2)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )
    try:
        context = AppContext(settings_path=settings, cache_dir=cache_dir)
    except ShotCacheError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from exc
    ctx.ensure_object(dict)["app"] = context
    ctx.call_on_close(context.close)


@app.command()
@_handle_errors
def get(
    ctx: typer.Context,
    path: Path = typer.Argument(..., exists=True, dir_okay=False),
    width: Optional[int] = WIDTH_OPTION,
    height: Optional[int] = HEIGHT_OPTION,
    quality: Optional[int] = QUALITY_OPTION,
) -> None:
    """Print the thumbnail path for PATH, generating it when stale."""

    context = _context(ctx)
    errors: List[ThumbnailErrorEvent] = []
    subscription = context.event_bus.subscribe(ThumbnailErrorEvent, errors.append)
    try:
        response = GetThumbnailUseCase(context.cache).execute(
            ThumbnailRequest(file_path=str(path), options=_options(width, height, quality))
        )
    finally:
        context.event_bus.unsubscribe(subscription)
    _check(response)
    if response.thumbnail_path is None:
        reason = errors[-1].error if errors else "unknown error"
        typer.echo(f"No thumbnail for {path}: {reason}", err=True)
        raise typer.Exit(1)
    typer.echo(str(response.thumbnail_path))


@app.command()
@_handle_errors
def encode(
    ctx: typer.Context,
    path: Path = typer.Argument(..., exists=True, dir_okay=False),
    width: Optional[int] = WIDTH_OPTION,
    height: Optional[int] = HEIGHT_OPTION,
    quality: Optional[int] = QUALITY_OPTION,
) -> None:
    """Print the thumbnail for PATH as a base64 data URI."""

    response = GetThumbnailEncodedUseCase(_context(ctx).cache).execute(
        ThumbnailRequest(file_path=str(path), options=_options(width, height, quality))
    )
    _check(response)
    if response.data_uri is None:
        typer.echo(f"No thumbnail for {path}", err=True)
        raise typer.Exit(1)
    typer.echo(response.data_uri)


@app.command()
@_handle_errors
def pregenerate(
    ctx: typer.Context,
    paths: List[Path] = typer.Argument(..., help="Original images to warm up"),
    width: Optional[int] = WIDTH_OPTION,
    height: Optional[int] = HEIGHT_OPTION,
    quality: Optional[int] = QUALITY_OPTION,
) -> None:
    """Generate thumbnails for many files ahead of time."""

    context = _context(ctx)
    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
    ) as progress:
        task = progress.add_task("Generating", total=len(paths))

        def _advance(event: PregenerateProgressEvent) -> None:
            progress.update(task, completed=event.processed, total=event.total)

        subscription = context.event_bus.subscribe(PregenerateProgressEvent, _advance)
        try:
            response = PregenerateThumbnailsUseCase(context.cache).execute(
                PregenerateRequest(
                    file_paths=[str(path) for path in paths],
                    options=_options(width, height, quality),
                )
            )
        finally:
            context.event_bus.unsubscribe(subscription)
    _check(response)
    print(f"[green]Generated {response.generated_count} of {response.total} thumbnails")


@app.command()
@_handle_errors
def stats(ctx: typer.Context) -> None:
    """Show thumbnail count and disk usage."""

    response = GetCacheStatsUseCase(_context(ctx).cache).execute()
    _check(response)
    result = response.stats
    print(
        f"Directory: {result.cache_directory}\n"
        f"Thumbnails: {result.total_thumbnails}\n"
        f"Size: {result.cache_size_bytes} bytes"
    )


@app.command()
@_handle_errors
def remove(
    ctx: typer.Context,
    path: Path = typer.Argument(..., dir_okay=False),
    width: Optional[int] = WIDTH_OPTION,
    height: Optional[int] = HEIGHT_OPTION,
    quality: Optional[int] = QUALITY_OPTION,
) -> None:
    """Delete the cached thumbnail for PATH."""

    response = RemoveThumbnailUseCase(_context(ctx).cache).execute(
        ThumbnailRequest(file_path=str(path), options=_options(width, height, quality))
    )
    _check(response)
    print(f"[green]Removed thumbnail for {path}")


@app.command()
@_handle_errors
def clear(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete every cached thumbnail."""

    context = _context(ctx)
    if not yes:
        typer.confirm(f"Delete all files in {context.cache.cache_dir}?", abort=True)
    response = ClearCacheUseCase(context.cache).execute()
    _check(response)
    print(f"[green]Removed {response.removed_files} files")


@app.command()
@_handle_errors
def cleanup(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete thumbnails whose originals are gone.

    A fresh process only knows the thumbnails it generated itself, so from
    the command line this removes every thumbnail not produced by this run.
    """

    context = _context(ctx)
    if not yes:
        typer.confirm(
            "This process has no generation history; all thumbnails will be removed. Continue?",
            abort=True,
        )
    response = CleanupOrphansUseCase(context.cache).execute()
    _check(response)
    print(f"[green]Removed {response.removed_count} orphaned thumbnails")


if __name__ == "__main__":  # pragma: no cover
    app()
