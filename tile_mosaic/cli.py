"""Rich command-line interface powered by Typer."""

from __future__ import annotations

import logging
import time
from pathlib import Path

import numpy as np
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from tile_mosaic.composer import compose_mosaic, load_tile_library
from tile_mosaic.config import MosaicConfig
from tile_mosaic.errors import MosaicError
from tile_mosaic.image_io import collect_images, decode_image, read_blobs
from tile_mosaic.library import TileLibrary

app = typer.Typer(
    name="tile-mosaic",
    help="Rebuild photographs out of a library of tile images.",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=True)],
    )


def _load_library(cfg: MosaicConfig) -> TileLibrary:
    paths = collect_images(cfg.tiles_dir, cfg.SUPPORTED_EXTENSIONS)
    if not paths:
        console.print(f"\n[yellow]No tile images found in {cfg.tiles_dir}/[/yellow]\n")
        raise typer.Exit(1)
    return load_tile_library(read_blobs(paths), cfg)


def _render(source_path: Path, library: TileLibrary, cfg: MosaicConfig, output: Path) -> None:
    t0 = time.perf_counter()
    source = decode_image(source_path.read_bytes())
    rng = np.random.default_rng(cfg.seed)
    result = compose_mosaic(source, library, cfg, rng)
    output.write_bytes(result.encode(cfg.jpeg_quality))

    x_count, y_count = result.grid
    used = len(set(result.plan.tile_indices().values()))
    h, w = result.canvas.shape[:2]
    console.print(
        f"  [green]✓[/green] {output.name}  "
        f"[dim]{x_count}x{y_count} tiles  {w}x{h} px  "
        f"{used}/{len(library)} tiles used  time={time.perf_counter() - t0:.1f}s[/dim]"
    )


# Defaults come from MosaicConfig - single source of truth
_DEFAULTS = MosaicConfig()


# -- single-image command ----------------------------------------------

@app.command()
def single(
    source: Path = typer.Argument(..., help="Path to the source image"),
    tiles_dir: Path = typer.Option(
        _DEFAULTS.tiles_dir, "--tiles", "-t", help="Folder with tile images",
    ),
    output: Path = typer.Option(Path("output/mosaic.jpg"), "--output", "-o"),
    tile_size: int = typer.Option(
        _DEFAULTS.tile_width, "--tile-size", help="Tile width and height in source pixels",
    ),
    divisions: int = typer.Option(
        _DEFAULTS.divisions, "--divisions", "-d", help="Quadrant divisions per tile side",
    ),
    scale: int = typer.Option(_DEFAULTS.scale, "--scale", "-u", help="Output scale multiplier"),
    seed: int | None = typer.Option(_DEFAULTS.seed, "--seed", "-s"),
    best: float = typer.Option(
        _DEFAULTS.best_match_probability, "--best",
        help="Probability of using the best match instead of the runner-up",
    ),
    alpha: int = typer.Option(_DEFAULTS.overlay_alpha, "--alpha", help="Source overlay opacity (0-255)"),
    quality: int = typer.Option(_DEFAULTS.jpeg_quality, "--quality", "-q"),
    workers: int | None = typer.Option(_DEFAULTS.workers, "--workers", "-w"),
    fit: bool = typer.Option(_DEFAULTS.fit_tiles, "--fit/--no-fit", help="Crop and resize tiles to tile size"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Build a mosaic of a single image."""
    _setup_logging(verbose)

    cfg = MosaicConfig(
        tile_width=tile_size,
        tile_height=tile_size,
        divisions=divisions,
        scale=scale,
        seed=seed,
        best_match_probability=best,
        overlay_alpha=alpha,
        jpeg_quality=quality,
        workers=workers,
        fit_tiles=fit,
        tiles_dir=tiles_dir,
    )
    output.parent.mkdir(parents=True, exist_ok=True)

    try:
        library = _load_library(cfg)
        _render(source, library, cfg, output)
    except MosaicError as err:
        console.print(f"[red]✗ {source.name}: {err}[/red]")
        raise typer.Exit(1) from err


# -- batch command -----------------------------------------------------

@app.command()
def batch(
    input_dir: Path = typer.Option(
        _DEFAULTS.input_dir, "--input", "-i", help="Folder with source images",
    ),
    tiles_dir: Path = typer.Option(
        _DEFAULTS.tiles_dir, "--tiles", "-t", help="Folder with tile images",
    ),
    output_dir: Path = typer.Option(
        _DEFAULTS.output_dir, "--output", "-o", help="Results folder",
    ),
    tile_size: int = typer.Option(_DEFAULTS.tile_width, "--tile-size"),
    divisions: int = typer.Option(_DEFAULTS.divisions, "--divisions", "-d"),
    scale: int = typer.Option(_DEFAULTS.scale, "--scale", "-u"),
    seed: int | None = typer.Option(_DEFAULTS.seed, "--seed", "-s"),
    best: float = typer.Option(_DEFAULTS.best_match_probability, "--best"),
    alpha: int = typer.Option(_DEFAULTS.overlay_alpha, "--alpha"),
    quality: int = typer.Option(_DEFAULTS.jpeg_quality, "--quality", "-q"),
    workers: int | None = typer.Option(_DEFAULTS.workers, "--workers", "-w"),
    fit: bool = typer.Option(_DEFAULTS.fit_tiles, "--fit/--no-fit"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Build a mosaic of every image in INPUT_DIR, sharing one tile library."""
    _setup_logging(verbose)
    logger = logging.getLogger("tile_mosaic")

    cfg = MosaicConfig(
        tile_width=tile_size,
        tile_height=tile_size,
        divisions=divisions,
        scale=scale,
        seed=seed,
        best_match_probability=best,
        overlay_alpha=alpha,
        jpeg_quality=quality,
        workers=workers,
        fit_tiles=fit,
        input_dir=input_dir,
        tiles_dir=tiles_dir,
        output_dir=output_dir,
    )

    output_dir.mkdir(parents=True, exist_ok=True)

    images = collect_images(input_dir, cfg.SUPPORTED_EXTENSIONS)
    if not images:
        console.print(f"\n[yellow]No images found in {input_dir}/[/yellow]")
        console.print("Place .jpg / .png / ... files there and re-run.\n")
        raise typer.Exit(0)

    try:
        library = _load_library(cfg)
    except MosaicError as err:
        console.print(f"[red]✗ tile library: {err}[/red]")
        raise typer.Exit(1) from err
    logger.info("Loaded %r from %s", library, tiles_dir)

    console.print(Panel.fit(
        f"[bold]TILE MOSAIC GENERATOR[/bold]\n"
        f"Tile: {cfg.tile_width}x{cfg.tile_height}  |  Divisions: {cfg.divisions}\n"
        f"Scale: {cfg.scale}  |  Tiles: {len(library)}  |  Images: {len(images)}",
        border_style="cyan",
    ))

    failures = 0
    for idx, img_path in enumerate(images, 1):
        console.rule(f"[bold cyan][{idx}/{len(images)}] {img_path.name}[/bold cyan]")
        try:
            _render(img_path, library, cfg, output_dir / f"{img_path.stem}_mosaic.jpg")
        except MosaicError as err:
            failures += 1
            console.print(f"  [red]✗ {err}[/red]")

    if failures:
        console.print(Panel.fit(
            f"[bold red]{failures} of {len(images)} images failed[/bold red]",
            border_style="red",
        ))
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[bold green]ALL DONE[/bold green] - results in [bold]{output_dir}/[/bold]",
        border_style="green",
    ))


if __name__ == "__main__":
    app()
