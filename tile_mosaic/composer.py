"""Grid layout, randomized tile assignment, and canvas rendering."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from tile_mosaic.config import MosaicConfig
from tile_mosaic.descriptor import GridCell, compute_grid_descriptors
from tile_mosaic.errors import EmptyTileLibrary, InvalidInput
from tile_mosaic.image_io import decode_image, encode_image, fit_tile, resize_image
from tile_mosaic.library import TileLibrary, TileRecord, build_tile_library
from tile_mosaic.matcher import select_tile

logger = logging.getLogger(__name__)

WHITE = 255


def grid_size(
    width: int,
    height: int,
    tile_width: int,
    tile_height: int,
) -> tuple[int, int]:
    """Whole tiles that fit across and down a *width* x *height* source.

    Raises:
        InvalidInput: non-positive tile size, or the source is smaller
            than one tile in either direction.
    """
    if tile_width < 1 or tile_height < 1:
        msg = f"Tile size must be positive, got {tile_width}x{tile_height}"
        raise InvalidInput(msg)
    x_count = width // tile_width
    y_count = height // tile_height
    if x_count == 0 or y_count == 0:
        msg = (
            f"Source {width}x{height} is smaller than one "
            f"{tile_width}x{tile_height} tile"
        )
        raise InvalidInput(msg)
    return x_count, y_count


def enumerate_cells(x_count: int, y_count: int) -> list[GridCell]:
    return [GridCell(x, y) for x in range(x_count) for y in range(y_count)]


def visitation_order(
    cells: Sequence[GridCell],
    rng: np.random.Generator,
) -> list[GridCell]:
    """Uniformly random permutation of *cells* drawn from *rng*."""
    return [cells[i] for i in rng.permutation(len(cells))]


def prepare_canvas(
    source: np.ndarray,
    width: int,
    height: int,
    overlay_alpha: int = 200,
) -> np.ndarray:
    """White canvas with *source* scaled over it at *overlay_alpha* / 255."""
    if not 0 <= overlay_alpha <= 255:
        msg = f"overlay_alpha must be within [0, 255], got {overlay_alpha}"
        raise InvalidInput(msg)
    alpha = overlay_alpha / 255.0
    scaled = resize_image(np.ascontiguousarray(source[..., :3]), width, height)
    base = WHITE * (1.0 - alpha) + scaled.astype(np.float64) * alpha
    return np.clip(np.rint(base), 0, 255).astype(np.uint8)


def darken_into(canvas: np.ndarray, tile: np.ndarray, left: int, top: int) -> None:
    """Combine *tile* into *canvas* in place, keeping the darker channel."""
    h, w = tile.shape[:2]
    region = canvas[top:top + h, left:left + w]
    np.minimum(region, tile, out=region)


@dataclass
class MosaicPlan:
    """Cell → tile assignment of one run, with the order cells were visited."""

    order: list[GridCell] = field(default_factory=list)
    assignments: dict[GridCell, TileRecord] = field(default_factory=dict)

    def tile_indices(self) -> dict[GridCell, int]:
        return {cell: record.index for cell, record in self.assignments.items()}


@dataclass
class MosaicResult:
    """Rendered canvas and the plan that produced it.

    Attributes:
        plan:   Assignment and visitation order.
        canvas: (H, W, 3) uint8 rendered mosaic.
        grid:   (x_count, y_count) tile grid.
    """

    plan: MosaicPlan
    canvas: np.ndarray
    grid: tuple[int, int]

    def encode(self, quality: int = 80) -> bytes:
        return encode_image(self.canvas, quality=quality)


def compose_mosaic(
    source: np.ndarray,
    library: TileLibrary,
    config: MosaicConfig | None = None,
    rng: np.random.Generator | None = None,
) -> MosaicResult:
    """Build and render a mosaic of *source* from *library*.

    Args:
        source:  (H, W, 3) uint8 source image.
        library: Tiles described with ``config.divisions``.
        config:  Run parameters (defaults to :class:`MosaicConfig`).
        rng:     Run-scoped generator; seeded from ``config.seed`` if omitted.
                 It drives both the visitation order and tile selection.

    Returns:
        :class:`MosaicResult` holding the rendered canvas.

    Raises:
        InvalidInput:     source smaller than one tile, or bad parameters.
        EmptyTileLibrary: *library* has no tiles.
        InvalidRegion:    tile size too small for ``config.divisions``.
    """
    cfg = config or MosaicConfig()
    if cfg.scale < 1:
        msg = f"Scale multiplier must be >= 1, got {cfg.scale}"
        raise InvalidInput(msg)

    src_h, src_w = source.shape[:2]
    x_count, y_count = grid_size(src_w, src_h, cfg.tile_width, cfg.tile_height)
    cell_w = cfg.tile_width * cfg.scale
    cell_h = cfg.tile_height * cfg.scale
    width, height = x_count * cell_w, y_count * cell_h

    cells = enumerate_cells(x_count, y_count)
    if len(library) == 0:
        msg = "Tile library is empty"
        raise EmptyTileLibrary(msg)
    if library.divisions != cfg.divisions:
        msg = (
            f"Tile library was described with {library.divisions} divisions, "
            f"run uses {cfg.divisions}"
        )
        raise InvalidInput(msg)

    policy = cfg.policy
    if rng is None:
        rng = np.random.default_rng(cfg.seed)

    descriptors = compute_grid_descriptors(
        source, cfg.tile_width, cfg.tile_height, cfg.divisions, workers=cfg.workers,
    )
    order = visitation_order(cells, rng)

    logger.info(
        "Rendering %dx%d mosaic (%dx%d tiles) from %d library tiles …",
        width, height, x_count, y_count, len(library),
    )
    t0 = time.perf_counter()
    tiled = source[:y_count * cfg.tile_height, :x_count * cfg.tile_width]
    canvas = prepare_canvas(tiled, width, height, cfg.overlay_alpha)

    plan = MosaicPlan(order=order)
    scaled_tiles: dict[int, np.ndarray] = {}
    for cell in order:
        record = select_tile(descriptors[cell], library, rng, policy)
        plan.assignments[cell] = record

        tile = scaled_tiles.get(record.index)
        if tile is None:
            tile = resize_image(record.image, cell_w, cell_h)
            scaled_tiles[record.index] = tile
        darken_into(canvas, tile, cell.x * cell_w, cell.y * cell_h)
        logger.debug("Cell (%d, %d) ← tile #%d", cell.x, cell.y, record.index)

    logger.info(
        "Mosaic rendered  (%.2f s, %d distinct tiles)",
        time.perf_counter() - t0, len(scaled_tiles),
    )
    return MosaicResult(plan=plan, canvas=canvas, grid=(x_count, y_count))


def load_tile_library(
    tile_blobs: Sequence[bytes],
    config: MosaicConfig | None = None,
) -> TileLibrary:
    """Decode tiles, optionally fit them to the tile size, and describe them.

    Raises:
        DecodeFailure: a tile is unreadable (its index is reported).
    """
    cfg = config or MosaicConfig()
    tiles = [decode_image(blob, index=i) for i, blob in enumerate(tile_blobs)]
    if cfg.fit_tiles:
        tiles = [fit_tile(t, cfg.tile_width, cfg.tile_height) for t in tiles]
    return build_tile_library(tiles, cfg.divisions, workers=cfg.workers)


def generate_mosaic(
    source_bytes: bytes,
    tile_blobs: Sequence[bytes],
    config: MosaicConfig | None = None,
    rng: np.random.Generator | None = None,
) -> bytes:
    """Encoded source and tiles in, encoded mosaic out.

    Raises:
        DecodeFailure: the source or a tile (index reported) is unreadable.
        plus everything :func:`compose_mosaic` raises.
    """
    cfg = config or MosaicConfig()
    source = decode_image(source_bytes)
    grid_size(source.shape[1], source.shape[0], cfg.tile_width, cfg.tile_height)
    library = load_tile_library(tile_blobs, cfg)
    result = compose_mosaic(source, library, cfg, rng)
    return result.encode(cfg.jpeg_quality)
