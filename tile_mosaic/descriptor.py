"""Reduced-resolution colour descriptors for image regions."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import NamedTuple, TypeVar

import numpy as np
from skimage.util import view_as_blocks

from tile_mosaic.errors import InvalidRegion

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class Region(NamedTuple):
    """Pixel rectangle inside an image."""

    left: int
    top: int
    width: int
    height: int


class GridCell(NamedTuple):
    """Column / row index of one tile slot in the output grid."""

    x: int
    y: int


def compute_descriptor(
    image: np.ndarray,
    region: Region,
    divisions: int,
) -> np.ndarray:
    """Average colour of each sub-cell of *region*.

    The region is split into ``divisions x divisions`` sub-cells of
    ``width // divisions`` by ``height // divisions`` pixels; leftover
    pixels on the right and bottom of the region are ignored. Channel
    averages are truncated, not rounded.

    Args:
        image:     (H, W, 3) uint8.
        region:    Rectangle that must lie inside *image*.
        divisions: Sub-cells per side (>= 1).

    Returns:
        (divisions, divisions, 3) uint8, indexed ``[row, column]``.

    Raises:
        InvalidRegion: bad division count, region out of bounds, or a
            sub-cell that would be zero pixels wide or tall.
    """
    if divisions < 1:
        msg = f"Division count must be >= 1, got {divisions}"
        raise InvalidRegion(msg)

    left, top, width, height = region
    img_h, img_w = image.shape[:2]
    if (
        left < 0 or top < 0 or width < 0 or height < 0
        or left + width > img_w or top + height > img_h
    ):
        msg = f"Region {tuple(region)} lies outside the {img_w}x{img_h} image"
        raise InvalidRegion(msg)

    sub_w = width // divisions
    sub_h = height // divisions
    if sub_w == 0 or sub_h == 0:
        msg = (
            f"Region {width}x{height} is too small for {divisions} divisions "
            f"(sub-cell would be {sub_w}x{sub_h})"
        )
        raise InvalidRegion(msg)

    patch = image[
        top:top + sub_h * divisions,
        left:left + sub_w * divisions,
        :3,
    ]
    blocks = view_as_blocks(patch, (sub_h, sub_w, 3))
    totals = blocks.sum(axis=(2, 3, 4), dtype=np.int64)
    descriptor = (totals // (sub_w * sub_h)).astype(np.uint8)
    descriptor.setflags(write=False)
    return descriptor


def map_ordered(fn: Callable[[T], R], items: Iterable[T], workers: int | None) -> list[R]:
    """Apply *fn* to every item, in order, optionally on a thread pool."""
    if workers is None or workers <= 1:
        return [fn(item) for item in items]
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(fn, items))


def compute_grid_descriptors(
    image: np.ndarray,
    tile_width: int,
    tile_height: int,
    divisions: int,
    workers: int | None = None,
) -> dict[GridCell, np.ndarray]:
    """Descriptor of every tile-sized cell of *image*.

    Cells cover ``floor(W / tile_width) x floor(H / tile_height)``; the
    right and bottom remainders are skipped.
    """
    img_h, img_w = image.shape[:2]
    x_count = img_w // tile_width
    y_count = img_h // tile_height
    cells = [GridCell(x, y) for y in range(y_count) for x in range(x_count)]

    def describe(cell: GridCell) -> np.ndarray:
        region = Region(cell.x * tile_width, cell.y * tile_height, tile_width, tile_height)
        try:
            return compute_descriptor(image, region, divisions)
        except InvalidRegion as err:
            raise InvalidRegion(str(err), cell=cell) from err

    logger.info(
        "Describing %d cells (%dx%d grid, %d divisions) …",
        len(cells), x_count, y_count, divisions,
    )
    t0 = time.perf_counter()
    descriptors = map_ordered(describe, cells, workers)
    logger.info("Cell descriptors ready  (%.2f s)", time.perf_counter() - t0)
    return dict(zip(cells, descriptors, strict=True))
