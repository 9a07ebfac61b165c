"""The tile library: decoded tiles paired with their descriptors."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

import numpy as np

from tile_mosaic.descriptor import Region, compute_descriptor, map_ordered
from tile_mosaic.errors import InvalidRegion

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class TileRecord:
    """One tile image and its descriptor over the full tile area.

    Attributes:
        index:      Position of the tile in its library.
        image:      (h, w, 3) uint8, read-only.
        descriptor: (N, N, 3) uint8, read-only.
    """

    index: int
    image: np.ndarray
    descriptor: np.ndarray


class TileLibrary:
    """Ordered, immutable collection of :class:`TileRecord` objects.

    Safe to share between concurrent runs once built. The stacked
    descriptors are cached so matching can score every tile at once.
    """

    def __init__(self, records: Sequence[TileRecord]) -> None:
        self._records = tuple(records)
        if self._records:
            stacked = np.stack([r.descriptor for r in self._records])
        else:
            stacked = np.empty((0, 0, 0, 3), dtype=np.uint8)
        stacked.setflags(write=False)
        self._descriptors = stacked

    @property
    def descriptors(self) -> np.ndarray:
        """(T, N, N, 3) uint8 descriptors in library order."""
        return self._descriptors

    @property
    def divisions(self) -> int | None:
        return self._descriptors.shape[1] if self._records else None

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[TileRecord]:
        return iter(self._records)

    def __getitem__(self, index: int) -> TileRecord:
        return self._records[index]

    def __repr__(self) -> str:
        return f"TileLibrary({len(self)} tiles, divisions={self.divisions})"


def build_tile_library(
    images: Sequence[np.ndarray],
    divisions: int,
    workers: int | None = None,
) -> TileLibrary:
    """Describe every tile over its own full area.

    Args:
        images:    Decoded (h, w, 3) uint8 tiles, in library order.
        divisions: Sub-cells per side.
        workers:   Threads to spread the work over (None or 1 = serial).

    Raises:
        InvalidRegion: a tile is smaller than *divisions* pixels on a side.
    """

    def describe(item: tuple[int, np.ndarray]) -> TileRecord:
        index, image = item
        frozen = np.array(image[..., :3], dtype=np.uint8)
        frozen.setflags(write=False)
        h, w = frozen.shape[:2]
        try:
            descriptor = compute_descriptor(frozen, Region(0, 0, w, h), divisions)
        except InvalidRegion as err:
            raise InvalidRegion(str(err), tile_index=index) from err
        return TileRecord(index=index, image=frozen, descriptor=descriptor)

    logger.info("Describing %d tiles (%d divisions) …", len(images), divisions)
    t0 = time.perf_counter()
    records = map_ordered(describe, list(enumerate(images)), workers)
    logger.info("Tile library ready  (%.2f s)", time.perf_counter() - t0)
    return TileLibrary(records)
