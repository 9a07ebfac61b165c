"""Tile selection: score every tile against a cell, pick a near-best one."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from tile_mosaic.errors import EmptyTileLibrary, InvalidInput

if TYPE_CHECKING:
    from tile_mosaic.library import TileLibrary, TileRecord

ScoreFn = Callable[[np.ndarray, np.ndarray], np.ndarray]


def quadrant_score(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Quadrant colour score between descriptors (lower is closer).

    For each sub-cell: ``sqrt(|Ra² - Rb²| + |Ga² - Gb²| + |Ba² - Bb²|)``,
    summed over all sub-cells. Squared channel values are compared, not
    squared differences, so this is not Euclidean distance. Pass another
    ``score`` to :func:`select_tile` to swap it out.

    Args:
        a: (..., N, N, 3) descriptor(s).
        b: (..., N, N, 3) descriptor(s); broadcast against *a*.

    Returns:
        Score per broadcast descriptor pair, float64.
    """
    sq_a = np.asarray(a, dtype=np.int64) ** 2
    sq_b = np.asarray(b, dtype=np.int64) ** 2
    per_cell = np.sqrt(np.abs(sq_a - sq_b).sum(axis=-1))
    return per_cell.sum(axis=(-2, -1))


def rank_tiles(
    cell_descriptor: np.ndarray,
    library: TileLibrary,
    score: ScoreFn = quadrant_score,
) -> np.ndarray:
    """Library indices ordered best match first; ties keep library order."""
    if len(library) == 0:
        msg = "Cannot rank against an empty tile library"
        raise EmptyTileLibrary(msg)
    scores = np.asarray(score(cell_descriptor, library.descriptors), dtype=np.float64)
    return np.argsort(scores, kind="stable")


@dataclass(frozen=True)
class SelectionPolicy:
    """Near-best selection between the two top-ranked tiles.

    Attributes:
        best_probability: Chance of returning the best match; otherwise
            the runner-up is returned.
    """

    best_probability: float = 0.8

    def __post_init__(self) -> None:
        if not 0.0 <= self.best_probability <= 1.0:
            msg = f"best_probability must be within [0, 1], got {self.best_probability}"
            raise InvalidInput(msg)

    def choose(self, ranked: np.ndarray, rng: np.random.Generator) -> int:
        """Pick a library index from *ranked*, drawing once from *rng*."""
        if len(ranked) < 2:
            return int(ranked[0])
        if rng.random() < self.best_probability:
            return int(ranked[0])
        return int(ranked[1])


DEFAULT_POLICY = SelectionPolicy()


def select_tile(
    cell_descriptor: np.ndarray,
    library: TileLibrary,
    rng: np.random.Generator,
    policy: SelectionPolicy = DEFAULT_POLICY,
    score: ScoreFn = quadrant_score,
) -> TileRecord:
    """Choose the tile for one grid cell.

    Args:
        cell_descriptor: (N, N, 3) descriptor of the cell.
        library:         Tiles described with the same division count.
        rng:             Run-scoped generator.
        policy:          Best / runner-up split.
        score:           Descriptor scoring function.

    Raises:
        EmptyTileLibrary: *library* has no tiles.
    """
    ranked = rank_tiles(cell_descriptor, library, score)
    return library[policy.choose(ranked, rng)]
