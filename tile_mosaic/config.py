"""Centralised configuration via a frozen dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from tile_mosaic.matcher import SelectionPolicy


@dataclass(frozen=True)
class MosaicConfig:
    """All tuneable parameters for a mosaic run.

    Attributes:
        tile_width:     Width of one grid cell in source pixels.
        tile_height:    Height of one grid cell in source pixels.
        divisions:      Quadrant division count; descriptors are N x N.
        scale:          Each source pixel becomes n x n in the output image.
        seed:           Random seed for shuffle and tile selection (None = non-deterministic).
        best_match_probability: Chance of taking the best match over the runner-up.
        overlay_alpha:  Opacity (0-255) of the source drawn under the tiles.
        jpeg_quality:   Quality of the encoded output.
        workers:        Threads for descriptor computation (None or 1 = serial).
        fit_tiles:      Centre-crop and resize tiles to the tile size before matching.
        input_dir:      Folder to scan for source images.
        tiles_dir:      Folder holding the tile images.
        output_dir:     Folder for results.
    """

    # Grid
    tile_width: int = 20
    tile_height: int = 20
    divisions: int = 1

    # Matching
    seed: int | None = None
    best_match_probability: float = 0.8

    # Rendering
    scale: int = 1
    overlay_alpha: int = 200
    jpeg_quality: int = 80

    # Descriptor computation
    workers: int | None = None
    fit_tiles: bool = True

    # Paths
    input_dir: Path = field(default_factory=lambda: Path("images"))
    tiles_dir: Path = field(default_factory=lambda: Path("tiles"))
    output_dir: Path = field(default_factory=lambda: Path("output"))

    SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(
        {".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif", ".webp", ".jfif"}
    )

    @property
    def policy(self) -> SelectionPolicy:
        return SelectionPolicy(best_probability=self.best_match_probability)
