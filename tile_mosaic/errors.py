"""Exceptions raised by the mosaic engine.

Every error is terminal for the run that raised it. Where a grid cell or a
tile is at fault its index is kept on the exception and repeated in the
message.
"""

from __future__ import annotations


class MosaicError(ValueError):
    """Base class for all mosaic failures."""

    def __init__(
        self,
        message: str,
        *,
        cell: tuple[int, int] | None = None,
        tile_index: int | None = None,
    ) -> None:
        self.cell = cell
        self.tile_index = tile_index
        if cell is not None:
            message = f"{message} (cell x={cell[0]}, y={cell[1]})"
        if tile_index is not None:
            message = f"{message} (tile #{tile_index})"
        super().__init__(message)


class InvalidRegion(MosaicError):
    """Region/division combination leaves a sub-cell with no pixels."""


class InvalidInput(MosaicError):
    """Source image or run parameters cannot produce a mosaic."""


class EmptyTileLibrary(MosaicError):
    """No tiles to match against."""


class DecodeFailure(MosaicError):
    """Image bytes could not be decoded."""
