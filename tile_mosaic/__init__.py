"""
Tile Mosaic Generator
=====================

Rebuild a photograph out of a library of small tile images. Each grid
cell of the source is described by an N x N grid of average colours and
matched against the same descriptor of every tile:

- **descriptor** - reduced-resolution colour signatures
- **matcher** - near-best tile selection (best 80 %, runner-up 20 %)
- **composer** - randomized visitation, darken-blended rendering, JPEG output
"""

__version__ = "1.0.0"

from tile_mosaic.composer import (
    MosaicPlan,
    MosaicResult,
    compose_mosaic,
    generate_mosaic,
    grid_size,
)
from tile_mosaic.config import MosaicConfig
from tile_mosaic.descriptor import GridCell, Region, compute_descriptor
from tile_mosaic.errors import (
    DecodeFailure,
    EmptyTileLibrary,
    InvalidInput,
    InvalidRegion,
    MosaicError,
)
from tile_mosaic.image_io import decode_image, encode_image
from tile_mosaic.library import TileLibrary, TileRecord, build_tile_library
from tile_mosaic.matcher import SelectionPolicy, quadrant_score, select_tile

__all__ = [
    "DecodeFailure",
    "EmptyTileLibrary",
    "GridCell",
    "InvalidInput",
    "InvalidRegion",
    "MosaicConfig",
    "MosaicError",
    "MosaicPlan",
    "MosaicResult",
    "Region",
    "SelectionPolicy",
    "TileLibrary",
    "TileRecord",
    "build_tile_library",
    "compose_mosaic",
    "compute_descriptor",
    "decode_image",
    "encode_image",
    "generate_mosaic",
    "grid_size",
    "quadrant_score",
    "select_tile",
]
