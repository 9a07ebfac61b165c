"""Image decoding, encoding, and tile preparation."""

from __future__ import annotations

import io
from collections.abc import Iterable
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from tile_mosaic.errors import DecodeFailure


def decode_image(data: bytes, index: int | None = None) -> np.ndarray:
    """Decode encoded image bytes into an (H, W, 3) uint8 array.

    Args:
        data:  Encoded image (any format Pillow reads).
        index: Tile index reported on failure, if the bytes are a tile.

    Raises:
        DecodeFailure: the bytes are not a readable image.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            return np.array(img.convert("RGB"), dtype=np.uint8)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as err:
        msg = f"Could not decode image: {err}"
        raise DecodeFailure(msg, tile_index=index) from err


def encode_image(array: np.ndarray, quality: int = 80, fmt: str = "JPEG") -> bytes:
    """Encode an (H, W, 3) uint8 array as compressed image bytes."""
    buf = io.BytesIO()
    Image.fromarray(array.astype(np.uint8)).save(buf, format=fmt, quality=quality)
    return buf.getvalue()


def resize_image(array: np.ndarray, width: int, height: int) -> np.ndarray:
    """Resample an (h, w, 3) uint8 array to exactly *width* x *height*."""
    if array.shape[1] == width and array.shape[0] == height:
        return array
    img = Image.fromarray(array).resize((width, height), Image.LANCZOS)
    return np.array(img, dtype=np.uint8)


def fit_tile(array: np.ndarray, tile_width: int, tile_height: int) -> np.ndarray:
    """Centre-crop to the tile aspect ratio, then resize to the tile size."""
    h, w = array.shape[:2]
    target_ratio = tile_width / tile_height
    if w / h > target_ratio:
        crop_w = max(1, round(h * target_ratio))
        left = (w - crop_w) // 2
        array = array[:, left:left + crop_w]
    else:
        crop_h = max(1, round(w / target_ratio))
        top = (h - crop_h) // 2
        array = array[top:top + crop_h]
    return resize_image(np.ascontiguousarray(array), tile_width, tile_height)


def collect_images(folder: Path, extensions: frozenset[str]) -> list[Path]:
    """Image files directly inside *folder*, sorted by name."""
    if not folder.exists():
        return []
    return sorted(
        f for f in folder.iterdir()
        if f.is_file() and f.suffix.lower() in extensions
    )


def read_blobs(paths: Iterable[Path]) -> list[bytes]:
    return [Path(p).read_bytes() for p in paths]
