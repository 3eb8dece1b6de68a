from __future__ import annotations
from typing import List, NamedTuple, Sequence, Tuple

import numpy as np


class Pixel(NamedTuple):
    red: int
    green: int
    blue: int


class EmptyImageError(ValueError):
    """Raised when an operation needs at least one pixel and gets none."""


EMPTY_IMAGE = np.zeros((0, 0, 3), dtype=np.uint8)


def new_image(height: int, width: int, fill: Tuple[int, int, int] = (0, 0, 0)) -> np.ndarray:
    img = np.empty((height, width, 3), dtype=np.uint8)
    img[...] = fill
    return img


def from_pixels(rows: Sequence[Sequence[Sequence[int]]]) -> np.ndarray:
    """Build an RGB uint8 buffer from nested rows of (r, g, b) triples."""
    if len(rows) == 0:
        return EMPTY_IMAGE.copy()
    width = len(rows[0])
    for i, row in enumerate(rows):
        if len(row) != width:
            raise ValueError(f"row {i} has {len(row)} pixels, expected {width}")
    arr = np.asarray(rows, dtype=np.int64).reshape(len(rows), width, 3)
    if arr.min(initial=0) < 0 or arr.max(initial=0) > 255:
        raise ValueError("channel values must be in [0, 255]")
    return arr.astype(np.uint8)


def to_pixels(img: np.ndarray) -> List[List[Pixel]]:
    return [[Pixel(*map(int, px)) for px in row] for row in img]


def dimensions(img: np.ndarray) -> Tuple[int, int]:
    """(height, width) of a buffer."""
    return int(img.shape[0]), int(img.shape[1])


def is_empty(img: np.ndarray) -> bool:
    return img.size == 0


def ensure_image(img: np.ndarray) -> np.ndarray:
    """Check shape (H, W, 3) with H, W > 0. Returns the buffer as uint8."""
    if not isinstance(img, np.ndarray) or img.ndim != 3 or img.shape[2] != 3:
        shape = getattr(img, "shape", None)
        raise ValueError(f"expected an (height, width, 3) array, got shape {shape}")
    if img.shape[0] == 0 or img.shape[1] == 0:
        raise EmptyImageError(f"image has no pixels (shape {img.shape})")
    if img.dtype != np.uint8:
        if img.min() < 0 or img.max() > 255:
            raise ValueError("channel values must be in [0, 255]")
        img = img.astype(np.uint8)
    return img


def to_channels(values: np.ndarray, policy: str = "clamp") -> np.ndarray:
    """
    Turn float channel math back into bytes.
    Truncates toward zero, then clamps or wraps into [0, 255].
    """
    whole = np.trunc(values)
    # stay in float until the range is bounded; huge values overflow int64
    if policy == "clamp":
        return np.clip(whole, 0, 255).astype(np.uint8)
    if policy == "wrap":
        low = np.fmod(whole, 256).astype(np.int64)
        return np.mod(low, 256).astype(np.uint8)
    raise ValueError(f"Unknown channel policy: {policy}")
