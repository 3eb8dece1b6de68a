from __future__ import annotations
from pathlib import Path
import logging
import os

import cv2
import numpy as np

from .image import ensure_image

logger = logging.getLogger(__name__)

BITMAP_SUFFIX = ".bmp"


# I/O & filesystem helpers

def ensure_dir(path: str | os.PathLike) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)


def resolve_bitmap_path(name: str | os.PathLike) -> Path:
    """Add the .bmp suffix when the user typed just the name."""
    p = Path(name)
    if p.suffix.lower() != BITMAP_SUFFIX:
        p = p.with_name(p.name + BITMAP_SUFFIX)
    return p


def same_file(a: str | os.PathLike, b: str | os.PathLike) -> bool:
    pa, pb = Path(a), Path(b)
    if pa.exists() and pb.exists():
        return pa.samefile(pb)
    return pa.resolve() == pb.resolve()


def export_preview(img_rgb: np.ndarray, path: str | os.PathLike) -> bool:
    """Write a PNG copy of an RGB buffer (OpenCV expects BGR)."""
    img_rgb = ensure_image(img_rgb)
    ensure_dir(Path(path).parent)
    ok = bool(cv2.imwrite(str(path), cv2.cvtColor(img_rgb, cv2.COLOR_RGB2BGR)))
    if not ok:
        logger.error("Could not write preview %s", path)
    return ok
